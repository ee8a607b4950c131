"""Shared fixtures: small scores written to disk with music21."""

from pathlib import Path

import pytest
from music21 import key, meter, note, stream


@pytest.fixture
def g_major_musicxml(tmp_path: Path) -> Path:
    """Two measures in G major: F natural twice, then F sharp again."""
    part = stream.Part()
    first = stream.Measure(number=1)
    first.append(key.KeySignature(1))
    first.append(meter.TimeSignature("4/4"))
    for element in [note.Note("F5"), note.Note("F5"), note.Note("G5"), note.Rest()]:
        first.append(element)
    second = stream.Measure(number=2)
    for name in ["F#5", "G5", "A5", "B5"]:
        second.append(note.Note(name))
    part.append([first, second])

    score = stream.Score()
    score.insert(0, part)

    path = tmp_path / "g_major_study.musicxml"
    score.write("musicxml", fp=str(path))
    return path
