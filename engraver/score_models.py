"""Data models for notes placed on a staff and for sheet rendering outputs."""

from dataclasses import dataclass, field

from engraver.pitch import Pitch


@dataclass
class GraphicalNote:
    """
    A note placeholder on a staff that an accidental glyph can be attached to.

    Rests carry no pitch. ``accidental`` holds the VexFlow symbol of the
    attached glyph, or ``None`` when nothing is drawn.
    """

    pitch: Pitch | None = None
    accidental: str | None = None


@dataclass(frozen=True)
class VexflowNote:
    """A single VexFlow note or chord token."""

    keys: list[str]
    duration: str
    accidentals: list[str | None]


@dataclass(frozen=True)
class VexflowStaff:
    """
    The notes of one part within one measure, one note list per voice.

    ``key_signature`` is set when the part states a key in this measure.
    """

    clef: str
    voices: list[list[VexflowNote]]
    key_signature: str | None = None


@dataclass(frozen=True)
class VexflowMeasure:
    """All staves of one measure, top to bottom."""

    staves: list[VexflowStaff]


@dataclass(frozen=True)
class ScoreDocument:
    """Neutral score representation consumed by renderers."""

    title: str
    time_signature: str
    beats: int
    beat_value: int
    measures: list[VexflowMeasure] = field(default_factory=list)
