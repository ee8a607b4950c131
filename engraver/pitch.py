"""Pitch and key signature models consumed by the accidental calculator."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Final


class NoteLetter(IntEnum):
    """Note letters, valued by their half-tone distance from C."""

    C = 0
    D = 2
    E = 4
    F = 5
    G = 7
    A = 9
    B = 11


class AccidentalKind(Enum):
    """Symbolic accidental attached to a pitch."""

    NONE = "none"
    NATURAL = "natural"
    SHARP = "sharp"
    FLAT = "flat"
    DOUBLE_SHARP = "double-sharp"
    DOUBLE_FLAT = "double-flat"

    @property
    def is_alteration(self) -> bool:
        """True for an actual sharp/flat/double-sharp/double-flat."""
        return self not in (AccidentalKind.NONE, AccidentalKind.NATURAL)


_HALF_TONES: Final[dict[AccidentalKind, int]] = {
    AccidentalKind.NONE: 0,
    AccidentalKind.NATURAL: 0,
    AccidentalKind.SHARP: 1,
    AccidentalKind.FLAT: -1,
    AccidentalKind.DOUBLE_SHARP: 2,
    AccidentalKind.DOUBLE_FLAT: -2,
}

_FROM_HALF_TONES: Final[dict[int, AccidentalKind]] = {
    0: AccidentalKind.NONE,
    1: AccidentalKind.SHARP,
    -1: AccidentalKind.FLAT,
    2: AccidentalKind.DOUBLE_SHARP,
    -2: AccidentalKind.DOUBLE_FLAT,
}

_SUFFIXES: Final[dict[str, AccidentalKind]] = {
    "": AccidentalKind.NONE,
    "n": AccidentalKind.NATURAL,
    "#": AccidentalKind.SHARP,
    "b": AccidentalKind.FLAT,
    "##": AccidentalKind.DOUBLE_SHARP,
    "bb": AccidentalKind.DOUBLE_FLAT,
}

_PITCH_PATTERN = re.compile(r"^([A-Ga-g])(##|bb|#|b|n)?(-?\d+)$")

# Order in which letters enter a key signature
SHARP_ORDER: Final[tuple[NoteLetter, ...]] = (
    NoteLetter.F, NoteLetter.C, NoteLetter.G, NoteLetter.D,
    NoteLetter.A, NoteLetter.E, NoteLetter.B,
)
FLAT_ORDER: Final[tuple[NoteLetter, ...]] = tuple(reversed(SHARP_ORDER))

_MAJOR_KEY_NAMES: Final[dict[int, str]] = {
    -7: "Cb", -6: "Gb", -5: "Db", -4: "Ab", -3: "Eb", -2: "Bb", -1: "F",
    0: "C", 1: "G", 2: "D", 3: "A", 4: "E", 5: "B", 6: "F#", 7: "C#",
}


def half_tones_from_accidental(kind: AccidentalKind) -> int:
    """Return the half-tone offset from the natural pitch for an accidental."""
    return _HALF_TONES[kind]


def accidental_from_half_tones(half_tones: int) -> AccidentalKind:
    """
    Return the accidental for a half-tone offset.

    Raises:
        ValueError: If the offset is outside the double-flat..double-sharp range.
    """
    try:
        return _FROM_HALF_TONES[half_tones]
    except KeyError:
        raise ValueError(f"No accidental for {half_tones} half-tones.") from None


@dataclass(frozen=True)
class Pitch:
    """
    A resolved pitch: note letter, scientific octave and accidental.

    Attributes:
        letter:     Note letter (staff position within the octave).
        octave:     Scientific octave number, C4 = middle C.
        accidental: Accidental applied to the letter.
    """

    letter: NoteLetter
    octave: int
    accidental: AccidentalKind = AccidentalKind.NONE

    @property
    def accidental_half_tones(self) -> int:
        return half_tones_from_accidental(self.accidental)

    @property
    def pitch_key(self) -> int:
        """Identity of the staff position, independent of the accidental."""
        return int(self.letter) + self.octave * 12

    @classmethod
    def parse(cls, text: str) -> Pitch:
        """
        Build a pitch from text such as ``"F#5"``, ``"Bb3"`` or ``"En4"``.

        Raises:
            ValueError: If the text is not a letter, optional accidental and octave.
        """
        match = _PITCH_PATTERN.match(text.strip())
        if not match:
            raise ValueError(f"Cannot parse pitch '{text}'.")
        letter, suffix, octave = match.groups()
        return cls(
            letter=NoteLetter[letter.upper()],
            octave=int(octave),
            accidental=_SUFFIXES[suffix or ""],
        )

    def __str__(self) -> str:
        suffix = next(s for s, kind in _SUFFIXES.items() if kind is self.accidental)
        return f"{self.letter.name}{suffix}{self.octave}"


@dataclass(frozen=True)
class KeySignature:
    """
    A key signature as a signed count of fifths.

    Positive values count sharps, negative values count flats.
    """

    key: int = 0

    @property
    def is_sharp(self) -> bool:
        return self.key > 0

    @property
    def altered_letters(self) -> list[NoteLetter]:
        """Letters altered by this signature, in the order they are written."""
        count = min(abs(self.key), 7)
        order = SHARP_ORDER if self.is_sharp else FLAT_ORDER
        return list(order[:count])

    @property
    def vexflow_name(self) -> str:
        """Major key name understood by VexFlow's ``addKeySignature``."""
        return _MAJOR_KEY_NAMES[max(-7, min(7, self.key))]
