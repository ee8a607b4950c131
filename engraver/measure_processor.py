"""MeasureProcessor: walks a score measure by measure and decides its accidentals."""

from __future__ import annotations

import logging
import re
from fractions import Fraction
from typing import Any, Final
from xml.etree.ElementTree import ParseError

from engraver.accidental_calculator import AccidentalCalculator
from engraver.pitch import (
    AccidentalKind,
    KeySignature,
    NoteLetter,
    Pitch,
    accidental_from_half_tones,
)
from engraver.score_models import (
    GraphicalNote,
    ScoreDocument,
    VexflowMeasure,
    VexflowNote,
    VexflowStaff,
)
from engraver.symbol_factory import AccidentalSymbolFactory, VexflowSymbolFactory

logger = logging.getLogger(__name__)

_VEXFLOW_KEY_SUFFIXES: Final[dict[AccidentalKind, str]] = {
    AccidentalKind.NONE: "",
    AccidentalKind.NATURAL: "",
    AccidentalKind.SHARP: "#",
    AccidentalKind.FLAT: "b",
    AccidentalKind.DOUBLE_SHARP: "##",
    AccidentalKind.DOUBLE_FLAT: "bb",
}

_CLEF_SIGNS: Final[dict[str, str]] = {"G": "treble", "F": "bass", "C": "alto"}


def pitch_from_music21(m21_pitch: Any) -> Pitch:
    """
    Convert a ``music21.pitch.Pitch`` into a :class:`Pitch`.

    Raises:
        ValueError: If the pitch carries a microtonal accidental.
    """
    octave = m21_pitch.octave
    if octave is None:
        octave = m21_pitch.implicitOctave

    accidental = AccidentalKind.NONE
    m21_accidental = m21_pitch.accidental
    if m21_accidental is not None:
        alter = float(m21_accidental.alter)
        if not alter.is_integer():
            raise ValueError(
                f"Unsupported accidental '{m21_accidental.name}' on {m21_pitch.nameWithOctave}."
            )
        if m21_accidental.name == "natural":
            accidental = AccidentalKind.NATURAL
        else:
            accidental = accidental_from_half_tones(int(alter))

    return Pitch(letter=NoteLetter[m21_pitch.step], octave=int(octave), accidental=accidental)


def vexflow_key(pitch: Pitch) -> str:
    """Return the VexFlow key (``"f#/5"``) that places *pitch* on the staff."""
    suffix = _VEXFLOW_KEY_SUFFIXES[pitch.accidental]
    return f"{pitch.letter.name.lower()}{suffix}/{pitch.octave}"


def check_notes(
    calculator: AccidentalCalculator, pitches: list[Pitch | None]
) -> list[GraphicalNote]:
    """Check each pitch in order and return the annotated graphical notes."""
    graphical_notes: list[GraphicalNote] = []
    for pitch in pitches:
        graphical_note = GraphicalNote(pitch=pitch)
        if calculator.check_accidental(graphical_note, pitch):
            logger.debug("Accidental %s attached to %s", graphical_note.accidental, pitch)
        graphical_notes.append(graphical_note)
    return graphical_notes


def annotate_part(
    measures: list[list[Pitch | None]],
    key_signature: KeySignature | None = None,
    symbol_factory: AccidentalSymbolFactory | None = None,
) -> list[list[GraphicalNote]]:
    """
    Decide the accidentals of a single part given as plain pitches.

    Args:
        measures:       Pitches per measure in score order, ``None`` for rests.
        key_signature:  Key signature governing the whole part (C major if omitted).
        symbol_factory: Glyph collaborator, VexFlow symbols by default.

    Returns:
        Graphical notes per measure, mirroring the input layout.
    """
    calculator = AccidentalCalculator(symbol_factory or VexflowSymbolFactory())
    calculator.active_key_signature = key_signature or KeySignature()

    annotated: list[list[GraphicalNote]] = []
    for pitches in measures:
        annotated.append(check_notes(calculator, pitches))
        calculator.end_of_measure()
    return annotated


class MeasureProcessor:
    """
    Drive one AccidentalCalculator per part through a music21 score.

    For every measure the processor applies any key signature stated in it,
    checks the notes voice by voice (top to bottom, left to right, chord
    tones bottom-up) and signals the end of the measure. Each music21 voice
    becomes its own VexFlow voice on the part's staff.
    """

    _DURATION_MAP: Final[list[tuple[float, str]]] = [
        (4.0, "w"),
        (3.0, "hd"),
        (2.0, "h"),
        (1.5, "qd"),
        (1.0, "q"),
        (0.75, "8d"),
        (0.5, "8"),
        (0.25, "16"),
    ]

    def __init__(
        self,
        title: str = "",
        symbol_factory: AccidentalSymbolFactory | None = None,
    ) -> None:
        self.title = title
        self.symbol_factory = symbol_factory or VexflowSymbolFactory()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _extract_parts(self, score: Any) -> list[Any]:
        parts = list(getattr(score, "parts", []))
        if not parts and list(score.getElementsByClass("Measure")):
            parts = [score]
        return parts

    def _extract_measures(self, part: Any) -> list[Any]:
        measures = list(part.getElementsByClass("Measure"))
        if not measures:
            measures = list(part.makeMeasures().getElementsByClass("Measure"))
        return measures

    def _extract_time_signature(self, score: Any) -> str:
        for ts in score.recurse().getElementsByClass("TimeSignature"):
            ratio = getattr(ts, "ratioString", None)
            if isinstance(ratio, str) and ratio:
                return ratio
        return "4/4"

    def _parse_time_signature(self, time_signature: str) -> tuple[int, int]:
        match = re.match(r"^(\d+)/(\d+)$", time_signature.strip())
        if not match:
            return 4, 4
        beats = max(1, int(match.group(1)))
        beat_value = max(1, int(match.group(2)))
        return beats, beat_value

    def _resolve_clef(self, part: Any, index: int) -> str:
        for clef in part.recurse().getElementsByClass("Clef"):
            sign = getattr(clef, "sign", None)
            if sign in _CLEF_SIGNS:
                return _CLEF_SIGNS[sign]
        return "treble" if index == 0 else "bass"

    def _quarter_length_to_duration(self, quarter_length: float) -> str:
        if quarter_length <= 0:
            return "q"

        _, duration = min(
            self._DURATION_MAP,
            key=lambda pair: abs(pair[0] - quarter_length),
        )
        return duration

    def _rest_key(self, clef: str) -> str:
        return "d/3" if clef == "bass" else "b/4"

    def _default_rest(self, clef: str) -> VexflowNote:
        return VexflowNote(keys=[self._rest_key(clef)], duration="wr", accidentals=[None])

    def _measure_voices(self, measure: Any) -> list[list[Any]]:
        """Notes and rests of a measure, one list per voice, top voice first."""
        containers = list(measure.voices) or [measure]
        return [list(container.notesAndRests) for container in containers]

    def _apply_key_signatures(self, calculator: AccidentalCalculator, measure: Any) -> str | None:
        stated: str | None = None
        # a mid-measure key change also governs the notes before it
        for m21_key in measure.recurse().getElementsByClass("KeySignature"):
            signature = KeySignature(key=int(m21_key.sharps))
            calculator.active_key_signature = signature
            stated = signature.vexflow_name
            logger.debug("Measure %s: key signature %s", measure.number, stated)
        return stated

    def _element_to_note(
        self, calculator: AccidentalCalculator, element: Any, clef: str
    ) -> VexflowNote:
        quarter_length = float(Fraction(element.duration.quarterLength))
        duration = self._quarter_length_to_duration(quarter_length)

        m21_pitches = [] if element.isRest else list(getattr(element, "pitches", ()))
        if not m21_pitches:
            # rests and unpitched notes still pass through the calculator
            check_notes(calculator, [None])
            return VexflowNote(
                keys=[self._rest_key(clef)],
                duration=f"{duration}r",
                accidentals=[None],
            )

        pitches: list[Pitch | None] = [
            pitch_from_music21(p) for p in sorted(m21_pitches, key=lambda p: p.ps)
        ]
        graphical_notes = check_notes(calculator, pitches)
        return VexflowNote(
            keys=[vexflow_key(gn.pitch) for gn in graphical_notes if gn.pitch is not None],
            duration=duration,
            accidentals=[gn.accidental for gn in graphical_notes],
        )

    def _process_part(self, part: Any, clef: str) -> list[VexflowStaff]:
        calculator = AccidentalCalculator(self.symbol_factory)
        calculator.active_key_signature = KeySignature()

        staves: list[VexflowStaff] = []
        for measure in self._extract_measures(part):
            stated = self._apply_key_signatures(calculator, measure)

            # all voices share the calculator; the barline comes after the last one
            voices = [
                [self._element_to_note(calculator, element, clef) for element in elements]
                for elements in self._measure_voices(measure)
            ]
            voices = [notes for notes in voices if notes] or [[self._default_rest(clef)]]
            staves.append(VexflowStaff(clef=clef, voices=voices, key_signature=stated))
            calculator.end_of_measure()

        return staves

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse_score(self, path: str) -> Any:
        """
        Load any format music21 understands (MusicXML, MIDI, ABC, ...).

        Raises:
            ValueError: If music21 cannot parse the file.
        """
        from music21 import converter, exceptions21

        try:
            return converter.parse(path)
        except (exceptions21.Music21Exception, ParseError) as exc:
            raise ValueError(f"music21 could not parse '{path}': {exc}") from exc

    def process(self, score: Any) -> ScoreDocument:
        """
        Compute the accidentals of every part and build a renderable document.

        Raises:
            ValueError: If the score has no parts or carries microtonal accidentals.
        """
        parts = self._extract_parts(score)
        if not parts:
            raise ValueError("Score contains no parts.")

        time_signature = self._extract_time_signature(score)
        beats, beat_value = self._parse_time_signature(time_signature)

        part_staves: list[list[VexflowStaff]] = []
        clefs: list[str] = []
        for index, part in enumerate(parts):
            clef = self._resolve_clef(part, index)
            clefs.append(clef)
            staves = self._process_part(part, clef)
            logger.info("Processed part %d (%s): %d measures", index + 1, clef, len(staves))
            part_staves.append(staves)

        measure_count = max(max(len(staves) for staves in part_staves), 1)
        measures: list[VexflowMeasure] = []
        for idx in range(measure_count):
            measure_staves = [
                staves[idx]
                if idx < len(staves)
                else VexflowStaff(clef=clef, voices=[[self._default_rest(clef)]])
                for staves, clef in zip(part_staves, clefs)
            ]
            measures.append(VexflowMeasure(staves=measure_staves))

        return ScoreDocument(
            title=self.title,
            time_signature=time_signature,
            beats=beats,
            beat_value=beat_value,
            measures=measures,
        )
