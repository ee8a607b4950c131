"""AccidentalCalculator: decides which notes need an accidental glyph."""

from __future__ import annotations

from typing import Final

from engraver.pitch import AccidentalKind, KeySignature, Pitch, half_tones_from_accidental
from engraver.score_models import GraphicalNote
from engraver.symbol_factory import AccidentalSymbolFactory

# Octave range covered by the key signature alterations (inclusive)
MIN_OCTAVE: Final[int] = -9
MAX_OCTAVE: Final[int] = 8


class AccidentalCalculator:
    """
    Compute the accidentals for notes according to the active key signature.

    One calculator tracks one notation context (a part or staff). It must be
    driven in score order: ``active_key_signature`` whenever the key changes,
    ``check_accidental`` once per note, and ``end_of_measure`` after the last
    note of every measure.

    State
    -----
    - key signature alterations: pitch key -> half-tones for every altered
      letter in every covered octave.
    - measure alterations: pitch key -> half-tones in effect within the
      current measure, reseeded from the key signature at every barline.
    - dangling alterations: pitch keys altered away from the key signature
      in some measure and not resolved since. These survive barlines and
      produce courtesy accidentals. Keys altered within the current measure
      are already shown there and owe nothing until the next barline.
    """

    def __init__(self, symbol_factory: AccidentalSymbolFactory) -> None:
        self.symbol_factory = symbol_factory
        self._active_key_signature: KeySignature | None = None
        self._key_signature_alterations: dict[int, int] = {}
        self._measure_alterations: dict[int, int] = {}
        self._dangling_alterations: set[int] = set()
        self._altered_in_measure: set[int] = set()

    @property
    def active_key_signature(self) -> KeySignature | None:
        return self._active_key_signature

    @active_key_signature.setter
    def active_key_signature(self, value: KeySignature) -> None:
        self._active_key_signature = value
        self._react_on_key_signature_change()

    @property
    def key_signature_alterations(self) -> dict[int, int]:
        return dict(self._key_signature_alterations)

    @property
    def measure_alterations(self) -> dict[int, int]:
        return dict(self._measure_alterations)

    @property
    def dangling_alterations(self) -> frozenset[int]:
        return frozenset(self._dangling_alterations)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def end_of_measure(self) -> None:
        """Drop the in-measure alterations and reload the key signature ones."""
        self._measure_alterations = dict(self._key_signature_alterations)
        self._altered_in_measure.clear()

    def check_accidental(self, graphical_note: GraphicalNote, pitch: Pitch | None) -> bool:
        """
        Attach an accidental to *graphical_note* if its pitch requires one.

        Args:
            graphical_note: Placeholder handed to the symbol factory.
            pitch:          Resolved pitch of the note, ``None`` for rests.

        Returns:
            True if a glyph was attached.
        """
        if pitch is None:
            return False

        pitch_key = pitch.pitch_key
        half_tones = pitch.accidental_half_tones
        # only alterations left over from an earlier measure are owed
        dangling = (
            pitch_key in self._dangling_alterations
            and pitch_key not in self._altered_in_measure
        )

        if pitch_key in self._measure_alterations:
            # altered earlier in this measure, or a key signature note
            if self._measure_alterations[pitch_key] == half_tones and not dangling:
                return False
            # a pending courtesy accidental gets drawn here
            self._resolve(pitch_key)
            expected = self._key_signature_alterations.get(pitch_key, 0)
            if half_tones != expected:
                self._remember(pitch_key, half_tones)
            else:
                del self._measure_alterations[pitch_key]
            self.symbol_factory.attach_accidental(graphical_note, pitch)
            return True

        # NATURAL is not an alteration here, same as NONE
        if pitch.accidental.is_alteration:
            self._remember(pitch_key, half_tones)
            self.symbol_factory.attach_accidental(graphical_note, pitch)
            return True

        if dangling:
            self._resolve(pitch_key)
            self.symbol_factory.attach_accidental(graphical_note, pitch)
            return True
        return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _remember(self, pitch_key: int, half_tones: int) -> None:
        self._measure_alterations[pitch_key] = half_tones
        self._dangling_alterations.add(pitch_key)
        self._altered_in_measure.add(pitch_key)

    def _resolve(self, pitch_key: int) -> None:
        self._dangling_alterations.discard(pitch_key)
        self._altered_in_measure.discard(pitch_key)

    def _react_on_key_signature_change(self) -> None:
        signature = self._active_key_signature
        if signature is None:
            return
        kind = AccidentalKind.SHARP if signature.is_sharp else AccidentalKind.FLAT
        half_tones = half_tones_from_accidental(kind)

        self._key_signature_alterations = {
            int(letter) + octave * 12: half_tones
            for octave in range(MIN_OCTAVE, MAX_OCTAVE + 1)
            for letter in signature.altered_letters
        }
        self._dangling_alterations.clear()
        self.end_of_measure()
