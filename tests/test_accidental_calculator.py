"""Unit tests for AccidentalCalculator (pure Python, no music21 needed)."""

from engraver.accidental_calculator import MAX_OCTAVE, MIN_OCTAVE, AccidentalCalculator
from engraver.pitch import KeySignature, NoteLetter, Pitch
from engraver.score_models import GraphicalNote
from engraver.symbol_factory import AccidentalSymbolFactory


class _RecordingFactory(AccidentalSymbolFactory):
    def __init__(self) -> None:
        self.attached: list[Pitch] = []

    def attach_accidental(self, graphical_note: GraphicalNote, pitch: Pitch) -> None:
        graphical_note.accidental = str(pitch)
        self.attached.append(pitch)


def _calculator(key: int = 0) -> tuple[AccidentalCalculator, _RecordingFactory]:
    factory = _RecordingFactory()
    calculator = AccidentalCalculator(factory)
    calculator.active_key_signature = KeySignature(key=key)
    return calculator, factory


def _check(calculator: AccidentalCalculator, text: str) -> bool:
    return calculator.check_accidental(GraphicalNote(), Pitch.parse(text))


# ---------------------------------------------------------------------------
# Key signature handling
# ---------------------------------------------------------------------------


def test_key_signature_covers_every_octave_of_altered_letters() -> None:
    calculator, _ = _calculator(key=1)
    alterations = calculator.key_signature_alterations
    octaves = range(MIN_OCTAVE, MAX_OCTAVE + 1)
    assert len(alterations) == len(octaves)
    for octave in octaves:
        assert alterations[int(NoteLetter.F) + octave * 12] == 1


def test_key_signature_entry_count_is_letters_times_octaves() -> None:
    calculator, _ = _calculator(key=2)
    assert len(calculator.key_signature_alterations) == 2 * 18


def test_flat_key_signature_uses_minus_one() -> None:
    calculator, _ = _calculator(key=-1)
    b4 = Pitch.parse("B4").pitch_key
    assert calculator.key_signature_alterations[b4] == -1
    assert set(calculator.key_signature_alterations.values()) == {-1}


def test_c_major_has_no_alterations() -> None:
    calculator, _ = _calculator(key=0)
    assert calculator.key_signature_alterations == {}
    assert calculator.measure_alterations == {}


def test_measure_alterations_seeded_from_key_signature() -> None:
    calculator, _ = _calculator(key=3)
    assert calculator.measure_alterations == calculator.key_signature_alterations


def test_setting_key_signature_clears_dangling_alterations() -> None:
    calculator, _ = _calculator()
    _check(calculator, "F#5")
    _check(calculator, "Bb3")
    assert calculator.dangling_alterations

    calculator.active_key_signature = KeySignature(key=-2)
    assert calculator.dangling_alterations == frozenset()


def test_active_key_signature_getter() -> None:
    calculator = AccidentalCalculator(_RecordingFactory())
    assert calculator.active_key_signature is None
    calculator.active_key_signature = KeySignature(key=4)
    assert calculator.active_key_signature == KeySignature(key=4)


def test_calculator_without_key_signature_behaves_as_c_major() -> None:
    factory = _RecordingFactory()
    calculator = AccidentalCalculator(factory)
    assert calculator.check_accidental(GraphicalNote(), Pitch.parse("C4")) is False
    assert calculator.check_accidental(GraphicalNote(), Pitch.parse("C#4")) is True


# ---------------------------------------------------------------------------
# Measure boundaries
# ---------------------------------------------------------------------------


def test_end_of_measure_restores_key_signature_alterations() -> None:
    calculator, _ = _calculator(key=1)
    _check(calculator, "F5")
    _check(calculator, "C#4")
    assert calculator.measure_alterations != calculator.key_signature_alterations

    calculator.end_of_measure()
    assert calculator.measure_alterations == calculator.key_signature_alterations


def test_end_of_measure_keeps_dangling_alterations() -> None:
    calculator, _ = _calculator()
    _check(calculator, "F#5")
    calculator.end_of_measure()
    assert Pitch.parse("F5").pitch_key in calculator.dangling_alterations


# ---------------------------------------------------------------------------
# Note checks
# ---------------------------------------------------------------------------


def test_rest_is_a_no_op() -> None:
    calculator, factory = _calculator(key=1)
    note = GraphicalNote()
    assert calculator.check_accidental(note, None) is False
    assert note.accidental is None
    assert factory.attached == []


def test_untouched_pitches_never_get_a_glyph() -> None:
    calculator, factory = _calculator(key=1)
    for text in ["C4", "D4", "E4", "F#4", "G4", "A4", "B4", "C5"]:
        assert _check(calculator, text) is False
    calculator.end_of_measure()
    for text in ["C4", "G4", "F#5"]:
        assert _check(calculator, text) is False
    assert factory.attached == []
    assert calculator.dangling_alterations == frozenset()


def test_repeated_note_gets_glyph_only_once() -> None:
    calculator, factory = _calculator()
    assert _check(calculator, "F#5") is True
    assert _check(calculator, "F#5") is False
    assert factory.attached == [Pitch.parse("F#5")]


def test_c_major_courtesy_natural_in_next_measure() -> None:
    calculator, factory = _calculator(key=0)
    f5 = Pitch.parse("F5").pitch_key

    assert _check(calculator, "F#5") is True
    assert f5 in calculator.dangling_alterations
    assert _check(calculator, "F#5") is False

    calculator.end_of_measure()
    assert _check(calculator, "F5") is True
    assert calculator.dangling_alterations == frozenset()
    assert factory.attached == [Pitch.parse("F#5"), Pitch.parse("F5")]


def test_g_major_natural_then_courtesy_sharp() -> None:
    calculator, _ = _calculator(key=1)
    f5 = Pitch.parse("F5").pitch_key

    assert _check(calculator, "F5") is True
    assert f5 in calculator.dangling_alterations
    assert calculator.measure_alterations[f5] == 0

    calculator.end_of_measure()
    assert _check(calculator, "F#5") is True
    assert f5 not in calculator.dangling_alterations
    assert f5 not in calculator.measure_alterations


def test_return_to_natural_within_measure_needs_glyph() -> None:
    calculator, _ = _calculator()
    b4 = Pitch.parse("B4").pitch_key
    assert _check(calculator, "Bb4") is True
    assert _check(calculator, "B4") is True
    assert b4 not in calculator.measure_alterations
    assert b4 not in calculator.dangling_alterations

    calculator.end_of_measure()
    assert _check(calculator, "B4") is False


def test_alteration_applies_only_to_its_octave() -> None:
    calculator, _ = _calculator()
    assert _check(calculator, "F#5") is True
    assert _check(calculator, "F4") is False
    assert _check(calculator, "F#4") is True


def test_repeated_alteration_in_next_measure_is_redrawn() -> None:
    calculator, _ = _calculator()
    f5 = Pitch.parse("F5").pitch_key
    _check(calculator, "F#5")
    calculator.end_of_measure()

    assert _check(calculator, "F#5") is True
    assert f5 in calculator.dangling_alterations

    calculator.end_of_measure()
    assert _check(calculator, "F5") is True
    assert f5 not in calculator.dangling_alterations


def test_courtesy_is_owed_only_once() -> None:
    calculator, _ = _calculator()
    _check(calculator, "C#4")
    calculator.end_of_measure()
    assert _check(calculator, "C4") is True
    calculator.end_of_measure()
    assert _check(calculator, "C4") is False


def test_double_sharp_after_sharp_in_same_measure() -> None:
    calculator, _ = _calculator(key=2)
    c5 = Pitch.parse("C5").pitch_key
    assert _check(calculator, "C#5") is False
    assert _check(calculator, "C##5") is True
    assert calculator.measure_alterations[c5] == 2
    assert _check(calculator, "C#5") is True
    assert c5 not in calculator.measure_alterations


def test_explicit_natural_on_untracked_pitch_draws_nothing() -> None:
    calculator, factory = _calculator()
    assert _check(calculator, "En4") is False
    assert factory.attached == []
    assert calculator.dangling_alterations == frozenset()


def test_explicit_natural_resolves_dangling_alteration() -> None:
    calculator, _ = _calculator()
    _check(calculator, "Eb4")
    calculator.end_of_measure()
    assert _check(calculator, "En4") is True
    assert calculator.dangling_alterations == frozenset()


def test_extreme_octaves_behave_like_interior_octaves() -> None:
    for octave in (MIN_OCTAVE, MAX_OCTAVE):
        calculator, _ = _calculator(key=1)
        low_f = Pitch(letter=NoteLetter.F, octave=octave).pitch_key
        assert calculator.key_signature_alterations[low_f] == 1

        assert _check(calculator, f"F#{octave}") is False
        assert _check(calculator, f"F{octave}") is True
        calculator.end_of_measure()
        assert _check(calculator, f"F#{octave}") is True
        assert calculator.dangling_alterations == frozenset()


def test_glyph_is_attached_to_the_given_note() -> None:
    calculator, _ = _calculator()
    note = GraphicalNote()
    calculator.check_accidental(note, Pitch.parse("Ab3"))
    assert note.accidental == "Ab3"


def test_calculators_do_not_share_state() -> None:
    first, _ = _calculator(key=1)
    second, _ = _calculator(key=-3)
    _check(first, "C#4")
    assert second.dangling_alterations == frozenset()
    assert Pitch.parse("F4").pitch_key not in second.key_signature_alterations
