"""Glyph attachment collaborators invoked by the accidental calculator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Final

from engraver.pitch import AccidentalKind, Pitch
from engraver.score_models import GraphicalNote

# A glyph for a pitch without alteration is always a natural sign.
VEXFLOW_SYMBOLS: Final[dict[AccidentalKind, str]] = {
    AccidentalKind.NONE: "n",
    AccidentalKind.NATURAL: "n",
    AccidentalKind.SHARP: "#",
    AccidentalKind.FLAT: "b",
    AccidentalKind.DOUBLE_SHARP: "##",
    AccidentalKind.DOUBLE_FLAT: "bb",
}


class AccidentalSymbolFactory(ABC):
    """Abstract collaborator that draws an accidental next to a note."""

    @abstractmethod
    def attach_accidental(self, graphical_note: GraphicalNote, pitch: Pitch) -> None:
        """Attach the accidental glyph for *pitch* to *graphical_note*."""


class VexflowSymbolFactory(AccidentalSymbolFactory):
    """Record accidentals as VexFlow modifier symbols on the graphical note."""

    def attach_accidental(self, graphical_note: GraphicalNote, pitch: Pitch) -> None:
        graphical_note.accidental = VEXFLOW_SYMBOLS[pitch.accidental]
