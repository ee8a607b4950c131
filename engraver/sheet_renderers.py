"""Renderer implementations for sheet music output formats."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import asdict

from engraver.score_models import ScoreDocument, VexflowNote


def _escape_html(text: str) -> str:
    """Escape the three characters that are unsafe in HTML text content."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


class SheetRenderer(ABC):
    """Abstract sheet renderer."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @abstractmethod
    def render(self, *, title: str, score_document: ScoreDocument | None = None) -> str:
        """Render output into a file content string."""


class TextRenderer(SheetRenderer):
    """
    Render a score document as plain text, one line per measure and staff.

    Each note is written as its VexFlow key followed by the attached
    accidental in brackets, e.g. ``m2 treble: f/5[n] g/5``. Voices sharing
    a staff are separated by ``//``; a staff that states a key signature
    gets a ``m1 bass key: D`` line first.
    """

    @property
    def default_extension(self) -> str:
        return ".txt"

    def render(self, *, title: str, score_document: ScoreDocument | None = None) -> str:
        if score_document is None:
            raise ValueError("score_document is required for text rendering.")

        lines: list[str] = []
        if title:
            lines.append(title)
        lines.append(f"Time signature: {score_document.time_signature}")

        for number, measure in enumerate(score_document.measures, start=1):
            for staff in measure.staves:
                if staff.key_signature is not None:
                    lines.append(f"m{number} {staff.clef} key: {staff.key_signature}")
                voices = [
                    " ".join(self._format_note(note) for note in notes) for notes in staff.voices
                ]
                lines.append(f"m{number} {staff.clef}: {' // '.join(voices)}")

        return "\n".join(lines) + "\n"

    def _format_note(self, note: VexflowNote) -> str:
        if note.duration.endswith("r"):
            return "rest"
        parts = [
            f"{key}[{accidental}]" if accidental else key
            for key, accidental in zip(note.keys, note.accidentals)
        ]
        return "+".join(parts)


class VexflowMarkdownRenderer(SheetRenderer):
    """Render a score document into Markdown with an embedded VexFlow script."""

    @property
    def default_extension(self) -> str:
        return ".md"

    def render(self, *, title: str, score_document: ScoreDocument | None = None) -> str:
        if score_document is None:
            raise ValueError("score_document is required for md-vexflow rendering.")

        title_safe = _escape_html(title)
        score_json = json.dumps(asdict(score_document), separators=(",", ":"))
        score_json = score_json.replace("</", "<\\/")

        return f"""# {title_safe}

This Markdown uses embedded JavaScript + VexFlow. Open it in a Markdown viewer that allows script execution.
Accidentals are drawn exactly where engraver decided they are needed.

<style>
  #engraver-score {{
    display: grid;
    gap: 1.25rem;
    margin-top: 1rem;
  }}
  .engraver-measure {{
    border: 1px solid #d8d8d8;
    border-radius: 8px;
    background: #ffffff;
    padding: 0.5rem;
    overflow-x: auto;
  }}
</style>

<div id="engraver-score"></div>
<script id="engraver-score-data" type="application/json">{score_json}</script>
<script type="module">
  import {{
    Accidental,
    Formatter,
    Renderer,
    Stave,
    StaveConnector,
    StaveNote,
    Voice
  }} from "https://cdn.jsdelivr.net/npm/vexflow@4.2.3/build/esm/entry/vexflow.js";

  const host = document.getElementById("engraver-score");
  const payloadNode = document.getElementById("engraver-score-data");

  if (!host || !payloadNode) {{
    throw new Error("Missing VexFlow score container.");
  }}

  const payload = JSON.parse(payloadNode.textContent || "{{}}");
  const beats = Number(payload.beats) || 4;
  const beatValue = Number(payload.beat_value) || 4;
  const timeSignature = payload.time_signature || "4/4";
  const measures = Array.isArray(payload.measures) ? payload.measures : [];
  const staveSpacing = 106;

  const restKey = (clef) => (clef === "bass" ? "d/3" : "b/4");

  const toStaveNotes = (entries, clef) => entries.map((entry) => {{
    const staveNote = new StaveNote({{
      clef,
      keys: Array.isArray(entry.keys) && entry.keys.length > 0 ? entry.keys : [restKey(clef)],
      duration: entry.duration || "q",
    }});

    if (Array.isArray(entry.accidentals)) {{
      entry.accidentals.forEach((symbol, noteIndex) => {{
        if (symbol) {{
          staveNote.addModifier(new Accidental(symbol), noteIndex);
        }}
      }});
    }}

    return staveNote;
  }});

  // key signatures are tracked per staff; parts may be in different keys
  const staffKeys = [];

  measures.forEach((measure, index) => {{
    const staves = Array.isArray(measure.staves) ? measure.staves : [];
    if (staves.length === 0) {{
      return;
    }}

    const measureRoot = document.createElement("div");
    measureRoot.className = "engraver-measure";
    host.appendChild(measureRoot);

    const renderer = new Renderer(measureRoot, Renderer.Backends.SVG);
    renderer.resize(760, 24 + staves.length * staveSpacing);
    const context = renderer.getContext();

    const drawn = staves.map((staff, staffIndex) => {{
      const clef = staff.clef || "treble";
      const keyChanged = Boolean(staff.key_signature);
      if (keyChanged) {{
        staffKeys[staffIndex] = staff.key_signature;
      }}
      const stave = new Stave(20, 24 + staffIndex * staveSpacing, 700);
      stave.addClef(clef);
      if (index === 0 || keyChanged) {{
        stave.addKeySignature(staffKeys[staffIndex] || "C");
      }}
      if (index === 0) {{
        stave.addTimeSignature(timeSignature);
      }}
      stave.setContext(context).draw();

      const voiceEntries = Array.isArray(staff.voices) && staff.voices.length > 0
        ? staff.voices
        : [[{{ keys: [restKey(clef)], duration: "wr", accidentals: [null] }}]];
      const voices = voiceEntries.map((entries) => {{
        const voice = new Voice({{ num_beats: beats, beat_value: beatValue }});
        voice.setMode(Voice.Mode.SOFT);
        voice.addTickables(toStaveNotes(entries, clef));
        return voice;
      }});
      return {{ stave, voices }};
    }});

    if (drawn.length > 1) {{
      const first = drawn[0].stave;
      const last = drawn[drawn.length - 1].stave;
      [StaveConnector.type.SINGLE_LEFT, StaveConnector.type.SINGLE_RIGHT].forEach((type) => {{
        const connector = new StaveConnector(first, last);
        connector.setType(type);
        connector.setContext(context).draw();
      }});
    }}

    const formatter = new Formatter();
    drawn.forEach(({{ voices }}) => formatter.joinVoices(voices));
    formatter.format(drawn.flatMap(({{ voices }}) => voices), 560);

    drawn.forEach(({{ stave, voices }}) => voices.forEach((voice) => voice.draw(context, stave)));
  }});
</script>
"""
