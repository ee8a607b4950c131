"""SheetExporter: converts score files into sheet outputs with computed accidentals."""

from __future__ import annotations

from typing import Final

from engraver.measure_processor import MeasureProcessor
from engraver.sheet_renderers import SheetRenderer, TextRenderer, VexflowMarkdownRenderer

SUPPORTED_FORMATS: Final[set[str]] = {"md-vexflow", "text"}


class SheetExporter:
    """
    Convert a score file into sheet output via a pluggable renderer.

    Supported formats:
    - ``md-vexflow``: markdown file with embedded VexFlow JavaScript renderer.
    - ``text``: one line per measure and staff listing the drawn accidentals.
    """

    def __init__(self, title: str = "", output_format: str = "md-vexflow") -> None:
        self.title = title
        normalized = output_format.strip().lower()
        if normalized not in SUPPORTED_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_FORMATS))
            raise ValueError(f"Unsupported output format '{output_format}'. Use one of: {supported}.")
        self.output_format = normalized
        self.renderer = self._build_renderer(normalized)
        self.processor = MeasureProcessor(title=title)

    def _build_renderer(self, output_format: str) -> SheetRenderer:
        if output_format == "text":
            return TextRenderer()
        return VexflowMarkdownRenderer()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self, score_path: str) -> str:
        """
        Parse a score and render it with the selected format.

        Raises:
            ValueError: If the score cannot be processed.
        """
        score = self.processor.parse_score(score_path)
        document = self.processor.process(score)
        return self.renderer.render(title=self.title, score_document=document)

    def export(self, score_path: str, output_path: str) -> None:
        """
        Convert a score file into the selected sheet format and write it to disk.

        Raises:
            ValueError: If rendering fails or required data is missing.
            OSError: If the output file cannot be written.
        """
        content = self.render(score_path)
        with open(output_path, "w", encoding="utf-8") as fh:
            fh.write(content)
