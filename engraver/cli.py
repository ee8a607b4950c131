"""engraver CLI entry point."""

import logging
import sys
from pathlib import Path

import click

from engraver import __version__
from engraver.sheet_exporter import SUPPORTED_FORMATS, SheetExporter


def _resolve_title(score_path: Path, title: str | None) -> str:
    return title if title is not None else score_path.stem.replace("_", " ")


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="engraver")
@click.option("--verbose", "-v", is_flag=True, help="Log every key signature and accidental decision.")
def main(verbose: bool) -> None:
    """engraver — decide which accidentals a score needs to show."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── sheet subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("score_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination sheet file path. Defaults to extension based on --format.",
)
@click.option(
    "--title",
    default=None,
    metavar="TEXT",
    help="Title shown in the output header. Defaults to the score filename stem.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(sorted(SUPPORTED_FORMATS), case_sensitive=False),
    default="md-vexflow",
    show_default=True,
    help="Sheet output format: Markdown with VexFlow script, or a plain text listing.",
)
def sheet(
    score_file: str,
    output: str | None,
    title: str | None,
    output_format: str,
) -> None:
    """
    Render a score with computed accidentals (Markdown or text).

    SCORE_FILE is any file music21 can read (MusicXML, MIDI, ABC, ...).

    \b
    Examples:
      engraver sheet prelude.musicxml
      engraver sheet prelude.musicxml -o prelude.md --title "Prelude"
      engraver sheet prelude.mid --format text -o prelude.txt
    """
    score_path = Path(score_file)
    resolved_title = _resolve_title(score_path, title)
    normalized_format = output_format.lower()
    exporter = SheetExporter(title=resolved_title, output_format=normalized_format)
    default_suffix = exporter.renderer.default_extension
    resolved_output = output if output is not None else str(score_path.with_suffix(default_suffix))

    click.echo(f"engraver v{__version__}")
    click.echo(f"  Score  : {score_file}")
    click.echo(f"  Format : {normalized_format}")
    click.echo(f"  Title  : {resolved_title}")
    click.echo(f"  Output : {resolved_output}")
    click.echo()

    click.echo("[1/3] Parsing score with music21...")
    click.echo("[2/3] Computing accidentals measure by measure...")
    click.echo(f"[3/3] Writing {normalized_format} file...")

    try:
        exporter.export(score_file, resolved_output)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write output file — {exc}", err=True)
        sys.exit(1)
    except ValueError as exc:
        click.echo(f"  ERROR: Could not render score — {exc}", err=True)
        sys.exit(1)

    click.echo()
    click.echo(f"Done!  Wrote '{resolved_output}'.")


# ── accidentals subcommand ─────────────────────────────────────────────────────

@main.command()
@click.argument("score_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option("--title", default=None, metavar="TEXT", help="Title printed above the listing.")
def accidentals(score_file: str, title: str | None) -> None:
    """
    Print the accidental drawn for every note of SCORE_FILE.

    \b
    Example:
      engraver accidentals prelude.musicxml
    """
    resolved_title = _resolve_title(Path(score_file), title)
    exporter = SheetExporter(title=resolved_title, output_format="text")
    try:
        content = exporter.render(score_file)
    except ValueError as exc:
        click.echo(f"  ERROR: Could not process score — {exc}", err=True)
        sys.exit(1)

    click.echo(content, nl=False)
