from __future__ import annotations

from pathlib import Path
import typer

from lyrics_loader.config import LoaderConfig, load_config, save_config
from lyrics_loader.logging_setup import setup_logging
from lyrics_loader.lrc.export import export_json, export_lrc, export_srt
from lyrics_loader.lrc.model import LyricLine, SpeakerLabel
from lyrics_loader.lrc.parse import parse_lrc_with_stats
from lyrics_loader.sources.service import LyricsService
from lyrics_loader.sources.sidecar import load_lrc_file


app = typer.Typer(no_args_is_help=True, add_completion=False)


def _format_line(ln: LyricLine) -> str:
    if ln.timestamp is None:
        return ln.content
    m, rem = divmod(ln.timestamp, 60_000)
    s, ms = divmod(rem, 1_000)
    label = "" if ln.label is SpeakerLabel.NONE else f" ({ln.label.value})"
    out = f"{ln.absolute_position:>3} {m:02d}:{s:02d}.{ms:03d}{label} {ln.content}"
    if ln.translation_content:
        out += f"\n{'':>14}{ln.translation_content}"
    return out


def _read_lrc(lrc_path: Path, cfg: LoaderConfig) -> str:
    # same decoding as sidecar files
    text = load_lrc_file(lrc_path, cfg.sidecar_encoding)
    if text is None:
        typer.echo(f"Cannot read {lrc_path}", err=True)
        raise typer.Exit(code=1)
    return text


@app.command()
def parse(
    lrc_path: Path,
    trim: bool | None = typer.Option(None, "--trim/--no-trim", help="Strip whitespace around lyric lines"),
):
    """Parse LRC and print stats."""
    cfg = load_config()
    text = _read_lrc(lrc_path, cfg)
    _lines, stats = parse_lrc_with_stats(text, cfg.trim if trim is None else trim)
    typer.echo(f"lines_total={stats.lines_total}")
    typer.echo(f"lines_with_timestamps={stats.lines_with_timestamps}")
    typer.echo(f"entries_total={stats.entries_total}")
    typer.echo(f"synced={stats.synced}")


@app.command()
def export(
    lrc_path: Path,
    fmt: str = typer.Option("srt", "--format", case_sensitive=False, help="lrc|srt|json"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Export LRC to SRT/JSON/LRC (normalized)."""
    cfg = load_config()
    text = _read_lrc(lrc_path, cfg)
    lines, _stats = parse_lrc_with_stats(text, cfg.trim)
    fmt_l = fmt.lower()
    if fmt_l == "json":
        data = export_json(lines)
    elif fmt_l == "lrc":
        data = export_lrc(lines)
    elif fmt_l == "srt":
        data = export_srt(lines)
    else:
        raise typer.BadParameter("format must be one of: lrc, srt, json")

    if out:
        out.write_text(data, encoding="utf-8")
    else:
        typer.echo(data, nl=False)


@app.command()
def show(
    audio_path: Path,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """
    Show lyrics for an audio file (embedded tags or sidecar .lrc).
    """
    setup_logging(debug)
    cfg = load_config()
    res = LyricsService(cfg).get_lyrics(audio_path)
    if not res.has_lyrics or not res.lines:
        typer.echo("No lyrics found", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"# source: {res.source}")
    for ln in res.lines:
        typer.echo(_format_line(ln))


@app.command()
def config(
    trim: bool | None = typer.Option(None, "--trim/--no-trim", help="Strip whitespace around lyric lines"),
    sources: str | None = typer.Option(None, "--sources", help="Comma separated: embedded,sidecar"),
):
    """Save defaults to config.json."""
    values: dict[str, object] = {}
    if trim is not None:
        values["trim"] = trim
    if sources is not None:
        values["sources"] = sources
    if not values:
        cfg = load_config()
        typer.echo(f"trim={cfg.trim}")
        typer.echo(f"sources={','.join(cfg.sources)}")
        return
    path = save_config(**values)
    typer.echo(f"Config saved: {path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
