from __future__ import annotations

import locale
import logging
from pathlib import Path

from lyrics_loader.lrc.model import LyricLine
from lyrics_loader.lrc.parse import parse_lrc

from .base import FetchResult, LyricsSource

logger = logging.getLogger(__name__)


def sidecar_path(music_path: Path, suffix: str = ".lrc") -> Path:
    """/music/a/song.flac -> /music/a/song.lrc"""
    return music_path.with_name(music_path.stem + suffix)


def load_lrc_file(lrc_path: Path, encoding: str | None = None) -> str | None:
    try:
        raw = lrc_path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.error("Cannot read %s: %s", lrc_path, e)
        return None

    try:
        return raw.decode(encoding or locale.getpreferredencoding(False), errors="replace")
    except LookupError as e:
        logger.error("Cannot decode %s: %s", lrc_path, e)
        return None


def load_and_parse_lyrics_file(
    music_path: Path | None,
    trim: bool = True,
    *,
    suffix: str = ".lrc",
    encoding: str | None = None,
) -> list[LyricLine] | None:
    if music_path is None:
        return None
    text = load_lrc_file(sidecar_path(music_path, suffix), encoding)
    if not text:
        return None
    try:
        return parse_lrc(text, trim)
    except Exception:
        logger.exception("Failed to parse %s", sidecar_path(music_path, suffix))
        return None


class SidecarSource(LyricsSource):
    name = "sidecar"

    def __init__(self, *, trim: bool, suffix: str, encoding: str | None):
        self.trim = trim
        self.suffix = suffix
        self.encoding = encoding

    def fetch(self, audio_path: Path) -> FetchResult:
        lines = load_and_parse_lyrics_file(audio_path, self.trim, suffix=self.suffix, encoding=self.encoding)
        return FetchResult(lines, self.name)
