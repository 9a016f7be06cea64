from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import mutagen
from mutagen.id3 import ID3
from mutagen.mp4 import MP4Tags

from lyrics_loader.errors import SourceUnavailable
from lyrics_loader.id3.uslt import decode_uslt_frame
from lyrics_loader.lrc.model import LyricLine
from lyrics_loader.lrc.parse import parse_lrc

from .base import FetchResult, LyricsSource
from .types import BinaryFrame, MetadataFrame, TextInformationFrame, VorbisComment

logger = logging.getLogger(__name__)

_LYRICS_FRAME_IDS = ("USLT", "SYLT")
_SYLT_FORMAT_MS = 2  # SYLT timestamps in milliseconds (1 = MPEG frames)


def _frame_text(frame: MetadataFrame) -> str | None:
    if isinstance(frame, VorbisComment):  # ogg / flac
        return frame.value if frame.key.upper() == "LYRICS" else None
    if isinstance(frame, BinaryFrame) and frame.id in _LYRICS_FRAME_IDS:  # mp3 / other id3 based
        return decode_uslt_frame(frame.data)
    if isinstance(frame, TextInformationFrame) and frame.id in _LYRICS_FRAME_IDS:  # m4a
        return "\n".join(frame.values)
    return None


def extract_and_parse_lyrics(frames: Iterable[MetadataFrame], trim: bool = True) -> list[LyricLine] | None:
    """
    First lyrics frame that yields text wins. Frames that cannot be decoded or
    parsed are skipped so later candidates still get a chance.
    """
    for frame in frames:
        text = _frame_text(frame)
        if not text:
            continue
        try:
            return parse_lrc(text, trim)
        except Exception:
            logger.exception("Failed to parse lyrics from %s frame", type(frame).__name__)
    return None


def _fmt_lrc_time(ms: int) -> str:
    m, rem = divmod(ms, 60_000)
    s, ms2 = divmod(rem, 1_000)
    return f"{m:02d}:{s:02d}.{ms2:03d}"


def _id3_frames(tags: ID3) -> list[MetadataFrame]:
    out: list[MetadataFrame] = []
    for uslt in tags.getall("USLT"):
        out.append(TextInformationFrame(id="USLT", values=(str(uslt.text),)))
    for sylt in tags.getall("SYLT"):
        if sylt.format != _SYLT_FORMAT_MS:
            logger.debug("Skipping SYLT frame timed in MPEG frames")
            continue
        lines = tuple(f"[{_fmt_lrc_time(t_ms)}]{text}" for text, t_ms in sylt.text)
        out.append(TextInformationFrame(id="SYLT", values=lines))
    return out


def read_metadata_frames(audio_path: Path) -> list[MetadataFrame]:
    """
    Lyrics-bearing frames of an audio file, in container order.
    Raises SourceUnavailable if the file cannot be opened as audio.
    """
    try:
        audio = mutagen.File(audio_path)
    except (mutagen.MutagenError, OSError) as e:
        raise SourceUnavailable(f"Cannot read tags from {audio_path}: {e}") from e
    if audio is None:
        raise SourceUnavailable(f"Unsupported audio file: {audio_path}")

    tags = audio.tags
    if tags is None:
        return []
    if isinstance(tags, ID3):
        return _id3_frames(tags)
    if isinstance(tags, MP4Tags):
        lyr = tags.get("\xa9lyr")
        return [TextInformationFrame(id="USLT", values=tuple(lyr))] if lyr else []

    # Vorbis comments: case-insensitive keys, list of values
    values = tags.get("LYRICS")
    if isinstance(values, list):
        return [VorbisComment(key="LYRICS", value=str(v)) for v in values]
    return []


class EmbeddedSource(LyricsSource):
    name = "embedded"

    def __init__(self, *, trim: bool):
        self.trim = trim

    def fetch(self, audio_path: Path) -> FetchResult:
        try:
            frames = read_metadata_frames(audio_path)
        except SourceUnavailable as e:
            logger.warning("%s", e)
            return FetchResult(None, self.name)
        return FetchResult(extract_and_parse_lyrics(frames, self.trim), self.name)
