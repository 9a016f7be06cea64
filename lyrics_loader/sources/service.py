from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from lyrics_loader.config import LoaderConfig
from lyrics_loader.lrc.model import LyricLine

from .base import LyricsSource
from .embedded import EmbeddedSource
from .sidecar import SidecarSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LyricsResponse:
    lines: list[LyricLine] | None
    source: str | None
    has_lyrics: bool


class LyricsService:
    def __init__(self, cfg: LoaderConfig):
        self.cfg = cfg
        self.sources = self._build_sources(cfg)

    @staticmethod
    def _build_sources(cfg: LoaderConfig) -> list[LyricsSource]:
        out: list[LyricsSource] = []
        for s in cfg.sources:
            name = s.strip().lower()
            if name in ("embedded", "tags"):
                out.append(EmbeddedSource(trim=cfg.trim))
            elif name in ("sidecar", "lrc"):
                out.append(
                    SidecarSource(
                        trim=cfg.trim,
                        suffix=cfg.sidecar_suffix,
                        encoding=cfg.sidecar_encoding,
                    )
                )
            else:
                logger.info("Unknown source '%s' in config, skipping", s)
        return out

    def get_lyrics(self, audio_path: Path) -> LyricsResponse:
        for src in self.sources:
            res = src.fetch(audio_path)
            if res.lines:
                logger.debug("Lyrics for %s found in %s", audio_path, res.source)
                return LyricsResponse(lines=res.lines, source=res.source, has_lyrics=True)

        logger.debug("No lyrics for %s", audio_path)
        return LyricsResponse(lines=None, source=None, has_lyrics=False)


def load_lyrics(audio_path: Path, cfg: LoaderConfig) -> LyricsResponse:
    return LyricsService(cfg).get_lyrics(audio_path)
