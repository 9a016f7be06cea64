from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from lyrics_loader.lrc.model import LyricLine


@dataclass(frozen=True, slots=True)
class FetchResult:
    lines: list[LyricLine] | None
    source: str


class LyricsSource:
    name: str

    def fetch(self, audio_path: Path) -> FetchResult:
        raise NotImplementedError
