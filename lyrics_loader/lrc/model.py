from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SpeakerLabel(Enum):
    MALE = "male"  # Walaoke
    FEMALE = "female"  # Walaoke
    DUET = "duet"  # Walaoke
    BACKGROUND = "background"  # iTunes
    VOICE1 = "v1"  # iTunes
    VOICE2 = "v2"  # iTunes
    NONE = "none"

    @property
    def is_walaoke(self) -> bool:
        return self in (SpeakerLabel.MALE, SpeakerLabel.FEMALE, SpeakerLabel.DUET)


@dataclass(frozen=True, slots=True)
class WordTimestamp:
    # character offset in LyricLine.content where the word ends
    offset: int
    start_ms: int
    end_ms: int


@dataclass(frozen=True, slots=True)
class LyricLine:
    timestamp: int | None
    content: str
    translation_content: str | None = None
    label: SpeakerLabel = SpeakerLabel.NONE
    word_timestamps: tuple[WordTimestamp, ...] = ()
    absolute_position: int = 0

    @property
    def is_synced(self) -> bool:
        return self.timestamp is not None


@dataclass(frozen=True, slots=True)
class LrcParseStats:
    lines_total: int
    lines_with_timestamps: int
    entries_total: int
    synced: bool
