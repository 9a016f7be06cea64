from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VorbisComment:
    """FLAC / Ogg comment, e.g. LYRICS=..."""

    key: str
    value: str


@dataclass(frozen=True, slots=True)
class BinaryFrame:
    """ID3 frame still in its on-disk payload form."""

    id: str
    data: bytes


@dataclass(frozen=True, slots=True)
class TextInformationFrame:
    """Frame whose text a container reader already decoded (MP4 atoms, mutagen ID3)."""

    id: str
    values: tuple[str, ...]


MetadataFrame = VorbisComment | BinaryFrame | TextInformationFrame
