from __future__ import annotations

import types

import mutagen
import pytest
from mutagen.id3 import ID3, SYLT, USLT

import lyrics_loader.sources.embedded as embedded
from lyrics_loader.config import LoaderConfig
from lyrics_loader.errors import SourceUnavailable
from lyrics_loader.lrc.model import LyricLine
from lyrics_loader.sources.embedded import EmbeddedSource, extract_and_parse_lyrics, read_metadata_frames
from lyrics_loader.sources.service import LyricsService
from lyrics_loader.sources.sidecar import load_and_parse_lyrics_file, load_lrc_file, sidecar_path
from lyrics_loader.sources.types import BinaryFrame, TextInformationFrame, VorbisComment


def _uslt_payload(text: str) -> bytes:
    return b"\x03eng" + b"\x00" + text.encode("utf-8") + b"\x00"


class TestExtractAndParse:
    def test_first_decodable_lyrics_frame_wins(self):
        frames = [
            TextInformationFrame(id="TIT2", values=("Title",)),
            BinaryFrame(id="USLT", data=b"\x03e"),  # malformed
            BinaryFrame(id="USLT", data=_uslt_payload("[00:01.00]hello")),
            BinaryFrame(id="USLT", data=_uslt_payload("[00:01.00]ignored")),
        ]
        lines = extract_and_parse_lyrics(frames, trim=True)
        assert lines is not None
        assert [ln.content for ln in lines] == ["hello"]

    def test_vorbis_comment(self):
        lines = extract_and_parse_lyrics([VorbisComment(key="lyrics", value="[00:01.00]a")])
        assert lines is not None
        assert lines[0].timestamp == 1000

    def test_non_lyrics_vorbis_comment_skipped(self):
        assert extract_and_parse_lyrics([VorbisComment(key="TITLE", value="[00:01.00]a")]) is None

    def test_text_frame_values_joined_by_newline(self):
        frame = TextInformationFrame(id="USLT", values=("[00:01.00]a", "[00:02.00]b"))
        lines = extract_and_parse_lyrics([frame])
        assert lines is not None
        assert [(ln.timestamp, ln.content) for ln in lines] == [(1000, "a"), (2000, "b")]

    def test_no_frames(self):
        assert extract_and_parse_lyrics([]) is None

    def test_parse_error_moves_on_to_next_frame(self, monkeypatch):
        calls = []

        def flaky_parse(text, trim):
            calls.append(text)
            if len(calls) == 1:
                raise IndexError("boom")
            return [LyricLine(timestamp=None, content=text)]

        monkeypatch.setattr(embedded, "parse_lrc", flaky_parse)
        lines = extract_and_parse_lyrics(
            [VorbisComment(key="LYRICS", value="first"), VorbisComment(key="LYRICS", value="second")]
        )
        assert lines == [LyricLine(timestamp=None, content="second")]
        assert calls == ["first", "second"]


class TestReadMetadataFrames:
    def test_id3_uslt_and_sylt(self, monkeypatch, tmp_path):
        tags = ID3()
        tags.add(USLT(encoding=3, lang="eng", desc="", text="[00:01.00]hi"))
        tags.add(SYLT(encoding=3, lang="eng", format=2, type=1, desc="", text=[("one", 1000), ("two", 62500)]))
        monkeypatch.setattr(embedded.mutagen, "File", lambda path: types.SimpleNamespace(tags=tags))

        frames = read_metadata_frames(tmp_path / "song.mp3")
        assert frames == [
            TextInformationFrame(id="USLT", values=("[00:01.00]hi",)),
            TextInformationFrame(id="SYLT", values=("[00:01.000]one", "[01:02.500]two")),
        ]

    def test_sylt_in_mpeg_frames_skipped(self, monkeypatch, tmp_path):
        tags = ID3()
        tags.add(SYLT(encoding=3, lang="eng", format=1, type=1, desc="", text=[("one", 10)]))
        monkeypatch.setattr(embedded.mutagen, "File", lambda path: types.SimpleNamespace(tags=tags))
        assert read_metadata_frames(tmp_path / "song.mp3") == []

    def test_vorbis_lyrics(self, monkeypatch, tmp_path):
        tags = {"LYRICS": ["[00:01.00]x"]}
        monkeypatch.setattr(embedded.mutagen, "File", lambda path: types.SimpleNamespace(tags=tags))
        assert read_metadata_frames(tmp_path / "song.flac") == [VorbisComment(key="LYRICS", value="[00:01.00]x")]

    def test_no_tags(self, monkeypatch, tmp_path):
        monkeypatch.setattr(embedded.mutagen, "File", lambda path: types.SimpleNamespace(tags=None))
        assert read_metadata_frames(tmp_path / "song.flac") == []

    def test_unsupported_file(self, monkeypatch, tmp_path):
        monkeypatch.setattr(embedded.mutagen, "File", lambda path: None)
        with pytest.raises(SourceUnavailable):
            read_metadata_frames(tmp_path / "notes.txt")

    def test_unreadable_file(self, monkeypatch, tmp_path):
        def _raise(path):
            raise mutagen.MutagenError("broken")

        monkeypatch.setattr(embedded.mutagen, "File", _raise)
        with pytest.raises(SourceUnavailable):
            read_metadata_frames(tmp_path / "song.mp3")

        res = EmbeddedSource(trim=True).fetch(tmp_path / "song.mp3")
        assert res.lines is None
        assert res.source == "embedded"


class TestSidecar:
    def test_sidecar_path(self, tmp_path):
        assert sidecar_path(tmp_path / "a.b.flac") == tmp_path / "a.b.lrc"
        assert sidecar_path(tmp_path / "song.mp3", ".txt") == tmp_path / "song.txt"

    def test_load_and_parse(self, tmp_path):
        (tmp_path / "song.lrc").write_text("[00:01.00]hej\n[00:01.00]hi\n", encoding="utf-8")
        lines = load_and_parse_lyrics_file(tmp_path / "song.mp3", encoding="utf-8")
        assert lines is not None
        assert lines[0].content == "hej"
        assert lines[0].translation_content == "hi"

    def test_missing_file(self, tmp_path):
        assert load_lrc_file(tmp_path / "nope.lrc") is None
        assert load_and_parse_lyrics_file(tmp_path / "nope.mp3") is None
        assert load_and_parse_lyrics_file(None) is None

    def test_unknown_encoding(self, tmp_path):
        (tmp_path / "song.lrc").write_text("x", encoding="utf-8")
        assert load_lrc_file(tmp_path / "song.lrc", encoding="no-such-codec") is None

    def test_parse_error_returns_none(self, monkeypatch, tmp_path):
        import lyrics_loader.sources.sidecar as sidecar

        def _boom(text, trim):
            raise ValueError("boom")

        (tmp_path / "song.lrc").write_text("[00:01.00]x", encoding="utf-8")
        monkeypatch.setattr(sidecar, "parse_lrc", _boom)
        assert load_and_parse_lyrics_file(tmp_path / "song.mp3") is None


def _cfg(tmp_path, sources: tuple[str, ...]) -> LoaderConfig:
    return LoaderConfig(
        config_dir=tmp_path / "config",
        trim=True,
        sources=sources,
        sidecar_suffix=".lrc",
        sidecar_encoding="utf-8",
    )


class TestLyricsService:
    def test_unknown_source_skipped(self, tmp_path):
        svc = LyricsService(_cfg(tmp_path, ("sidecar", "musixmatch")))
        assert [s.name for s in svc.sources] == ["sidecar"]

    def test_falls_back_to_sidecar(self, monkeypatch, tmp_path):
        monkeypatch.setattr(embedded.mutagen, "File", lambda path: types.SimpleNamespace(tags=None))
        (tmp_path / "song.lrc").write_text("[00:02.00]from file\n", encoding="utf-8")

        res = LyricsService(_cfg(tmp_path, ("embedded", "sidecar"))).get_lyrics(tmp_path / "song.mp3")
        assert res.has_lyrics
        assert res.source == "sidecar"
        assert res.lines is not None
        assert res.lines[0].content == "from file"

    def test_embedded_first(self, monkeypatch, tmp_path):
        tags = {"LYRICS": ["[00:01.00]from tags"]}
        monkeypatch.setattr(embedded.mutagen, "File", lambda path: types.SimpleNamespace(tags=tags))
        (tmp_path / "song.lrc").write_text("[00:02.00]from file\n", encoding="utf-8")

        res = LyricsService(_cfg(tmp_path, ("embedded", "sidecar"))).get_lyrics(tmp_path / "song.mp3")
        assert res.source == "embedded"
        assert res.lines is not None
        assert res.lines[0].content == "from tags"

    def test_nothing_found(self, monkeypatch, tmp_path):
        monkeypatch.setattr(embedded.mutagen, "File", lambda path: None)
        res = LyricsService(_cfg(tmp_path, ("embedded", "sidecar"))).get_lyrics(tmp_path / "song.mp3")
        assert res.has_lyrics is False
        assert res.lines is None
        assert res.source is None
