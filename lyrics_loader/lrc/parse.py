from __future__ import annotations

from dataclasses import dataclass, field, replace
from itertools import dropwhile
import logging
import re

from .model import LrcParseStats, LyricLine, SpeakerLabel, WordTimestamp

logger = logging.getLogger(__name__)

_TS_RE = re.compile(r"\[(\d{2}:\d{2})([.:]\d+)?\]", re.ASCII)  # [mm:ss] / [mm:ss.xx] / [mm:ss:xxx]
_WORD_TS_RE = re.compile(r"<(\d{2}:\d{2})([.:]\d+)?>", re.ASCII)  # <mm:ss.xx> inside a line
_LABEL_RE = re.compile(r"(?:v\d+|bg):\s?", re.ASCII)
_BG_RE = re.compile(r"\[bg: (.*?)\]")
_TIME_RE = re.compile(r"(\d{2}):(\d{2})(?:[.:](\d+))?", re.ASCII)
_NEWLINE_RE = re.compile(r"\r\n|\r|\n")

_SPEAKER_PREFIXES = (
    ("v1: ", SpeakerLabel.VOICE1),
    ("v2: ", SpeakerLabel.VOICE2),
    ("F: ", SpeakerLabel.FEMALE),
    ("M: ", SpeakerLabel.MALE),
    ("D: ", SpeakerLabel.DUET),
)


def parse_time(token: str) -> int:
    """
    "mm:ss", "mm:ss.f", "mm:ss.ff", "mm:ss:fff" -> milliseconds.
    Anything that does not look like a time code is 0.
    """
    m = _TIME_RE.search(token)
    if m is None:
        return 0
    minutes = int(m.group(1))
    seconds = int(m.group(2))
    frac = m.group(3)
    if frac:
        # "5" -> 500ms, "22" -> 220ms, "2229" -> 222ms
        ms = int(frac[:3].ljust(3, "0"))
    else:
        ms = 0
    return minutes * 60_000 + seconds * 1_000 + ms


def parse_speaker_label(text: str) -> SpeakerLabel:
    head = text[:4]
    for prefix, label in _SPEAKER_PREFIXES:
        if head.startswith(prefix):
            return label
    return SpeakerLabel.NONE


def _tag_time(m: re.Match[str]) -> int:
    return parse_time(m.group(1) + (m.group(2) or ""))


def _split_word_timing(text: str, line_ms: int) -> tuple[str, tuple[WordTimestamp, ...]]:
    marks = list(_WORD_TS_RE.finditer(text))
    if not marks:
        return text, ()

    words: list[WordTimestamp] = []
    offset = 0
    pos = 0
    start_ms = line_ms
    for m in marks:
        offset += m.start() - pos
        end_ms = _tag_time(m)
        words.append(WordTimestamp(offset=offset, start_ms=start_ms, end_ms=end_ms))
        start_ms = end_ms
        pos = m.end()
    return _WORD_TS_RE.sub("", text), tuple(words)


@dataclass(slots=True)
class _ParseState:
    label: SpeakerLabel = SpeakerLabel.NONE
    timestamp: int = 0
    found_non_zero: bool = False
    # content seen while every timestamp is still 0; dropped once a real one shows up
    unsynced_text: list[str] | None = field(default_factory=list)
    entries: list[LyricLine] = field(default_factory=list)
    lines_total: int = 0
    lines_with_timestamps: int = 0


def _consume_line(state: _ParseState, line: str, trim: bool) -> None:
    state.lines_total += 1
    state.label = parse_speaker_label(_TS_RE.sub("", line))

    marks = list(_TS_RE.finditer(line))
    if marks:
        state.lines_with_timestamps += 1
        payload = line[marks[-1].end() :]
        if trim:
            payload = payload.strip()
        payload = _LABEL_RE.sub("", payload)

        # "compressed" lines: one entry per tag, same text
        for m in marks:
            state.timestamp = _tag_time(m)
            if not state.found_non_zero and state.timestamp > 0:
                state.found_non_zero = True
                state.unsynced_text = None
            if state.unsynced_text is not None:
                state.unsynced_text.append(payload)

            content, words = _split_word_timing(payload, state.timestamp)
            state.entries.append(
                LyricLine(
                    timestamp=state.timestamp,
                    content=content,
                    label=state.label,
                    word_timestamps=words,
                )
            )

    for m in _BG_RE.finditer(line):
        state.label = SpeakerLabel.BACKGROUND
        content, words = _split_word_timing(m.group(1), state.timestamp)
        # word-timed background lines sort right after their host line
        t_ms = state.timestamp + 1 if words else state.timestamp
        state.entries.append(
            LyricLine(
                timestamp=t_ms,
                content=content,
                label=SpeakerLabel.BACKGROUND,
                word_timestamps=words,
            )
        )


def _merge_translations(entries: list[LyricLine]) -> list[LyricLine]:
    """
    A line sharing its timestamp with the line right before it is a translation
    of that line. Only pairs are merged: with three lines on one timestamp the
    third one is attached to the (already merged away) second and is lost.
    """
    merged: list[LyricLine] = []
    prev: LyricLine | None = None
    prev_kept = False
    for e in entries:
        if prev is not None and e.timestamp == prev.timestamp and e.label is not SpeakerLabel.BACKGROUND:
            if prev_kept:
                merged[-1] = replace(merged[-1], translation_content=e.content)
            prev_kept = False
        else:
            merged.append(e)
            prev_kept = True
        prev = e
    return merged


def _number_positions(entries: list[LyricLine]) -> list[LyricLine]:
    out: list[LyricLine] = []
    position = 0
    for e in entries:
        if e.content and e.label is not SpeakerLabel.BACKGROUND:
            out.append(replace(e, absolute_position=position))
            position += 1
        else:
            # background vocals and blank lines stay in the slot of the line above
            inherited = out[-1].absolute_position if out else 0
            out.append(replace(e, absolute_position=inherited))
    return out


def parse_lrc_with_stats(text: str, trim: bool = True) -> tuple[list[LyricLine], LrcParseStats]:
    state = _ParseState()
    # only \n, \r\n and \r end a line; form feeds and friends stay in the text
    physical = _NEWLINE_RE.split(text)
    if physical[-1] == "":
        physical.pop()
    for raw in physical:
        _consume_line(state, raw, trim)

    entries = sorted(state.entries, key=lambda e: e.timestamp)
    entries = _merge_translations(entries)
    entries = list(dropwhile(lambda e: not e.content, entries))
    entries = _number_positions(entries)

    if not entries and text:
        logger.debug("No timestamped lines found, treating text as unsynced lyrics")
        entries = [LyricLine(timestamp=None, content=text)]
    elif not state.found_non_zero:
        logger.debug("All timestamps are zero, collapsing to unsynced lyrics")
        entries = [LyricLine(timestamp=None, content="".join(f"{s}\n" for s in state.unsynced_text or ()))]

    stats = LrcParseStats(
        lines_total=state.lines_total,
        lines_with_timestamps=state.lines_with_timestamps,
        entries_total=len(entries),
        synced=state.found_non_zero,
    )
    return entries, stats


def parse_lrc(text: str, trim: bool = True) -> list[LyricLine]:
    """
    Supported:
    - [mm:ss], [mm:ss.xx], [mm:ss.xxx], [mm:ss:xxx]
    - multiple timestamps per line ("compressed" LRC)
    - <mm:ss.xx> word timing (extended LRC)
    - v1:/v2: voices, [bg: ...] background vocals, F:/M:/D: Walaoke labels
    - translations: a second line with the same timestamp
    - all-zero or missing timestamps (returned as one unsynced line)

    Result is ordered by timestamp; header tags like [ar:] are ignored.
    """
    entries, _stats = parse_lrc_with_stats(text, trim)
    return entries
