from __future__ import annotations

import json
from typing import Sequence

from .model import LyricLine, SpeakerLabel

_LABEL_PREFIX = {
    SpeakerLabel.VOICE1: "v1: ",
    SpeakerLabel.VOICE2: "v2: ",
    SpeakerLabel.FEMALE: "F: ",
    SpeakerLabel.MALE: "M: ",
    SpeakerLabel.DUET: "D: ",
}


def export_json(lines: Sequence[LyricLine]) -> str:
    return json.dumps(
        [
            {
                "timestamp": ln.timestamp,
                "content": ln.content,
                "translation": ln.translation_content,
                "label": ln.label.value,
                "position": ln.absolute_position,
                "words": [[w.offset, w.start_ms, w.end_ms] for w in ln.word_timestamps],
            }
            for ln in lines
        ],
        ensure_ascii=False,
        indent=2,
    )


def _fmt_lrc_time(ms: int) -> str:
    m, rem = divmod(ms, 60_000)
    s, ms2 = divmod(rem, 1_000)
    # keep 2 decimals for compatibility
    return f"{m:02d}:{s:02d}.{ms2 // 10:02d}"


def export_lrc(lines: Sequence[LyricLine]) -> str:
    """
    Word timing is not written back. Translations go on a second line with
    the same timestamp, background vocals on an untagged [bg: ...] line right
    after their host, so the file parses into the same merged lines.
    """
    out: list[str] = []
    for ln in lines:
        if not ln.is_synced:
            out.append(ln.content.rstrip("\n"))
            continue
        tag = f"[{_fmt_lrc_time(ln.timestamp)}]"
        if ln.label is SpeakerLabel.BACKGROUND:
            # no tag: the parser carries over the host line's timestamp
            out.append(f"[bg: {ln.content}]")
            continue
        out.append(f"{tag}{_LABEL_PREFIX.get(ln.label, '')}{ln.content}")
        if ln.translation_content is not None:
            out.append(f"{tag}{ln.translation_content}")
    return "\n".join(out) + ("\n" if out else "")


def _fmt_srt_time(ms: int) -> str:
    # HH:MM:SS,mmm
    h, rem = divmod(ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms2 = divmod(rem, 1_000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms2:03d}"


def export_srt(lines: Sequence[LyricLine], last_line_duration_ms: int = 2000) -> str:
    """
    Unsynced lines are skipped. End time is the next later start time,
    last line ends at +last_line_duration_ms.
    """
    timed = [ln for ln in lines if ln.is_synced]
    if not timed:
        return ""
    out: list[str] = []
    for i, ln in enumerate(timed, start=1):
        start = ln.timestamp
        end = next(
            (n.timestamp for n in timed[i:] if n.timestamp > start),
            start + last_line_duration_ms,
        )
        text = ln.content
        if ln.translation_content:
            text += "\n" + ln.translation_content
        out.append(str(i))
        out.append(f"{_fmt_srt_time(start)} --> {_fmt_srt_time(end)}")
        out.append(text)
        out.append("")
    return "\n".join(out)
