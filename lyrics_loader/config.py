from __future__ import annotations

import json
from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_FALSE_VALUES = ("0", "false", "no", "off")


def _config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "lyrics-loader"
    return Path.home() / ".config" / "lyrics-loader"


def _config_file() -> Path:
    return _config_dir() / "config.json"


@dataclass(frozen=True)
class LoaderConfig:
    config_dir: Path

    # Parsing
    trim: bool  # strip whitespace around each lyric line

    # Sources, tried in order
    sources: tuple[str, ...]
    sidecar_suffix: str
    sidecar_encoding: str | None  # None: platform default


def load_config() -> LoaderConfig:
    # Priority: env → config.json → defaults
    config_dir = _config_dir()
    data = _load_file(config_dir / "config.json")

    trim = _env_flag("LYRICS_LOADER_TRIM", _as_bool(data.get("trim"), True))

    sources_env = os.getenv("LYRICS_LOADER_SOURCES")
    sources = _as_names(sources_env if sources_env else data.get("sources")) or ("embedded", "sidecar")

    suffix = os.getenv("LYRICS_LOADER_SIDECAR_SUFFIX") or str(data.get("sidecar_suffix") or ".lrc")
    if not suffix.startswith("."):
        suffix = "." + suffix
    encoding = os.getenv("LYRICS_LOADER_SIDECAR_ENCODING") or data.get("sidecar_encoding") or None

    return LoaderConfig(
        config_dir=config_dir,
        trim=trim,
        sources=sources,
        sidecar_suffix=suffix,
        sidecar_encoding=encoding,
    )


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if not raw:
        return default
    return _as_bool(raw, default)


def _as_bool(value: Any, default: bool) -> bool:
    # JSON may hold true/false or strings like "false"
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_VALUES
    return bool(value)


def _as_names(value: Any) -> tuple[str, ...]:
    # "embedded,sidecar" or ["embedded", "sidecar"]
    if not value:
        return ()
    items = [str(v) for v in value] if isinstance(value, (list, tuple)) else str(value).split(",")
    return tuple(s.strip() for s in items if s.strip())


def _load_file(cfg_path: Path) -> dict[str, Any]:
    if not cfg_path.exists():
        return {}
    try:
        data = json.loads(cfg_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", cfg_path, e)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(**values: Any) -> Path:
    cfg_path = _config_file()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data = _load_file(cfg_path)
    data.update(values)
    cfg_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return cfg_path
