from __future__ import annotations

import os
from pathlib import Path

ENV_VAR = "MOODJOURNAL_HOME"
MEDIA_DIRNAME = "media"


def default_data_dir(profile: str | None = None) -> Path:
    base = Path.home() / ".config" / "moodjournal"
    return base / profile if profile else base


def resolve_data_dir(data_arg: str | None, profile: str | None) -> Path:
    if data_arg:
        return Path(data_arg).expanduser().resolve()
    env = os.environ.get(ENV_VAR)
    if env:
        return Path(env).expanduser().resolve()
    return default_data_dir(profile).expanduser().resolve()


def media_dir(data_dir: Path) -> Path:
    return Path(data_dir) / MEDIA_DIRNAME
