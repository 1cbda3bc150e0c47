from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

APP_DIR = "menodiary"
ENV_VAR = "MENODIARY_DATA"


@dataclass(frozen=True)
class DataLocation:
    path: Path
    source: str


def config_home() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else Path.home() / ".config"


def locate_data_file(data_arg: str | None, profile: str | None) -> DataLocation:
    """
    Pick the active document: --data, then $MENODIARY_DATA, then
    <config home>/menodiary/<profile or "data">.json.
    """
    env = os.environ.get(ENV_VAR)
    if data_arg:
        raw, source = data_arg, "because you passed --data"
    elif env:
        raw, source = env, f"because {ENV_VAR} is set"
    else:
        raw = str(config_home() / APP_DIR / f"{profile or 'data'}.json")
        source = f"because you used --profile {profile!r}" if profile else "default XDG config location"
    return DataLocation(path=Path(raw).expanduser().resolve(), source=source)
