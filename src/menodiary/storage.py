from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any

from .schema import AppState, default_state

logger = logging.getLogger(__name__)


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _tmp_path(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


def read_document(path: Path) -> dict[str, Any] | None:
    """
    Raw read of the stored document.
    - missing/empty -> None
    - corrupt -> backs up raw text, returns None
    - non-object JSON -> None
    Read errors propagate; Store.load() is the layer that swallows them.
    """
    path = Path(path)
    if not path.exists():
        return None

    txt = path.read_text(encoding="utf-8").strip()
    if not txt:
        return None

    try:
        data = json.loads(txt)
    except json.JSONDecodeError:
        backup = path.with_suffix(f".corrupt-{int(time.time())}.json")
        backup.write_text(txt, encoding="utf-8")
        logger.warning("Corrupt data file %s; raw text saved to %s", path, backup)
        return None

    if not isinstance(data, dict):
        logger.warning("Data file %s does not hold a JSON object; ignoring it", path)
        return None
    return data


def write_document(path: Path, data: Any) -> None:
    """
    Atomic save:
    - serialise fully before touching disk
    - write to temp file in same directory
    - flush + fsync
    - os.replace to target
    - chmod 0600 best-effort
    """
    path = Path(path)
    _ensure_parent(path)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
    ) + "\n"

    tmp = _tmp_path(path)
    with open(tmp, "w", encoding="utf-8") as f:
        f.write(payload)
        f.flush()
        os.fsync(f.fileno())

    os.replace(tmp, path)

    try:
        os.chmod(path, 0o600)
    except OSError:
        pass


class Store:
    """
    The single owner of the application document.

    Every operation works on the whole document; there are no partial
    updates and no locking, the store assumes one local writer.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"Store({str(self.path)!r})"

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> AppState:
        try:
            raw = read_document(self.path)
            if raw is None:
                return default_state()
            return AppState.from_dict(raw)
        except (OSError, ValueError, TypeError, OverflowError) as e:
            logger.error("Failed to load state from %s: %s", self.path, e)
            return default_state()

    def save(self, state: AppState) -> bool:
        try:
            write_document(self.path, state.to_dict())
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save state to %s: %s", self.path, e)
            try:
                _tmp_path(self.path).unlink()
            except OSError:
                pass
            return False
        return True

    def clear(self) -> AppState:
        """Erase the document and hand back what a fresh start sees."""
        for p in (self.path, _tmp_path(self.path)):
            try:
                p.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error("Failed to erase %s: %s", p, e)
        return self.load()
