"""File helpers shared by the stores."""

from __future__ import annotations

import os
from pathlib import Path

from ..errors import PersistenceError


def write_atomic(path: Path, text: str) -> None:
    """Durably replace ``path`` with ``text``.

    The content goes to a sibling temp file which is flushed and fsynced
    before being renamed over the target, so readers only ever see the
    old or the new file in full.
    """
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as exc:
        raise PersistenceError(path, str(exc)) from exc


class UndecodableText(ValueError):
    """The file exists but is not valid UTF-8 text."""


def read_text(path: Path) -> str:
    """Return the file's text, or ``""`` when it does not exist.

    Raises:
        UndecodableText: the content is not valid UTF-8.
        PersistenceError: the file could not be read.
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except UnicodeDecodeError as exc:
        raise UndecodableText(f"{path}: {exc}") from exc
    except OSError as exc:
        raise PersistenceError(path, str(exc)) from exc
