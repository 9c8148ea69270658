"""
Tier-keyed dataset store.

The dataset is one JSON object mapping each tier to the cards harvested
for it, in append order::

    {"S": [{"id": "1000228097", "name": "...", ...}], "Unknown": [...]}

In ``ids`` mode each tier holds bare card ids instead of full records.

Every append reads the whole file, adds one entry and rewrites the file
in full.  That read-modify-write is not atomic with respect to other
writers: the store assumes the harvest runner is its only writer and
calls it sequentially.  Appends are never deduplicated, so a card seen
on two runs is stored twice.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union

from ..errors import PersistenceError
from ..schema import ItemRecord
from .files import UndecodableText, read_text, write_atomic

logger = logging.getLogger(__name__)

Dataset = Dict[str, List[Any]]

MODES = ("records", "ids")


class DatasetStore:
    def __init__(self, path: Union[str, Path], mode: str = "records") -> None:
        if mode not in MODES:
            raise ValueError(f"unknown dataset mode: {mode!r}")
        self.path = Path(path)
        self.mode = mode

    def _set_aside(self, reason: str) -> None:
        """Move an unreadable dataset out of the way instead of overwriting it."""
        stamp = datetime.utcnow().strftime("%Y%m%dT%H%M%SZ")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            os.replace(self.path, target)
        except OSError as exc:
            raise PersistenceError(self.path, str(exc)) from exc
        logger.warning("Dataset %s is unreadable (%s); moved to %s and starting empty",
                       self.path, reason, target)

    def load(self) -> Dataset:
        """Current dataset; empty when the file is missing, blank or unparseable."""
        try:
            text = read_text(self.path)
        except UndecodableText as exc:
            self._set_aside(str(exc))
            return {}
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            self._set_aside(str(exc))
            return {}
        if not isinstance(data, dict) or not all(isinstance(v, list) for v in data.values()):
            self._set_aside("top level is not a mapping of tier to list")
            return {}
        return data

    def entry(self, record: ItemRecord) -> Any:
        return record.id if self.mode == "ids" else record.to_dict()

    def append(self, record: ItemRecord) -> None:
        data = self.load()
        data.setdefault(record.tier, []).append(self.entry(record))
        write_atomic(self.path, json.dumps(data, indent=2, ensure_ascii=False))
        logger.debug("Stored card %s under tier %s", record.id, record.tier)

    def summary(self) -> Dict[str, int]:
        """Number of entries per tier."""
        return {tier: len(entries) for tier, entries in self.load().items()}
