# cardharvest/schema.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

NOT_AVAILABLE = "N/A"
UNKNOWN_TIER = "Unknown"
ANONYMOUS = "Anonymous"

RECORD_KEYS = ["id", "name", "image", "description", "tier", "creator"]

STATUS_COMPLETED = "completed"
STATUS_ABORTED = "aborted"


@dataclass(frozen=True)
class ItemRecord:
    id: str
    name: str = NOT_AVAILABLE
    image: str = NOT_AVAILABLE         # video or image asset URL
    description: str = NOT_AVAILABLE   # first line of the meta description
    tier: str = UNKNOWN_TIER           # dataset partition key
    creators: Tuple[str, ...] = ()

    @property
    def creator(self) -> str:
        return ", ".join(self.creators) if self.creators else ANONYMOUS

    def to_dict(self) -> Dict[str, str]:
        return {key: getattr(self, key) for key in RECORD_KEYS}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ItemRecord":
        creator = data.get("creator") or ANONYMOUS
        creators = () if creator == ANONYMOUS else tuple(
            c.strip() for c in creator.split(",") if c.strip()
        )
        return cls(
            id=str(data["id"]),
            name=data.get("name") or NOT_AVAILABLE,
            image=data.get("image") or NOT_AVAILABLE,
            description=data.get("description") or NOT_AVAILABLE,
            tier=data.get("tier") or UNKNOWN_TIER,
            creators=creators,
        )


@dataclass
class HarvestReport:
    """Outcome of one orchestrator run, also written to the run log."""

    status: str = STATUS_COMPLETED
    start_page: int = 1
    total_pages: int = 0
    last_completed_page: int = 0
    pages_processed: int = 0
    records_appended: int = 0
    items_skipped: int = 0
    error: Optional[str] = None
    started_at: str = field(default_factory=lambda: datetime.utcnow().isoformat())
    finished_at: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)
