"""Canonical search result returned to callers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from collectr.models.platform import CanonicalPlatform

UNKNOWN_PUBLISHER = "Unknown"
SYSTEM_CREATOR = "system"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class GameSearchResult:
    """A provider-agnostic game record.

    ``id`` is ``{provider}_{native id}`` so the source stays visible. Instances
    are never mutated; scoring builds a copy with ``dataclasses.replace``.
    """

    id: str
    title: str
    platform: CanonicalPlatform = CanonicalPlatform.OTHER
    publisher: str = UNKNOWN_PUBLISHER
    year: int = field(default_factory=lambda: _utcnow().year)
    cover_url: str | None = None
    synopsis: str | None = None
    native_id: int | None = None
    barcode: str | None = None
    created_by: str = SYSTEM_CREATOR
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime | None = None
    pending_review: bool = False
    relevance_score: float | None = None

    def __post_init__(self) -> None:
        if self.updated_at is None:
            object.__setattr__(self, "updated_at", self.created_at)

    @property
    def provider(self) -> str:
        """Provider tag taken from the id prefix."""
        return self.id.split("_", 1)[0]

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping for the transport layer."""
        data = asdict(self)
        data["platform"] = self.platform.value
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        return data
