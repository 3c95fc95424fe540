"""History entry model."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HistoryEntry(BaseModel):
    """A completed request/response pair.  Immutable once created."""

    model_config = ConfigDict(frozen=True)

    code: str
    analysis_type: str
    model: str
    response: str
    timestamp: datetime = Field(default_factory=datetime.now)
    error: bool = False  # True when the response body could not be extracted

    def summary(self, position: int, width: int = 50) -> str:
        """One-line listing for history views.  ``position`` is 1-based."""
        return (
            f"[{position}] {self.timestamp:%Y-%m-%d %H:%M:%S} - "
            f"{self.analysis_type} ({self.model}): {self.code[:width]}..."
        )
