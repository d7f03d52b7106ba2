from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class PunchOutcome:
    """Result of one login + submission round trip."""

    success: bool
    message: str
    timestamp: Optional[datetime] = None
