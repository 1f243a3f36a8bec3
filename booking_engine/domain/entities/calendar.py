from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Calendar:
    id: str
    owner_id: str
    is_active: bool = True
    title: str = ""
    owner_name: str | None = None
    owner_email: str | None = None
