from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Public profile fields of a user owned by the accounts subsystem."""

    id: str
    username: str | None
    first_name: str | None
    last_name: str | None
    profile_image_url: str | None
