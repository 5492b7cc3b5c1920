"""Identity used to label score submissions."""

from __future__ import annotations

from typing import Protocol


class ProfileProvider(Protocol):
    """Source of the authenticated user's name."""

    async def fetch_username(self) -> str: ...


class StaticProfile:
    """Profile with a fixed username."""

    def __init__(self, username: str) -> None:
        if not username:
            raise ValueError("username must not be empty")
        self.username = username

    async def fetch_username(self) -> str:
        return self.username
