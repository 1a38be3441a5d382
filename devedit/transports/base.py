"""Backend interfaces."""

from __future__ import annotations

from typing import Any, Protocol


class Backend(Protocol):
    async def fetch_config(self) -> Any:
        """Return the full configuration document as decoded JSON."""

    async def apply_config(self, profile_id: str, document: dict[str, Any]) -> Any:
        """Submit the full document for the named profile."""

    async def create_profile(self, profile_id: str, name: str, clone_from: str | None = None) -> Any:
        """Create a profile, optionally as a copy of ``clone_from``."""

    async def rename_profile(self, profile_id: str, name: str) -> Any:
        """Rename a profile."""

    async def delete_profile(self, profile_id: str) -> Any:
        """Delete a profile."""

    async def activate_profile(self, profile_id: str) -> Any:
        """Make a profile the active one."""
