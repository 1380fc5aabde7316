"""Service interfaces (ports) for the application layer.

Protocols define contracts for collaborators the cache layer consumes but
does not implement: the rendering framework's output cache and the
per-family source of truth (DIP).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from app.domain.enums import KeySelector, RevalidateMode


# Output cache interface
class IOutputCache(Protocol):
    """Protocol for the rendering framework's output cache (fire-and-forget)."""

    async def invalidate_tag(self, tag: str) -> None:
        """Invalidate every rendered entry registered under tag."""

    async def invalidate_path(self, path: str, mode: RevalidateMode | None = None) -> None:
        """Invalidate a route; mode selects page/layout for dynamic segments."""


# Source of truth interface
class IEntitySource(Protocol):
    """Protocol for one entity family's source of truth (relational store reads)."""

    async def fetch(self, selector: KeySelector, value: str) -> Mapping[str, Any] | None:
        """Return the entity looked up by selector (by-id, by-slug, by-token, by-email), or None."""
