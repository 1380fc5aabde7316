"""Output-cache (rendering framework) revalidation hooks.

The rendered-page cache lives in the frontend; it is invalidated by tag or
by route path. Both calls are fire-and-forget: failures are logged and
never raised to the fan-out engine.
"""

from __future__ import annotations

import logging

import httpx

from app.domain.enums import RevalidateMode

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Revalidate-Secret"


class HttpOutputCache:
    """Posts revalidation requests to the frontend's revalidate endpoint.

    Body is ``{"tag": ...}`` or ``{"path": ..., "mode": ...}``; the shared
    secret (if configured) goes in X-Revalidate-Secret.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        secret: str | None = None,
    ) -> None:
        self.client = client
        self.url = url
        self.secret = secret

    def _headers(self) -> dict[str, str]:
        return {SECRET_HEADER: self.secret} if self.secret else {}

    async def _post(self, payload: dict[str, str]) -> None:
        try:
            response = await self.client.post(self.url, json=payload, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Output cache revalidation failed for %s: %s", payload, e)
            return
        logger.debug("Output cache revalidated: %s", payload)

    async def invalidate_tag(self, tag: str) -> None:
        """Invalidate every rendered entry registered under tag."""
        await self._post({"tag": tag})

    async def invalidate_path(self, path: str, mode: RevalidateMode | None = None) -> None:
        """Invalidate a route (mode 'page'/'layout' for dynamic segments)."""
        payload = {"path": path}
        if mode is not None:
            payload["mode"] = mode.value
        await self._post(payload)


class LoggingOutputCache:
    """Hook used when no revalidation URL is configured: logs and does nothing else."""

    async def invalidate_tag(self, tag: str) -> None:
        logger.debug("Output cache tag invalidation (no hook configured): %s", tag)

    async def invalidate_path(self, path: str, mode: RevalidateMode | None = None) -> None:
        logger.debug(
            "Output cache path invalidation (no hook configured): %s %s",
            path,
            mode.value if mode else "",
        )
