"""Lazily initialised, shared handle to the Google Maps provider."""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx
from geopy.adapters import AioHTTPAdapter
from geopy.geocoders import GoogleV3

from .errors import ProviderUnavailable
from .settings import API_KEY_ENV, ProviderSettings

logger = logging.getLogger(__name__)

USER_AGENT = "diner-radar/0.1.0"


@dataclass(frozen=True, slots=True)
class ProviderHandle:
    """Everything a query needs to talk to the provider."""

    api_key: str
    http: httpx.AsyncClient
    geocoder: Any
    new_api_enabled: bool = True


HandleFactory = Callable[[ProviderSettings, AsyncExitStack], Awaitable[ProviderHandle]]


async def build_default_handle(settings: ProviderSettings, stack: AsyncExitStack) -> ProviderHandle:
    """Create the HTTP client and geocoder, registering their cleanup on ``stack``."""

    http = httpx.AsyncClient(
        timeout=settings.request_timeout,
        headers={"User-Agent": USER_AGENT},
    )
    stack.push_async_callback(http.aclose)

    geocoder = GoogleV3(
        api_key=settings.api_key,
        domain=settings.geocoding_domain,
        timeout=settings.request_timeout,
        user_agent=USER_AGENT,
        adapter_factory=AioHTTPAdapter,
    )
    await stack.enter_async_context(geocoder)

    return ProviderHandle(
        api_key=settings.api_key or "",
        http=http,
        geocoder=geocoder,
        new_api_enabled=settings.use_new_api,
    )


class SessionManager:
    """Own the single provider handle for the life of the application.

    ``ensure_ready`` builds the handle on first use and returns the memoized
    one afterwards.  Concurrent first callers await the same initialisation,
    so the handle is written at most once.  A failed initialisation raises
    :class:`ProviderUnavailable` and is not retried until the next explicit
    call.
    """

    def __init__(
        self,
        settings: Optional[ProviderSettings] = None,
        handle_factory: Optional[HandleFactory] = None,
    ) -> None:
        self.settings = settings or ProviderSettings.from_env()
        self._factory = handle_factory or build_default_handle
        self._handle: Optional[ProviderHandle] = None
        self._pending: Optional[asyncio.Task] = None
        self._stack: Optional[AsyncExitStack] = None

    def get(self) -> Optional[ProviderHandle]:
        """Return the memoized handle, or ``None`` before initialisation."""

        return self._handle

    async def ensure_ready(self) -> ProviderHandle:
        if self._handle is not None:
            return self._handle

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._initialise())
        pending = self._pending
        try:
            return await asyncio.shield(pending)
        except ProviderUnavailable:
            if self._pending is pending:
                self._pending = None
            raise

    async def _initialise(self) -> ProviderHandle:
        if not self.settings.has_credentials():
            logger.warning("Google Maps API key not found; set %s", API_KEY_ENV)
            raise ProviderUnavailable("Google Maps API key is required")

        stack = AsyncExitStack()
        try:
            handle = await self._factory(self.settings, stack)
        except (ProviderUnavailable, asyncio.CancelledError):
            await stack.aclose()
            raise
        except Exception as exc:
            await stack.aclose()
            logger.warning("Provider initialisation failed", exc_info=True)
            raise ProviderUnavailable(f"Google Maps provider failed to load: {exc}") from exc

        self._stack = stack
        self._handle = handle
        logger.debug("Provider ready (new API enabled: %s)", handle.new_api_enabled)
        return handle

    async def aclose(self) -> None:
        """Release the HTTP client and geocoder sessions."""

        pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            pending.cancel()
            await asyncio.gather(pending, return_exceptions=True)

        stack, self._stack = self._stack, None
        self._handle = None
        if stack is not None:
            await stack.aclose()

    async def __aenter__(self) -> "SessionManager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
