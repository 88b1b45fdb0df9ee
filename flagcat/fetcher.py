"""
Fetches the config json from the FlagCat CDN.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from flagcat import constants
from flagcat.config import DataGovernance
from flagcat.config_json_cache import ConfigEntry, ConfigJsonCache
from flagcat.errors import FlagCatError, classify_error

logger = logging.getLogger("flagcat.fetcher")

GLOBAL_BASE_URL = "https://cdn-global.flagcat.io"
EU_ONLY_BASE_URL = "https://cdn-eu.flagcat.io"

NO_REDIRECT = 0
SHOULD_REDIRECT = 1
FORCE_REDIRECT = 2

MAX_REDIRECTS = 2


class FetchStatus(str, Enum):
    """Outcome of a fetch."""

    FETCHED = "fetched"
    NOT_MODIFIED = "not_modified"
    FAILED = "failed"


@dataclass
class FetchResponse:
    """Result of a fetch with the new entry when one was downloaded."""

    status: FetchStatus
    entry: Optional[ConfigEntry] = None
    error: Optional[FlagCatError] = None

    @property
    def is_fetched(self) -> bool:
        return self.status == FetchStatus.FETCHED

    @property
    def is_not_modified(self) -> bool:
        return self.status == FetchStatus.NOT_MODIFIED

    @property
    def is_failed(self) -> bool:
        return self.status == FetchStatus.FAILED


class ConfigFetcher:
    """
    Downloads config_v5.json for an SDK key.

    Concurrent fetch() calls share one in-flight request. Failures are
    classified, logged and reported as FetchStatus.FAILED; they never
    raise into the refresh policies.
    """

    def __init__(
        self,
        sdk_key: str,
        mode_identifier: str,
        config_json_cache: ConfigJsonCache,
        base_url: Optional[str] = None,
        data_governance: DataGovernance = DataGovernance.GLOBAL,
        timeout_ms: int = 30000,
        log: Optional[logging.Logger] = None,
    ):
        self._sdk_key = sdk_key
        self._config_json_cache = config_json_cache
        self._log = log or logger
        self._base_url_overridden = bool(base_url)
        if base_url:
            self._base_url = base_url.rstrip("/")
        elif data_governance == DataGovernance.EU_ONLY:
            self._base_url = EU_ONLY_BASE_URL
        else:
            self._base_url = GLOBAL_BASE_URL
        self._headers = {
            "X-FlagCat-UserAgent": f"FlagCat-Python/{mode_identifier}-{constants.SDK_VERSION}",
        }
        self._timeout = timeout_ms / 1000
        self._http_client: Optional[httpx.AsyncClient] = None
        self._inflight: Optional[asyncio.Future] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def fetch(self, etag: Optional[str] = None) -> FetchResponse:
        """
        Fetch the latest config.

        Args:
            etag: ETag of the entry the caller already has

        Returns:
            FetchResponse describing the outcome
        """
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._fetch_with_redirects(etag))
        # A cancelled caller must not cancel the request shared with other callers.
        return await asyncio.shield(self._inflight)

    async def _fetch_with_redirects(self, etag: Optional[str]) -> FetchResponse:
        response = await self._single_fetch(etag)
        redirects = 0

        while response.is_fetched:
            preferences = response.entry.preferences
            new_base_url = preferences.get(constants.BASE_URL)
            redirect = preferences.get(constants.REDIRECT, NO_REDIRECT)
            if new_base_url is None:
                return response
            if not isinstance(new_base_url, str) or type(redirect) is not int:
                self._log.error(
                    f"Invalid redirect preferences in config: "
                    f"{constants.BASE_URL}={new_base_url!r}, {constants.REDIRECT}={redirect!r}"
                )
                return response
            if not new_base_url or new_base_url.rstrip("/") == self._base_url:
                return response

            if self._base_url_overridden and redirect != FORCE_REDIRECT:
                return response

            self._base_url = new_base_url.rstrip("/")
            if redirect == NO_REDIRECT:
                return response
            if redirects == MAX_REDIRECTS:
                self._log.error("Redirect loop during config download. Please contact support.")
                return response
            if redirect == SHOULD_REDIRECT:
                self._log.warning(
                    "The data_governance option does not match the dashboard setting; "
                    "the config is downloaded from a redirected URL."
                )

            redirects += 1
            response = await self._single_fetch(etag)

        return response

    async def _single_fetch(self, etag: Optional[str]) -> FetchResponse:
        """Single fetch attempt."""
        url = f"{self._base_url}/configuration-files/{self._sdk_key}/{constants.CONFIG_FILE_NAME}.json"
        headers = dict(self._headers)
        if etag:
            headers["If-None-Match"] = etag

        try:
            response = await self._client().get(url, headers=headers)
        except httpx.HTTPError as e:
            error = classify_error(e)
            self._log.error(f"Error fetching config: {error.message}")
            return FetchResponse(FetchStatus.FAILED, error=error)

        if response.status_code == 304:
            return FetchResponse(FetchStatus.NOT_MODIFIED)

        if not response.is_success:
            if response.status_code in (401, 403, 404):
                message = f"Double-check your SDK key. Received status code: {response.status_code}"
            else:
                message = f"Unexpected HTTP response: {response.status_code} {response.reason_phrase}"
            error = classify_error(Exception(message), response.status_code)
            self._log.error(f"Error fetching config: {error.message}")
            return FetchResponse(FetchStatus.FAILED, error=error)

        entry = self._config_json_cache.create_entry(response.text, etag=response.headers.get("ETag"))
        if entry is None:
            error = FlagCatError("Fetched config is not valid JSON")
            self._log.error(f"Error fetching config: {error.message}")
            return FetchResponse(FetchStatus.FAILED, error=error)

        return FetchResponse(FetchStatus.FETCHED, entry=entry)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
            try:
                await self._inflight
            except asyncio.CancelledError:
                pass
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
