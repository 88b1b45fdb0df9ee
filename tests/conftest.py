"""Shared fixtures for flagcat tests."""

import asyncio
import json
from typing import List, Optional

import pytest

from flagcat.config_json_cache import ConfigJsonCache
from flagcat.fetcher import FetchResponse, FetchStatus

BASE_URL = "https://cdn-global.flagcat.io"
SDK_KEY = "test-sdk-key"
CONFIG_URL = f"{BASE_URL}/configuration-files/{SDK_KEY}/config_v5.json"


def make_config(**overrides) -> dict:
    """Build a config document, replacing settings by key."""
    settings = {
        "bool_flag": {"v": True, "t": 0, "i": "v-bool", "r": [], "p": []},
        "string_setting": {
            "v": "default",
            "t": 1,
            "i": "v-string-default",
            "r": [
                {"o": 0, "a": "Email", "t": 2, "c": "@example.com", "v": "targeted", "i": "v-string-rule"},
            ],
            "p": [
                {"o": 0, "p": 50, "v": "half-a", "i": "v-string-pa"},
                {"o": 1, "p": 50, "v": "half-b", "i": "v-string-pb"},
            ],
        },
        "int_setting": {"v": 42, "t": 2, "i": "v-int", "r": [], "p": []},
        "double_setting": {"v": 3.14, "t": 3, "i": "v-double", "r": [], "p": []},
    }
    settings.update(overrides)
    return {"p": {"u": BASE_URL, "r": 0}, "f": settings}


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def settings(config):
    return config["f"]


@pytest.fixture
def config_json_cache():
    return ConfigJsonCache()


class FakeFetcher:
    """
    Stands in for ConfigFetcher in policy tests.

    Responses are served from a list of config documents; the last one is
    repeated. When gate is set, each fetch waits for it before answering.
    """

    def __init__(self, json_cache: ConfigJsonCache, configs: Optional[List[dict]] = None):
        self._json_cache = json_cache
        self._configs = list(configs or [])
        self.calls = 0
        self.etags: List[Optional[str]] = []
        self.gate: Optional[asyncio.Event] = None
        self.fail = False
        self.not_modified = False

    async def fetch(self, etag: Optional[str] = None) -> FetchResponse:
        self.calls += 1
        self.etags.append(etag)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            return FetchResponse(FetchStatus.FAILED)
        if self.not_modified:
            return FetchResponse(FetchStatus.NOT_MODIFIED)

        index = min(self.calls, len(self._configs)) - 1
        text = json.dumps(self._configs[index])
        return FetchResponse(
            FetchStatus.FETCHED,
            entry=self._json_cache.create_entry(text, etag=f'"etag-{self.calls}"'),
        )

    async def close(self) -> None:
        pass


@pytest.fixture
def fetcher(config_json_cache, config):
    return FakeFetcher(config_json_cache, [config])
