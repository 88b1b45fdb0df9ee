"""Tests for the test harness service."""

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from conftest import CONFIG_URL, SDK_KEY
from test_service.main import app, parse_polling_mode
from flagcat.polling_mode import AutoPollingMode, LazyLoadingMode, ManualPollingMode


@pytest.fixture
def service():
    with TestClient(app) as test_client:
        yield test_client
        test_client.delete("/")


def init(service, **config):
    return service.post("/", json={"command": "init", "config": {"sdkKey": SDK_KEY, **config}}).json()


class TestParsePollingMode:
    """Tests for polling mode parsing."""

    def test_modes(self):
        assert isinstance(parse_polling_mode({"type": "auto"}), AutoPollingMode)
        assert isinstance(parse_polling_mode({"type": "lazy"}), LazyLoadingMode)
        assert isinstance(parse_polling_mode(None), ManualPollingMode)

    def test_parameters(self):
        mode = parse_polling_mode({"type": "lazy", "cacheRefreshIntervalSeconds": 5, "useAsyncRefresh": True})
        assert mode.cache_refresh_interval_seconds == 5
        assert mode.use_async_refresh is True

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            parse_polling_mode({"type": "push"})


class TestService:
    """Tests for the command protocol."""

    def test_health_check(self, service):
        assert service.get("/").json() == {"success": True}

    def test_command_before_init(self, service):
        response = service.post("/", json={"command": "getValue", "flagKey": "a"}).json()
        assert response["error"] == "NotInitializedError"

    def test_init_requires_config(self, service):
        response = service.post("/", json={"command": "init"}).json()
        assert response["error"] == "ValidationError"

    def test_init_with_empty_sdk_key(self, service):
        response = service.post("/", json={"command": "init", "config": {"sdkKey": ""}}).json()
        assert response["error"] == "ValueError"

    def test_get_value_returns_default_without_config(self, service):
        assert init(service)["success"] is True

        response = service.post(
            "/", json={"command": "getValue", "flagKey": "bool_flag", "defaultValue": False}
        ).json()

        assert response == {"value": False}

    def test_unknown_command(self, service):
        init(service)
        response = service.post("/", json={"command": "explode"}).json()
        assert response["error"] == "UnknownCommand"

    def test_force_refresh_and_evaluate(self, service, config):
        with respx.mock(assert_all_called=False) as cdn:
            cdn.get(CONFIG_URL).mock(return_value=httpx.Response(200, json=config))
            cdn.route(host="testserver").pass_through()

            init(service)
            assert service.post("/", json={"command": "forceRefresh"}).json() == {"success": True}

            value = service.post(
                "/",
                json={
                    "command": "getValue",
                    "flagKey": "string_setting",
                    "defaultValue": "",
                    "user": {"identifier": "u", "email": "a@example.com"},
                },
            ).json()
            assert value == {"value": "targeted"}

            key_and_value = service.post(
                "/", json={"command": "getKeyAndValue", "variationId": "v-int"}
            ).json()
            assert key_and_value == {"key": "int_setting", "value": 42}

            keys = service.post("/", json={"command": "getAllKeys"}).json()
            assert keys["keys"] == list(config["f"].keys())

    def test_state_before_init(self, service):
        assert service.post("/", json={"command": "getState"}).json() == {"isReady": False}

    def test_state_reports_cache_stats(self, service, config):
        with respx.mock(assert_all_called=False) as cdn:
            cdn.get(CONFIG_URL).mock(return_value=httpx.Response(200, json=config))
            cdn.route(host="testserver").pass_through()

            init(service)
            service.post("/", json={"command": "forceRefresh"})

            state = service.post("/", json={"command": "getState"}).json()

        assert state["isReady"] is True
        assert state["cacheStats"]["writes"] == 1
        assert state["cacheStats"]["hits"] == 0
        assert state["cacheStats"]["hitRate"] == 0.0
