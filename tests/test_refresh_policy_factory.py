"""Tests for the refresh policy factory."""

import logging

import pytest

from flagcat.auto_polling_policy import AutoPollingPolicy
from flagcat.config_cache import InMemoryConfigCache, NullConfigCache
from flagcat.lazy_loading_policy import LazyLoadingPolicy
from flagcat.manual_polling_policy import ManualPollingPolicy
from flagcat.polling_mode import auto_poll, lazy_load, manual_poll
from flagcat.refresh_policy import get_cache_key
from flagcat.refresh_policy_factory import RefreshPolicyFactory


@pytest.fixture
def cache():
    return InMemoryConfigCache()


@pytest.fixture
def log():
    return logging.getLogger("flagcat.test")


@pytest.fixture
def factory(fetcher, cache, log, config_json_cache):
    return RefreshPolicyFactory(fetcher, cache, log, config_json_cache, "sdk-key")


class TestRefreshPolicyFactory:
    """Tests for RefreshPolicyFactory.visit."""

    @pytest.mark.parametrize(
        "mode,policy_type",
        [
            (auto_poll(), AutoPollingPolicy),
            (lazy_load(), LazyLoadingPolicy),
            (manual_poll(), ManualPollingPolicy),
        ],
    )
    def test_policy_type_per_mode(self, factory, mode, policy_type):
        assert type(factory.visit(mode)) is policy_type

    @pytest.mark.parametrize("mode", [auto_poll(), lazy_load(), manual_poll()])
    def test_policy_is_wired_with_factory_dependencies(
        self, factory, fetcher, cache, log, config_json_cache, mode
    ):
        policy = factory.visit(mode)

        assert policy.fetcher is fetcher
        assert policy.cache is cache
        assert policy.logger is log
        assert policy.config_json_cache is config_json_cache
        assert policy.sdk_key == "sdk-key"
        assert policy.mode is mode

    def test_distinct_policy_types(self, factory):
        types = {type(factory.visit(mode)) for mode in (auto_poll(), lazy_load(), manual_poll())}
        assert len(types) == 3

    def test_missing_cache_becomes_null_cache(self, fetcher, config_json_cache):
        factory = RefreshPolicyFactory(fetcher, None, None, config_json_cache, "sdk-key")
        assert isinstance(factory.visit(manual_poll()).cache, NullConfigCache)

    def test_construction_does_not_fetch(self, factory, fetcher):
        factory.visit(auto_poll())
        factory.visit(lazy_load())
        assert fetcher.calls == 0

    def test_unknown_mode(self, factory):
        with pytest.raises(TypeError):
            factory.visit(object())

    def test_cache_key_depends_on_mode_and_sdk_key(self, factory, fetcher, cache, config_json_cache):
        auto_policy = factory.visit(auto_poll())
        lazy_policy = factory.visit(lazy_load())
        other_key = RefreshPolicyFactory(fetcher, cache, None, config_json_cache, "other-key").visit(
            auto_poll()
        )

        assert auto_policy.cache_key == get_cache_key("sdk-key", "a")
        assert auto_policy.cache_key != lazy_policy.cache_key
        assert auto_policy.cache_key != other_key.cache_key
