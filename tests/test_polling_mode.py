"""Tests for polling modes."""

import pytest

from flagcat.polling_mode import (
    AutoPollingMode,
    LazyLoadingMode,
    ManualPollingMode,
    auto_poll,
    lazy_load,
    manual_poll,
)


class TestPollingModeIdentifiers:
    """Tests for polling mode identifiers."""

    def test_identifiers(self):
        assert auto_poll().identifier == "a"
        assert lazy_load().identifier == "l"
        assert manual_poll().identifier == "m"

    def test_identifier_does_not_depend_on_parameters(self):
        assert auto_poll(10, 1).identifier == auto_poll(120, 30).identifier
        assert lazy_load(5, True).identifier == lazy_load(300, False).identifier

    def test_variants_never_share_identifiers(self):
        identifiers = {mode.identifier for mode in (auto_poll(), lazy_load(), manual_poll())}
        assert len(identifiers) == 3

    def test_identifier_cannot_be_changed(self):
        mode = AutoPollingMode()
        with pytest.raises(AttributeError):
            mode.identifier = "x"


class TestPollingModeParameters:
    """Tests for polling mode parameters."""

    def test_auto_poll_defaults(self):
        mode = AutoPollingMode()
        assert mode.poll_interval_seconds == 60
        assert mode.max_init_wait_seconds == 5
        assert mode.on_config_changed is None

    def test_auto_poll_clamps_values(self):
        mode = auto_poll(poll_interval_seconds=0.1, max_init_wait_seconds=-3)
        assert mode.poll_interval_seconds == 1
        assert mode.max_init_wait_seconds == 0

    def test_lazy_load_defaults(self):
        mode = LazyLoadingMode()
        assert mode.cache_refresh_interval_seconds == 60
        assert mode.use_async_refresh is False

    def test_lazy_load_clamps_interval(self):
        assert lazy_load(cache_refresh_interval_seconds=0).cache_refresh_interval_seconds == 1

    def test_modes_are_immutable(self):
        mode = lazy_load()
        with pytest.raises(AttributeError):
            mode.use_async_refresh = True

    def test_equal_parameters_compare_equal(self):
        assert lazy_load(30, True) == lazy_load(30, True)
        assert ManualPollingMode() == manual_poll()
