from __future__ import annotations

import pytest

from safezone.config.overrides import apply_settings_overrides
from safezone.config.settings import get_settings


def test_apply_settings_overrides_returns_same_object_when_none():
    settings = get_settings()
    assert apply_settings_overrides(settings, None) is settings


def test_apply_settings_overrides_can_override_allowed_discovery_knobs():
    settings = get_settings()
    out = apply_settings_overrides(settings, {"discovery": {"max_distance_km": 25}})

    assert out.discovery.max_distance_km == 25
    # The cached shared settings must not leak per-request changes.
    assert settings.discovery.max_distance_km != 25


def test_apply_settings_overrides_rejects_credentials_with_clear_path():
    settings = get_settings()
    with pytest.raises(ValueError, match=r"catalog"):
        apply_settings_overrides(settings, {"catalog": {"api_key": "stolen"}})

    with pytest.raises(ValueError, match=r"geocoding\.base_url"):
        apply_settings_overrides(settings, {"geocoding": {"base_url": "http://evil.test"}})


def test_apply_settings_overrides_rejects_wrong_value_shapes_for_restricted_subtrees():
    settings = get_settings()
    with pytest.raises(ValueError, match=r"settings_overrides key 'discovery' must be a mapping"):
        apply_settings_overrides(settings, {"discovery": 1})


def test_apply_settings_overrides_revalidates_ranges():
    settings = get_settings()
    with pytest.raises(ValueError):
        apply_settings_overrides(settings, {"discovery": {"snippet_length": 1}})


def test_geocoding_limits_are_not_overridable_per_request():
    settings = get_settings()
    with pytest.raises(ValueError, match=r"geocoding\.concurrency"):
        apply_settings_overrides(settings, {"geocoding": {"concurrency": 64}})


def test_packaged_defaults_load():
    settings = get_settings()
    assert settings.catalog.active_status_ids == [1, 2]
    assert settings.discovery.default_center.latitude == pytest.approx(18.4861)
    assert settings.geocoding.concurrency >= 1
