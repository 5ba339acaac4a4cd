"""
Per-request settings overrides.

API clients may send `settings_overrides` to tune a handful of discovery knobs
for one pass, e.g. `{"discovery": {"max_distance_km": 25}}`. Only the dotted
paths in `OVERRIDABLE_PATHS` are accepted. Backend credentials, provider URLs,
file paths and the process-wide geocoding limits never are. The merged payload
is re-validated by Pydantic so ranges still hold.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from safezone.config.settings import Settings

OVERRIDABLE_PATHS: frozenset[str] = frozenset(
    {
        "discovery.include_user_location",
        "discovery.show_all_reports",
        "discovery.max_distance_km",
        "discovery.initial_zoom",
        "discovery.snippet_length",
        "location.timeout_seconds",
    }
)


def _leaf_paths(overrides: Mapping[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    for key, value in overrides.items():
        dotted = f"{prefix}{key}"
        if dotted in OVERRIDABLE_PATHS:
            yield dotted, value
        elif not prefix and key in Settings.model_fields:
            if not isinstance(value, Mapping):
                raise ValueError(f"settings_overrides key '{dotted}' must be a mapping")
            yield from _leaf_paths(value, prefix=f"{dotted}.")
        else:
            raise ValueError(f"settings_overrides contains a disallowed key: '{dotted}'")


def apply_settings_overrides(settings: Settings, overrides: Mapping[str, Any] | None) -> Settings:
    """Return a new validated `Settings`; the cached input is left untouched."""
    if not overrides:
        return settings

    payload = settings.model_dump(mode="python")
    for dotted, value in _leaf_paths(overrides):
        section, field = dotted.split(".", 1)
        payload[section][field] = value
    return Settings.model_validate(payload)
