"""Proximity incident discovery: geocode, measure, filter, sort, publish."""

from safezone.discovery.filter_sort import FilterOutcome, filter_and_sort
from safezone.discovery.index_builder import IndexBuild, MarkerStyle, ProximityIndexBuilder
from safezone.discovery.orchestrator import DiscoveryOrchestrator, discovery_config
from safezone.discovery.share import share_text

__all__ = [
    "DiscoveryOrchestrator",
    "FilterOutcome",
    "IndexBuild",
    "MarkerStyle",
    "ProximityIndexBuilder",
    "discovery_config",
    "filter_and_sort",
    "share_text",
]
