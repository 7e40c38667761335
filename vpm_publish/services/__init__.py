"""Application services for vpm-publish.

Services implement the release workflows, coordinating between the domain
layer (manifest/, changelog/) and infrastructure (git/, platform/, gh).
"""

from vpm_publish.services.listing import (
    Listing,
    ListingEntry,
    ListingMetadata,
    aggregate_listing,
    generate_listing,
    latest_versions,
)
from vpm_publish.services.pipeline import (
    PublishOptions,
    ReleaseContext,
    ReleasePipeline,
)
from vpm_publish.services.stages import Stage, Terminal

__all__ = [
    # Listing
    "Listing",
    "ListingEntry",
    "ListingMetadata",
    "aggregate_listing",
    "generate_listing",
    "latest_versions",
    # Pipeline
    "PublishOptions",
    "ReleaseContext",
    "ReleasePipeline",
    "Stage",
    "Terminal",
]
