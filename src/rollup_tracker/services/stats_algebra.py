"""Pure combinators folding page results and partial stats into metadata."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Protocol

from rollup_tracker.models.rollup_metadata import RollupMetadata
from rollup_tracker.models.stats import RollupStats

_stats_logger = logging.getLogger("rollup_tracker.stats")


class CompositeBucket(Protocol):
    """Aggregation bucket exposing the number of source documents it covers."""

    doc_count: int


class PageResult(Protocol):
    """One page of composite aggregation results from the executor."""

    took_millis: int
    buckets: Sequence[CompositeBucket]


def increment_after_page(
    metadata: RollupMetadata,
    page_elapsed_millis: int,
    buckets: Iterable[CompositeBucket],
) -> RollupMetadata:
    """Return ``metadata`` with one more page, its documents and search time counted.

    Every other field, including ``rollups_indexed`` and ``index_time_in_millis``,
    is carried over unchanged.
    """

    if page_elapsed_millis < 0:
        raise ValueError("page_elapsed_millis must be zero or greater")

    page_documents = sum(int(bucket.doc_count) for bucket in buckets)
    stats = metadata.stats
    updated = metadata.copy(
        stats=RollupStats(
            pages_processed=stats.pages_processed + 1,
            documents_processed=stats.documents_processed + page_documents,
            rollups_indexed=stats.rollups_indexed,
            index_time_in_millis=stats.index_time_in_millis,
            search_time_in_millis=stats.search_time_in_millis + page_elapsed_millis,
        )
    )
    _stats_logger.debug(
        "rollup_stats_incremented",
        extra={"rollup_id": metadata.rollup_id, "metadata_id": metadata.id},
    )
    return updated


def increment_from_page(metadata: RollupMetadata, page: PageResult) -> RollupMetadata:
    return increment_after_page(metadata, page.took_millis, page.buckets)


def merge_stats(first: RollupStats, second: RollupStats) -> RollupStats:
    """Field-wise sum; commutative and associative."""

    return RollupStats(
        pages_processed=first.pages_processed + second.pages_processed,
        documents_processed=first.documents_processed + second.documents_processed,
        rollups_indexed=first.rollups_indexed + second.rollups_indexed,
        index_time_in_millis=first.index_time_in_millis + second.index_time_in_millis,
        search_time_in_millis=first.search_time_in_millis
        + second.search_time_in_millis,
    )


def merge_into(metadata: RollupMetadata, stats: RollupStats) -> RollupMetadata:
    return metadata.copy(stats=merge_stats(metadata.stats, stats))


__all__ = [
    "CompositeBucket",
    "PageResult",
    "increment_after_page",
    "increment_from_page",
    "merge_into",
    "merge_stats",
]
