# backend/app/services/scheduling/compositor.py
"""
Schedule composition.

Merges recurring and manual occurrences into one time-ordered list. Both
sources are kept even when they claim the same studio at the same time;
``find_studio_conflicts`` makes those clashes visible.
"""

from __future__ import annotations

from itertools import groupby
from typing import Iterable, List, Sequence

from .occurrence import Occurrence, StudioConflict


def _sort_key(occurrence: Occurrence) -> tuple:
    # Absolute instant first so occurrences from different zones interleave correctly
    return (
        occurrence.start_utc,
        occurrence.studio,
        occurrence.source,
        occurrence.workshop_id,
        occurrence.rule_id or "",
    )


def compose_schedule(
    recurring: Iterable[Occurrence], manual: Iterable[Occurrence]
) -> List[Occurrence]:
    """
    Concatenate both lists and sort by (start, studio).

    No de-duplication. The trailing sort keys only make ties deterministic.
    """
    return sorted([*recurring, *manual], key=_sort_key)


def find_studio_conflicts(occurrences: Sequence[Occurrence]) -> List[StudioConflict]:
    """
    Group occurrences that overlap in time within the same studio.

    Returns:
        One StudioConflict per cluster of two or more overlapping
        occurrences, ordered by studio then start
    """
    conflicts: List[StudioConflict] = []
    by_studio = sorted(occurrences, key=lambda o: (o.studio, o.start_utc, o.end_utc))
    for studio, group in groupby(by_studio, key=lambda o: o.studio):
        cluster: List[Occurrence] = []
        cluster_end = None
        for occurrence in group:
            if cluster and cluster_end is not None and occurrence.start_utc < cluster_end:
                cluster.append(occurrence)
                cluster_end = max(cluster_end, occurrence.end_utc)
                continue
            if len(cluster) > 1:
                conflicts.append(StudioConflict(studio=studio, occurrences=tuple(cluster)))
            cluster = [occurrence]
            cluster_end = occurrence.end_utc
        if len(cluster) > 1:
            conflicts.append(StudioConflict(studio=studio, occurrences=tuple(cluster)))
    return conflicts
