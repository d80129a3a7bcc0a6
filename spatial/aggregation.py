"""
Road-level aggregation of Gi* results.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from spatial.models import HotspotResult, HotspotType, RoadAggregate
from spatial.road_ids import parse_road_id

log = logging.getLogger(__name__)


@dataclass
class _RoadTally:
    total: int = 0
    hotspot_count: int = 0
    coldspot_count: int = 0
    z_sum: float = 0.0


def resolve_road_id(result: HotspotResult) -> Optional[str]:
    """Explicit road id first, then the id-parsing fallback."""
    if result.road_id:
        return result.road_id
    if result.id:
        return parse_road_id(result.id)
    return None


def aggregate_hotspots_by_road(results: Sequence[HotspotResult]) -> List[RoadAggregate]:
    """
    Fold Gi* results into one aggregate per road.

    Sorted by hotspot count, then hot ratio, both descending. Results with
    neither a road id nor a point id are skipped.
    """
    tallies: Dict[str, _RoadTally] = {}
    skipped = 0

    for result in results:
        road_id = resolve_road_id(result)
        if road_id is None:
            skipped += 1
            continue

        tally = tallies.setdefault(road_id, _RoadTally())
        tally.total += 1
        if result.hotspot_type == HotspotType.HOTSPOT:
            tally.hotspot_count += 1
            tally.z_sum += result.z_score
        elif result.hotspot_type == HotspotType.COLDSPOT:
            tally.coldspot_count += 1

    if skipped:
        log.debug(f"Skipped {skipped} results without a road or point id")

    aggregates = [
        RoadAggregate(
            road_id=road_id,
            total_points=t.total,
            hotspot_count=t.hotspot_count,
            coldspot_count=t.coldspot_count,
            avg_hot_z=t.z_sum / t.hotspot_count if t.hotspot_count > 0 else 0.0,
            hot_ratio=t.hotspot_count / max(1, t.total),
        )
        for road_id, t in tallies.items()
    ]
    aggregates.sort(key=lambda a: (a.hotspot_count, a.hot_ratio), reverse=True)
    return aggregates
