"""
Adaptive resolution and sampling for area analyses.

Density cost is rows * cols * points. Given a selection, pick a bandwidth
and cell size from the selection diagonal, then coarsen the grid and, if
that is not enough, subsample the points with an even stride until the
projected operation count fits the budget. The result is deterministic
for a given input.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from spatial.density import BBox, points_bbox, validate_bbox
from spatial.geo import meters_per_degree
from spatial.models import DamagePoint
from spatial.settings import AnalysisSettings

log = logging.getLogger(__name__)


@dataclass
class AnalysisPlan:
    """Parameters chosen for one area analysis and how they were reached."""
    bandwidth_meters: float
    cell_size_meters: float
    rows: int
    cols: int
    operations: int
    input_point_count: int
    bbox: Optional[BBox] = None
    points: List[DamagePoint] = field(default_factory=list)
    cell_size_escalated: bool = False
    subsampled: bool = False

    @property
    def degraded(self) -> bool:
        """True when resolution or point count was reduced to fit the budget."""
        return self.cell_size_escalated or self.subsampled

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bandwidth": self.bandwidth_meters,
            "cellSize": self.cell_size_meters,
            "rows": self.rows,
            "cols": self.cols,
            "operations": self.operations,
            "inputPointCount": self.input_point_count,
            "usedPointCount": len(self.points),
            "cellSizeEscalated": self.cell_size_escalated,
            "subsampled": self.subsampled,
            "degraded": self.degraded,
        }


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def stride_sample(points: Sequence[DamagePoint], max_points: int) -> List[DamagePoint]:
    """Keep `max_points` points picked at an even stride, first point included."""
    n = len(points)
    if max_points >= n:
        return list(points)
    return [points[(i * n) // max_points] for i in range(max_points)]


def _grid(bbox: BBox, cell_size: float) -> Tuple[int, int, int]:
    west, south, east, north = bbox
    per_lat, per_lng = meters_per_degree((south + north) / 2)
    rows = max(1, math.ceil((north - south) / (cell_size / per_lat)))
    cols = max(1, math.ceil((east - west) / (cell_size / per_lng)))
    return rows, cols, max(1, rows * cols)


def diagonal_meters(bbox: BBox) -> float:
    """Planar diagonal of a bbox using the local meters-per-degree scale."""
    west, south, east, north = bbox
    per_lat, per_lng = meters_per_degree((south + north) / 2)
    dx = (east - west) * per_lng
    dy = (north - south) * per_lat
    return math.sqrt(dx * dx + dy * dy)


def plan_analysis(
    points: Sequence[DamagePoint],
    settings: AnalysisSettings,
    bbox: Optional[BBox] = None,
) -> AnalysisPlan:
    """
    Choose bandwidth, cell size and point set for an area analysis.

    Args:
        points: every damage point in the selection
        settings: budget and clamp values
        bbox: selection extent; defaults to the unpadded point extent

    Returns:
        AnalysisPlan whose `points` are the ones to analyse
    """
    n = len(points)
    if bbox is not None:
        bbox = validate_bbox(bbox)
    elif n > 0:
        bbox = points_bbox(points)

    diag = diagonal_meters(bbox) if bbox is not None else 0.0
    if math.isnan(diag):
        diag = 0.0
    bandwidth = clamp(diag / 4, settings.min_bandwidth_meters, settings.max_initial_bandwidth_meters)
    cell_size = clamp(bandwidth / 3, settings.min_cell_size_meters, settings.max_initial_cell_size_meters)

    if bbox is None:
        return AnalysisPlan(
            bandwidth_meters=bandwidth,
            cell_size_meters=cell_size,
            rows=0,
            cols=0,
            operations=0,
            input_point_count=0,
        )

    rows, cols, cells = _grid(bbox, cell_size)
    ops = cells * n
    escalated = False

    while ops > settings.operation_budget and cell_size < settings.cell_size_ceiling_meters:
        cell_size *= settings.cell_growth_factor
        bandwidth = clamp(
            bandwidth * settings.bandwidth_growth_factor,
            settings.min_bandwidth_meters,
            settings.max_bandwidth_meters,
        )
        rows, cols, cells = _grid(bbox, cell_size)
        ops = cells * n
        escalated = True

    used = list(points)
    subsampled = False
    if ops > settings.operation_budget:
        max_points = max(settings.min_sampled_points, settings.operation_budget // cells)
        if max_points < n:
            used = stride_sample(points, max_points)
            subsampled = True
            ops = cells * len(used)

    plan = AnalysisPlan(
        bandwidth_meters=bandwidth,
        cell_size_meters=cell_size,
        rows=rows,
        cols=cols,
        operations=ops,
        input_point_count=n,
        bbox=bbox,
        points=used,
        cell_size_escalated=escalated,
        subsampled=subsampled,
    )

    if plan.degraded:
        log.info(
            f"Resolution degraded: cell={cell_size:.1f}m, bandwidth={bandwidth:.1f}m, "
            f"points {n} -> {len(used)}, projected ops={ops}"
        )
    return plan
