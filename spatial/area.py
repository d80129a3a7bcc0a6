"""
Area Analysis Pipeline

Runs the full analysis for a user-selected area:
1. Build weighted damage points from the selected lanes
2. Plan bandwidth / cell size / sampling within the operation budget
3. Gi* hotspots -> area report and per-road ranking
4. Kernel density over the selection

Several independent areas can be analysed in parallel with
`analyze_areas`.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from spatial.aggregation import aggregate_hotspots_by_road
from spatial.budget import AnalysisPlan, plan_analysis
from spatial.density import compute_kernel_density
from spatial.hotspot import compute_getis_ord_gi
from spatial.interpreter import interpret_hotspots
from spatial.models import DamagePoint, DensityGrid, HotspotReport, HotspotResult, RoadAggregate
from spatial.settings import AnalysisSettings

log = logging.getLogger(__name__)

CONDITION_WEIGHTS = {
    "Poor": 1.8,
    "Fair": 1.4,
    "Good": 1.0,
    "Excellent": 0.8,
}
DEFAULT_CONDITION_WEIGHT = 1.0

# Severity assumed for a reported damage point without a numeric value
DEFAULT_REPORTED_SEVERITY = 1.5

DEGRADED_NOTE = "Data or resolution was reduced automatically to keep the analysis fast."


# ═══════════════════════════════════════════════════════════════════════════
# INPUT RECORDS
# ═══════════════════════════════════════════════════════════════════════════
@dataclass
class LaneRecord:
    """A road segment as supplied by the map layer, with its damage reports."""
    id: str
    road_name: Optional[str] = None
    condition: Optional[str] = None
    coordinates: List[Dict[str, float]] = field(default_factory=list)
    damage_points: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LaneRecord":
        if data.get("id") is None:
            raise ValueError("Lane record is missing 'id'")
        return cls(
            id=str(data["id"]),
            road_name=data.get("roadName", data.get("road_name")),
            condition=data.get("condition"),
            coordinates=list(data.get("coordinates") or []),
            damage_points=list(data.get("damagePoints", data.get("damage_points")) or []),
        )


def condition_weight(condition: Optional[str]) -> float:
    return CONDITION_WEIGHTS.get(condition, DEFAULT_CONDITION_WEIGHT)


def build_area_points(lanes: Sequence[LaneRecord]) -> List[DamagePoint]:
    """
    Turn the damage reports of each lane into weighted damage points.

    Each point is scaled by its lane's condition weight and tagged with the
    lane id, so road aggregation never has to parse ids.
    """
    points = []
    for lane in lanes:
        weight = condition_weight(lane.condition)
        for idx, raw in enumerate(lane.damage_points):
            value = raw.get("value")
            severity = value if isinstance(value, (int, float)) and not isinstance(value, bool) else DEFAULT_REPORTED_SEVERITY
            suffix = raw.get("id") if raw.get("id") is not None else idx
            points.append(DamagePoint.from_dict({
                "id": f"{lane.id}-d-{suffix}",
                "roadId": lane.id,
                "lat": raw.get("lat"),
                "lng": raw.get("lng", raw.get("lon")),
                "value": severity * weight,
            }))
    return points


def summarize_roads(lanes: Sequence[LaneRecord]) -> List[Dict[str, Any]]:
    """Basic per-road statistics for the selection panel."""
    return [
        {
            "id": lane.id,
            "name": lane.road_name,
            "condition": lane.condition or "unknown",
            "coordCount": len(lane.coordinates),
            "damageCount": len(lane.damage_points),
        }
        for lane in lanes
    ]


# ═══════════════════════════════════════════════════════════════════════════
# RESULT
# ═══════════════════════════════════════════════════════════════════════════
@dataclass
class AreaAnalysis:
    """
    Output of one area analysis.

    Exactly one of three states: `error` set, `no_data` True, or a full
    result with hotspots, report, density and road ranking.
    """
    name: Optional[str] = None
    hotspots: List[HotspotResult] = field(default_factory=list)
    report: Optional[HotspotReport] = None
    density: DensityGrid = field(default_factory=DensityGrid)
    road_hotspots: List[RoadAggregate] = field(default_factory=list)
    plan: Optional[AnalysisPlan] = None
    road_stats: List[Dict[str, Any]] = field(default_factory=list)
    no_data: bool = False
    summary: str = ""
    suggestions: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.plan is not None and self.plan.degraded

    @property
    def note(self) -> Optional[str]:
        return DEGRADED_NOTE if self.degraded else None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.error:
            data["error"] = self.error
            return data
        if self.no_data:
            data.update({
                "noData": True,
                "roadStats": self.road_stats,
                "summary": self.summary,
                "suggestions": list(self.suggestions),
            })
            return data
        data.update({
            "hotspots": [h.to_dict() for h in self.hotspots],
            "report": self.report.to_dict() if self.report else None,
            "kernel": self.density.to_dict(),
            "roadHotspots": [r.to_dict() for r in self.road_hotspots],
            "params": self.plan.to_dict() if self.plan else None,
            "degraded": self.degraded,
            "note": self.note,
        })
        if self.road_stats:
            data["roadStats"] = self.road_stats
        return data


# ═══════════════════════════════════════════════════════════════════════════
# PIPELINE
# ═══════════════════════════════════════════════════════════════════════════
def _no_data_result(lanes: Sequence[LaneRecord], name: Optional[str]) -> AreaAnalysis:
    stats = summarize_roads(lanes)
    poor = sum(1 for s in stats if s["condition"] == "Poor")
    fair = sum(1 for s in stats if s["condition"] == "Fair")
    if poor > 0:
        suggestions = ["Inspect the roads in poor condition on site"]
    else:
        suggestions = ["Road conditions in the area are good"]
    return AreaAnalysis(
        name=name,
        road_stats=stats,
        no_data=True,
        summary=(
            f"{len(lanes)} roads selected, no damage reports yet.\n"
            f"Of these: {poor} poor, {fair} fair."
        ),
        suggestions=suggestions,
    )


def analyze_area(
    points: Sequence[DamagePoint],
    settings: Optional[AnalysisSettings] = None,
    name: Optional[str] = None,
) -> AreaAnalysis:
    """
    Run hotspot, density and road analyses for one area.

    The planned bandwidth is used for both Gi* and the kernel, and the
    density grid covers the unpadded extent of the points.
    """
    settings = settings or AnalysisSettings()
    if not points:
        log.info(f"Area {name or '<unnamed>'}: no damage points")
        return AreaAnalysis(name=name, no_data=True, summary="No damage reports in this area.")

    log.info(f"Analysing area {name or '<unnamed>'} with {len(points)} points")
    plan = plan_analysis(points, settings)

    hotspots = compute_getis_ord_gi(
        plan.points,
        bandwidth_meters=plan.bandwidth_meters,
        significance_z=settings.significance_z,
    )
    report = interpret_hotspots(hotspots)

    # A zero-width extent would give an empty grid; use the padded point extent instead
    west, south, east, north = plan.bbox
    density_bbox = plan.bbox if east > west and north > south else None
    density = compute_kernel_density(
        plan.points,
        bandwidth_meters=plan.bandwidth_meters,
        cell_size_meters=plan.cell_size_meters,
        bbox=density_bbox,
        normalize=settings.normalize_density,
        # The plan already bounds the grid; do not let the kernel coarsen it again
        max_cells=max(settings.density_max_cells, plan.rows * plan.cols),
    )
    road_hotspots = aggregate_hotspots_by_road(hotspots)

    log.info(
        f"Area {name or '<unnamed>'}: {report.hotspot_count} hotspots, "
        f"{report.coldspot_count} coldspots, level={report.health_level.value}"
    )
    return AreaAnalysis(
        name=name,
        hotspots=hotspots,
        report=report,
        density=density,
        road_hotspots=road_hotspots,
        plan=plan,
    )


def analyze_selection(
    lanes: Sequence[LaneRecord],
    settings: Optional[AnalysisSettings] = None,
    name: Optional[str] = None,
) -> AreaAnalysis:
    """Analyse the damage reports of a set of selected lanes."""
    points = build_area_points(lanes)
    if not points:
        return _no_data_result(lanes, name)

    result = analyze_area(points, settings, name=name)
    result.road_stats = summarize_roads(lanes)
    return result


def analyze_areas(
    areas: Mapping[str, Sequence[DamagePoint]],
    settings: Optional[AnalysisSettings] = None,
) -> Dict[str, AreaAnalysis]:
    """
    Analyse several independent areas in parallel.

    A failing or timed-out area gets an AreaAnalysis with `error` set; the
    other areas are unaffected.
    """
    settings = settings or AnalysisSettings()
    results: Dict[str, AreaAnalysis] = {}

    executor = ThreadPoolExecutor(max_workers=settings.max_workers)
    try:
        futures = {
            executor.submit(analyze_area, points, settings, name): name
            for name, points in areas.items()
        }
        try:
            for future in as_completed(futures, timeout=settings.area_timeout_seconds):
                name = futures[future]
                try:
                    results[name] = future.result()
                except Exception as e:
                    log.error(f"Error analysing area {name}: {e}")
                    results[name] = AreaAnalysis(name=name, error=str(e))
        except FuturesTimeoutError:
            for future, name in futures.items():
                if name not in results:
                    future.cancel()
                    log.warning(f"Area {name} did not finish within {settings.area_timeout_seconds}s")
                    results[name] = AreaAnalysis(name=name, error="timed out")
    finally:
        # Running computations cannot be interrupted; do not block on them
        executor.shutdown(wait=False)

    return {name: results[name] for name in areas}
