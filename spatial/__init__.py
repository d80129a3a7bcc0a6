"""
Spatial analysis engine for road damage reports.
Hotspot statistics, kernel density, road aggregation and lane triage.
"""

from spatial.models import (
    DamagePoint,
    HotspotResult,
    HotspotType,
    RoadAggregate,
    DensityCell,
    DensityGrid,
    LaneSummary,
    Urgency,
    HealthLevel,
    HotspotReport,
)
from spatial.geo import distance_meters, std_normal_cdf
from spatial.hotspot import compute_getis_ord_gi
from spatial.interpreter import interpret_hotspots
from spatial.aggregation import aggregate_hotspots_by_road
from spatial.density import compute_kernel_density
from spatial.lane import analyze_lane_summary
from spatial.settings import AnalysisSettings, load_settings, save_settings
from spatial.budget import AnalysisPlan, plan_analysis
from spatial.area import AreaAnalysis, LaneRecord, analyze_area, analyze_areas, analyze_selection

__all__ = [
    # Models
    "DamagePoint",
    "HotspotResult",
    "HotspotType",
    "RoadAggregate",
    "DensityCell",
    "DensityGrid",
    "LaneSummary",
    "Urgency",
    "HealthLevel",
    "HotspotReport",
    # Analyses
    "distance_meters",
    "std_normal_cdf",
    "compute_getis_ord_gi",
    "interpret_hotspots",
    "aggregate_hotspots_by_road",
    "compute_kernel_density",
    "analyze_lane_summary",
    # Pipeline
    "AnalysisSettings",
    "load_settings",
    "save_settings",
    "AnalysisPlan",
    "plan_analysis",
    "AreaAnalysis",
    "LaneRecord",
    "analyze_area",
    "analyze_areas",
    "analyze_selection",
]
