"""
Hotspot Interpreter

Turns per-point Gi* results into an area health assessment with
narrative insights on three levels:
- area: overall health tier and what it means for the district
- point: diagnostics for the most significant individual hotspots
- line: pointer to the per-road ranking
plus maintenance suggestions gated on the health tier.
"""

import logging
from typing import List, Sequence, Tuple

from spatial.models import HealthLevel, HotspotReport, HotspotResult, HotspotType

log = logging.getLogger(__name__)

# z above which a hotspot is significant at 99% confidence
CRITICAL_Z = 2.58
HIGH_Z = 1.96

STRUCTURAL_FAILURE_Z = 3.5
DRAINAGE_FAILURE_Z = 3.0

# (hotRatio strictly above, level, score), checked top-down
HEALTH_TIERS: List[Tuple[float, HealthLevel, int]] = [
    (0.40, HealthLevel.CRITICAL, 20),
    (0.25, HealthLevel.POOR, 40),
    (0.10, HealthLevel.FAIR, 60),
]

NO_DATA_SCORE = 100

MAINTENANCE_SUGGESTIONS = {
    "emergency": [
        "Activate the priority-road remediation plan and coordinate traffic diversion with the police",
        "Commission a geotechnical survey of subsurface defects around the most significant hotspots",
        "Stock sufficient asphalt and cement-stabilised material for emergency repairs",
        "Re-inspect repaired sections within 3 months to verify the repair quality",
    ],
    "monthly": [
        "Add the hotspot areas to the monthly maintenance plan and work through them by priority",
        "Watch the road sections around each hotspot to stop damage from spreading",
        "Check drainage facilities before the rainy season to limit water damage",
    ],
    "routine": [
        "Keep the routine inspection frequency and report new damage promptly",
        "Carry the maintenance practice of cold-spot sections over to other roads",
    ],
}


def _health_tier(total: int, hotspot_count: int, hot_ratio: float) -> Tuple[HealthLevel, int]:
    if total == 0:
        return HealthLevel.EXCELLENT, NO_DATA_SCORE
    for threshold, level, score in HEALTH_TIERS:
        if hot_ratio > threshold:
            return level, score
    if hotspot_count > 0:
        return HealthLevel.GOOD, 80
    return HealthLevel.EXCELLENT, 95


def _area_insights(level: HealthLevel, total: int, hotspot_count: int, hot_ratio: float) -> List[str]:
    pct = round(hot_ratio * 100)
    if total == 0:
        return ["No damage reports in this area: the pavement is in good shape or inspection data is missing."]
    if level == HealthLevel.CRITICAL:
        return [
            f"{pct}% of the reports in the area are strongly clustered, pointing to systemic pavement failure.",
            "Start a dedicated remediation programme and check underground utilities, subgrade and drainage first.",
        ]
    if level == HealthLevel.POOR:
        return [
            f"About {pct}% of the reports are damage hotspots; the maintenance load on the area is high.",
            "Rank hotspots by concentration and dispatch repair crews in batches.",
        ]
    if level == HealthLevel.FAIR:
        return [
            f"{hotspot_count} local hotspots ({pct}% of reports); the area is under control but key sections need attention.",
            "Handle the highest-z hotspots during routine inspections to stop damage spreading.",
        ]
    if level == HealthLevel.GOOD:
        return [
            f"Only {hotspot_count} scattered hotspots detected; the road surface is generally in good condition.",
            "These isolated hotspots can go into the routine maintenance plan.",
        ]
    return [
        "No significant damage hotspots detected; road health in the area is excellent.",
        "Keep the current maintenance frequency with periodic inspections.",
    ]


def _point_insights(hotspots: Sequence[HotspotResult], max_z: float) -> List[str]:
    insights = []
    critical = [h for h in hotspots if h.z_score > CRITICAL_Z]
    high = [h for h in hotspots if HIGH_Z < h.z_score <= CRITICAL_Z]

    if critical:
        insights.append(
            f"{len(critical)} highly significant hotspots (confidence > 99%): damage around these points "
            "is unusually dense and likely caused by:"
        )
        if max_z > STRUCTURAL_FAILURE_Z:
            insights.append("- structural pavement failure (base collapse, pumping or other deep defects)")
        if max_z > DRAINAGE_FAILURE_Z:
            insights.append("- underground pipe leakage or drainage failure")
        insights.append("- cumulative damage from heavy or overloaded vehicles")
        insights.append("Survey these points specifically, using core sampling or ground-penetrating radar where needed.")

    if high:
        insights.append(
            f"Another {len(high)} significant hotspots (confidence 95-99%) show moderate clustering; "
            "handle them together with the remediation work."
        )

    if hotspots and not critical:
        insights.append(f"All {len(hotspots)} hotspots are at the ordinary significance level; clustering is controllable.")
        insights.append("Repair by damage severity, starting with points that affect traffic safety.")

    return insights


def _maintenance_suggestions(level: HealthLevel) -> List[str]:
    if level in (HealthLevel.CRITICAL, HealthLevel.POOR):
        return list(MAINTENANCE_SUGGESTIONS["emergency"])
    if level == HealthLevel.FAIR:
        return list(MAINTENANCE_SUGGESTIONS["monthly"])
    return list(MAINTENANCE_SUGGESTIONS["routine"])


def interpret_hotspots(results: Sequence[HotspotResult]) -> HotspotReport:
    """
    Build the area report for a set of Gi* results.

    Health tiers by hotspot ratio: > 40% critical (20), > 25% poor (40),
    > 10% fair (60), any hotspot good (80), otherwise excellent (95).
    """
    hotspots = [r for r in results if r.hotspot_type == HotspotType.HOTSPOT]
    coldspots = [r for r in results if r.hotspot_type == HotspotType.COLDSPOT]
    normal_count = len(results) - len(hotspots) - len(coldspots)

    total = len(results)
    hot_ratio = len(hotspots) / total if total > 0 else 0.0
    cold_ratio = len(coldspots) / total if total > 0 else 0.0
    avg_hot_z = sum(h.z_score for h in hotspots) / len(hotspots) if hotspots else 0.0
    max_z = max(h.z_score for h in hotspots) if hotspots else 0.0

    level, score = _health_tier(total, len(hotspots), hot_ratio)

    area = _area_insights(level, total, len(hotspots), hot_ratio)
    if coldspots and cold_ratio > 0.1:
        area.append(
            f"{len(coldspots)} significant low-damage areas (cold spots) were also found; "
            "they can serve as a reference for maintenance practice."
        )

    summary_text = (
        f"{total} reports in the area: {len(hotspots)} damage hotspots ({round(hot_ratio * 100)}%), "
        f"{len(coldspots)} cold spots, {normal_count} without significant clustering. "
        f"Area health: {level.value} ({score} points)."
    )

    log.debug(f"Interpreted {total} results: level={level.value}, score={score}")

    return HotspotReport(
        total=total,
        hotspot_count=len(hotspots),
        coldspot_count=len(coldspots),
        normal_count=normal_count,
        hot_ratio=hot_ratio,
        cold_ratio=cold_ratio,
        avg_hot_z=avg_hot_z,
        max_z=max_z,
        health_level=level,
        health_score=score,
        summary_text=summary_text,
        hotspots=hotspots,
        coldspots=coldspots,
        area_insights=area,
        point_insights=_point_insights(hotspots, max_z),
        line_insights=[
            "See the road hotspot ranking for road-level detail; a higher z means denser damage clustering on that road."
        ],
        maintenance_suggestions=_maintenance_suggestions(level),
    )
