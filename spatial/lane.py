"""
Single road segment triage.

Measures the segment, computes damage density and average severity, and
walks a first-match decision table to an urgency level. Two overrides run
afterwards and may only raise the urgency.
"""

from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from spatial.geo import distance_meters
from spatial.models import DamagePoint, LaneSummary, Urgency

UNKNOWN_CONDITION = "unknown"
UNKNOWN_ROAD = "unknown"

SEVERE_AVG_SEVERITY = 2.5
MODERATE_AVG_SEVERITY = 1.5
MODERATE_DAMAGE_DENSITY = 10.0
LOW_DAMAGE_DENSITY = 5.0
DENSE_DAMAGE_DENSITY = 20.0
SHORT_SEGMENT_METERS = 200.0
SHORT_SEGMENT_DAMAGE_DENSITY = 15.0

Vertex = Union[Mapping[str, Any], Tuple[float, float]]


def _vertex(v: Vertex) -> Tuple[float, float]:
    if isinstance(v, Mapping):
        return float(v["lat"]), float(v["lng"])
    lat, lng = v
    return float(lat), float(lng)


def polyline_length_meters(vertices: Sequence[Vertex]) -> float:
    """Sum of haversine distances between consecutive vertices."""
    coords = [_vertex(v) for v in vertices]
    return sum(
        distance_meters(a_lat, a_lng, b_lat, b_lng)
        for (a_lat, a_lng), (b_lat, b_lng) in zip(coords, coords[1:])
    )


def _per_km(count: float, length_meters: float) -> float:
    return count / (length_meters / 1000) if length_meters > 0 else 0.0


def analyze_lane_summary(
    vertices: Sequence[Vertex],
    condition: Optional[str] = None,
    damage_points: Optional[Sequence[DamagePoint]] = None,
    road_name: Optional[str] = None,
) -> LaneSummary:
    """
    Triage one road segment.

    Args:
        vertices: ordered polyline, as {"lat", "lng"} mappings or (lat, lng) pairs
        condition: caller's condition label ("Poor", "Fair", "Good", ...)
        damage_points: damage reports on this road only
        road_name: used in the summary line

    Returns:
        LaneSummary with urgency and ordered suggestions
    """
    damage_points = list(damage_points or [])
    length = polyline_length_meters(vertices)
    num_vertices = len(vertices)

    density = _per_km(num_vertices, length)
    damage_density = _per_km(len(damage_points), length)
    # An explicit severity of 0 counts as 0; only a missing value defaults to 1
    avg_severity = (
        sum(p.value for p in damage_points) / len(damage_points) if damage_points else 0.0
    )

    cond = condition or UNKNOWN_CONDITION
    suggestions = []

    if cond == "Poor" or avg_severity > SEVERE_AVG_SEVERITY:
        urgency = Urgency.HIGH
        suggestions.append("Obvious structural damage: schedule emergency repairs within 7-15 days.")
    elif cond == "Fair" or (damage_density > MODERATE_DAMAGE_DENSITY and avg_severity > MODERATE_AVG_SEVERITY):
        urgency = Urgency.MEDIUM
        suggestions.append("Moderate distress: add to the maintenance plan within 1-3 months.")
    elif cond == "Good" or damage_density < LOW_DAMAGE_DENSITY:
        urgency = Urgency.LOW
        suggestions.append("Road in good condition: routine inspection is sufficient.")
    else:
        urgency = Urgency.MEDIUM
        suggestions.append("Condition unclear: verify on site against the reported damage points.")

    if damage_density > DENSE_DAMAGE_DENSITY:
        suggestions.append(
            f"Damage points are unusually dense (>{DENSE_DAMAGE_DENSITY:.0f}/km); there may be unrecorded "
            "serious defects, inspect closely."
        )
        urgency = urgency.at_least(Urgency.MEDIUM)

    if length < SHORT_SEGMENT_METERS and damage_density > SHORT_SEGMENT_DAMAGE_DENSITY:
        suggestions.append("Damage concentrated over a short distance is a safety risk: handle with priority.")
        urgency = urgency.at_least(Urgency.HIGH)

    return LaneSummary(
        length_meters=length,
        num_points=num_vertices,
        density_per_km=density,
        damage_density_per_km=damage_density,
        avg_severity=avg_severity,
        condition=cond,
        urgency=urgency,
        suggestions=suggestions,
        summary=f"Road: {road_name or UNKNOWN_ROAD} ({length / 1000:.2f} km)",
    )
