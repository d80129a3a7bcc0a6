"""
Core data models for the road damage spatial engine.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class HotspotType(Enum):
    """Gi* verdict for a single point."""
    HOTSPOT = "hotspot"
    COLDSPOT = "coldspot"
    NOT_SIGNIFICANT = "not-significant"


class Urgency(Enum):
    """Maintenance urgency for a single road segment."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _URGENCY_ORDER.index(self)

    def at_least(self, other: "Urgency") -> "Urgency":
        """Return whichever of the two urgencies is more severe."""
        return self if self.rank >= other.rank else other


_URGENCY_ORDER = [Urgency.LOW, Urgency.MEDIUM, Urgency.HIGH, Urgency.CRITICAL]


class HealthLevel(Enum):
    """Area-level road health tier derived from hotspot ratios."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


def _as_float(value: Any, name: str) -> float:
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Damage point field '{name}' must be a number, got {value!r}")
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Damage point field '{name}' must be a number, got {value!r}") from None
    if math.isnan(result):
        raise ValueError(f"Damage point field '{name}' is NaN")
    return result


@dataclass(frozen=True)
class DamagePoint:
    """
    A single reported or sampled damage observation.

    `value` is the damage mass carried by the point. It is defaulted to 1.0
    here, once, so the algorithms never have to deal with missing weights.
    """
    lat: float
    lng: float
    value: float = 1.0
    id: Optional[str] = None
    road_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DamagePoint":
        """
        Build a point from a caller record.

        Accepts `roadId` or `road_id`; `lon` is accepted as an alias of `lng`.

        Raises:
            ValueError: if lat/lng are missing or not numeric, or value is negative
        """
        lng = data.get("lng", data.get("lon"))
        raw_value = data.get("value")
        value = 1.0 if raw_value is None else _as_float(raw_value, "value")
        if value < 0:
            raise ValueError(f"Damage point value must be non-negative, got {value}")

        raw_id = data.get("id")
        road_id = data.get("roadId", data.get("road_id"))
        return cls(
            lat=_as_float(data.get("lat"), "lat"),
            lng=_as_float(lng, "lng"),
            value=value,
            id=None if raw_id is None else str(raw_id),
            road_id=None if road_id is None else str(road_id),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "roadId": self.road_id,
            "lat": self.lat,
            "lng": self.lng,
            "value": self.value,
        }


@dataclass
class HotspotResult:
    """Per-point Getis-Ord Gi* statistic and its classification."""
    id: Optional[str]
    road_id: Optional[str]
    lat: float
    lng: float
    value: float
    z_score: float
    p_value: float
    hotspot_type: HotspotType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "roadId": self.road_id,
            "lat": self.lat,
            "lng": self.lng,
            "value": self.value,
            "zScore": self.z_score,
            "pValue": self.p_value,
            "hotspotType": self.hotspot_type.value,
        }


@dataclass
class RoadAggregate:
    """Cluster membership rolled up to a single road."""
    road_id: str
    total_points: int
    hotspot_count: int
    coldspot_count: int
    avg_hot_z: float
    hot_ratio: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roadId": self.road_id,
            "totalPoints": self.total_points,
            "hotspotCount": self.hotspot_count,
            "coldspotCount": self.coldspot_count,
            "avgHotZ": self.avg_hot_z,
            "hotRatio": self.hot_ratio,
        }


@dataclass
class DensityCell:
    lat: float
    lng: float
    value: float


@dataclass
class DensityGrid:
    """
    Regular lattice of kernel density samples, stored row-major.

    An empty grid (no input points) has zero rows and columns and no bbox.
    """
    rows: int = 0
    cols: int = 0
    cell_size_meters: float = 0.0
    bbox: Optional[Tuple[float, float, float, float]] = None  # (west, south, east, north)
    cells: List[DensityCell] = field(default_factory=list)
    max_value: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.cells

    def to_geojson(self) -> Dict[str, Any]:
        """Project the cells onto a GeoJSON point FeatureCollection."""
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [cell.lng, cell.lat]},
                    "properties": {"value": cell.value},
                }
                for cell in self.cells
            ],
        }

    def to_dict(self) -> Dict[str, Any]:
        if self.bbox is None:
            return {"cells": [], "bbox": None}
        return {
            "cells": [{"lat": c.lat, "lng": c.lng, "value": c.value} for c in self.cells],
            "bbox": list(self.bbox),
            "grid": {"rows": self.rows, "cols": self.cols, "cellSizeMeters": self.cell_size_meters},
            "maxValue": self.max_value,
        }


@dataclass
class LaneSummary:
    """Single road segment triage result."""
    length_meters: float
    num_points: int  # polyline vertices, not damage reports
    density_per_km: float
    damage_density_per_km: float
    avg_severity: float
    condition: str
    urgency: Urgency
    suggestions: List[str] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lengthMeters": self.length_meters,
            "numPoints": self.num_points,
            "densityPerKm": self.density_per_km,
            "damageDensityPerKm": self.damage_density_per_km,
            "avgSeverity": self.avg_severity,
            "condition": self.condition,
            "urgency": self.urgency.value,
            "suggestions": list(self.suggestions),
            "summary": self.summary,
        }


@dataclass
class HotspotReport:
    """
    Area-level interpretation of a set of Gi* results.

    `total == 0` marks the no-data state; the health level is then
    EXCELLENT with a score of 100, which says nothing about clustering.
    """
    total: int
    hotspot_count: int
    coldspot_count: int
    normal_count: int
    hot_ratio: float
    cold_ratio: float
    avg_hot_z: float
    max_z: float
    health_level: HealthLevel
    health_score: int
    summary_text: str
    hotspots: List[HotspotResult] = field(default_factory=list)
    coldspots: List[HotspotResult] = field(default_factory=list)
    area_insights: List[str] = field(default_factory=list)
    point_insights: List[str] = field(default_factory=list)
    line_insights: List[str] = field(default_factory=list)
    maintenance_suggestions: List[str] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.total > 0

    @property
    def legacy_insights(self) -> List[str]:
        """Flat insight list: area insights followed by the first two point insights."""
        return self.area_insights + self.point_insights[:2]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hotspotCount": self.hotspot_count,
            "coldspotCount": self.coldspot_count,
            "normalCount": self.normal_count,
            "hotRatio": self.hot_ratio,
            "coldRatio": self.cold_ratio,
            "avgHotZ": self.avg_hot_z,
            "maxZ": self.max_z,
            "hotspots": [r.to_dict() for r in self.hotspots],
            "coldspots": [r.to_dict() for r in self.coldspots],
            "areaHealthLevel": self.health_level.value,
            "areaHealthScore": self.health_score,
            "summaryText": self.summary_text,
            "insights": {
                "area": list(self.area_insights),
                "point": list(self.point_insights),
                "line": list(self.line_insights),
            },
            "maintenanceSuggestions": list(self.maintenance_suggestions),
            "legacyInsights": self.legacy_insights,
        }
