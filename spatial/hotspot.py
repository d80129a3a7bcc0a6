"""
Getis-Ord Gi* hotspot analysis.

Binary distance-band weights with self-inclusion: every point is its own
neighbour. Cost is O(n^2) distance evaluations per call; callers bound n
(see spatial.budget).
"""

import logging
import math
from typing import List, Sequence

import numpy as np

from spatial.geo import distance_meters_many, two_tailed_p_value
from spatial.models import DamagePoint, HotspotResult, HotspotType

log = logging.getLogger(__name__)

DEFAULT_BANDWIDTH_METERS = 500.0
DEFAULT_SIGNIFICANCE_Z = 1.96


def classify_z(z: float, significance_z: float = DEFAULT_SIGNIFICANCE_Z) -> HotspotType:
    """Classify a z-score; both thresholds are inclusive."""
    if z >= significance_z:
        return HotspotType.HOTSPOT
    if z <= -significance_z:
        return HotspotType.COLDSPOT
    return HotspotType.NOT_SIGNIFICANT


def compute_getis_ord_gi(
    points: Sequence[DamagePoint],
    bandwidth_meters: float = DEFAULT_BANDWIDTH_METERS,
    significance_z: float = DEFAULT_SIGNIFICANCE_Z,
) -> List[HotspotResult]:
    """
    Compute the Gi* z-score and two-tailed p-value for every point.

    Args:
        points: damage points; `value` is the attribute under test
        bandwidth_meters: neighbour radius, inclusive
        significance_z: |z| at or above which a point is a hot/cold spot

    Returns:
        One HotspotResult per input point, in input order. Empty input
        gives an empty list.
    """
    n = len(points)
    if n == 0:
        return []

    lats = np.array([p.lat for p in points], dtype=float)
    lngs = np.array([p.lng for p in points], dtype=float)
    values = np.array([p.value for p in points], dtype=float)

    mean_x = float(values.mean())
    # Population standard deviation (denominator n)
    s = math.sqrt(float(((values - mean_x) ** 2).sum()) / n)
    log.debug(f"Gi* over {n} points, bandwidth={bandwidth_meters}m, mean={mean_x:.4f}, std={s:.4f}")

    results = []
    for i, point in enumerate(points):
        z = 0.0
        p_value = 1.0

        if s > 0 and n > 1:
            distances = distance_meters_many(point.lat, point.lng, lats, lngs)
            weights = (distances <= bandwidth_meters).astype(float)
            sum_w = float(weights.sum())
            sum_wx = float((weights * values).sum())
            sum_w2 = float((weights * weights).sum())

            numerator = sum_wx - mean_x * sum_w
            variance_term = (n * sum_w2 - sum_w * sum_w) / (n - 1)
            denom = s * math.sqrt(variance_term) if variance_term > 0 else 0.0
            if denom != 0:
                z = numerator / denom
                p_value = two_tailed_p_value(z)

        results.append(HotspotResult(
            id=point.id,
            road_id=point.road_id,
            lat=point.lat,
            lng=point.lng,
            value=point.value,
            z_score=z,
            p_value=p_value,
            hotspot_type=classify_z(z, significance_z),
        ))

    return results
