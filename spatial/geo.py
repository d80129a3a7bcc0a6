"""
Spherical-earth geometry and normal distribution helpers.

Haversine is the only distance metric used by the engine; nothing is
projected.
"""

import math

import numpy as np

EARTH_RADIUS_METERS = 6371000.0

# Abramowitz & Stegun erf coefficients
_ERF_P = 0.3275911
_ERF_A1 = 0.254829592
_ERF_A2 = -0.284496736
_ERF_A3 = 1.421413741
_ERF_A4 = -1.453152027
_ERF_A5 = 1.061405429


def distance_meters(a_lat: float, a_lng: float, b_lat: float, b_lng: float) -> float:
    """Great-circle distance in meters between two WGS84 points."""
    d_lat = math.radians(b_lat - a_lat)
    d_lng = math.radians(b_lng - a_lng)
    lat1 = math.radians(a_lat)
    lat2 = math.radians(b_lat)

    sin_dlat = math.sin(d_lat / 2)
    sin_dlng = math.sin(d_lng / 2)
    h = sin_dlat * sin_dlat + math.cos(lat1) * math.cos(lat2) * sin_dlng * sin_dlng
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_METERS * c


def distance_meters_many(lat: float, lng: float, lats: np.ndarray, lngs: np.ndarray) -> np.ndarray:
    """
    Distances from one point to many, same formula as `distance_meters`.

    Args:
        lat, lng: origin in degrees
        lats, lngs: arrays of target coordinates in degrees

    Returns:
        Array of distances in meters, one per target
    """
    d_lat = np.radians(lats - lat)
    d_lng = np.radians(lngs - lng)
    lat1 = math.radians(lat)
    lat2 = np.radians(lats)

    sin_dlat = np.sin(d_lat / 2)
    sin_dlng = np.sin(d_lng / 2)
    h = sin_dlat * sin_dlat + math.cos(lat1) * np.cos(lat2) * sin_dlng * sin_dlng
    # Rounding can push h a hair outside [0, 1] for antipodal or identical points
    h = np.clip(h, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))
    return EARTH_RADIUS_METERS * c


def std_normal_cdf(z: float) -> float:
    """
    Normal CDF approximation used for every p-value in the engine.

    Keeps the Abramowitz & Stegun polynomial in t = 1 / (1 + p|z|) applied
    directly to z, so p-values are reproducible against other clients of the
    same reports. It is steeper in the tails than the exact Phi(z).
    """
    t = 1 / (1 + _ERF_P * abs(z))
    poly = (((_ERF_A5 * t + _ERF_A4) * t + _ERF_A3) * t + _ERF_A2) * t + _ERF_A1
    erf = 1 - poly * math.exp(-z * z)
    sign = -1 if z < 0 else 1
    return 0.5 * (1 + sign * erf)


def two_tailed_p_value(z: float) -> float:
    """Two-tailed p-value for a z-statistic, clamped to [0, 1]."""
    p = 2 * (1 - std_normal_cdf(abs(z)))
    return min(1.0, max(0.0, p))


def meters_per_degree(mean_lat: float):
    """(meters per degree latitude, meters per degree longitude) at a latitude."""
    meters_per_deg_lat = 111320.0
    meters_per_deg_lng = 111320.0 * math.cos(math.radians(mean_lat))
    return meters_per_deg_lat, meters_per_deg_lng
