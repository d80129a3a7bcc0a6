import math

import numpy as np
import pytest

from spatial.geo import (
    distance_meters,
    distance_meters_many,
    meters_per_degree,
    std_normal_cdf,
    two_tailed_p_value,
)

SHANGHAI = (31.2304, 121.4737)
BEIJING = (39.9042, 116.4074)


def test_distance_symmetry():
    """Distance does not depend on argument order."""
    ab = distance_meters(*SHANGHAI, *BEIJING)
    ba = distance_meters(*BEIJING, *SHANGHAI)
    assert ab == pytest.approx(ba, rel=1e-6)


def test_self_distance_is_zero():
    assert distance_meters(*SHANGHAI, *SHANGHAI) == 0.0


def test_one_degree_of_latitude():
    """One degree along a meridian is R * pi / 180."""
    expected = 6371000.0 * math.pi / 180
    assert distance_meters(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected, rel=1e-9)


def test_long_distance_known_value():
    """Shanghai-Beijing is roughly 1,070 km."""
    d = distance_meters(*SHANGHAI, *BEIJING)
    assert 1_050_000 < d < 1_090_000


def test_vectorised_distances_match_scalar():
    """The numpy path must agree with the scalar formula."""
    lats = np.array([31.2304, 31.2404, 39.9042, 31.2304])
    lngs = np.array([121.4737, 121.4837, 116.4074, 121.4737])
    many = distance_meters_many(SHANGHAI[0], SHANGHAI[1], lats, lngs)

    for i in range(len(lats)):
        scalar = distance_meters(SHANGHAI[0], SHANGHAI[1], lats[i], lngs[i])
        assert many[i] == pytest.approx(scalar, rel=1e-9, abs=1e-6)
    assert many[3] == 0.0


def test_std_normal_cdf_reference_values():
    """Values of the polynomial approximation shared with the map client."""
    assert std_normal_cdf(0.0) == pytest.approx(0.5, abs=1e-7)
    assert std_normal_cdf(1.96) == pytest.approx(1 - 0.009153 / 2, abs=1e-6)
    assert std_normal_cdf(-1.96) == pytest.approx(0.009153 / 2, abs=1e-6)
    assert std_normal_cdf(2.58) == pytest.approx(1 - 0.000487 / 2, abs=1e-6)


def test_cdf_is_steeper_than_exact_normal_in_the_tail():
    exact = 0.5 * (1 + math.erf(1.96 / math.sqrt(2)))
    assert std_normal_cdf(1.96) > exact


def test_std_normal_cdf_symmetry_and_monotonicity():
    zs = [-4.0, -2.5, -1.0, -0.1, 0.0, 0.1, 1.0, 2.5, 4.0]
    cdfs = [std_normal_cdf(z) for z in zs]
    assert cdfs == sorted(cdfs)
    for z in zs:
        assert std_normal_cdf(z) + std_normal_cdf(-z) == pytest.approx(1.0, abs=1e-7)


def test_two_tailed_p_value():
    assert two_tailed_p_value(1.96) == pytest.approx(0.009153, abs=2e-6)
    assert two_tailed_p_value(-1.96) == two_tailed_p_value(1.96)
    assert two_tailed_p_value(2.58) == pytest.approx(0.000487, abs=2e-6)
    assert two_tailed_p_value(4.3589) == pytest.approx(1.72e-09, rel=0.01)
    assert two_tailed_p_value(0.0) == pytest.approx(1.0, abs=1e-6)
    assert 0.0 <= two_tailed_p_value(0.0) <= 1.0
    assert 0.0 <= two_tailed_p_value(40.0) <= 1.0


def test_meters_per_degree():
    per_lat, per_lng = meters_per_degree(0.0)
    assert per_lat == 111320.0
    assert per_lng == pytest.approx(111320.0)

    _, per_lng_60 = meters_per_degree(60.0)
    assert per_lng_60 == pytest.approx(55660.0, rel=1e-9)
