import pytest

from spatial.lane import analyze_lane_summary, polyline_length_meters
from spatial.models import DamagePoint, Urgency

# Degrees of latitude per meter along a meridian
DEG_PER_METER = 180 / (6371000.0 * 3.141592653589793)


def lane_of_length(meters, start=(31.0, 121.0)):
    lat, lng = start
    return [
        {"lat": lat, "lng": lng},
        {"lat": lat + meters * DEG_PER_METER / 2, "lng": lng},
        {"lat": lat + meters * DEG_PER_METER, "lng": lng},
    ]


def damage(count, value=1.0):
    return [DamagePoint(lat=31.0, lng=121.0, value=value, id=str(i)) for i in range(count)]


def test_polyline_length():
    assert polyline_length_meters(lane_of_length(1000)) == pytest.approx(1000, rel=1e-6)
    assert polyline_length_meters([]) == 0.0
    assert polyline_length_meters([{"lat": 31.0, "lng": 121.0}]) == 0.0


def test_tuple_vertices_are_accepted():
    vertices = [(v["lat"], v["lng"]) for v in lane_of_length(500)]
    assert polyline_length_meters(vertices) == pytest.approx(500, rel=1e-6)


def test_poor_condition_is_high_even_without_damage():
    summary = analyze_lane_summary(lane_of_length(1000), condition="Poor")
    assert summary.urgency == Urgency.HIGH
    assert summary.damage_density_per_km == 0.0
    assert summary.avg_severity == 0.0
    assert "7-15 days" in summary.suggestions[0]


def test_short_segment_override_beats_good_condition():
    """150 m with 3 reports is 20 per km: forced to high."""
    summary = analyze_lane_summary(lane_of_length(150), condition="Good", damage_points=damage(3))
    assert summary.damage_density_per_km == pytest.approx(20.0, rel=1e-6)
    assert summary.urgency == Urgency.HIGH
    assert any("short distance" in s for s in summary.suggestions)


def test_high_average_severity_forces_high():
    for severity in (2.6, 3.0, 10.0):
        summary = analyze_lane_summary(lane_of_length(1000), condition="Good", damage_points=damage(2, severity))
        assert summary.urgency == Urgency.HIGH


def test_fair_condition_is_medium():
    summary = analyze_lane_summary(lane_of_length(1000), condition="Fair")
    assert summary.urgency == Urgency.MEDIUM
    assert "1-3 months" in summary.suggestions[0]


def test_dense_moderate_damage_is_medium():
    summary = analyze_lane_summary(lane_of_length(1000), damage_points=damage(12, 2.0))
    assert summary.urgency == Urgency.MEDIUM
    assert "1-3 months" in summary.suggestions[0]


def test_good_condition_is_low():
    summary = analyze_lane_summary(lane_of_length(1000), condition="Good")
    assert summary.urgency == Urgency.LOW
    assert summary.suggestions == ["Road in good condition: routine inspection is sufficient."]


def test_sparse_damage_is_low_without_condition():
    summary = analyze_lane_summary(lane_of_length(1000), damage_points=damage(4))
    assert summary.urgency == Urgency.LOW


def test_unclear_state_requests_verification():
    """7 light reports per km, no condition: falls through to manual check."""
    summary = analyze_lane_summary(lane_of_length(1000), damage_points=damage(7))
    assert summary.urgency == Urgency.MEDIUM
    assert "verify on site" in summary.suggestions[0]


def test_very_dense_damage_escalates_low_to_medium():
    summary = analyze_lane_summary(lane_of_length(1000), condition="Good", damage_points=damage(25))
    assert summary.urgency == Urgency.MEDIUM
    assert len(summary.suggestions) == 2
    assert "unusually dense" in summary.suggestions[1]


def test_overrides_never_downgrade():
    summary = analyze_lane_summary(lane_of_length(1000), condition="Poor", damage_points=damage(25))
    assert summary.urgency == Urgency.HIGH


def test_zero_length_guards_division():
    summary = analyze_lane_summary([{"lat": 31.0, "lng": 121.0}], damage_points=damage(3))
    assert summary.length_meters == 0.0
    assert summary.density_per_km == 0.0
    assert summary.damage_density_per_km == 0.0
    assert summary.num_points == 1


def test_geometry_density_counts_vertices():
    summary = analyze_lane_summary(lane_of_length(1000))
    assert summary.num_points == 3
    assert summary.density_per_km == pytest.approx(3.0, rel=1e-6)


def test_average_severity_uses_point_values():
    points = [DamagePoint(lat=31.0, lng=121.0, value=1.0), DamagePoint(lat=31.0, lng=121.0, value=2.0)]
    summary = analyze_lane_summary(lane_of_length(1000), damage_points=points)
    assert summary.avg_severity == pytest.approx(1.5)


def test_condition_and_summary_text():
    summary = analyze_lane_summary(lane_of_length(1000), road_name="Huaihai Road")
    assert summary.condition == "unknown"
    assert summary.summary == "Road: Huaihai Road (1.00 km)"

    data = summary.to_dict()
    assert data["urgency"] == "low"
    assert data["numPoints"] == 3
    assert data["lengthMeters"] == pytest.approx(1000, rel=1e-6)


def test_explicit_zero_severity_is_not_replaced():
    zeros = analyze_lane_summary(lane_of_length(1000), damage_points=damage(4, value=0.0))
    assert zeros.avg_severity == 0.0

    missing = [DamagePoint.from_dict({"lat": 31.0, "lng": 121.0}) for _ in range(4)]
    defaulted = analyze_lane_summary(lane_of_length(1000), damage_points=missing)
    assert defaulted.avg_severity == 1.0


def test_summary_names_unknown_road():
    summary = analyze_lane_summary(lane_of_length(1000), condition="Good")
    assert summary.summary == "Road: unknown (1.00 km)"
