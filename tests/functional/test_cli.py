import json

import pandas as pd
import pytest

import main


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


@pytest.fixture
def points_file(tmp_path):
    points = [{"id": f"R1-d-{i}", "lat": 31.2304 + i * 0.00001, "lng": 121.4737, "value": 5} for i in range(10)]
    points += [{"id": f"R2-d-{i}", "lat": 31.30 + i * 0.01, "lng": 121.55} for i in range(10)]
    return write_json(tmp_path / "points.json", points)


def test_hotspots_command(points_file, tmp_path):
    out = tmp_path / "hotspots.json"
    csv_path = tmp_path / "hotspots.csv"
    code = main.main(["hotspots", points_file, "--bandwidth", "500", "--output", str(out), "--csv", str(csv_path)])
    assert code == 0

    data = json.loads(out.read_text(encoding="utf-8"))
    assert len(data["hotspots"]) == 20
    assert data["report"]["hotspotCount"] == 10
    assert data["roadHotspots"][0]["roadId"] == "R1"
    assert len(pd.read_csv(csv_path)) == 20


def test_density_command(points_file, tmp_path):
    out = tmp_path / "density.json"
    geojson = tmp_path / "density.geojson"
    code = main.main(["density", points_file, "--cell-size", "200", "--output", str(out), "--geojson", str(geojson)])
    assert code == 0

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["maxValue"] == 1.0
    assert data["grid"]["rows"] * data["grid"]["cols"] == len(data["cells"])
    features = json.loads(geojson.read_text(encoding="utf-8"))["features"]
    assert len(features) == len(data["cells"])


def test_lane_command(tmp_path):
    lane = {
        "roadName": "Short Lane",
        "condition": "Poor",
        "coordinates": [{"lat": 31.0, "lng": 121.0}, {"lat": 31.009, "lng": 121.0}],
        "damagePoints": [],
    }
    out = tmp_path / "lane.json"
    assert main.main(["lane", write_json(tmp_path / "lane.json.in", lane), "--output", str(out)]) == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["urgency"] == "high"
    assert data["summary"].startswith("Road: Short Lane")


def test_area_command_with_settings(tmp_path):
    lanes = [{
        "id": "R1",
        "condition": "Fair",
        "damagePoints": [{"lat": 31.2304 + i * 0.0005, "lng": 121.4737} for i in range(5)],
    }]
    settings = write_json(tmp_path / "settings.json", {"significance_z": 2.58})
    out = tmp_path / "area.json"
    code = main.main(["--settings", settings, "area", write_json(tmp_path / "lanes.json", lanes),
                      "--name", "test", "--output", str(out)])
    assert code == 0

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["name"] == "test"
    assert len(data["hotspots"]) == 5
    assert data["roadStats"][0]["damageCount"] == 5


def test_invalid_input_returns_error_code(tmp_path, capsys):
    bad = write_json(tmp_path / "bad.json", {"not": "a list"})
    assert main.main(["hotspots", bad]) == 1
    assert main.main(["hotspots", str(tmp_path / "missing.json")]) == 1

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert main.main(["density", str(broken)]) == 1


def test_stdout_output(points_file, capsys):
    assert main.main(["hotspots", points_file]) == 0
    data = json.loads(capsys.readouterr().out)
    assert "report" in data


def test_inverted_bbox_returns_error_code(points_file):
    assert main.main(["density", points_file, "--bbox", "121.6", "31.4", "121.4", "31.2"]) == 1
