import json

import pytest

from spatial.settings import AnalysisSettings, load_settings, save_settings


def test_defaults():
    settings = AnalysisSettings()
    assert settings.hotspot_bandwidth_meters == 500.0
    assert settings.significance_z == 1.96
    assert settings.density_bandwidth_meters == 100.0
    assert settings.density_cell_size_meters == 50.0
    assert settings.density_max_cells == 5000
    assert settings.operation_budget == 5_000_000
    assert settings.validate() is settings


def test_from_dict_fills_defaults():
    settings = AnalysisSettings.from_dict({"significance_z": 2.58})
    assert settings.significance_z == 2.58
    assert settings.hotspot_bandwidth_meters == 500.0


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ValueError, match="bandwith"):
        AnalysisSettings.from_dict({"bandwith": 100})


@pytest.mark.parametrize("overrides", [
    {"hotspot_bandwidth_meters": 0},
    {"density_cell_size_meters": -5},
    {"operation_budget": 0},
    {"cell_growth_factor": 1.0},
    {"bandwidth_growth_factor": 0.5},
    {"min_bandwidth_meters": 700},
    {"max_initial_bandwidth_meters": 900},
    {"min_cell_size_meters": 300},
])
def test_validate_rejects_bad_values(overrides):
    with pytest.raises(ValueError):
        AnalysisSettings.from_dict(overrides)


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "config" / "settings.json"
    original = AnalysisSettings(hotspot_bandwidth_meters=750.0, max_workers=2)
    save_settings(original, path)

    assert json.loads(path.read_text())["hotspot_bandwidth_meters"] == 750.0
    assert load_settings(path) == original


def test_load_missing_file_returns_defaults(tmp_path):
    assert load_settings(tmp_path / "missing.json") == AnalysisSettings()
    assert load_settings(None) == AnalysisSettings()


def test_load_rejects_non_object(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError):
        load_settings(path)
