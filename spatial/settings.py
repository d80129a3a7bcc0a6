"""
Analysis Settings

Every tunable constant of the engine in one place. The analysis
functions never read these implicitly: the area pipeline and the CLI
pass the values down as explicit arguments.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# ANALYSIS SETTINGS
# ═══════════════════════════════════════════════════════════════════════════
@dataclass
class AnalysisSettings:
    """
    All configurable settings for a spatial analysis run.

    Distances are in meters.
    """

    # Hotspot (Gi*) Settings
    hotspot_bandwidth_meters: float = 500.0
    """Points closer than this are neighbours in the Gi* weight matrix."""

    significance_z: float = 1.96
    """|z| at or above this marks a hotspot/coldspot (1.96 = 95% confidence)."""

    # Kernel Density Settings
    density_bandwidth_meters: float = 100.0
    """Standard deviation of the Gaussian kernel."""

    density_cell_size_meters: float = 50.0
    """Requested grid cell edge. Coarsened automatically for large areas."""

    density_max_cells: int = 5000
    """Upper bound on rows * cols of the density grid."""

    normalize_density: bool = True
    """If True, density values are scaled so the densest cell is 1.0."""

    # Adaptive Resolution Settings (area pipeline)
    operation_budget: int = 5_000_000
    """Maximum grid cells * points evaluated by one area density run."""

    min_bandwidth_meters: float = 80.0
    """Lower clamp for the adaptive bandwidth."""

    max_initial_bandwidth_meters: float = 600.0
    """Upper clamp for the bandwidth picked from the selection diagonal."""

    max_bandwidth_meters: float = 800.0
    """Upper clamp for the bandwidth while the grid is being coarsened."""

    min_cell_size_meters: float = 25.0
    """Lower clamp for the adaptive cell size."""

    max_initial_cell_size_meters: float = 200.0
    """Upper clamp for the cell size picked from the bandwidth."""

    cell_size_ceiling_meters: float = 400.0
    """Cell size at which coarsening stops and subsampling takes over."""

    cell_growth_factor: float = 1.4
    """Cell size multiplier per coarsening step."""

    bandwidth_growth_factor: float = 1.2
    """Bandwidth multiplier per coarsening step."""

    min_sampled_points: int = 200
    """Subsampling never keeps fewer points than this."""

    # Batch Settings
    area_timeout_seconds: float = 60.0
    """Wall-clock limit for a batch of area analyses."""

    max_workers: int = 4
    """Threads used to analyse independent areas in parallel."""

    def validate(self) -> "AnalysisSettings":
        """
        Check that every value is usable.

        Raises:
            ValueError: describing the first invalid setting
        """
        positive = [
            "hotspot_bandwidth_meters", "significance_z", "density_bandwidth_meters",
            "density_cell_size_meters", "density_max_cells", "operation_budget",
            "min_bandwidth_meters", "max_initial_bandwidth_meters", "max_bandwidth_meters",
            "min_cell_size_meters", "max_initial_cell_size_meters", "cell_size_ceiling_meters",
            "min_sampled_points", "area_timeout_seconds", "max_workers",
        ]
        for name in positive:
            if getattr(self, name) <= 0:
                raise ValueError(f"Setting '{name}' must be positive, got {getattr(self, name)}")

        for name in ("cell_growth_factor", "bandwidth_growth_factor"):
            if getattr(self, name) <= 1:
                raise ValueError(f"Setting '{name}' must be greater than 1, got {getattr(self, name)}")

        if self.min_bandwidth_meters > self.max_initial_bandwidth_meters:
            raise ValueError("min_bandwidth_meters cannot exceed max_initial_bandwidth_meters")
        if self.max_initial_bandwidth_meters > self.max_bandwidth_meters:
            raise ValueError("max_initial_bandwidth_meters cannot exceed max_bandwidth_meters")
        if self.min_cell_size_meters > self.max_initial_cell_size_meters:
            raise ValueError("min_cell_size_meters cannot exceed max_initial_cell_size_meters")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisSettings":
        """
        Build settings from a dict, filling missing keys with defaults.

        Raises:
            ValueError: on unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(unknown)}")
        return cls(**data).validate()


def load_settings(path: Optional[Union[str, Path]]) -> AnalysisSettings:
    """Load settings from a JSON file; defaults if no path or the file is missing."""
    if path is None:
        return AnalysisSettings()

    path = Path(path)
    if not path.exists():
        log.warning(f"Settings file {path} not found, using defaults")
        return AnalysisSettings()

    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")

    settings = AnalysisSettings.from_dict(data)
    log.info(f"Loaded settings from {path}")
    return settings


def save_settings(settings: AnalysisSettings, path: Union[str, Path]) -> None:
    """Write settings as pretty-printed JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(settings.to_dict(), f, indent=2)
