"""
Kernel Density Engine

Lays a regular grid over a bounding box and sums Gaussian kernel
contributions from every point at each cell centre. The grid is coarsened
until it fits `max_cells`, so the cell count is bounded whatever the area.
"""

import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np

from spatial.geo import distance_meters_many, meters_per_degree
from spatial.models import DamagePoint, DensityCell, DensityGrid

log = logging.getLogger(__name__)

DEFAULT_BANDWIDTH_METERS = 100.0
DEFAULT_CELL_SIZE_METERS = 50.0
DEFAULT_MAX_CELLS = 5000

# ~100 m of padding around the point extent when no bbox is given
BBOX_PADDING_DEGREES = 0.001
CELL_GROWTH_FACTOR = 1.5

BBox = Tuple[float, float, float, float]


def points_bbox(points: Sequence[DamagePoint], padding: float = 0.0) -> BBox:
    """(west, south, east, north) of the points, optionally padded in degrees."""
    lats = [p.lat for p in points]
    lngs = [p.lng for p in points]
    return (
        min(lngs) - padding,
        min(lats) - padding,
        max(lngs) + padding,
        max(lats) + padding,
    )


def grid_shape(bbox: BBox, cell_size_meters: float) -> Tuple[int, int]:
    """(rows, cols) covering `bbox` with square cells of the given size."""
    west, south, east, north = bbox
    per_lat, per_lng = meters_per_degree((south + north) / 2)
    d_lat = cell_size_meters / per_lat
    d_lng = cell_size_meters / per_lng
    rows = math.ceil((north - south) / d_lat)
    cols = math.ceil((east - west) / d_lng)
    return rows, cols


def fit_cell_size(bbox: BBox, cell_size_meters: float, max_cells: int) -> Tuple[float, int, int]:
    """Grow the cell size by 1.5x until the grid has at most `max_cells` cells."""
    rows, cols = grid_shape(bbox, cell_size_meters)
    while rows * cols > max_cells:
        cell_size_meters *= CELL_GROWTH_FACTOR
        rows, cols = grid_shape(bbox, cell_size_meters)
    return cell_size_meters, rows, cols


def validate_bbox(bbox) -> BBox:
    """Coerce `bbox` to floats and reject malformed or inverted boxes."""
    try:
        values = tuple(float(v) for v in bbox)
    except (TypeError, ValueError):
        raise ValueError(f"bbox must be four numbers (west, south, east, north), got {bbox!r}") from None
    if len(values) != 4:
        raise ValueError(f"bbox must be four numbers (west, south, east, north), got {bbox!r}")
    west, south, east, north = values
    if west > east or south > north:
        raise ValueError(f"bbox is inverted: need west <= east and south <= north, got {bbox!r}")
    return values


def compute_kernel_density(
    points: Sequence[DamagePoint],
    bandwidth_meters: float = DEFAULT_BANDWIDTH_METERS,
    cell_size_meters: float = DEFAULT_CELL_SIZE_METERS,
    bbox: Optional[Sequence[float]] = None,
    normalize: bool = True,
    max_cells: int = DEFAULT_MAX_CELLS,
) -> DensityGrid:
    """
    Compute a Gaussian kernel density surface.

    Args:
        points: weighted damage points
        bandwidth_meters: kernel standard deviation
        cell_size_meters: requested cell edge; may be coarsened to respect max_cells
        bbox: (west, south, east, north) in degrees; defaults to the padded point extent
        normalize: scale values so the maximum cell is 1.0
        max_cells: upper bound on rows * cols

    Returns:
        DensityGrid with row-major cells. No points gives an empty grid with no bbox.

    Raises:
        ValueError: if bbox is given but is not four numbers, or the cell
            size / cell limit is not positive
    """
    if cell_size_meters <= 0:
        raise ValueError(f"cell_size_meters must be positive, got {cell_size_meters}")
    if max_cells < 1:
        raise ValueError(f"max_cells must be at least 1, got {max_cells}")

    if not points:
        return DensityGrid()

    if bbox is not None:
        box = validate_bbox(bbox)
    else:
        box = points_bbox(points, padding=BBOX_PADDING_DEGREES)
    west, south, east, north = box

    requested = cell_size_meters
    cell_size_meters, rows, cols = fit_cell_size(box, cell_size_meters, max_cells)
    if cell_size_meters != requested:
        log.debug(f"Cell size coarsened from {requested}m to {cell_size_meters:.1f}m to fit {max_cells} cells")

    per_lat, per_lng = meters_per_degree((south + north) / 2)
    d_lat = cell_size_meters / per_lat
    d_lng = cell_size_meters / per_lng

    lats = np.array([p.lat for p in points], dtype=float)
    lngs = np.array([p.lng for p in points], dtype=float)
    weights = np.array([p.value for p in points], dtype=float)
    two_h_sq = 2 * bandwidth_meters * bandwidth_meters

    log.debug(f"KDE grid {rows}x{cols} over {len(points)} points, bandwidth={bandwidth_meters}m")

    cells = []
    for r in range(rows):
        lat = south + (r + 0.5) * d_lat
        for c in range(cols):
            lng = west + (c + 0.5) * d_lng
            d = distance_meters_many(lat, lng, lats, lngs)
            if two_h_sq > 0:
                kernel = np.exp(-(d * d) / two_h_sq)
            else:
                # Zero bandwidth degenerates to point masses
                kernel = (d == 0).astype(float)
            density = float((weights * kernel).sum())
            cells.append(DensityCell(lat=lat, lng=lng, value=density))

    max_value = max((cell.value for cell in cells), default=0.0)
    if normalize and max_value > 0:
        for cell in cells:
            cell.value = cell.value / max_value
        max_value = 1.0

    return DensityGrid(
        rows=rows,
        cols=cols,
        cell_size_meters=cell_size_meters,
        bbox=(west, south, east, north),
        cells=cells,
        max_value=max_value,
    )
