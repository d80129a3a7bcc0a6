"""
Export of analysis output: GeoJSON for density surfaces, flat records
(dicts, DataFrames, CSV) for hotspots and road aggregates.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

import pandas as pd

from spatial.models import DensityGrid, HotspotResult, RoadAggregate

log = logging.getLogger(__name__)

HOTSPOT_COLUMNS = ["id", "roadId", "lat", "lng", "value", "zScore", "pValue", "hotspotType"]
AGGREGATE_COLUMNS = ["roadId", "totalPoints", "hotspotCount", "coldspotCount", "avgHotZ", "hotRatio"]


def density_to_geojson(grid: DensityGrid) -> Dict[str, Any]:
    return grid.to_geojson()


def hotspots_to_records(results: Sequence[HotspotResult]) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in results]


def aggregates_to_records(aggregates: Sequence[RoadAggregate]) -> List[Dict[str, Any]]:
    return [a.to_dict() for a in aggregates]


def to_dataframe(records: Sequence[Dict[str, Any]], columns: Sequence[str] = None) -> pd.DataFrame:
    """
    Tabulate records. `columns` fixes the column order, and gives an empty
    frame the right header.
    """
    if columns is None and records:
        columns = list(records[0].keys())
    return pd.DataFrame(list(records), columns=list(columns) if columns else None)


def hotspots_to_dataframe(results: Sequence[HotspotResult]) -> pd.DataFrame:
    return to_dataframe(hotspots_to_records(results), HOTSPOT_COLUMNS)


def aggregates_to_dataframe(aggregates: Sequence[RoadAggregate]) -> pd.DataFrame:
    return to_dataframe(aggregates_to_records(aggregates), AGGREGATE_COLUMNS)


def write_geojson(obj: Dict[str, Any], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False)
    log.info(f"Wrote {len(obj.get('features', []))} features to {path}")
    return path


def write_records_csv(records: Sequence[Dict[str, Any]], path: Union[str, Path], columns: Sequence[str] = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    to_dataframe(records, columns).to_csv(path, index=False)
    log.info(f"Wrote {len(records)} records to {path}")
    return path
