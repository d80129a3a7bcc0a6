"""
Command line entry point for the road damage spatial engine.

Examples:
    road-spatial hotspots points.json --bandwidth 500 --csv hotspots.csv
    road-spatial density points.json --geojson density.geojson
    road-spatial lane lane.json
    road-spatial area lanes.json --settings settings.json
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from spatial.aggregation import aggregate_hotspots_by_road
from spatial.area import LaneRecord, analyze_selection
from spatial.density import compute_kernel_density
from spatial.export import HOTSPOT_COLUMNS, hotspots_to_records, write_geojson, write_records_csv
from spatial.hotspot import compute_getis_ord_gi
from spatial.interpreter import interpret_hotspots
from spatial.lane import analyze_lane_summary
from spatial.models import DamagePoint
from spatial.settings import load_settings

log = logging.getLogger("main")


def _read_json(path: str) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _read_points(path: str) -> List[DamagePoint]:
    data = _read_json(path)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of points")
    return [DamagePoint.from_dict(p) for p in data]


def _emit(payload: Any, output: Optional[str]) -> None:
    text = json.dumps(payload, ensure_ascii=False, indent=2)
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        log.info(f"Wrote result to {output}")
    else:
        print(text)


def cmd_hotspots(args, settings) -> None:
    points = _read_points(args.input)
    bandwidth = args.bandwidth if args.bandwidth is not None else settings.hotspot_bandwidth_meters
    results = compute_getis_ord_gi(points, bandwidth_meters=bandwidth, significance_z=settings.significance_z)
    report = interpret_hotspots(results)

    if args.csv:
        write_records_csv(hotspots_to_records(results), args.csv, HOTSPOT_COLUMNS)

    _emit({
        "hotspots": hotspots_to_records(results),
        "report": report.to_dict(),
        "roadHotspots": [a.to_dict() for a in aggregate_hotspots_by_road(results)],
    }, args.output)


def cmd_density(args, settings) -> None:
    points = _read_points(args.input)
    grid = compute_kernel_density(
        points,
        bandwidth_meters=args.bandwidth if args.bandwidth is not None else settings.density_bandwidth_meters,
        cell_size_meters=args.cell_size if args.cell_size is not None else settings.density_cell_size_meters,
        bbox=args.bbox,
        normalize=settings.normalize_density,
        max_cells=settings.density_max_cells,
    )
    if args.geojson:
        write_geojson(grid.to_geojson(), args.geojson)
    _emit(grid.to_dict(), args.output)


def cmd_lane(args, settings) -> None:
    data = _read_json(args.input)
    if not isinstance(data, dict):
        raise ValueError(f"{args.input} must contain a JSON object describing one lane")
    damage = [DamagePoint.from_dict(p) for p in data.get("damagePoints") or []]
    summary = analyze_lane_summary(
        data.get("coordinates") or [],
        condition=data.get("condition"),
        damage_points=damage,
        road_name=data.get("roadName"),
    )
    _emit(summary.to_dict(), args.output)


def cmd_area(args, settings) -> None:
    data = _read_json(args.input)
    if not isinstance(data, list):
        raise ValueError(f"{args.input} must contain a JSON list of lanes")
    lanes = [LaneRecord.from_dict(d) for d in data]
    result = analyze_selection(lanes, settings, name=args.name)
    if args.geojson and not result.no_data:
        write_geojson(result.density.to_geojson(), args.geojson)
    _emit(result.to_dict(), args.output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Road damage spatial analysis")
    parser.add_argument("--settings", help="JSON settings file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("hotspots", help="Getis-Ord Gi* hotspot analysis of a point list")
    p.add_argument("input", help="JSON list of damage points")
    p.add_argument("--bandwidth", type=float, help="Neighbour radius in meters")
    p.add_argument("--csv", help="Also write hotspot records as CSV")
    p.add_argument("--output", help="Write JSON here instead of stdout")
    p.set_defaults(func=cmd_hotspots)

    p = sub.add_parser("density", help="Kernel density surface of a point list")
    p.add_argument("input", help="JSON list of damage points")
    p.add_argument("--bandwidth", type=float, help="Kernel bandwidth in meters")
    p.add_argument("--cell-size", type=float, help="Grid cell size in meters")
    p.add_argument("--bbox", type=float, nargs=4, metavar=("WEST", "SOUTH", "EAST", "NORTH"))
    p.add_argument("--geojson", help="Also write the density cells as GeoJSON")
    p.add_argument("--output", help="Write JSON here instead of stdout")
    p.set_defaults(func=cmd_density)

    p = sub.add_parser("lane", help="Triage summary of a single road segment")
    p.add_argument("input", help="JSON object with coordinates, condition, roadName, damagePoints")
    p.add_argument("--output", help="Write JSON here instead of stdout")
    p.set_defaults(func=cmd_lane)

    p = sub.add_parser("area", help="Full analysis of a selection of lanes")
    p.add_argument("input", help="JSON list of lane records")
    p.add_argument("--name", help="Area name used in logs and output")
    p.add_argument("--geojson", help="Also write the density cells as GeoJSON")
    p.add_argument("--output", help="Write JSON here instead of stdout")
    p.set_defaults(func=cmd_area)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        settings = load_settings(args.settings)
        args.func(args, settings)
    except (ValueError, OSError) as e:
        # json.JSONDecodeError is a ValueError
        log.error(f"{args.command} failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
