"""
Best-effort recovery of a road id from a damage point id.

Only used when a result carries no explicit road id. Point ids built by
the area pipeline look like `<road>-d-<suffix>`; older ids look like
`<road>-<n>`. Anything else is taken as the road id itself.
"""

import re

_DAMAGE_SUFFIX = re.compile(r"^(.+?)[-_]d[-_].+$")
_NUMERIC_SUFFIX = re.compile(r"^(.+?)[-_]\d+$")


def parse_road_id(point_id: str) -> str:
    """
    Strip a damage-point suffix from an id.

    >>> parse_road_id("osm-1-d-123")
    'osm-1'
    >>> parse_road_id("lane_7_d_x")
    'lane_7'
    >>> parse_road_id("road42-3")
    'road42'
    >>> parse_road_id("road42")
    'road42'
    """
    raw = str(point_id)

    match = _DAMAGE_SUFFIX.match(raw)
    if match:
        return match.group(1)

    match = _NUMERIC_SUFFIX.match(raw)
    if match:
        return match.group(1)

    return raw
