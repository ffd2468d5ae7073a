import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from .normalizers import DEFAULT_FLOOR_LEVEL, clean_text, normalize_floor_level, parse_int, parse_number
from .property_builder import new_entity
from .schemas import LAYOUT_DESCRIPTIVE_FIELDS
from .utils import feed_records

logger = logging.getLogger(__name__)

BUILDING_SPACE_TYPE = "Building"


def is_building_layout(layout: Dict[str, Any]) -> bool:
    return layout.get("space_type") == BUILDING_SPACE_TYPE


def building_layout_positions(layouts: List[Dict[str, Any]]) -> Dict[int, int]:
    """building_number -> position of the first Building layout carrying it"""
    positions = {}
    for position, layout in enumerate(layouts):
        number = layout.get("building_number")
        if is_building_layout(layout) and number is not None:
            positions.setdefault(number, position)
    return positions


def single_building_position(layouts: List[Dict[str, Any]]) -> Optional[int]:
    """Position of the only Building layout, numbered or not; None when there are zero or several"""
    positions = [position for position, layout in enumerate(layouts) if is_building_layout(layout)]
    if len(positions) == 1:
        return positions[0]
    return None


def layout_parents(layouts: List[Dict[str, Any]]) -> Dict[int, int]:
    """Map each space's position to the position of its Building layout.

    Spaces match a Building layout by building_number. On a single-building
    parcel, interior spaces without a number belong to that building; exterior
    ones stay on the property.
    """
    buildings = building_layout_positions(layouts)
    only_building = single_building_position(layouts)
    parents = {}
    for position, layout in enumerate(layouts):
        if is_building_layout(layout):
            continue
        number = layout.get("building_number")
        parent = buildings.get(number)
        if parent is None and number is None and not layout.get("is_exterior"):
            parent = only_building
        if parent is not None:
            parents[position] = parent
    return parents


def build_layouts(feed: Any, provenance: Dict[str, Any]) -> List[Dict[str, Any]]:
    entries = []
    for entry in feed_records(feed, "layouts"):
        space_type = clean_text(entry.get("space_type"))
        if space_type is None:
            logger.warning(f"⚠️ Skipping layout without space_type: {entry}")
            continue
        entries.append((space_type, entry))

    counters = defaultdict(int)
    layouts = []
    declared_floors = set()
    for space_type, entry in entries:
        counters[space_type] += 1
        layout = new_entity("layout", provenance)
        for field in LAYOUT_DESCRIPTIVE_FIELDS:
            layout[field] = entry.get(field)
        layout["space_type"] = space_type
        layout["space_index"] = counters[space_type]
        layout["building_number"] = parse_int(entry.get("building_number"))
        raw_floor = entry.get("floor_level")
        layout["floor_level"] = normalize_floor_level(raw_floor)
        if clean_text(raw_floor) is not None:
            declared_floors.add(len(layouts))
            if layout["floor_level"] is None:
                logger.warning(f"⚠️ Unrecognized floor level {raw_floor!r} on {space_type} layout")
        layout["size_square_feet"] = parse_number(entry.get("size_square_feet"))
        is_finished = entry.get("is_finished")
        layout["is_finished"] = None if is_finished is None else bool(is_finished)
        layout["is_exterior"] = bool(entry.get("is_exterior"))
        layouts.append(layout)

    _resolve_floor_levels(layouts, declared_floors)
    return layouts


def _resolve_floor_levels(layouts: List[Dict[str, Any]], declared: set) -> None:
    """Own floor, else the parent building's floor, else the first floor.

    A declared floor that could not be normalized stays null instead of
    falling back.
    """
    parents = layout_parents(layouts)
    for position, layout in enumerate(layouts):
        if layout["floor_level"] is not None or position in declared:
            continue
        parent_floor: Optional[str] = None
        if position in parents:
            parent_floor = layouts[parents[position]]["floor_level"]
        layout["floor_level"] = parent_floor or DEFAULT_FLOOR_LEVEL
