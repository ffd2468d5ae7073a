import logging
from typing import Any, Dict, List, Optional

from .code_mapper import (
    EXTERIOR_WALL_MAPPER,
    EXTERIOR_WALL_SECONDARY_MAPPER,
    FLOORING_MAPPER,
    FOUNDATION_MATERIAL_MAPPER,
    FOUNDATION_TYPE_MAPPER,
    FRAMING_MAPPER,
    ROOF_COVERING_MAPPER,
    ROOF_DESIGN_MAPPER,
    ROOF_STRUCTURE_MAPPER,
    SUBFLOOR_MAPPER,
)
from .normalizers import parse_int, parse_number
from .property_builder import new_entity
from .schemas import STRUCTURE_NUMERIC_FIELDS, STRUCTURE_TEXT_FIELDS
from .utils import feed_records

logger = logging.getLogger(__name__)

INTERIOR_WALL_BY_FRAMING = {
    "Wood Frame": "Wood Frame",
    "Steel Frame": "Steel Frame",
    "Masonry": "Concrete Block",
    "Poured Concrete": "Concrete Block",
}


def _tokens(value: Any) -> List[str]:
    if not value:
        return []
    return [token.strip() for token in str(value).split(";") if token.strip()]


def structure_from_feed(entry: Dict[str, Any], provenance: Dict[str, Any]) -> Dict[str, Any]:
    """Copy the declared structure fields from a feed entry"""
    structure = new_entity("structure", provenance)
    for field in STRUCTURE_TEXT_FIELDS:
        structure[field] = entry.get(field)
    for field in STRUCTURE_NUMERIC_FIELDS:
        structure[field] = parse_number(entry.get(field))
    structure["number_of_buildings"] = parse_int(entry.get("number_of_buildings"))
    structure["building_number"] = parse_int(entry.get("building_number"))
    return structure


def structure_from_building(building: Dict[str, Any], building_number: Optional[int],
                            provenance: Dict[str, Any]) -> Dict[str, Any]:
    """Derive shell attributes from one building's assessor text"""
    structure = new_entity("structure", provenance)
    structure["building_number"] = building_number

    walls = _tokens(building.get("exterior_walls"))
    if walls:
        structure["exterior_wall_material_primary"] = EXTERIOR_WALL_MAPPER.map(walls[0])
        if len(walls) > 1:
            structure["exterior_wall_material_secondary"] = EXTERIOR_WALL_SECONDARY_MAPPER.map(walls[1])

    floors = _tokens(building.get("floor_cover"))
    if floors:
        structure["flooring_material_primary"] = FLOORING_MAPPER.map(floors[0])
        if len(floors) > 1:
            structure["flooring_material_secondary"] = FLOORING_MAPPER.map(floors[1])

    roof = " ".join(t for t in (building.get("roof_cover"), building.get("roof_type")) if t)
    if roof:
        structure["roof_covering_material"] = ROOF_COVERING_MAPPER.map(roof)
        structure["roof_design_type"] = ROOF_DESIGN_MAPPER.map(roof)
        structure["roof_structure_material"] = ROOF_STRUCTURE_MAPPER.map(roof)

    framing = FRAMING_MAPPER.map(building.get("frame_type"))
    if framing:
        structure["primary_framing_material"] = framing
        structure["interior_wall_structure_material"] = INTERIOR_WALL_BY_FRAMING[framing]

    foundation = building.get("foundation")
    structure["foundation_type"] = FOUNDATION_TYPE_MAPPER.map(foundation)
    structure["foundation_material"] = FOUNDATION_MATERIAL_MAPPER.map(foundation)
    structure["subfloor_material"] = SUBFLOOR_MAPPER.map(building.get("floor_system") or foundation)

    structure["number_of_stories"] = parse_number(building.get("stories"))
    structure["finished_base_area"] = parse_number(building.get("heated_area"))
    return structure


def build_structures(raw: Dict[str, Any], feed: Any, provenance: Dict[str, Any]) -> List[Dict[str, Any]]:
    """One Structure per building.

    The structures feed wins when present; otherwise each building block the
    adapter extracted is mapped through the structure keyword tables.
    """
    entries = feed_records(feed, "structures")
    if entries:
        return [structure_from_feed(entry, provenance) for entry in entries]

    buildings = raw.get("buildings") or []
    structures = []
    for idx, building in enumerate(buildings):
        number = parse_int(building.get("building_number"))
        if number is None and len(buildings) > 1:
            number = idx + 1
        structures.append(structure_from_building(building, number, provenance))
    if structures:
        logger.info(f"📝 Derived {len(structures)} structure(s) from building details")
    return structures
