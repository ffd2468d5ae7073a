from typing import Any, Dict, List

from .normalizers import parse_int
from .property_builder import new_entity
from .schemas import UTILITY_FIELDS
from .utils import feed_records


def build_utility(entry: Dict[str, Any], provenance: Dict[str, Any]) -> Dict[str, Any]:
    """Pass the feed's system attributes through; the solar flags default to False"""
    utility = new_entity("utility", provenance)
    for field in UTILITY_FIELDS:
        utility[field] = entry.get(field)
    utility["solar_panel_present"] = bool(entry.get("solar_panel_present"))
    utility["solar_inverter_visible"] = bool(entry.get("solar_inverter_visible"))
    utility["building_number"] = parse_int(entry.get("building_number"))
    return utility


def build_utilities(feed: Any, provenance: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [build_utility(entry, provenance) for entry in feed_records(feed, "utilities")]
