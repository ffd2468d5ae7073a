"""Builders for the parcel-level entities.

Each builder starts from the schema stub, copies the provenance pair from the
property seed and fills what the raw field bag provides. Builders for
optional entities return None when the source has nothing for them.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from .code_mapper import Classification, number_of_units_type
from .normalizers import (
    acres_to_sqft,
    clean_text,
    lot_type_for_acreage,
    lot_type_for_sqft,
    parse_acreage,
    parse_address,
    parse_area,
    parse_currency,
    parse_date,
    parse_int,
    parse_number,
    parse_section_township_range,
    parse_year,
)
from .schemas import create_stub

logger = logging.getLogger(__name__)


def provenance_from_seed(seed: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Extract the provenance pair echoed onto every entity"""
    seed = seed or {}
    request = seed.get("source_http_request")
    identifier = seed.get("request_identifier") or seed.get("parcel_id")
    return {
        "source_http_request": copy.deepcopy(request) if request else None,
        "request_identifier": str(identifier) if identifier is not None else None,
    }


def new_entity(kind: str, provenance: Dict[str, Any]) -> Dict[str, Any]:
    entity = create_stub(kind)
    entity.update(copy.deepcopy(provenance))
    return entity


def build_property(raw: Dict[str, Any], classification: Classification,
                   provenance: Dict[str, Any]) -> Dict[str, Any]:
    property_data = new_entity("property", provenance)
    property_data["parcel_identifier"] = clean_text(raw.get("parcel_id"))
    property_data["property_legal_description_text"] = clean_text(raw.get("legal_description"))
    property_data["property_structure_built_year"] = parse_year(raw.get("year_built"))
    property_data["property_effective_built_year"] = parse_year(raw.get("effective_year_built"))
    property_data["livable_floor_area"] = parse_area(raw.get("livable_area"))
    property_data["area_under_air"] = parse_area(raw.get("area_under_air"))
    property_data["total_area"] = parse_area(raw.get("total_area"))
    property_data["subdivision"] = clean_text(raw.get("subdivision"))
    property_data["zoning"] = clean_text(raw.get("zoning"))

    property_data.update(classification.as_dict())

    # Tables may leave build_status open; a reported building means improved
    if property_data["build_status"] is None and (parse_int(raw.get("building_count")) or 0) > 0:
        property_data["build_status"] = "Improved"

    property_data["number_of_units"] = parse_int(raw.get("number_of_units"))
    property_data["number_of_units_type"] = number_of_units_type(classification.property_type)
    property_data["historic_designation"] = raw.get("historic_designation") is True
    return property_data


def build_address(full_address: Optional[str], raw: Dict[str, Any], provenance: Dict[str, Any],
                  county_name: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Structured address when the street line parses, else the unnormalized fallback"""
    full_address = clean_text(full_address)
    if full_address is None:
        return None

    address = new_entity("address", provenance)
    parsed = parse_address(full_address)
    if parsed:
        address.update(parsed)
    else:
        logger.info(f"📝 Keeping unnormalized address: {full_address}")
        address["unnormalized_address"] = full_address
    address["county_name"] = clean_text(county_name)

    address.update(parse_section_township_range(raw.get("section_township_range")))
    address["lot"] = clean_text(raw.get("lot"))
    address["block"] = clean_text(raw.get("block"))
    return address


def build_mailing_address(raw: Dict[str, Any], provenance: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    text = clean_text(raw.get("mailing_address"))
    if text is None:
        return None
    mailing = new_entity("mailing_address", provenance)
    mailing["unnormalized_address"] = text
    return mailing


def build_lot(raw: Dict[str, Any], provenance: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    acres = parse_acreage(raw.get("acreage"))
    sqft = parse_int(raw.get("lot_sqft"))
    width = parse_number(raw.get("frontage"))
    length = parse_number(raw.get("depth"))
    if acres is None and sqft is None and width is None and length is None:
        return None

    if sqft is None:
        sqft = acres_to_sqft(acres)

    lot = new_entity("lot", provenance)
    lot["lot_size_acre"] = acres
    lot["lot_area_sqft"] = sqft
    lot["lot_width_feet"] = width
    lot["lot_length_feet"] = length
    if acres is not None:
        lot["lot_type"] = lot_type_for_acreage(acres)
    else:
        lot["lot_type"] = lot_type_for_sqft(sqft)
    return lot


def _coordinate(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _polygon(value: Any) -> Optional[List[List[float]]]:
    if not isinstance(value, list):
        return None
    points = []
    for point in value:
        if not isinstance(point, (list, tuple)) or len(point) != 2:
            return None
        lon, lat = _coordinate(point[0]), _coordinate(point[1])
        if lon is None or lat is None:
            return None
        points.append([lon, lat])
    return points or None


def build_geometry(raw: Dict[str, Any], address_source: Optional[Dict[str, Any]],
                   provenance: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Centroid and boundary from the raw bag, falling back to the address record"""
    address_source = address_source or {}
    latitude = _coordinate(raw.get("latitude", address_source.get("latitude")))
    longitude = _coordinate(raw.get("longitude", address_source.get("longitude")))
    polygon = _polygon(raw.get("polygon"))
    if (latitude is None or longitude is None) and polygon is None:
        return None

    geometry = new_entity("geometry", provenance)
    if latitude is not None and longitude is not None:
        geometry["latitude"] = latitude
        geometry["longitude"] = longitude
    geometry["polygon"] = polygon
    return geometry


def build_taxes(rows: Optional[List[Dict[str, Any]]], provenance: Dict[str, Any]) -> List[Dict[str, Any]]:
    taxes = []
    seen_years = set()
    for row in rows or []:
        year = parse_year(row.get("year"))
        if year is None or year in seen_years:
            continue
        seen_years.add(year)

        tax = new_entity("tax", provenance)
        tax["tax_year"] = year
        tax["property_assessed_value_amount"] = parse_currency(row.get("assessed"))
        tax["property_market_value_amount"] = parse_currency(row.get("market"))
        tax["property_building_amount"] = parse_currency(row.get("building"))
        tax["property_land_amount"] = parse_currency(row.get("land"))
        tax["property_taxable_value_amount"] = parse_currency(row.get("taxable"))
        tax["yearly_tax_amount"] = parse_currency(row.get("yearly_tax"))
        tax["monthly_tax_amount"] = parse_currency(row.get("monthly_tax"))
        tax["period_start_date"] = parse_date(row.get("period_start"))
        tax["period_end_date"] = parse_date(row.get("period_end"))
        taxes.append(tax)
    return taxes
