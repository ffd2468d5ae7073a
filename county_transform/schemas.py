"""Canonical document schemas.

Each entity kind is described by a JSON Schema. Builders start every document
from create_stub(kind), so every declared field is present and defaults to
None, and the pipeline validates each finished document before anything is
written.
"""

import re
from typing import Any, Dict, Iterable, Optional

from jsonschema import Draft7Validator

from .errors import SchemaViolation

PROPERTY_TYPES = [
    "Apartment", "Building", "Condominium", "Cooperative", "DetachedCondominium",
    "Duplex", "FourUnit", "LandParcel", "ManufacturedHome", "ManufacturedHousing",
    "ManufacturedHousingMultiWide", "ManufacturedHousingSingleWide",
    "MiscellaneousResidential", "MobileHome", "Modular", "MultiFamilyLessThan10",
    "MultiFamilyMoreThan10", "MultipleFamily", "NonWarrantableCondo", "Other", "Pud",
    "ResidentialCommonElementsAreas", "Retirement", "SingleFamily", "ThreeUnit",
    "Timeshare", "Townhouse", "TwoUnit", "Unit", "Unknown", "VacantLand",
]

PROPERTY_USAGE_TYPES = [
    "Agricultural", "AgriculturalPackingFacility", "Airport", "Aquaculture",
    "AutoSalesRepair", "BedAndBreakfast", "Cannery", "CarWash", "Cemetery",
    "CentrallyAssessed", "Church", "ClubsLodges", "Commercial",
    "CommunicationFacility", "Conservation", "ConvenienceStore",
    "ConvenienceStoreWithGas", "CroplandClass2", "CroplandClass3",
    "CulturalOrganization", "DairyFarm", "DaycarePreschool", "DepartmentStore",
    "DiscountStore", "DrylandCropland", "Entertainment", "FinancialInstitution",
    "FlexSpace", "ForestParkRecreation", "GolfCourse", "GovernmentProperty",
    "GrazingLand", "GroupHome", "HayMeadow", "HeavyManufacturing", "HomesForAged",
    "HorseFarm", "Hotel", "ImprovedPasture", "Industrial", "Institutional",
    "LightManufacturing", "LivestockFacility", "LumberYard", "MedicalOffice",
    "Military", "MineralProcessing", "MiniWarehouse", "MixedUse", "MobileHomePark",
    "MortuaryCemetery", "Motel", "MultiFamily", "NativePasture", "NonProfitCharity",
    "NurseryGreenhouse", "Office", "OfficeBuilding", "OpenStorage", "OrchardGroves",
    "Ornamentals", "PackingPlant", "ParkingLot", "PastureWithTimber",
    "PlannedUnitDevelopment", "Poultry", "PrivateHospital", "PrivateSchool",
    "PublicCollege", "PublicHospital", "PublicSchool", "RaceTrack", "Railroad",
    "Rangeland", "Recreational", "ReferenceParcel", "Residential",
    "ResidentialCommonElementsAreas", "Restaurant", "RetailStore", "Retirement",
    "RiversLakes", "SanitariumConvalescentHome", "ServiceStation", "SewageDisposal",
    "ShoppingCenterCommunity", "ShoppingCenterRegional", "SolarFarm", "Supermarket",
    "TelecommunicationsFacility", "Theater", "TimberLand", "TransitionalProperty",
    "TransportationTerminal", "Unknown", "Utility", "VineyardWinery", "Warehouse",
    "WholesaleOutlet",
]

BUILD_STATUSES = ["Improved", "VacantLand", "UnderConstruction"]

STRUCTURE_FORMS = [
    "ApartmentUnit", "Duplex", "ManufacturedHomeInPark", "ManufacturedHomeOnLand",
    "ManufacturedHousing", "ManufacturedHousingMultiWide",
    "ManufacturedHousingSingleWide", "MobileHome", "MobileHomePark", "Modular",
    "MultiFamily5Plus", "MultiFamilyLessThan10", "MultiFamilyMoreThan10", "Quadplex",
    "SingleFamilyDetached", "SingleFamilySemiDetached", "TownhouseRowhouse", "Triplex",
]

OWNERSHIP_ESTATE_TYPES = [
    "Condominium", "Cooperative", "FeeSimple", "Leasehold", "OtherEstate",
    "RightOfWay", "SubsurfaceRights", "Timeshare",
]

NUMBER_OF_UNITS_TYPES = ["One", "Two", "Three", "Four", "OneToFour", "TwoToFour"]

LOT_TYPES = ["LessThanOrEqualToOneQuarterAcre", "GreaterThanOneQuarterAcre"]

DEED_TYPES = [
    "Warranty Deed", "Special Warranty Deed", "Quitclaim Deed", "Grant Deed",
    "Bargain and Sale Deed", "Lady Bird Deed", "Transfer on Death Deed",
    "Sheriff's Deed", "Tax Deed", "Trustee's Deed", "Personal Representative Deed",
    "Correction Deed", "Deed in Lieu of Foreclosure", "Life Estate Deed",
    "Joint Tenancy Deed", "Tenancy in Common Deed", "Community Property Deed",
    "Gift Deed", "Interspousal Transfer Deed", "Wild Deed", "Special Master's Deed",
    "Court Order Deed", "Contract for Deed", "Quiet Title Deed", "Administrator's Deed",
    "Guardian's Deed", "Receiver's Deed", "Right of Way Deed", "Vacation of Plat Deed",
    "Assignment of Contract", "Release of Contract", "Miscellaneous",
]

DOCUMENT_TYPES = [
    "ConveyanceDeed", "ConveyanceDeedWarrantyDeed", "ConveyanceDeedQuitClaimDeed",
    "ConveyanceDeedBargainAndSaleDeed", "Title",
]

FILE_FORMATS = ["pdf", "jpeg", "png", "txt"]

DIRECTIONALS = ["N", "S", "E", "W", "NE", "NW", "SE", "SW"]

FLOOR_LEVEL_PATTERN = r"^[1-9]\d*(st|nd|rd|th) Floor$"

ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def _nullable(type_name: str, enum: Optional[Iterable[Any]] = None, **extra) -> Dict[str, Any]:
    spec = {"type": [type_name, "null"]}
    if enum is not None:
        spec["enum"] = list(enum) + [None]
    spec.update(extra)
    return spec


ANY = {}
STRING = _nullable("string")
INTEGER = _nullable("integer")
NUMBER = _nullable("number")
BOOLEAN = _nullable("boolean")
DATE = _nullable("string", pattern=ISO_DATE_PATTERN)

PROVENANCE_PROPERTIES = {
    "source_http_request": {
        "type": ["object", "null"],
        "properties": {
            "method": STRING,
            "url": STRING,
            "multiValueQueryString": {"type": ["object", "null"]},
        },
    },
    "request_identifier": STRING,
}


def _entity_schema(properties: Dict[str, Any], closed: bool = True) -> Dict[str, Any]:
    all_properties = dict(PROVENANCE_PROPERTIES)
    all_properties.update(properties)
    return {
        "type": "object",
        "properties": all_properties,
        "required": list(all_properties),
        "additionalProperties": not closed,
    }


def _fields(names: Iterable[str], spec: Dict[str, Any]) -> Dict[str, Any]:
    return {name: spec for name in names}


PROPERTY_SCHEMA = _entity_schema({
    "parcel_identifier": {"type": "string", "minLength": 1},
    "property_legal_description_text": STRING,
    "property_structure_built_year": INTEGER,
    "property_effective_built_year": INTEGER,
    "livable_floor_area": STRING,
    "area_under_air": STRING,
    "total_area": STRING,
    "property_type": {"type": "string", "enum": PROPERTY_TYPES},
    "property_usage_type": _nullable("string", PROPERTY_USAGE_TYPES),
    "build_status": _nullable("string", BUILD_STATUSES),
    "structure_form": _nullable("string", STRUCTURE_FORMS),
    "ownership_estate_type": _nullable("string", OWNERSHIP_ESTATE_TYPES),
    "subdivision": STRING,
    "zoning": STRING,
    "number_of_units": INTEGER,
    "number_of_units_type": _nullable("string", NUMBER_OF_UNITS_TYPES),
    "historic_designation": BOOLEAN,
})

ADDRESS_SCHEMA = _entity_schema({
    "street_number": STRING,
    "street_pre_directional_text": _nullable("string", DIRECTIONALS),
    "street_name": STRING,
    "street_suffix_type": STRING,
    "street_post_directional_text": _nullable("string", DIRECTIONALS),
    "unit_identifier": STRING,
    "city_name": STRING,
    "state_code": _nullable("string", pattern=r"^[A-Z]{2}$"),
    "postal_code": _nullable("string", pattern=r"^\d{5}$"),
    "plus_four_postal_code": _nullable("string", pattern=r"^\d{4}$"),
    "county_name": STRING,
    "country_code": STRING,
    "unnormalized_address": STRING,
    "section": STRING,
    "township": STRING,
    "range": STRING,
    "lot": STRING,
    "block": STRING,
})

MAILING_ADDRESS_SCHEMA = _entity_schema({
    "unnormalized_address": {"type": "string", "minLength": 1},
})

LOT_SCHEMA = _entity_schema({
    "lot_type": _nullable("string", LOT_TYPES),
    "lot_length_feet": NUMBER,
    "lot_width_feet": NUMBER,
    "lot_area_sqft": INTEGER,
    "lot_size_acre": NUMBER,
    **_fields([
        "landscaping_features", "view", "fencing_type", "fence_height", "fence_length",
        "driveway_material", "driveway_condition", "lot_condition_issues",
    ], ANY),
})

STRUCTURE_TEXT_FIELDS = [
    "architectural_style_type", "attachment_type",
    "exterior_wall_material_primary", "exterior_wall_material_secondary",
    "exterior_wall_condition", "exterior_wall_insulation_type",
    "flooring_material_primary", "flooring_material_secondary", "subfloor_material",
    "flooring_condition", "interior_wall_structure_material",
    "interior_wall_surface_material_primary", "interior_wall_surface_material_secondary",
    "interior_wall_finish_primary", "interior_wall_finish_secondary",
    "interior_wall_condition", "roof_covering_material", "roof_underlayment_type",
    "roof_structure_material", "roof_design_type", "roof_condition", "gutters_material",
    "gutters_condition", "roof_material_type", "foundation_type", "foundation_material",
    "foundation_waterproofing", "foundation_condition", "ceiling_structure_material",
    "ceiling_surface_material", "ceiling_insulation_type", "ceiling_condition",
    "exterior_door_material", "interior_door_material", "window_frame_material",
    "window_glazing_type", "window_operation_type", "window_screen_material",
    "primary_framing_material", "secondary_framing_material",
    "structural_damage_indicators",
]

STRUCTURE_NUMERIC_FIELDS = [
    "roof_age_years", "ceiling_height_average", "number_of_stories",
    "finished_base_area", "finished_basement_area", "finished_upper_story_area",
    "unfinished_base_area", "unfinished_basement_area", "unfinished_upper_story_area",
]

STRUCTURE_SCHEMA = _entity_schema({
    **_fields(STRUCTURE_TEXT_FIELDS, ANY),
    **_fields(STRUCTURE_NUMERIC_FIELDS, NUMBER),
    "number_of_buildings": INTEGER,
    "building_number": INTEGER,
})

UTILITY_FIELDS = [
    "cooling_system_type", "heating_system_type", "public_utility_type", "sewer_type",
    "water_source_type", "plumbing_system_type", "plumbing_system_type_other_description",
    "electrical_panel_capacity", "electrical_wiring_type", "hvac_condensing_unit_present",
    "electrical_wiring_type_other_description", "solar_panel_type",
    "solar_panel_type_other_description", "smart_home_features",
    "smart_home_features_other_description", "hvac_unit_condition", "hvac_unit_issues",
    "heating_fuel_type", "hvac_capacity_kw", "hvac_capacity_tons",
    "hvac_equipment_component", "hvac_equipment_manufacturer", "hvac_equipment_model",
    "hvac_installation_date", "hvac_seer_rating", "hvac_system_configuration",
    "electrical_panel_installation_date", "electrical_rewire_date",
    "plumbing_system_installation_date", "sewer_connection_date",
    "solar_installation_date", "solar_inverter_installation_date",
    "solar_inverter_manufacturer", "solar_inverter_model", "water_connection_date",
    "water_heater_installation_date", "water_heater_manufacturer", "water_heater_model",
    "well_installation_date",
]

UTILITY_SCHEMA = _entity_schema({
    **_fields(UTILITY_FIELDS, ANY),
    "solar_panel_present": {"type": "boolean"},
    "solar_inverter_visible": {"type": "boolean"},
    "building_number": INTEGER,
})

LAYOUT_DESCRIPTIVE_FIELDS = [
    "flooring_material_type", "has_windows", "window_design_type", "window_material_type",
    "window_treatment_type", "furnished", "paint_condition", "flooring_wear",
    "clutter_level", "visible_damage", "countertop_material", "cabinet_style",
    "fixture_finish_quality", "design_style", "natural_light_quality", "decor_elements",
    "pool_type", "pool_equipment", "spa_type", "safety_features", "view_type",
    "lighting_features", "condition_issues", "pool_condition", "pool_surface_type",
    "pool_water_quality", "built_year", "total_area_sq_ft", "livable_area_sq_ft",
    "heated_area_sq_ft", "area_under_air_sq_ft", "bathroom_renovation_date",
    "kitchen_renovation_date", "flooring_installation_date",
]

LAYOUT_SCHEMA = _entity_schema({
    "space_type": {"type": "string", "minLength": 1},
    "space_index": {"type": "integer", "minimum": 1},
    "floor_level": _nullable("string", pattern=FLOOR_LEVEL_PATTERN),
    "building_number": INTEGER,
    "size_square_feet": NUMBER,
    "is_finished": BOOLEAN,
    "is_exterior": {"type": "boolean"},
    **_fields(LAYOUT_DESCRIPTIVE_FIELDS, ANY),
})

TAX_SCHEMA = _entity_schema({
    "tax_year": {"type": "integer"},
    "property_assessed_value_amount": NUMBER,
    "property_market_value_amount": NUMBER,
    "property_building_amount": NUMBER,
    "property_land_amount": NUMBER,
    "property_taxable_value_amount": NUMBER,
    "monthly_tax_amount": NUMBER,
    "yearly_tax_amount": NUMBER,
    "period_start_date": DATE,
    "period_end_date": DATE,
})

SALES_SCHEMA = _entity_schema({
    "ownership_transfer_date": DATE,
    "purchase_price_amount": NUMBER,
    "sale_type": STRING,
})

DEED_SCHEMA = _entity_schema({
    "deed_type": _nullable("string", DEED_TYPES),
    "book": STRING,
    "page": STRING,
    "volume": STRING,
    "instrument_number": STRING,
})

FILE_SCHEMA = _entity_schema({
    "document_type": _nullable("string", DOCUMENT_TYPES),
    "file_format": _nullable("string", FILE_FORMATS),
    "name": STRING,
    "original_url": STRING,
    "ipfs_url": STRING,
})

PERSON_SCHEMA = _entity_schema({
    "birth_date": DATE,
    "first_name": STRING,
    "last_name": STRING,
    "middle_name": STRING,
    "prefix_name": STRING,
    "suffix_name": STRING,
    "us_citizenship_status": STRING,
    "veteran_status": BOOLEAN,
})

COMPANY_SCHEMA = _entity_schema({
    "name": {"type": "string", "minLength": 1},
})

GEOMETRY_SCHEMA = _entity_schema({
    "latitude": _nullable("number", minimum=-90, maximum=90),
    "longitude": _nullable("number", minimum=-180, maximum=180),
    "polygon": {
        "type": ["array", "null"],
        "items": {"type": "array", "items": {"type": "number"}, "minItems": 2, "maxItems": 2},
    },
})

ENTITY_REF_SCHEMA = {
    "type": "object",
    "properties": {"/": {"type": "string", "pattern": r"^\./[^/]+\.json$"}},
    "required": ["/"],
    "additionalProperties": False,
}

RELATIONSHIP_SCHEMA = {
    "type": "object",
    "properties": {"from": ENTITY_REF_SCHEMA, "to": ENTITY_REF_SCHEMA},
    "required": ["from", "to"],
    "additionalProperties": False,
}

SCHEMAS = {
    "property": PROPERTY_SCHEMA,
    "address": ADDRESS_SCHEMA,
    "mailing_address": MAILING_ADDRESS_SCHEMA,
    "lot": LOT_SCHEMA,
    "structure": STRUCTURE_SCHEMA,
    "utility": UTILITY_SCHEMA,
    "layout": LAYOUT_SCHEMA,
    "tax": TAX_SCHEMA,
    "sales": SALES_SCHEMA,
    "deed": DEED_SCHEMA,
    "file": FILE_SCHEMA,
    "person": PERSON_SCHEMA,
    "company": COMPANY_SCHEMA,
    "geometry": GEOMETRY_SCHEMA,
    "relationship": RELATIONSHIP_SCHEMA,
}

_VALIDATORS = {kind: Draft7Validator(schema) for kind, schema in SCHEMAS.items()}


def create_stub_from_schema(schema):
    """Create a stub structure from a JSON schema."""

    def create_stub_recursive(properties):
        stub = {}
        for key, value in properties.items():
            types = value.get('type')
            if isinstance(types, list):
                types = types[0]
            if types == 'object' and 'properties' in value:
                stub[key] = create_stub_recursive(value['properties'])
            else:
                stub[key] = None
        return stub

    if 'properties' in schema:
        return create_stub_recursive(schema['properties'])
    return {}


def create_stub(kind: str) -> Dict[str, Any]:
    """Every declared field of an entity kind, set to None"""
    return create_stub_from_schema(SCHEMAS[kind])


def _error_field(error) -> Optional[str]:
    if error.path:
        return str(error.path[0])
    if error.validator == "required":
        m = re.match(r"'([^']+)' is a required property", error.message)
        if m:
            return m.group(1)
    if error.validator == "additionalProperties":
        m = re.search(r"\('([^']+)'", error.message)
        if m:
            return m.group(1)
    return None


def validate_document(kind: str, document: Dict[str, Any]) -> None:
    """Raise SchemaViolation with a "kind.field" path for the first schema error"""
    validator = _VALIDATORS[kind]
    errors = sorted(validator.iter_errors(document), key=lambda e: list(e.path))
    if not errors:
        return
    error = errors[0]
    field = _error_field(error)
    path = f"{kind}.{field}" if field else kind
    raise SchemaViolation(error.message, path)
