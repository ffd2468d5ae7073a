"""Code mapping.

Jurisdiction codes and free-text labels are resolved to canonical enum values
by an ordered list of strategies. Each strategy is a plain function
``(label, mapper) -> value | NO_MATCH``; the first one that matches wins and
the mapper raises UnknownEnumValue when none does.
"""

import logging
import re
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import CodeTableError, UnknownEnumValue

logger = logging.getLogger(__name__)

NO_MATCH = object()
_NO_FALLBACK = object()

KeywordRule = Tuple[Tuple[str, ...], Any]


@dataclass(frozen=True)
class Classification:
    property_type: str
    property_usage_type: Optional[str] = None
    build_status: Optional[str] = None
    structure_form: Optional[str] = None
    ownership_estate_type: Optional[str] = None

    @classmethod
    def from_row(cls, code: str, row: Any) -> "Classification":
        """Build from a mapping row or a 5-tuple, rejecting incomplete rows"""
        if isinstance(row, Classification):
            return row
        names = [f.name for f in fields(cls)]
        if isinstance(row, Mapping):
            missing = [name for name in names if name not in row]
            if missing:
                raise CodeTableError(
                    f"Code table row {code!r} is missing {', '.join(missing)}",
                    f"code_table.{code}",
                )
            values = [row[name] for name in names]
        elif isinstance(row, (list, tuple)) and len(row) == len(names):
            values = list(row)
        else:
            raise CodeTableError(
                f"Code table row {code!r} must provide {len(names)} classification fields",
                f"code_table.{code}",
            )
        if not values[0]:
            raise CodeTableError(
                f"Code table row {code!r} has no property_type", f"code_table.{code}"
            )
        return cls(*values)

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def normalize_key(label: Any) -> str:
    return re.sub(r"\s+", " ", str(label)).strip().upper()


def strip_punctuation(label: Any) -> str:
    return re.sub(r"\s+", " ", re.sub(r"[^\w\s]", " ", normalize_key(label))).strip()


def leading_digits(label: Any) -> Optional[str]:
    m = re.match(r"^\s*(\d+)", str(label))
    return m.group(1) if m else None


# ============================================================================
# Strategies
# ============================================================================

def exact_match(label, mapper):
    return mapper.table.get(normalize_key(label), NO_MATCH)


def normalized_match(label, mapper):
    return mapper.punctuation_index.get(strip_punctuation(label), NO_MATCH)


def numeric_subcode_match(label, mapper):
    digits = leading_digits(label)
    if digits is None:
        return NO_MATCH
    if digits in mapper.subcode_index:
        return mapper.subcode_index[digits]
    # Second pass: "100" and "0100" name the same code
    return mapper.unpadded_index.get(digits.lstrip("0") or "0", NO_MATCH)


def keyword_match(label, mapper):
    text = normalize_key(label)
    for keywords, value in mapper.keyword_rules:
        if all(keyword in text for keyword in keywords):
            return value
    return NO_MATCH


def fallback(label, mapper):
    if mapper.fallback is _NO_FALLBACK:
        return NO_MATCH
    return mapper.fallback


DEFAULT_STRATEGIES = (exact_match, normalized_match, numeric_subcode_match, keyword_match, fallback)


class CodeMapper:
    """Resolve labels against an injected table, then keyword rules, then a fallback"""

    def __init__(
        self,
        table: Optional[Mapping[str, Any]] = None,
        target_field: str = "value",
        keyword_rules: Iterable[KeywordRule] = (),
        fallback: Any = _NO_FALLBACK,
        strategies: Sequence[Callable] = DEFAULT_STRATEGIES,
    ):
        self.target_field = target_field
        self.table: Dict[str, Any] = {}
        self.punctuation_index: Dict[str, Any] = {}
        self.subcode_index: Dict[str, Any] = {}
        self.unpadded_index: Dict[str, Any] = {}
        for key, value in (table or {}).items():
            self.table.setdefault(normalize_key(key), value)
            self.punctuation_index.setdefault(strip_punctuation(key), value)
            digits = leading_digits(key)
            if digits is not None:
                self.subcode_index.setdefault(digits, value)
                self.unpadded_index.setdefault(digits.lstrip("0") or "0", value)
        self.keyword_rules: List[KeywordRule] = [
            (tuple(normalize_key(k) for k in keywords), value) for keywords, value in keyword_rules
        ]
        self.fallback = fallback
        self.strategies = list(strategies)

    def resolve(self, label: Any):
        """Return the mapped value or NO_MATCH without raising"""
        if label is None or str(label).strip() == "":
            return fallback(label, self)
        for strategy in self.strategies:
            value = strategy(label, self)
            if value is not NO_MATCH:
                logger.debug(f"Mapped {label!r} via {strategy.__name__} for {self.target_field}")
                return value
        return NO_MATCH

    def map(self, label: Any):
        value = self.resolve(label)
        if value is NO_MATCH:
            raise UnknownEnumValue(label, self.target_field)
        return value


def classification_mapper(
    table: Mapping[str, Any], keyword_rules: Iterable[KeywordRule] = ()
) -> CodeMapper:
    """A CodeMapper over validated Classification rows; never has a fallback"""
    rows = {code: Classification.from_row(code, row) for code, row in table.items()}
    rules = [(keywords, Classification.from_row(str(keywords), row)) for keywords, row in keyword_rules]
    return CodeMapper(rows, target_field="property.property_type", keyword_rules=rules)


def map_property_classification(code: Any, mapper: CodeMapper) -> Classification:
    """Fail-fast: an unmapped property code aborts the parcel"""
    value = mapper.resolve(code)
    if value is NO_MATCH:
        raise UnknownEnumValue(code, "property.property_type")
    return value


# ============================================================================
# Deeds and files
# ============================================================================

DEED_ABBREVIATIONS = {
    "WD": "Warranty Deed",
    "SW": "Special Warranty Deed",
    "SWD": "Special Warranty Deed",
    "QC": "Quitclaim Deed",
    "QCD": "Quitclaim Deed",
    "GD": "Grant Deed",
    "BS": "Bargain and Sale Deed",
    "LBD": "Lady Bird Deed",
    "TOD": "Transfer on Death Deed",
    "SD": "Sheriff's Deed",
    "TX": "Tax Deed",
    "TD": "Tax Deed",
    "PRD": "Personal Representative Deed",
    "CD": "Correction Deed",
    "LED": "Life Estate Deed",
    "JTD": "Joint Tenancy Deed",
    "TCD": "Tenancy in Common Deed",
    "CPD": "Community Property Deed",
    "ITD": "Interspousal Transfer Deed",
    "SMD": "Special Master's Deed",
    "COD": "Court Order Deed",
    "CFD": "Contract for Deed",
    "QTD": "Quiet Title Deed",
    "AD": "Administrator's Deed",
    "RD": "Receiver's Deed",
    "ROW": "Right of Way Deed",
    "VPD": "Vacation of Plat Deed",
    "AOC": "Assignment of Contract",
    "ROC": "Release of Contract",
}

# Order matters: more specific phrases first
DEED_KEYWORD_RULES = [
    (("SPECIAL", "WARRANTY"), "Special Warranty Deed"),
    (("WARRANTY DEED",), "Warranty Deed"),
    (("WARRANTY",), "Warranty Deed"),
    (("QUIT", "DEED"), "Quitclaim Deed"),
    (("QUIT", "CLAIM"), "Quitclaim Deed"),
    (("BARGAIN", "SALE"), "Bargain and Sale Deed"),
    (("GRANT DEED",), "Grant Deed"),
    (("LADY BIRD",), "Lady Bird Deed"),
    (("TRANSFER ON DEATH",), "Transfer on Death Deed"),
    (("SHERIFF",), "Sheriff's Deed"),
    (("TAX DEED",), "Tax Deed"),
    (("TRUSTEE",), "Trustee's Deed"),
    (("PERSONAL REPRESENTATIVE",), "Personal Representative Deed"),
    (("CORRECTI",), "Correction Deed"),
    (("LIEU",), "Deed in Lieu of Foreclosure"),
    (("LIFE ESTATE",), "Life Estate Deed"),
    (("COURT ORDER",), "Court Order Deed"),
    (("CERTIFICATE OF TITLE",), "Court Order Deed"),
    (("CONTRACT",), "Contract for Deed"),
    (("AGREEMENT",), "Contract for Deed"),
    (("QUIET TITLE",), "Quiet Title Deed"),
    (("GUARDIAN",), "Guardian's Deed"),
    (("RECEIVER",), "Receiver's Deed"),
    (("GIFT",), "Gift Deed"),
]

MISCELLANEOUS_DEED = "Miscellaneous"


class DeedTypeMapper:
    """Deed instruments are fail-soft: anything unresolved is "Miscellaneous".

    With strict=True an unresolved instrument raises UnknownEnumValue at
    deed.deed_type instead. A row with no instrument text is Miscellaneous in
    both modes.
    """

    def __init__(self, abbreviations: Optional[Mapping[str, str]] = None,
                 keyword_rules: Iterable[KeywordRule] = DEED_KEYWORD_RULES,
                 strict: bool = False):
        self.strict = strict
        self.mapper = CodeMapper(
            DEED_ABBREVIATIONS if abbreviations is None else abbreviations,
            target_field="deed.deed_type",
            keyword_rules=keyword_rules,
            strategies=(exact_match, normalized_match, keyword_match),
        )

    def map(self, instrument: Any) -> str:
        if instrument is None or not str(instrument).strip():
            return MISCELLANEOUS_DEED
        value = self.mapper.resolve(instrument)
        if value is not NO_MATCH:
            return value
        if self.strict:
            raise UnknownEnumValue(instrument, "deed.deed_type")
        logger.warning(f"⚠️ Unrecognized deed instrument {instrument!r}, using {MISCELLANEOUS_DEED}")
        return MISCELLANEOUS_DEED


FILE_DOCUMENT_TYPES = {
    "Warranty Deed": "ConveyanceDeedWarrantyDeed",
    "Quitclaim Deed": "ConveyanceDeedQuitClaimDeed",
    "Bargain and Sale Deed": "ConveyanceDeedBargainAndSaleDeed",
}


def map_file_document_type(deed_type: Optional[str]) -> Optional[str]:
    if deed_type is None:
        return None
    return FILE_DOCUMENT_TYPES.get(deed_type, "ConveyanceDeed")


# ============================================================================
# Unit counts
# ============================================================================

UNITS_TYPE_BY_PROPERTY_TYPE = {
    **dict.fromkeys([
        "SingleFamily", "Condominium", "DetachedCondominium", "NonWarrantableCondo",
        "Townhouse", "MobileHome", "ManufacturedHousingSingleWide",
        "ManufacturedHousingMultiWide", "ManufacturedHousing", "Apartment", "Cooperative",
        "Modular", "Pud", "Timeshare", "Retirement", "MiscellaneousResidential",
        "ResidentialCommonElementsAreas",
    ], "One"),
    "Duplex": "Two",
    "TwoUnit": "Two",
    "ThreeUnit": "Three",
    "FourUnit": "Four",
    "MultiFamilyLessThan10": "OneToFour",
    "MultiFamilyMoreThan10": "OneToFour",
}


def number_of_units_type(property_type: Optional[str]) -> Optional[str]:
    return UNITS_TYPE_BY_PROPERTY_TYPE.get(property_type)




# ============================================================================
# Structure text
# ============================================================================

def _text_mapper(target_field: str, rules: Iterable[KeywordRule]) -> CodeMapper:
    return CodeMapper({}, target_field=target_field, keyword_rules=rules, fallback=None)


EXTERIOR_WALL_MAPPER = _text_mapper("structure.exterior_wall_material_primary", [
    (("BRK",), "Brick"),
    (("BRICK",), "Brick"),
    (("NATURAL", "STONE"), "Natural Stone"),
    (("MANUFACTURED", "STONE"), "Manufactured Stone"),
    (("STONE",), "Natural Stone"),
    (("STUC",), "Stucco"),
    (("VINYL",), "Vinyl Siding"),
    (("CEDAR",), "Wood Siding"),
    (("WOOD",), "Wood Siding"),
    (("BD/BATTEN",), "Wood Siding"),
    (("FIBER", "CEMENT"), "Fiber Cement Siding"),
    (("HARDI",), "Fiber Cement Siding"),
    (("METAL",), "Metal Siding"),
    (("BLOCK",), "Concrete Block"),
    (("CONCRETE",), "Concrete Block"),
    (("CBS",), "Concrete Block"),
    (("EIFS",), "EIFS"),
    (("LOG",), "Log"),
    (("ADOBE",), "Adobe"),
    (("PRECAST",), "Precast Concrete"),
])

EXTERIOR_WALL_SECONDARY_MAPPER = _text_mapper("structure.exterior_wall_material_secondary", [
    (("BRK",), "Brick Accent"),
    (("BRICK",), "Brick Accent"),
    (("STONE",), "Stone Accent"),
    (("WOOD",), "Wood Trim"),
    (("TRIM",), "Wood Trim"),
    (("METAL",), "Metal Trim"),
    (("STUC",), "Stucco Accent"),
    (("VINYL",), "Vinyl Accent"),
    (("BLOCK",), "Decorative Block"),
])

FLOORING_MAPPER = _text_mapper("structure.flooring_material_primary", [
    (("SOLID", "HARDWOOD"), "Solid Hardwood"),
    (("ENGINEERED", "HARDWOOD"), "Engineered Hardwood"),
    (("LAMINATE",), "Laminate"),
    (("LVP",), "Luxury Vinyl Plank"),
    (("LUXURY", "VINYL"), "Luxury Vinyl Plank"),
    (("VINYL",), "Sheet Vinyl"),
    (("V C TILE",), "Sheet Vinyl"),
    (("CERAMIC",), "Ceramic Tile"),
    (("PORCELAIN",), "Porcelain Tile"),
    (("STONE",), "Natural Stone Tile"),
    (("CARPET",), "Carpet"),
    (("CONCRETE",), "Polished Concrete"),
    (("BAMBOO",), "Bamboo"),
    (("CORK",), "Cork"),
    (("LINOLEUM",), "Linoleum"),
    (("TERRAZZO",), "Terrazzo"),
    (("EPOXY",), "Epoxy Coating"),
    (("HARDWOOD",), "Solid Hardwood"),
])

ROOF_COVERING_MAPPER = _text_mapper("structure.roof_covering_material", [
    (("3-TAB", "SHINGLE"), "3-Tab Asphalt Shingle"),
    (("METAL", "STANDING"), "Metal Standing Seam"),
    (("METAL", "RIB"), "Metal Standing Seam"),
    (("METAL", "CORRUGATED"), "Metal Corrugated"),
    (("CLAY", "TILE"), "Clay Tile"),
    (("CONCRETE", "TILE"), "Concrete Tile"),
    (("SLATE",), "Natural Slate"),
    (("WOOD", "SHAKE"), "Wood Shake"),
    (("WOOD", "SHINGLE"), "Wood Shingle"),
    (("TPO",), "TPO Membrane"),
    (("EPDM",), "EPDM Membrane"),
    (("SHINGLE",), "Architectural Asphalt Shingle"),
    (("SHNGL",), "Architectural Asphalt Shingle"),
])

ROOF_DESIGN_MAPPER = _text_mapper("structure.roof_design_type", [
    (("GABLE", "HIP"), "Combination"),
    (("HIP",), "Hip"),
    (("GABLE",), "Gable"),
    (("FLAT",), "Flat"),
    (("SHED",), "Shed"),
    (("MANSARD",), "Mansard"),
    (("GAMBREL",), "Gambrel"),
])

ROOF_STRUCTURE_MAPPER = _text_mapper("structure.roof_structure_material", [
    (("WOOD TRUSS",), "Wood Truss"),
    (("WOOD RAFTER",), "Wood Rafter"),
    (("STEEL TRUSS",), "Steel Truss"),
    (("CONCRETE BEAM",), "Concrete Beam"),
])

FRAMING_MAPPER = _text_mapper("structure.primary_framing_material", [
    (("WOOD",), "Wood Frame"),
    (("STEEL",), "Steel Frame"),
    (("MASONRY",), "Masonry"),
    (("CONCRETE",), "Poured Concrete"),
])

FOUNDATION_TYPE_MAPPER = _text_mapper("structure.foundation_type", [
    (("SLAB",), "Slab on Grade"),
    (("CRAWL",), "Crawl Space"),
    (("BASEMENT",), "Full Basement"),
    (("PIER",), "Pier and Beam"),
    (("PILING",), "Pier and Beam"),
    (("STEM",), "Stem Wall"),
])

FOUNDATION_MATERIAL_MAPPER = _text_mapper("structure.foundation_material", [
    (("SLAB",), "Poured Concrete"),
    (("POURED",), "Poured Concrete"),
    (("BLOCK",), "Concrete Block"),
    (("STONE",), "Stone"),
    (("BRICK",), "Brick"),
    (("WOOD",), "Treated Wood Posts"),
])

SUBFLOOR_MAPPER = _text_mapper("structure.subfloor_material", [
    (("SLAB",), "Concrete Slab"),
    (("CONC",), "Concrete Slab"),
    (("PLYWOOD",), "Plywood"),
    (("OSB",), "OSB"),
    (("WOOD",), "Plywood"),
])
