"""Value normalizers.

Every function here is total: unparseable input yields None and the caller
decides what a missing value means for its entity.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional, Tuple

SQFT_PER_ACRE = 43560
QUARTER_ACRE = Decimal("0.25")
QUARTER_ACRE_SQFT = 10890

LOT_TYPE_SMALL = "LessThanOrEqualToOneQuarterAcre"
LOT_TYPE_LARGE = "GreaterThanOneQuarterAcre"

_CENTS = Decimal("0.01")
_MDY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_MY_RE = re.compile(r"^(\d{1,2})/(\d{4})$")


def clean_text(raw: Any) -> Optional[str]:
    """Collapse whitespace; empty strings become None"""
    if raw is None:
        return None
    text = re.sub(r"\s+", " ", str(raw)).strip()
    return text or None


def parse_currency(raw: Any) -> Optional[Decimal]:
    """Parse a currency string like "$1,234.56" into a Decimal rounded to cents"""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float, Decimal)):
        text = str(raw)
    else:
        text = re.sub(r"[$,\s]", "", str(raw))
    if text == "" or text.upper() == "N/A":
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def parse_date(raw: Any) -> Optional[str]:
    """Convert MM/DD/YYYY (or M/YYYY) to an ISO date; anything else is None"""
    if raw is None:
        return None
    text = str(raw).strip()

    m = _MDY_RE.match(text)
    if m:
        month, day, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
    else:
        m = _MY_RE.match(text)
        if not m:
            return None
        month, day, year = int(m.group(1)), 1, int(m.group(2))

    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def _numeric_text(raw: Any) -> Optional[str]:
    if raw is None or isinstance(raw, bool):
        return None
    text = re.sub(r"[^0-9.]", "", str(raw))
    if not text or text.count(".") > 1 or text == ".":
        return None
    if text.endswith("."):
        text = text[:-1]
    return text


def parse_area(raw: Any) -> Optional[str]:
    """Strip everything but the number, keeping the source precision as a string"""
    return _numeric_text(raw)


def parse_acreage(raw: Any) -> Optional[float]:
    text = _numeric_text(raw)
    if text is None:
        return None
    return float(text)


def parse_number(raw: Any) -> Optional[float]:
    """Numbers pass through; numeric text is parsed; anything else is None"""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return raw
    text = _numeric_text(raw)
    if text is None:
        return None
    value = float(text)
    return int(value) if value.is_integer() and "." not in text else value


def parse_int(raw: Any) -> Optional[int]:
    """Parse string to int, extracting only digits"""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw)
    text = _numeric_text(raw)
    if text is None:
        return None
    return int(Decimal(text))


def parse_year(raw: Any) -> Optional[int]:
    if raw is None:
        return None
    m = re.search(r"\b(\d{4})\b", str(raw))
    if not m:
        return None
    year = int(m.group(1))
    return year if year > 0 else None


def acres_to_sqft(acres: Optional[float]) -> Optional[int]:
    if acres is None or acres <= 0:
        return None
    return int(round(acres * SQFT_PER_ACRE))


def lot_type_for_acreage(acres: Optional[float]) -> Optional[str]:
    if acres is None:
        return None
    if Decimal(str(acres)) > QUARTER_ACRE:
        return LOT_TYPE_LARGE
    return LOT_TYPE_SMALL


def lot_type_for_sqft(sqft: Optional[float]) -> Optional[str]:
    if sqft is None:
        return None
    if sqft > QUARTER_ACRE_SQFT:
        return LOT_TYPE_LARGE
    return LOT_TYPE_SMALL


def title_case(name: Any) -> Optional[str]:
    """Lower-case the name, then capitalize each whitespace-delimited token"""
    text = clean_text(name)
    if text is None:
        return None
    return " ".join(token[:1].upper() + token[1:] for token in text.lower().split(" "))


def parse_book_page(raw: Any) -> Tuple[Optional[str], Optional[str]]:
    """Split "1234/567" or "OR 1234 PG 567" into (book, page)"""
    text = clean_text(raw)
    if text is None:
        return None, None
    m = re.match(r"^(\d+)\s*[/-]\s*(\d+)$", text)
    if m:
        return m.group(1), m.group(2)
    m = re.search(r"(?:OR|BK|BOOK)\s*:?\s*(\d+)\D+?(?:PG|PAGE)\s*:?\s*(\d+)", text, re.IGNORECASE)
    if m:
        return m.group(1), m.group(2)
    return None, None


def parse_section_township_range(raw: Any) -> Dict[str, Optional[str]]:
    """Parse an S/T/R locator like "12-34S-16E" """
    result = {"section": None, "township": None, "range": None}
    text = clean_text(raw)
    if text is None:
        return result
    m = re.search(r"(\d{1,2})\s*[-/ ]\s*(\d{1,2}[NS]?)\s*[-/ ]\s*(\d{1,2}[EW]?)", text.upper())
    if m:
        result["section"], result["township"], result["range"] = m.group(1), m.group(2), m.group(3)
    return result


DEFAULT_FLOOR_LEVEL = "1st Floor"


def ordinal(n: int) -> str:
    """1 -> "1st", 12 -> "12th", 22 -> "22nd" """
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def normalize_floor_level(raw: Any) -> Optional[str]:
    """Map 2, "2", "2nd" or "2ND FLOOR" onto the canonical "2nd Floor" """
    if raw is None or isinstance(raw, bool):
        return None
    m = re.match(r"^\s*(\d+)\s*(?:st|nd|rd|th)?\s*(?:floor)?\s*$", str(raw), re.IGNORECASE)
    if not m:
        return None
    level = int(m.group(1))
    if level < 1:
        return None
    return f"{ordinal(level)} Floor"


DIRECTIONAL_MAPPINGS = {
    'NORTH': 'N', 'SOUTH': 'S', 'EAST': 'E', 'WEST': 'W',
    'NORTHEAST': 'NE', 'NORTHWEST': 'NW', 'SOUTHEAST': 'SE', 'SOUTHWEST': 'SW',
    'N': 'N', 'S': 'S', 'E': 'E', 'W': 'W',
    'NE': 'NE', 'NW': 'NW', 'SE': 'SE', 'SW': 'SW'
}

SUFFIX_MAPPINGS = {
    'STREET': 'St', 'ST': 'St',
    'AVENUE': 'Ave', 'AVE': 'Ave',
    'BOULEVARD': 'Blvd', 'BLVD': 'Blvd',
    'ROAD': 'Rd', 'RD': 'Rd',
    'LANE': 'Ln', 'LN': 'Ln',
    'DRIVE': 'Dr', 'DR': 'Dr',
    'COURT': 'Ct', 'CT': 'Ct',
    'PLACE': 'Pl', 'PL': 'Pl',
    'TERRACE': 'Ter', 'TER': 'Ter',
    'CIRCLE': 'Cir', 'CIR': 'Cir',
    'WAY': 'Way',
    'PARKWAY': 'Pkwy', 'PKWY': 'Pkwy',
    'PLAZA': 'Plz', 'PLZ': 'Plz',
    'TRAIL': 'Trl', 'TRL': 'Trl',
    'LOOP': 'Loop',
    'PATH': 'Path',
    'RUN': 'Run',
    'ROW': 'Row',
    'ALLEY': 'Aly', 'ALY': 'Aly',
    'BEND': 'Bnd', 'BND': 'Bnd',
    'COVE': 'Cv', 'CV': 'Cv',
    'CREEK': 'Crk', 'CRK': 'Crk',
    'CROSSING': 'Xing', 'XING': 'Xing',
    'HIGHWAY': 'Hwy', 'HWY': 'Hwy',
    'HOLLOW': 'Holw', 'HOLW': 'Holw',
    'ISLE': 'Isle',
    'LANDING': 'Lndg', 'LNDG': 'Lndg',
    'MANOR': 'Mnr', 'MNR': 'Mnr',
    'PASS': 'Pass',
    'PIKE': 'Pike',
    'POINT': 'Pt', 'PT': 'Pt',
    'RIDGE': 'Rdg', 'RDG': 'Rdg',
    'ROUTE': 'Rte', 'RTE': 'Rte',
    'SQUARE': 'Sq', 'SQ': 'Sq',
    'TRACE': 'Trce', 'TRCE': 'Trce',
    'VIEW': 'Vw', 'VW': 'Vw',
    'VISTA': 'Vis', 'VIS': 'Vis',
    'WALK': 'Walk',
    'EXPRESSWAY': 'Expy', 'EXPY': 'Expy',
    'FREEWAY': 'Fwy', 'FWY': 'Fwy',
    'GLEN': 'Gln', 'GLN': 'Gln',
    'GROVE': 'Grv', 'GRV': 'Grv',
    'HARBOR': 'Hbr', 'HBR': 'Hbr',
    'HEIGHTS': 'Hts', 'HTS': 'Hts',
    'ESTATES': 'Ests', 'ESTS': 'Ests',
}

_UNIT_RE = re.compile(r"\s+(?:#|APT\.?|UNIT|STE\.?|SUITE)\s*([A-Za-z0-9-]+)$", re.IGNORECASE)
_STATE_ZIP_RE = re.compile(r"^([A-Za-z]{2})\s+(\d{5})(?:-?(\d{4}))?$")


def parse_address(full_address: Any) -> Optional[Dict[str, Optional[str]]]:
    """Parse "STREET, CITY, ST ZIP" into schema address components.

    Returns None when the street line cannot be split into a number and a
    name, so callers can fall back to the unnormalized form.
    """
    text = clean_text(full_address)
    if text is None:
        return None

    parts = [p.strip() for p in text.split(',') if p.strip()]
    if len(parts) < 2:
        return None

    street = parts[0]
    if len(parts) >= 3:
        city = parts[1]
        state_zip = parts[2]
    else:
        # "CITY ST 12345" packed into one part
        m = re.match(r"^(.*?)\s+([A-Za-z]{2}\s+\d{5}(?:-?\d{4})?)$", parts[1])
        if not m:
            return None
        city, state_zip = m.group(1), m.group(2)

    result = {
        'street_number': None,
        'street_pre_directional_text': None,
        'street_name': None,
        'street_suffix_type': None,
        'street_post_directional_text': None,
        'unit_identifier': None,
        'city_name': city.upper() if city else None,
        'state_code': None,
        'postal_code': None,
        'plus_four_postal_code': None,
        'country_code': 'US',
    }

    m = _STATE_ZIP_RE.match(state_zip.strip())
    if m:
        result['state_code'] = m.group(1).upper()
        result['postal_code'] = m.group(2)
        result['plus_four_postal_code'] = m.group(3)
    elif re.match(r"^[A-Za-z]{2}$", state_zip.strip()):
        result['state_code'] = state_zip.strip().upper()

    m = _UNIT_RE.search(street)
    if m:
        result['unit_identifier'] = m.group(1)
        street = street[:m.start()]

    street_parts = street.split()
    if len(street_parts) < 2 or not re.match(r"^\d+[A-Za-z]?$", street_parts[0]):
        return None
    result['street_number'] = street_parts[0]
    remaining_parts = street_parts[1:]

    # The main suffix is the rightmost suffix, optionally followed by one directional
    upper = [p.upper() for p in remaining_parts]
    start, end = 0, len(remaining_parts)
    if len(upper) >= 2 and upper[-1] in SUFFIX_MAPPINGS:
        result['street_suffix_type'] = SUFFIX_MAPPINGS[upper[-1]]
        end = len(upper) - 1
    elif len(upper) >= 3 and upper[-1] in DIRECTIONAL_MAPPINGS and upper[-2] in SUFFIX_MAPPINGS:
        result['street_post_directional_text'] = DIRECTIONAL_MAPPINGS[upper[-1]]
        result['street_suffix_type'] = SUFFIX_MAPPINGS[upper[-2]]
        end = len(upper) - 2
    elif len(upper) >= 2 and upper[-1] in DIRECTIONAL_MAPPINGS:
        result['street_post_directional_text'] = DIRECTIONAL_MAPPINGS[upper[-1]]
        end = len(upper) - 1

    # A leading directional is a pre-directional unless it is the whole name
    if end - start >= 2 and upper[0] in DIRECTIONAL_MAPPINGS:
        result['street_pre_directional_text'] = DIRECTIONAL_MAPPINGS[upper[0]]
        start = 1

    street_name = ' '.join(remaining_parts[start:end])
    if not street_name:
        return None
    result['street_name'] = street_name
    return result
