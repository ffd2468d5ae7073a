"""
Unit Tests for Value Normalizers

Every normalizer is total: unparseable input yields None instead of raising.
"""

from decimal import Decimal

import pytest

from county_transform.normalizers import (
    LOT_TYPE_LARGE,
    LOT_TYPE_SMALL,
    acres_to_sqft,
    clean_text,
    lot_type_for_acreage,
    lot_type_for_sqft,
    normalize_floor_level,
    parse_acreage,
    parse_address,
    parse_area,
    parse_book_page,
    parse_currency,
    parse_date,
    parse_int,
    parse_number,
    parse_section_township_range,
    parse_year,
    title_case,
)


# ============================================================================
# Currency and dates
# ============================================================================

class TestParseCurrency:
    """Tests for currency parsing"""

    def test_rounds_to_cents(self):
        """Test half-up rounding to two decimal places"""
        assert parse_currency("$1,234.567") == Decimal("1234.57")
        assert parse_currency("$1,234.565") == Decimal("1234.57")

    def test_plain_numbers(self):
        assert parse_currency(100) == Decimal("100.00")
        assert parse_currency("250000") == Decimal("250000.00")

    @pytest.mark.parametrize("raw", [None, "", "   ", "N/A", "n/a", "abc", "-", True])
    def test_unparseable_is_none(self, raw):
        """Test that absent or garbage values are None"""
        assert parse_currency(raw) is None


class TestParseDate:
    """Tests for MM/DD/YYYY date parsing"""

    @pytest.mark.parametrize("raw,expected", [
        ("01/15/2024", "2024-01-15"),
        ("1/5/2024", "2024-01-05"),
        (" 06/01/2021 ", "2021-06-01"),
        ("3/2021", "2021-03-01"),
    ])
    def test_valid_dates(self, raw, expected):
        assert parse_date(raw) == expected

    @pytest.mark.parametrize("raw", ["2024-01-01", "02/30/2024", "13/01/2024", "", None, "yesterday"])
    def test_other_formats_are_none(self, raw):
        """Test that only MM/DD/YYYY and M/YYYY are accepted"""
        assert parse_date(raw) is None


# ============================================================================
# Numbers and areas
# ============================================================================

class TestNumbers:
    """Tests for area, acreage and integer parsing"""

    def test_parse_area_keeps_digits(self):
        assert parse_area("1,850 SF") == "1850"
        assert parse_area("12.5") == "12.5"
        assert parse_area(None) is None
        assert parse_area("none") is None

    def test_parse_acreage(self):
        assert parse_acreage("0.25 AC") == 0.25
        assert parse_acreage("") is None

    def test_parse_number(self):
        """Test that integral text stays an int and decimals stay floats"""
        assert parse_number("1,200") == 1200
        assert isinstance(parse_number("1,200"), int)
        assert parse_number("12.50") == 12.5
        assert parse_number(3) == 3
        assert parse_number("abc") is None
        assert parse_number(True) is None

    def test_parse_int(self):
        assert parse_int("1,234") == 1234
        assert parse_int("12.7") == 12
        assert parse_int(4.0) == 4
        assert parse_int(None) is None

    def test_parse_year(self):
        assert parse_year("Built 1987") == 1987
        assert parse_year(2004) == 2004
        assert parse_year("87") is None


# ============================================================================
# Lots
# ============================================================================

class TestLotSize:
    """Tests for acreage conversion and lot classification"""

    def test_acres_to_sqft(self):
        assert acres_to_sqft(1) == 43560
        assert acres_to_sqft(0.25) == 10890
        assert acres_to_sqft(0) is None
        assert acres_to_sqft(None) is None

    def test_quarter_acre_boundary(self):
        """Test that exactly a quarter acre is the small lot type"""
        assert lot_type_for_acreage(0.25) == LOT_TYPE_SMALL
        assert lot_type_for_acreage(0.2501) == LOT_TYPE_LARGE
        assert lot_type_for_acreage(None) is None

    def test_sqft_boundary(self):
        assert lot_type_for_sqft(10890) == LOT_TYPE_SMALL
        assert lot_type_for_sqft(10891) == LOT_TYPE_LARGE


# ============================================================================
# Text
# ============================================================================

class TestText:
    """Tests for text cleanup helpers"""

    def test_clean_text(self):
        assert clean_text("  LOT 5\n  BLK B ") == "LOT 5 BLK B"
        assert clean_text("   ") is None
        assert clean_text(None) is None

    def test_title_case(self):
        assert title_case("MARY  ANN") == "Mary Ann"
        assert title_case("mcDONALD") == "Mcdonald"
        assert title_case("") is None

    def test_parse_book_page(self):
        assert parse_book_page("1234/567") == ("1234", "567")
        assert parse_book_page("OR 1234 PG 567") == ("1234", "567")
        assert parse_book_page("unrecorded") == (None, None)
        assert parse_book_page(None) == (None, None)

    @pytest.mark.parametrize("raw", ["12-18S-17E", "12/18S/17E", "12 18S 17E"])
    def test_section_township_range(self, raw):
        assert parse_section_township_range(raw) == {"section": "12", "township": "18S", "range": "17E"}

    def test_section_township_range_missing(self):
        assert parse_section_township_range(None) == {"section": None, "township": None, "range": None}

    @pytest.mark.parametrize("raw,expected", [
        (1, "1st Floor"),
        ("2", "2nd Floor"),
        ("3RD FLOOR", "3rd Floor"),
        ("4th", "4th Floor"),
        ("5", "5th Floor"),
        ("11TH FLOOR", "11th Floor"),
        (22, "22nd Floor"),
        ("0", None),
        ("basement", None),
        (None, None),
    ])
    def test_normalize_floor_level(self, raw, expected):
        assert normalize_floor_level(raw) == expected


# ============================================================================
# Addresses
# ============================================================================

class TestParseAddress:
    """Tests for site address parsing"""

    def test_simple_street(self):
        parsed = parse_address("123 MAIN ST, INVERNESS, FL 34450")
        assert parsed["street_number"] == "123"
        assert parsed["street_name"] == "MAIN"
        assert parsed["street_suffix_type"] == "St"
        assert parsed["city_name"] == "INVERNESS"
        assert parsed["state_code"] == "FL"
        assert parsed["postal_code"] == "34450"
        assert parsed["plus_four_postal_code"] is None
        assert parsed["country_code"] == "US"

    def test_directionals_and_plus_four(self):
        parsed = parse_address("123 N MAIN ST, INVERNESS, FL 34450-1234")
        assert parsed["street_pre_directional_text"] == "N"
        assert parsed["street_name"] == "MAIN"
        assert parsed["plus_four_postal_code"] == "1234"

    def test_post_directional(self):
        parsed = parse_address("900 GULF BLVD SW, CRYSTAL RIVER, FL 34429")
        assert parsed["street_suffix_type"] == "Blvd"
        assert parsed["street_post_directional_text"] == "SW"
        assert parsed["street_name"] == "GULF"

    def test_unit_identifier(self):
        parsed = parse_address("456 OAK AVE APT 3, CRYSTAL RIVER, FL 34429")
        assert parsed["unit_identifier"] == "3"
        assert parsed["street_name"] == "OAK"
        assert parsed["city_name"] == "CRYSTAL RIVER"

    def test_city_and_state_in_one_part(self):
        parsed = parse_address("77 PINE LN, HOMOSASSA FL 34446")
        assert parsed["city_name"] == "HOMOSASSA"
        assert parsed["postal_code"] == "34446"

    @pytest.mark.parametrize("raw", [
        "PO BOX 12, INVERNESS, FL 34450",
        "123 MAIN ST",
        "",
        None,
    ])
    def test_unparseable_is_none(self, raw):
        """Test that callers get None and fall back to the unnormalized form"""
        assert parse_address(raw) is None
