"""
Pytest configuration and shared fixtures

Fixtures here describe one small residential parcel the way the adapters
and feed files deliver it, so unit and pipeline tests share the same data.
"""

import json
import os

import pytest

from county_transform.code_mapper import classification_mapper
from county_transform.config import Settings


SOURCE_HTTP_REQUEST = {
    "method": "GET",
    "url": "https://www.citruspa.org/_web/datalets/datalet.aspx",
    "multiValueQueryString": {"sIndex": ["0"], "idx": ["1"], "parcel": ["12345"]},
}


@pytest.fixture
def classification_table() -> dict:
    """
    Provide a two-row classification table.

    Returns:
        dict: code -> classification row
    """
    return {
        "0100: SINGLE FAMILY": {
            "property_type": "SingleFamily",
            "property_usage_type": "Residential",
            "build_status": "Improved",
            "structure_form": "SingleFamilyDetached",
            "ownership_estate_type": "FeeSimple",
        },
        "0000: VACANT": {
            "property_type": "VacantLand",
            "property_usage_type": "Residential",
            "build_status": "VacantLand",
            "structure_form": None,
            "ownership_estate_type": "FeeSimple",
        },
    }


@pytest.fixture
def mapper(classification_table):
    return classification_mapper(classification_table)


@pytest.fixture
def provenance() -> dict:
    return {"source_http_request": dict(SOURCE_HTTP_REQUEST), "request_identifier": "12345"}


@pytest.fixture
def seed() -> dict:
    return {
        "parcel_id": "12345",
        "request_identifier": "12345",
        "source_http_request": dict(SOURCE_HTTP_REQUEST),
    }


@pytest.fixture
def address_source() -> dict:
    return {
        "full_address": "123 MAIN ST, INVERNESS, FL 34450",
        "county_jurisdiction": "Citrus",
        "latitude": 28.8361,
        "longitude": -82.3304,
    }


@pytest.fixture
def raw_fields() -> dict:
    """
    Provide the raw field bag an adapter extracts for one parcel.

    Sales are deliberately out of chronological order.

    Returns:
        dict: Raw field bag
    """
    return {
        "parcel_id": "12345",
        "use_code": "0100: SINGLE FAMILY",
        "legal_description": "LOT 5 BLK B SUNNY ACRES",
        "subdivision": "SUNNY ACRES",
        "year_built": "1995",
        "livable_area": "1,850",
        "total_area": "2,400",
        "acreage": "0.25",
        "section_township_range": "12-18S-17E",
        "mailing_address": "PO BOX 12, INVERNESS, FL 34450",
        "building_count": 1,
        "sales": [
            {"date": "03/15/2018", "price": "$100,000", "instrument": "WD", "book_page": "1234/567"},
            {"date": "06/01/2021", "price": "$250,000", "instrument": "QC"},
        ],
        "taxes": [
            {
                "year": "2024",
                "land": "$20,000",
                "building": "$150,000",
                "market": "$170,000",
                "assessed": "$160,000",
                "taxable": "$135,000",
            },
        ],
    }


@pytest.fixture
def owners_by_date() -> dict:
    return {
        "current": [
            {"type": "person", "first_name": "JANE", "last_name": "DOE", "middle_name": None},
        ],
    }


def write_json_file(path, data) -> str:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f)
    return str(path)


@pytest.fixture
def parcel_workspace(tmp_path, seed, address_source, raw_fields, owners_by_date, classification_table):
    """
    Lay out one parcel's input files under tmp_path.

    Returns:
        Settings: Settings pointing at the laid-out files
    """
    input_dir = tmp_path / "input"
    write_json_file(input_dir / "property_seed.json", seed)
    write_json_file(input_dir / "unnormalized_address.json", address_source)
    raw_path = write_json_file(tmp_path / "raw_fields.json", raw_fields)
    write_json_file(
        input_dir / "owners" / "owner_data.json",
        {"property_12345": {"owners_by_date": owners_by_date}},
    )
    table_path = write_json_file(tmp_path / "codes.json", classification_table)

    return Settings(
        input_dir=str(input_dir),
        output_dir=str(tmp_path / "data"),
        owners_dir="owners",
        logs_dir=str(tmp_path / "logs"),
        raw_fields_path=raw_path,
        use_code_table_path=table_path,
    )


def _read_output(output_dir) -> dict:
    files = {}
    for name in sorted(os.listdir(output_dir)):
        with open(os.path.join(output_dir, name), "r", encoding="utf-8") as f:
            files[name] = json.load(f)
    return files


@pytest.fixture
def read_output():
    """Provide a reader returning every output file, parsed, keyed by filename"""
    return _read_output


CITRUS_HTML = """
<html><body>
<table id="datalet_header_row"><tr><td>Parcel ID: 12345</td></tr></table>
<table id="Citrus County Property Appraiser, Cregg E. Dalton">
  <tr><td class="DataletSideHeading">Short Legal</td><td class="DataletData">LOT 5 BLK B SUNNY ACRES</td></tr>
  <tr><td class="DataletSideHeading">Subdivision</td><td class="DataletData">SUNNY ACRES</td></tr>
  <tr><td class="DataletSideHeading">PC Code</td><td class="DataletData">0100: SINGLE FAMILY</td></tr>
  <tr><td class="DataletSideHeading">Bldg Counts</td><td class="DataletData">Res 1 Com 0</td></tr>
  <tr><td class="DataletSideHeading">Est. Parcel Acres</td><td class="DataletData">0.25</td></tr>
  <tr><td class="DataletSideHeading">S/T/R</td><td class="DataletData">12-18S-17E</td></tr>
  <tr><td class="DataletSideHeading">Mailing Address</td><td class="DataletData">PO BOX 12<br>INVERNESS FL 34450</td></tr>
</table>
<table id="Residential">
  <tr><td class="DataletSideHeading">Year Built</td><td class="DataletData">1995</td></tr>
  <tr><td class="DataletSideHeading">Total FLA</td><td class="DataletData">1,850</td></tr>
  <tr><td class="DataletSideHeading">Total Under Roof</td><td class="DataletData">2,400</td></tr>
</table>
<table id="Sales">
  <tr>
    <td class="DataletTopHeading">Sale Date</td><td class="DataletTopHeading">Sale Price</td>
    <td class="DataletTopHeading">Book/Page</td><td class="DataletTopHeading">Instrument</td>
  </tr>
  <tr>
    <td class="DataletData">03/15/2018</td><td class="DataletData">$100,000</td>
    <td class="DataletData"><a href="https://example.com/or/1234-567.pdf">1234/567</a></td>
    <td class="DataletData">WD</td>
  </tr>
  <tr>
    <td class="DataletData">06/01/2021</td><td class="DataletData">$250,000</td>
    <td class="DataletData"></td><td class="DataletData">QC</td>
  </tr>
</table>
<table id="Value History and Tax Amount">
  <tr>
    <td class="DataletData">2024</td><td class="DataletData">$20,000</td><td class="DataletData">$150,000</td>
    <td class="DataletData">$170,000</td><td class="DataletData">$160,000</td><td class="DataletData">$25,000</td>
    <td class="DataletData">$135,000</td><td class="DataletData">18.2</td><td class="DataletData">$2,450.10</td>
    <td class="DataletData">$0</td>
  </tr>
</table>
</body></html>
"""


@pytest.fixture
def citrus_html() -> str:
    """Provide a trimmed Citrus County parcel page"""
    return CITRUS_HTML
