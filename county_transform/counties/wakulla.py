"""Wakulla County qPublic pages."""

import os
import re

from ..code_tables import load_json_table
from ..html_source import data_rows, find_value, heading_value_rows, lines_of, link_of, load_soup, text_of

PARCEL_ID = "ctlBodyPane_ctl01_ctl01_dynamicSummaryData_rptrDynamicColumns_ctl00_pnlSingleValue"
SUMMARY_ID = "ctlBodyPane_ctl01_ctl01_dynamicSummaryData_divSummary"
SALES_GRID_ID = "ctlBodyPane_ctl08_ctl01_grdSales"
VALUATION_GRID_ID = "ctlBodyPane_ctl11_ctl01_grdValuation_grdYearData"
MAILING_ID = "ctlBodyPane_ctl02_ctl01_rptOwner_ctl00_lblOwnerAddress"
BUILDING_SECTION_TITLE = "Buildings"

CODE_TABLE = load_json_table(os.path.join(os.path.dirname(__file__), "data", "wakulla_codes.json"))


def _row(property_type, usage="Residential", build_status="Improved", form=None, estate="FeeSimple"):
    return {
        "property_type": property_type,
        "property_usage_type": usage,
        "build_status": build_status,
        "structure_form": form,
        "ownership_estate_type": estate,
    }


# Property use labels not in the table are classified by keyword
KEYWORD_RULES = [
    (("MULTI", "10+"), _row("MultiFamilyMoreThan10", form="MultiFamilyMoreThan10")),
    (("MULTI", "MORE"), _row("MultiFamilyMoreThan10", form="MultiFamilyMoreThan10")),
    (("MULTI", "LESS"), _row("MultiFamilyLessThan10", form="MultiFamilyLessThan10")),
    (("MOBILE",), _row("MobileHome", form="MobileHome")),
    (("MANUFACTURED", "SINGLE", "WIDE"), _row("ManufacturedHousingSingleWide", form="ManufacturedHousingSingleWide")),
    (("MANUFACTURED", "MULTI", "WIDE"), _row("ManufacturedHousingMultiWide", form="ManufacturedHousingMultiWide")),
    (("MANUFACTURED",), _row("ManufacturedHousing", form="ManufacturedHousing")),
    (("MULTI",), _row("MultipleFamily", form="MultiFamily5Plus")),
    (("SINGLE",), _row("SingleFamily", form="SingleFamilyDetached")),
    (("DETACHED", "CONDO"), _row("DetachedCondominium", estate="Condominium")),
    (("CONDO",), _row("Condominium", form="ApartmentUnit", estate="Condominium")),
    (("VACANT",), _row("VacantLand", build_status="VacantLand")),
    (("DUPLEX",), _row("Duplex", form="Duplex")),
    (("2 UNIT",), _row("TwoUnit", form="Duplex")),
    (("3 UNIT",), _row("ThreeUnit", form="Triplex")),
    (("4 UNIT",), _row("FourUnit", form="Quadplex")),
    (("TOWNHOUSE",), _row("Townhouse", form="TownhouseRowhouse")),
    (("APARTMENT",), _row("Apartment", form="ApartmentUnit")),
    (("PUD",), _row("Pud")),
    (("RETIREMENT",), _row("Retirement", usage="Retirement")),
    (("COOPERATIVE",), _row("Cooperative", estate="Cooperative")),
    (("TIMESHARE",), _row("Timeshare", estate="Timeshare")),
    (("MODULAR",), _row("Modular", form="Modular")),
    (("MISCELLANEOUS",), _row("MiscellaneousResidential")),
    (("COMMON", "ELEMENT"), _row("ResidentialCommonElementsAreas", usage="ResidentialCommonElementsAreas")),
]

BUILDING_FIELDS = {
    "Exterior Walls": "exterior_walls",
    "Floor Cover": "floor_cover",
    "Roof Cover": "roof_cover",
    "Roof Type": "roof_type",
    "Frame Type": "frame_type",
    "Stories": "stories",
    "Heated Area": "heated_area",
    "Actual Year Built": "year_built",
    "Effective Year Built": "effective_year_built",
    "Total Area": "total_area",
    "Type": "type",
}


def _buildings(soup):
    section = None
    for candidate in soup.find_all("section"):
        title = candidate.find(class_="title")
        if title is not None and text_of(title) == BUILDING_SECTION_TITLE:
            section = candidate
            break
    if section is None:
        return []

    buildings = []
    for block in section.find_all(class_="block-row"):
        values = {}
        for table in block.find_all("table"):
            values.update({k: v for k, v in heading_value_rows(table).items() if k not in values})
        building = {field: values.get(label) for label, field in BUILDING_FIELDS.items()}
        if any(building.values()):
            building["building_number"] = len(buildings) + 1
            buildings.append(building)
    return buildings


def _units(buildings):
    total = 0
    for building in buildings:
        kind = (building.get("type") or "").upper()
        if "QUDPLEX" in kind:
            total += 4
            continue
        m = re.search(r"(\d+)-?PLEX", kind)
        if m:
            total += int(m.group(1))
    return total or None


def _earliest_year(buildings, field):
    years = [int(b[field]) for b in buildings if b.get(field) and str(b[field]).isdigit()]
    return min(years) if years else None


def _total_area(buildings):
    total = 0
    for building in buildings:
        digits = re.sub(r"[^0-9]", "", building.get("total_area") or "")
        total += int(digits) if digits else 0
    return total or None


def _sales(soup):
    sales = []
    for cells in data_rows(soup.find(id=SALES_GRID_ID), min_cells=4):
        book_page = text_of(cells[3])
        if book_page:
            book_page = re.sub(r"\s*opens in a new tab\s*", "", book_page, flags=re.IGNORECASE).strip()
        sales.append({
            "date": text_of(cells[0]),
            "price": text_of(cells[1]),
            "instrument": text_of(cells[2]),
            "book_page": book_page or None,
            "url": link_of(cells[3]),
        })
    return sales


def _valuation(soup):
    table = soup.find(id=VALUATION_GRID_ID)
    if table is None:
        return []
    years = []
    thead = table.find("thead") or table
    for idx, th in enumerate(thead.find_all("th", class_="value-column")):
        m = re.search(r"(\d{4})", th.get_text())
        if m:
            years.append((m.group(1), idx))

    values = {}
    body = table.find("tbody") or table
    for tr in body.find_all("tr"):
        label = text_of(tr.find("th"))
        if label:
            values[label] = [text_of(td) for td in tr.find_all("td", class_="value-column")]

    def get(label, idx):
        column = values.get(label) or []
        return column[idx] if idx < len(column) else None

    return [
        {
            "year": year,
            "building": get("Building Value", idx),
            "land": get("Land Value", idx),
            "market": get("Just (Market) Value", idx),
            "assessed": get("Assessed Value", idx),
            "taxable": get("Taxable Value", idx),
        }
        for year, idx in years
    ]


def extract(html):
    """Raw field bag for one Wakulla parcel page"""
    soup = load_soup(html)
    summary = heading_value_rows(soup.find(id=SUMMARY_ID))
    buildings = _buildings(soup)
    mailing = lines_of(soup.find(id=MAILING_ID))

    return {
        "parcel_id": text_of(soup.find(id=PARCEL_ID)) or find_value(summary, "Parcel ID"),
        "legal_description": find_value(summary, "Tax Description"),
        "use_code": find_value(summary, "Property Use"),
        "acreage": find_value(summary, "Acreage"),
        "section_township_range": find_value(summary, "Sec/Twp/Rng"),
        "year_built": _earliest_year(buildings, "year_built"),
        "effective_year_built": _earliest_year(buildings, "effective_year_built"),
        "total_area": _total_area(buildings),
        "number_of_units": _units(buildings),
        "building_count": len(buildings),
        "buildings": buildings,
        "mailing_address": ", ".join(mailing) if mailing else None,
        "sales": _sales(soup),
        "taxes": _valuation(soup),
    }
