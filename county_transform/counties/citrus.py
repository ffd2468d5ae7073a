"""Citrus County property appraiser pages (Datalet layout)."""

import os
import re

from ..code_tables import load_csv_table
from ..html_source import data_rows, find_value, heading_value_rows, link_of, load_soup, text_of

PARCEL_TABLE_ID = "Citrus County Property Appraiser, Cregg E. Dalton"
RESIDENTIAL_TABLE_ID = "Residential"
LAND_TABLE_ID = "Land & Agricultural"
SALES_TABLE_ID = "Sales"
TAX_TABLE_ID = "Value History and Tax Amount"

CODE_TABLE = load_csv_table(os.path.join(os.path.dirname(__file__), "data", "citrus_codes.csv"))


def _parcel_id(soup):
    header = soup.find(id="datalet_header_row")
    if header is None:
        return None
    for td in header.find_all("td"):
        m = re.search(r"Parcel ID:\s*([^\n\r]+)", td.get_text())
        if m:
            return m.group(1).strip()
    return None


def _zoning(soup):
    for cells in data_rows(soup.find(id=LAND_TABLE_ID), min_cells=10):
        zoning = text_of(cells[9].find("a"))
        if zoning:
            return zoning
    return None


def _building_count(bldg_counts):
    m = re.search(r"Res\s*(\d+)", bldg_counts or "", re.IGNORECASE)
    return int(m.group(1)) if m else None


def _sales(soup):
    sales = []
    for cells in data_rows(soup.find(id=SALES_TABLE_ID), min_cells=4):
        if "DataletData" not in (cells[0].get("class") or []):
            continue
        sales.append({
            "date": text_of(cells[0]),
            "price": text_of(cells[1]),
            "book_page": text_of(cells[2].find("a") or cells[2]),
            "url": link_of(cells[2]),
            "instrument": text_of(cells[3]),
        })
    return sales


def _taxes(soup):
    taxes = []
    for cells in data_rows(soup.find(id=TAX_TABLE_ID), min_cells=10):
        if "DataletData" not in (cells[0].get("class") or []):
            continue
        taxes.append({
            "year": text_of(cells[0]),
            "land": text_of(cells[1]),
            "building": text_of(cells[2]),
            "market": text_of(cells[3]),
            "assessed": text_of(cells[4]),
            "taxable": text_of(cells[6]),
            "yearly_tax": text_of(cells[8]),
        })
    return taxes


def extract(html):
    """Raw field bag for one Citrus parcel page"""
    soup = load_soup(html)
    parcel = heading_value_rows(soup.find(id=PARCEL_TABLE_ID))
    residential = heading_value_rows(soup.find(id=RESIDENTIAL_TABLE_ID))

    building_count = _building_count(find_value(parcel, "Bldg Counts"))
    return {
        "parcel_id": _parcel_id(soup),
        "legal_description": find_value(parcel, "Short Legal"),
        "subdivision": find_value(parcel, "Subdivision"),
        "use_code": find_value(parcel, "PC Code"),
        "zoning": _zoning(soup),
        "building_count": building_count,
        "year_built": find_value(residential, "Year Built"),
        "livable_area": find_value(residential, "Total FLA"),
        "total_area": find_value(residential, "Total Under Roof"),
        "lot_sqft": find_value(parcel, "Est. Parcel Sqft"),
        "acreage": find_value(parcel, "Est. Parcel Acres"),
        "section_township_range": find_value(parcel, "S/T/R"),
        "mailing_address": find_value(parcel, "Mailing Address"),
        "sales": _sales(soup),
        "taxes": _taxes(soup),
    }
