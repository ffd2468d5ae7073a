import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from .code_mapper import DeedTypeMapper, map_file_document_type
from .normalizers import clean_text, parse_book_page, parse_currency, parse_date
from .property_builder import new_entity

logger = logging.getLogger(__name__)

FILE_FORMATS_BY_EXTENSION = {
    ".pdf": "pdf",
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".png": "png",
    ".txt": "txt",
}


@dataclass
class SaleRecord:
    """One conveyance: the sale, its deed, and the file backing the deed if any"""

    sale: Dict[str, Any]
    deed: Dict[str, Any]
    file: Optional[Dict[str, Any]] = None


def order_sale_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Most recent first; undated rows keep their order at the end"""
    dated = [row for row in rows if parse_date(row.get("date"))]
    undated = [row for row in rows if not parse_date(row.get("date"))]
    dated = sorted(dated, key=lambda row: parse_date(row.get("date")), reverse=True)
    return dated + undated


def file_format_for_url(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    extension = os.path.splitext(urlparse(url).path)[1].lower()
    return FILE_FORMATS_BY_EXTENSION.get(extension)


def build_deed(row: Dict[str, Any], deed_mapper: DeedTypeMapper, provenance: Dict[str, Any]) -> Dict[str, Any]:
    deed = new_entity("deed", provenance)
    deed["deed_type"] = deed_mapper.map(clean_text(row.get("instrument")))

    book, page = clean_text(row.get("book")), clean_text(row.get("page"))
    if book is None and page is None:
        book, page = parse_book_page(row.get("book_page"))
    deed["book"] = book
    deed["page"] = page
    deed["volume"] = clean_text(row.get("volume"))
    deed["instrument_number"] = clean_text(row.get("instrument_number"))
    return deed


def build_file(row: Dict[str, Any], deed: Dict[str, Any], provenance: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """A File exists only when the sale row points at a document"""
    url = clean_text(row.get("url"))
    if url is None and deed["book"] is None and deed["page"] is None:
        return None

    file_data = new_entity("file", provenance)
    file_data["document_type"] = map_file_document_type(deed["deed_type"])
    file_data["file_format"] = file_format_for_url(url)
    file_data["original_url"] = url
    name = clean_text(row.get("book_page"))
    if name is None and deed["book"] is not None:
        name = f"{deed['book']}/{deed['page']}" if deed["page"] else deed["book"]
    file_data["name"] = name
    return file_data


def build_sales_history(rows: Optional[List[Dict[str, Any]]], deed_mapper: DeedTypeMapper,
                        provenance: Dict[str, Any]) -> List[SaleRecord]:
    """Sales ordered most recent first, each with its aligned deed and file"""
    records = []
    for row in order_sale_rows(list(rows or [])):
        transfer_date = parse_date(row.get("date"))
        price = parse_currency(row.get("price"))
        if transfer_date is None and price is None:
            logger.info(f"🗑️ Skipping sale row without date or price: {row}")
            continue

        sale = new_entity("sales", provenance)
        sale["ownership_transfer_date"] = transfer_date
        sale["purchase_price_amount"] = price
        sale["sale_type"] = clean_text(row.get("sale_type"))

        deed = build_deed(row, deed_mapper, provenance)
        records.append(SaleRecord(sale=sale, deed=deed, file=build_file(row, deed, provenance)))
    return records
