"""BeautifulSoup helpers shared by the county adapters."""

from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from .normalizers import clean_text


def load_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def text_of(element) -> Optional[str]:
    if element is None:
        return None
    return clean_text(element.get_text(" ", strip=True))


def link_of(element) -> Optional[str]:
    """href of the first anchor inside element"""
    if element is None:
        return None
    anchor = element if element.name == "a" else element.find("a", href=True)
    if anchor is None or not anchor.get("href"):
        return None
    return anchor["href"].strip()


def lines_of(element) -> List[str]:
    """Text split on <br> tags, one entry per non-empty line"""
    if element is None:
        return []
    lines = []
    for piece in element.get_text("\n").split("\n"):
        text = clean_text(piece)
        if text:
            lines.append(text)
    return lines


def heading_value_rows(table) -> Dict[str, str]:
    """Two-column rows of a table as {heading: value}; first heading wins"""
    values = {}
    if table is None:
        return values
    for tr in table.find_all("tr"):
        cells = tr.find_all(["th", "td"], recursive=False)
        if len(cells) < 2:
            continue
        heading = text_of(cells[0].find("strong") or cells[0])
        value = text_of(cells[1].find("span") or cells[1])
        if heading and heading not in values:
            values[heading] = value
    return values


def find_value(values: Dict[str, Optional[str]], *labels: str) -> Optional[str]:
    """Value of the first heading containing one of labels, case-insensitively"""
    for label in labels:
        wanted = label.lower()
        for heading, value in values.items():
            if wanted in heading.lower():
                return value
    return None


def data_rows(table, min_cells: int = 1) -> List[list]:
    """<td> cells of each body row; header rows without <td> are skipped"""
    rows = []
    if table is None:
        return rows
    for tr in table.find_all("tr"):
        cells = tr.find_all("td")
        if len(cells) >= min_cells:
            rows.append(cells)
    return rows
