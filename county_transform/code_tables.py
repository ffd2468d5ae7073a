import json
import logging
import os
from typing import Any, Dict

import pandas as pd

from .code_mapper import Classification
from .errors import CodeTableError

logger = logging.getLogger(__name__)

CLASSIFICATION_COLUMNS = [
    "property_type",
    "property_usage_type",
    "build_status",
    "structure_form",
    "ownership_estate_type",
]


def _cell(value: Any):
    if pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def load_csv_table(path: str) -> Dict[str, Classification]:
    """Read a code table with a ``code`` column plus the five classification columns"""
    # Read codes as strings to preserve leading zeros
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    missing = [c for c in ["code"] + CLASSIFICATION_COLUMNS if c not in df.columns]
    if missing:
        raise CodeTableError(f"Code table {path} is missing columns: {', '.join(missing)}", "code_table")

    table = {}
    for _, row in df.iterrows():
        code = _cell(row["code"])
        if code is None:
            continue
        values = {column: _cell(row[column]) for column in CLASSIFICATION_COLUMNS}
        table[code] = Classification.from_row(code, values)
    logger.info(f"📊 Loaded {len(table)} code table rows from {path}")
    return table


def load_json_table(path: str) -> Dict[str, Classification]:
    """Read a code table from an object of code -> row or a list of rows with a ``code`` key"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, list):
        rows = {}
        for row in data:
            if not isinstance(row, dict) or not row.get("code"):
                raise CodeTableError(f"Code table {path} has a row without a code", "code_table")
            rows[str(row["code"])] = {k: v for k, v in row.items() if k != "code"}
    elif isinstance(data, dict):
        rows = data
    else:
        raise CodeTableError(f"Code table {path} must be an object or a list", "code_table")

    table = {code: Classification.from_row(code, row) for code, row in rows.items()}
    logger.info(f"📊 Loaded {len(table)} code table rows from {path}")
    return table


def load_code_table(path: str) -> Dict[str, Classification]:
    extension = os.path.splitext(path)[1].lower()
    if extension == ".csv":
        return load_csv_table(path)
    if extension == ".json":
        return load_json_table(path)
    raise CodeTableError(f"Unsupported code table format: {path}", "code_table")
