import json
import logging
import os
import sys
import time
from decimal import Decimal
from typing import Any, Optional

logger = logging.getLogger(__name__)


def setup_logging(logs_dir: str = "logs", level: str = "INFO") -> str:
    """Log to a per-run file and keep the console for critical messages only"""
    os.makedirs(logs_dir, exist_ok=True)
    log_file_path = os.path.join(logs_dir, f"transform_{int(time.time())}.log")

    file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
    file_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    file_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    file_handler.setFormatter(file_formatter)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.CRITICAL)  # Only show critical messages

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[file_handler, console_handler],
        force=True,
    )
    return log_file_path


def print_status(message):
    """Print status messages to terminal and log file"""
    print(f"STATUS: {message}")
    logger.info(f"STATUS: {message}")


def ensure_directory(path):
    """Create directory if it doesn't exist"""
    os.makedirs(path, exist_ok=True)


def load_json(path: str) -> Optional[Any]:
    """Load a JSON file, returning None when it does not exist"""
    if not os.path.exists(path):
        logger.info(f"📁 Optional input not found: {path}")
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _json_default(obj):
    if isinstance(obj, Decimal):
        if obj == obj.to_integral_value():
            return int(obj)
        return float(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dump_json(data: Any) -> str:
    """Serialize a document the way every output file is written"""
    return json.dumps(data, indent=2, ensure_ascii=False, default=_json_default)


def write_json(path: str, data: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(dump_json(data))


def feed_records(record: Any, list_key: str) -> list:
    """Entries of one parcel's feed record: either {list_key: [...]} or a single object"""
    if not record:
        return []
    if isinstance(record, list):
        return [r for r in record if isinstance(r, dict)]
    if isinstance(record, dict):
        if list_key in record:
            return [r for r in record.get(list_key) or [] if isinstance(r, dict)]
        return [record]
    return []
