"""County adapters.

Each adapter module exposes ``extract(html) -> raw field bag`` and a
``CODE_TABLE``; ``KEYWORD_RULES`` and ``DEED_ABBREVIATIONS`` are optional.
"""

import importlib
import logging
import re

logger = logging.getLogger(__name__)

AVAILABLE_COUNTIES = ("citrus", "wakulla")


def county_variations(county_name):
    """Module-name candidates for a county_jurisdiction value"""
    name = county_name.strip()
    variations = [
        name.lower(),  # lowercase
        name.lower().replace(" ", ""),  # lowercase no spaces
        name.lower().replace(" ", "_"),  # snake case
        re.sub(r"\s+county$", "", name.lower()).strip(),  # "Citrus County" -> "citrus"
    ]
    return list(dict.fromkeys(variations))


def get_county_adapter(county_name):
    """Import the adapter module for a county, or None when there is none"""
    if not county_name or not str(county_name).strip():
        logger.error("❌ No county name given")
        return None

    for variation in county_variations(str(county_name)):
        if variation not in AVAILABLE_COUNTIES:
            continue
        module = importlib.import_module(f"{__name__}.{variation}")
        logger.info(f"📍 Using {variation} adapter for county '{county_name}'")
        return module

    logger.error(f"❌ No adapter for county '{county_name}'. Available: {', '.join(AVAILABLE_COUNTIES)}")
    return None
