"""Owner resolution.

Owners arrive grouped by transfer date (plus a "current" bucket). The same
person or company usually appears under several dates, so records are
deduplicated by a normalized identity key before any document is built, and
each sale is then linked to the owners recorded on its transfer date.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .normalizers import clean_text, title_case
from .property_builder import new_entity

logger = logging.getLogger(__name__)

CURRENT_OWNERS = "current"
PERSON_OPTIONAL_FIELDS = ("middle_name", "prefix_name", "suffix_name")

# Company detection keywords
COMPANY_KEYWORDS = [
    'INC', 'LLC', 'LTD', 'CORP', 'CO', 'FOUNDATION', 'ASSOCIATION', 'GROUP', 'TRUST',
    'PARTNERS', 'PROPERTIES', 'HOLDINGS', 'ENTERPRISES', 'INVESTMENTS', 'FUND', 'BANK',
    'SAVINGS', 'MORTGAGE', 'REALTY', 'COMPANY', 'LP', 'LLP', 'PLC', 'PC', 'PLLC', 'TR',
    'CHURCH', 'COUNTY', 'STATE OF', 'CITY OF', 'DIST',
]


def parse_owner_name(name):
    """Parse an assessor-style "LAST FIRST MIDDLE" owner string"""
    name = clean_text(name)
    if not name:
        return None

    upper_name = name.upper()
    if 'P.A.' in upper_name or 'P.C.' in upper_name or 'L.L.C.' in upper_name:
        return {'type': 'company', 'name': name}
    for kw in COMPANY_KEYWORDS:
        pattern = r'\b' + re.escape(kw) + r'\b'
        if re.search(pattern, upper_name):
            return {'type': 'company', 'name': name}

    # Joint ownership: parse the first name listed
    if ' & ' in name:
        name = name.split(' & ')[0].strip()
    parts = name.replace('&', '').split()

    if len(parts) == 1:
        return {'type': 'person', 'first_name': parts[0], 'last_name': None, 'middle_name': None}
    elif len(parts) == 2:
        return {'type': 'person', 'first_name': parts[1], 'last_name': parts[0], 'middle_name': None}
    return {'type': 'person', 'first_name': parts[1], 'middle_name': ' '.join(parts[2:]), 'last_name': parts[0]}


def _key_part(value: Any) -> str:
    return re.sub(r"\s+", " ", str(value or "")).strip().upper()


def identity_key(record: Dict[str, Any]) -> Optional[str]:
    """PERSON:{first}|{middle}|{last} or COMPANY:{name}, case and whitespace normalized"""
    if record.get("type") == "company":
        name = _key_part(record.get("name"))
        return f"COMPANY:{name}" if name else None
    first, last = _key_part(record.get("first_name")), _key_part(record.get("last_name"))
    if not first or not last:
        return None
    return f"PERSON:{first}|{_key_part(record.get('middle_name'))}|{last}"


@dataclass(frozen=True)
class OwnerRef:
    kind: str  # "person" or "company"
    index: int  # position in OwnerResolution.people / .companies


@dataclass
class OwnerResolution:
    people: List[Dict[str, Any]] = field(default_factory=list)
    companies: List[Dict[str, Any]] = field(default_factory=list)
    sale_links: Dict[int, List[OwnerRef]] = field(default_factory=dict)
    mailing_links: List[OwnerRef] = field(default_factory=list)


class OwnerRegistry:
    """Deduplicates owner records; the first-seen record is canonical"""

    def __init__(self, provenance: Dict[str, Any]):
        self.provenance = provenance
        self.people: List[Dict[str, Any]] = []
        self.companies: List[Dict[str, Any]] = []
        self._by_key: Dict[str, OwnerRef] = {}
        self._by_name: Dict[str, List[OwnerRef]] = {}

    def register(self, record: Dict[str, Any]) -> Optional[OwnerRef]:
        if record.get("type") not in ("person", "company") and record.get("name"):
            record = parse_owner_name(record["name"]) or {}

        key = identity_key(record)
        if key is None:
            logger.warning(f"⚠️ Skipping owner without a usable name: {record}")
            return None

        if key in self._by_key:
            ref = self._by_key[key]
            self._fill(ref, record)
            return ref

        if record.get("type") == "company":
            return self._add_company(key, record)

        # A missing middle name is not a different identity
        name_key = f"{_key_part(record.get('first_name'))}|{_key_part(record.get('last_name'))}"
        middle = _key_part(record.get("middle_name"))
        for ref in self._by_name.get(name_key, []):
            person = self.people[ref.index]
            if not middle or person["middle_name"] is None:
                self._fill(ref, record)
                self._by_key[identity_key({"type": "person", **person})] = ref
                return ref

        return self._add_person(key, name_key, record)

    def _add_company(self, key: str, record: Dict[str, Any]) -> OwnerRef:
        company = new_entity("company", self.provenance)
        company["name"] = clean_text(record.get("name"))
        self.companies.append(company)
        ref = OwnerRef("company", len(self.companies) - 1)
        self._by_key[key] = ref
        return ref

    def _add_person(self, key: str, name_key: str, record: Dict[str, Any]) -> OwnerRef:
        person = new_entity("person", self.provenance)
        person["first_name"] = title_case(record.get("first_name"))
        person["last_name"] = title_case(record.get("last_name"))
        person["middle_name"] = title_case(record.get("middle_name"))
        person["prefix_name"] = clean_text(record.get("prefix_name"))
        person["suffix_name"] = clean_text(record.get("suffix_name"))
        self.people.append(person)
        ref = OwnerRef("person", len(self.people) - 1)
        self._by_key[key] = ref
        self._by_name.setdefault(name_key, []).append(ref)
        return ref

    def _fill(self, ref: OwnerRef, record: Dict[str, Any]) -> None:
        """Only null -> non-null fills; the first-seen value is never overwritten"""
        if ref.kind != "person":
            return
        person = self.people[ref.index]
        for name in PERSON_OPTIONAL_FIELDS:
            if person[name] is not None:
                continue
            value = record.get(name)
            person[name] = title_case(value) if name == "middle_name" else clean_text(value)


def resolve_owners(owners_by_date: Optional[Dict[str, List[Dict[str, Any]]]],
                   sales: List[Dict[str, Any]],
                   provenance: Dict[str, Any]) -> OwnerResolution:
    """Deduplicate owners and link them to sales by transfer date.

    ``sales`` must already be ordered most recent first; sale_links is keyed
    by position in that list.
    """
    owners_by_date = owners_by_date or {}
    registry = OwnerRegistry(provenance)

    refs_by_bucket: Dict[str, List[OwnerRef]] = {}
    for bucket, records in owners_by_date.items():
        refs = []
        for record in records or []:
            ref = registry.register(record)
            if ref is not None and ref not in refs:
                refs.append(ref)
        refs_by_bucket[bucket] = refs

    resolution = OwnerResolution(people=registry.people, companies=registry.companies)
    for position, sale in enumerate(sales):
        linked: List[OwnerRef] = []
        for ref in refs_by_bucket.get(sale.get("ownership_transfer_date") or "", []):
            if ref not in linked:
                linked.append(ref)
        if position == 0:
            for ref in refs_by_bucket.get(CURRENT_OWNERS, []):
                if ref not in linked:
                    linked.append(ref)
        if linked:
            resolution.sale_links[position] = linked

    resolution.mailing_links = list(refs_by_bucket.get(CURRENT_OWNERS, []))
    logger.info(
        f"✅ Resolved {len(resolution.people)} person(s) and "
        f"{len(resolution.companies)} company(ies) across {len(owners_by_date)} owner bucket(s)"
    )
    return resolution
