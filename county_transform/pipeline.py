"""Per-parcel transform.

transform_parcel builds and validates every document in memory; nothing
touches the output directory until the whole graph exists, so a fatal error
leaves the previous output untouched.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .code_mapper import CodeMapper, DeedTypeMapper, classification_mapper, map_property_classification
from .code_tables import load_code_table
from .config import Settings
from .errors import TransformError
from .graph_writer import DocumentGraph, EntityDocument, write_graph
from .layout_builder import build_layouts, building_layout_positions, layout_parents, single_building_position
from .owner_processor import resolve_owners
from .property_builder import (
    build_address,
    build_geometry,
    build_lot,
    build_mailing_address,
    build_property,
    build_taxes,
    provenance_from_seed,
)
from .sales_builder import build_sales_history
from .schemas import validate_document
from .structure_builder import build_structures
from .utility_builder import build_utilities
from .utils import load_json, print_status

logger = logging.getLogger(__name__)


@dataclass
class ParcelInputs:
    """Everything one parcel's transform reads; optional feeds are None when absent"""

    raw: Dict[str, Any]
    classification_mapper: CodeMapper
    deed_mapper: DeedTypeMapper = field(default_factory=DeedTypeMapper)
    seed: Optional[Dict[str, Any]] = None
    address_source: Optional[Dict[str, Any]] = None
    owners_by_date: Optional[Dict[str, List[Dict[str, Any]]]] = None
    utilities: Any = None
    layouts: Any = None
    structures: Any = None


def _add(graph: DocumentGraph, kind: str, payload: Dict[str, Any]) -> EntityDocument:
    validate_document(kind, payload)
    return graph.add(kind, payload)


def _link_building_children(graph: DocumentGraph, property_doc: EntityDocument,
                            layout_docs: List[EntityDocument], children: List[EntityDocument]) -> None:
    """Attach structures or utilities to their building layout, else to the property"""
    payloads = [doc.payload for doc in layout_docs]
    buildings = building_layout_positions(payloads)
    only_building = single_building_position(payloads)
    for child in children:
        number = child.payload.get("building_number")
        position = buildings.get(number)
        if number is None and len(children) == 1:
            position = only_building
        if position is None:
            graph.link(property_doc, child)
        else:
            graph.link(layout_docs[position], child)


def transform_parcel(inputs: ParcelInputs) -> DocumentGraph:
    raw = dict(inputs.raw)
    seed = inputs.seed or {}
    if not raw.get("parcel_id") and seed.get("parcel_id"):
        raw["parcel_id"] = seed["parcel_id"]
    provenance = provenance_from_seed(seed)
    address_source = inputs.address_source or {}

    # Fail fast before anything else is built
    classification = map_property_classification(raw.get("use_code"), inputs.classification_mapper)

    graph = DocumentGraph()
    property_doc = _add(graph, "property", build_property(raw, classification, provenance))

    address = build_address(
        address_source.get("full_address") or raw.get("site_address"),
        raw,
        provenance,
        county_name=address_source.get("county_jurisdiction"),
    )
    if address is not None:
        address_doc = _add(graph, "address", address)
        graph.link(property_doc, address_doc)
        geometry = build_geometry(raw, address_source, provenance)
        if geometry is not None:
            graph.link(address_doc, _add(graph, "geometry", geometry))

    lot = build_lot(raw, provenance)
    if lot is not None:
        graph.link(property_doc, _add(graph, "lot", lot))

    for tax in build_taxes(raw.get("taxes"), provenance):
        graph.link(property_doc, _add(graph, "tax", tax))

    sale_records = build_sales_history(raw.get("sales"), inputs.deed_mapper, provenance)
    sale_docs = []
    for record in sale_records:
        sale_doc = _add(graph, "sales", record.sale)
        deed_doc = _add(graph, "deed", record.deed)
        graph.link(property_doc, sale_doc)
        graph.link(sale_doc, deed_doc)
        if record.file is not None:
            graph.link(deed_doc, _add(graph, "file", record.file))
        sale_docs.append(sale_doc)

    resolution = resolve_owners(inputs.owners_by_date, [r.sale for r in sale_records], provenance)
    owner_docs = {
        "person": [_add(graph, "person", person) for person in resolution.people],
        "company": [_add(graph, "company", company) for company in resolution.companies],
    }
    for position, refs in resolution.sale_links.items():
        for ref in refs:
            graph.link(sale_docs[position], owner_docs[ref.kind][ref.index])

    mailing = build_mailing_address(raw, provenance)
    if mailing is not None:
        mailing_doc = _add(graph, "mailing_address", mailing)
        for ref in resolution.mailing_links:
            graph.link(owner_docs[ref.kind][ref.index], mailing_doc)

    structure_docs = [_add(graph, "structure", s) for s in build_structures(raw, inputs.structures, provenance)]
    utility_docs = [_add(graph, "utility", u) for u in build_utilities(inputs.utilities, provenance)]

    layout_docs = [_add(graph, "layout", layout) for layout in build_layouts(inputs.layouts, provenance)]
    parents = layout_parents([doc.payload for doc in layout_docs])
    for position, layout_doc in enumerate(layout_docs):
        if position in parents:
            graph.link(layout_docs[parents[position]], layout_doc)
        else:
            graph.link(property_doc, layout_doc)

    _link_building_children(graph, property_doc, layout_docs, structure_docs)
    _link_building_children(graph, property_doc, layout_docs, utility_docs)

    logger.info(
        f"✅ Built {len(graph.documents)} documents and {len(graph.edges)} relationships "
        f"for parcel {raw.get('parcel_id')}"
    )
    return graph


# ============================================================================
# File-to-file run
# ============================================================================

def _parcel_feed(data: Optional[Dict[str, Any]], parcel_id: Optional[str]) -> Any:
    if not data or not parcel_id:
        return None
    return data.get(f"property_{parcel_id}")


def build_mappers(settings: Settings, adapter: Any = None):
    """Classification and deed mappers from the adapter's tables or an override file"""
    if settings.use_code_table_path:
        table = load_code_table(settings.use_code_table_path)
    elif adapter is not None:
        table = adapter.CODE_TABLE
    else:
        raise TransformError("No code table available: pass a county or a code table file", "code_table")

    keyword_rules = getattr(adapter, "KEYWORD_RULES", ())
    deed_abbreviations = getattr(adapter, "DEED_ABBREVIATIONS", None)
    return (
        classification_mapper(table, keyword_rules),
        DeedTypeMapper(deed_abbreviations, strict=settings.strict_deed_types),
    )


def load_parcel_inputs(settings: Settings, adapter: Any = None) -> ParcelInputs:
    seed = load_json(settings.input_path("property_seed.json")) or {}
    address_source = load_json(settings.input_path("unnormalized_address.json")) or {}

    if settings.raw_fields_path:
        raw = load_json(settings.raw_fields_path)
        if raw is None:
            raise FileNotFoundError(settings.raw_fields_path)
    else:
        if adapter is None:
            raise TransformError("No county adapter available to read input.html", "county")
        html_path = settings.input_path("input.html")
        with open(html_path, "r", encoding="utf-8") as f:
            raw = adapter.extract(f.read())
        logger.info(f"📁 Extracted raw fields from {html_path}")

    parcel_id = raw.get("parcel_id") or seed.get("parcel_id")
    owners = _parcel_feed(load_json(settings.owners_path("owner_data.json")), parcel_id)
    classification, deeds = build_mappers(settings, adapter)

    return ParcelInputs(
        raw=raw,
        classification_mapper=classification,
        deed_mapper=deeds,
        seed=seed,
        address_source=address_source,
        owners_by_date=(owners or {}).get("owners_by_date"),
        utilities=_parcel_feed(load_json(settings.owners_path("utilities_data.json")), parcel_id),
        layouts=_parcel_feed(load_json(settings.owners_path("layout_data.json")), parcel_id),
        structures=_parcel_feed(load_json(settings.owners_path("structure_data.json")), parcel_id),
    )


def _input_paths(settings: Settings) -> List[str]:
    paths = [settings.input_dir, settings.owners_path("owner_data.json")]
    paths.extend(path for path in (settings.raw_fields_path, settings.use_code_table_path) if path)
    return paths


def run_transform(settings: Settings, adapter: Any = None) -> List[str]:
    """Read one parcel's inputs, transform them and rewrite the output directory"""
    print_status(f"Transforming parcel in {os.path.abspath(settings.input_dir)}")
    inputs = load_parcel_inputs(settings, adapter)
    graph = transform_parcel(inputs)
    written = write_graph(graph, settings.output_dir, _input_paths(settings))
    print_status(f"Wrote {len(written)} files to {settings.output_dir}")
    return written
