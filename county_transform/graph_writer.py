"""Document graph accumulation and writing.

Entities and relationships for one parcel are collected in a DocumentGraph.
Filenames are assigned only when the graph is materialized, because whether a
singleton kind gets a bare name depends on how many instances exist.
"""

import logging
import os
import shutil
from collections import OrderedDict, defaultdict
from typing import Any, Dict, Iterable, List, Tuple

from .errors import GraphIntegrityError, TransformError
from .utils import ensure_directory, write_json

logger = logging.getLogger(__name__)

SINGLETON_KINDS = frozenset([
    "property", "address", "mailing_address", "lot", "geometry", "structure", "utility",
])


class EntityDocument:
    """One entity instance in the graph"""

    __slots__ = ("kind", "payload", "ordinal")

    def __init__(self, kind: str, payload: Dict[str, Any], ordinal: int):
        self.kind = kind
        self.payload = payload
        self.ordinal = ordinal

    def __repr__(self):
        return f"EntityDocument({self.kind!r}, {self.ordinal})"


def entity_ref(filename: str) -> Dict[str, str]:
    return {"/": f"./{filename}"}


class DocumentGraph:
    def __init__(self):
        self.documents: List[EntityDocument] = []
        self.edges: List[Tuple[EntityDocument, EntityDocument]] = []
        self._counts: Dict[str, int] = defaultdict(int)
        self._members = set()

    def add(self, kind: str, payload: Dict[str, Any]) -> EntityDocument:
        self._counts[kind] += 1
        document = EntityDocument(kind, payload, self._counts[kind])
        self.documents.append(document)
        self._members.add(id(document))
        return document

    def link(self, from_doc: EntityDocument, to_doc: EntityDocument) -> None:
        """Add a directed edge; repeated edges are ignored"""
        for existing_from, existing_to in self.edges:
            if existing_from is from_doc and existing_to is to_doc:
                return
        self.edges.append((from_doc, to_doc))

    def of_kind(self, kind: str) -> List[EntityDocument]:
        return [doc for doc in self.documents if doc.kind == kind]

    def count(self, kind: str) -> int:
        return self._counts.get(kind, 0)

    def filename(self, document: EntityDocument) -> str:
        if document.kind in SINGLETON_KINDS and self._counts[document.kind] == 1:
            return f"{document.kind}.json"
        return f"{document.kind}_{document.ordinal}.json"

    def check_integrity(self) -> None:
        for from_doc, to_doc in self.edges:
            for doc in (from_doc, to_doc):
                if id(doc) not in self._members:
                    raise GraphIntegrityError(
                        f"Relationship {from_doc.kind} -> {to_doc.kind} references a document "
                        f"that is not part of the graph",
                        f"relationship_{from_doc.kind}_{to_doc.kind}",
                    )

    def relationship_documents(self) -> "OrderedDict[str, Dict[str, Any]]":
        pair_totals: Dict[Tuple[str, str], int] = defaultdict(int)
        for from_doc, to_doc in self.edges:
            pair_totals[(from_doc.kind, to_doc.kind)] += 1

        pair_seen: Dict[Tuple[str, str], int] = defaultdict(int)
        relationships = OrderedDict()
        for from_doc, to_doc in self.edges:
            pair = (from_doc.kind, to_doc.kind)
            pair_seen[pair] += 1
            if pair_totals[pair] == 1:
                rel_filename = f"relationship_{pair[0]}_{pair[1]}.json"
            else:
                rel_filename = f"relationship_{pair[0]}_{pair[1]}_{pair_seen[pair]}.json"
            relationships[rel_filename] = {
                "from": entity_ref(self.filename(from_doc)),
                "to": entity_ref(self.filename(to_doc)),
            }
        return relationships

    def files(self) -> "OrderedDict[str, Dict[str, Any]]":
        """Every output file, entity documents first, keyed by filename"""
        self.check_integrity()
        files = OrderedDict()
        for document in self.documents:
            files[self.filename(document)] = document.payload
        relationships = self.relationship_documents()
        for rel_filename, relationship in relationships.items():
            for endpoint in ("from", "to"):
                target = relationship[endpoint]["/"][2:]
                if target not in files:
                    raise GraphIntegrityError(
                        f"{rel_filename} points at {target}, which is not written", rel_filename
                    )
        files.update(relationships)
        return files


def _contains(directory: str, path: str) -> bool:
    directory = os.path.realpath(directory)
    path = os.path.realpath(path)
    return os.path.commonpath([directory, path]) == directory


def write_graph(graph: DocumentGraph, output_dir: str, protected_paths: Iterable[str] = ()) -> List[str]:
    """Replace output_dir with the graph's files; returns the written filenames.

    Refuses to run when clearing output_dir would delete any of protected_paths.
    """
    for path in protected_paths:
        if _contains(output_dir, path):
            raise TransformError(
                f"Output directory {output_dir} contains input {path}; refusing to clear it", "output_dir"
            )
    files = graph.files()

    if os.path.exists(output_dir):
        shutil.rmtree(output_dir)
        logger.info(f"🗑️ Cleared previous output: {output_dir}")
    ensure_directory(output_dir)

    for filename, payload in files.items():
        write_json(os.path.join(output_dir, filename), payload)
        logger.debug(f"📝 Wrote {filename}")

    logger.info(f"✅ Wrote {len(files)} files to {output_dir}")
    return list(files)
