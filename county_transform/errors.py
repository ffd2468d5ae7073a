"""Error taxonomy for the transform pipeline.

Fatal errors derive from TransformError and carry the schema field path that
caused them, so a calling orchestrator can tell "this county needs a new
mapping-table entry" apart from a generic crash.
"""

from typing import Any, Dict, Optional


class TransformError(Exception):
    """Fatal error for one parcel; serialized as {type, message, path}"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "error", "message": self.message, "path": self.path}


class UnknownEnumValue(TransformError):
    """A source code has no table entry and no heuristic matched it"""

    def __init__(self, value: Any, path: str):
        super().__init__(f"Unknown enum value {value}.", path)
        self.value = value


class SchemaViolation(TransformError):
    """A built document does not conform to its canonical schema"""


class CodeTableError(TransformError):
    """A classification table row is missing part of the classification tuple"""


class GraphIntegrityError(TransformError):
    """A relationship points at a document that is not part of the graph"""
