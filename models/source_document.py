"""
Source Document Model
====================

Wraps one parsed content document together with where it came from. The merge
engine needs both: the origin decides override and connector-gating rules, and
the content id decides which documents collide.
"""

from dataclasses import dataclass
from typing import Any, Dict

SHARED = "shared"
CUSTOMER = "customer"

# Fields tried, in order, when a document has no usable "id"
_FALLBACK_ID_FIELDS = ('ParserName', 'FunctionName')


@dataclass(frozen=True)
class SourceDocument:
    """
    A parsed document plus its provenance.

    Attributes:
        source_id: Identifier from the document store (usually a file path)
        document: The parsed document; treated as read-only
        origin: SHARED or CUSTOMER
    """

    source_id: str
    document: Dict[str, Any]
    origin: str = SHARED

    @property
    def content_id(self) -> str:
        """
        Identifier used for overrides and exclusions.

        The document's own "id" wins; ASIM parsers and KQL functions without
        one fall back to their function name, and anything else to the store
        identifier.
        """
        for field_name in ('id',) + _FALLBACK_ID_FIELDS:
            value = self.document.get(field_name) if isinstance(self.document, dict) else None
            if value is not None and str(value).strip():
                return str(value).strip()
        return self.source_id

    def __str__(self) -> str:
        return f"SourceDocument(id='{self.content_id}', origin={self.origin}, source='{self.source_id}')"
