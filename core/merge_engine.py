"""
Shared / Customer Merge Engine
=============================

Decides which documents make it into a customer's build. Content comes from
two tiers: a shared library reused by every customer, and the customer's own
documents. The precedence rules, applied in this order, are:

1. Excluded content ids (config ExcludeRules) are dropped from both tiers.
2. A customer document replaces a shared document with the same content id.
   This is an override, not a field merge; the shared version is discarded.
3. Shared documents tied to a data connector the customer has not enabled are
   dropped. Customer documents are never gated, the customer wrote them for a
   reason.
4. Enumeration order is preserved inside each tier.

The output lists surviving customer documents first, then the surviving shared
ones, so that "first produced wins" in the assembler favours customer content.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from models.diagnostics import Diagnostics
from models.source_document import SourceDocument, SHARED, CUSTOMER

logger = logging.getLogger(__name__)

CONNECTOR_FIELD = 'connector'


def to_source_documents(entries: Iterable[Tuple[str, Dict[str, Any]]],
                        origin: str) -> List[SourceDocument]:
    """Wrap (source_id, document) pairs from a DocumentStore."""
    return [SourceDocument(source_id, document, origin) for source_id, document in entries]


def document_connectors(document: Dict[str, Any]) -> List[str]:
    """
    Return the connector ids a document is tied to.

    The "connector" field may hold one id or a list of ids; a document without
    the field is not tied to any connector.
    """
    value = document.get(CONNECTOR_FIELD) if isinstance(document, dict) else None
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    text = str(value).strip()
    return [text] if text else []


class MergeEngine:
    """
    Applies exclusion, override and connector-gating precedence.

    The engine is stateless apart from the statistics of its last resolve()
    call, which the assembler reports at the end of a build.
    """

    def __init__(self):
        self.merge_stats = self._empty_statistics()

    def resolve(self, shared_docs: Sequence[SourceDocument],
                customer_docs: Sequence[SourceDocument],
                exclude_ids: Iterable[str],
                enabled_connector_ids: Iterable[str],
                diagnostics: Optional[Diagnostics] = None) -> List[SourceDocument]:
        """
        Produce the ordered list of documents to convert.

        Args:
            shared_docs: Shared-library documents in enumeration order
            customer_docs: Customer documents in enumeration order
            exclude_ids: Content ids that must never be deployed
            enabled_connector_ids: Connector ids enabled for the customer
            diagnostics: Optional accumulator for info records

        Returns:
            List[SourceDocument]: Customer survivors, then shared survivors
        """
        diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        excluded: Set[str] = {str(i).strip() for i in exclude_ids if i is not None}
        enabled: Set[str] = {str(i).strip() for i in enabled_connector_ids if i is not None}
        self.merge_stats = self._empty_statistics()
        self.merge_stats['shared_input'] = len(shared_docs)
        self.merge_stats['customer_input'] = len(customer_docs)

        customer_survivors: List[SourceDocument] = []
        customer_ids: Set[str] = set()

        for source in customer_docs:
            content_id = source.content_id
            if content_id in excluded:
                self.merge_stats['excluded'] += 1
                diagnostics.info('excluded', f"Customer document '{content_id}' is excluded", source.source_id)
                continue
            customer_ids.add(content_id)
            customer_survivors.append(self._with_origin(source, CUSTOMER))

        shared_survivors: List[SourceDocument] = []

        for source in shared_docs:
            content_id = source.content_id
            if content_id in excluded:
                self.merge_stats['excluded'] += 1
                diagnostics.info('excluded', f"Shared document '{content_id}' is excluded", source.source_id)
                continue

            if content_id in customer_ids:
                self.merge_stats['overridden'] += 1
                diagnostics.info('overridden',
                                 f"Shared document '{content_id}' is overridden by customer content",
                                 source.source_id)
                continue

            connectors = document_connectors(source.document)
            if connectors and not any(c in enabled for c in connectors):
                self.merge_stats['connector_gated'] += 1
                diagnostics.info('connector-gated',
                                 f"Shared document '{content_id}' requires disabled connector(s): "
                                 f"{', '.join(connectors)}",
                                 source.source_id)
                continue

            shared_survivors.append(self._with_origin(source, SHARED))

        resolved = customer_survivors + shared_survivors
        self.merge_stats['resolved'] = len(resolved)

        logger.info(f"Merge resolved {len(resolved)} documents "
                    f"({len(customer_survivors)} customer, {len(shared_survivors)} shared; "
                    f"{self.merge_stats['excluded']} excluded, "
                    f"{self.merge_stats['overridden']} overridden, "
                    f"{self.merge_stats['connector_gated']} gated)")
        return resolved

    def get_statistics(self) -> Dict[str, int]:
        return dict(self.merge_stats)

    @staticmethod
    def _with_origin(source: SourceDocument, origin: str) -> SourceDocument:
        if source.origin == origin:
            return source
        return SourceDocument(source.source_id, source.document, origin)

    @staticmethod
    def _empty_statistics() -> Dict[str, int]:
        return {
            'shared_input': 0,
            'customer_input': 0,
            'excluded': 0,
            'overridden': 0,
            'connector_gated': 0,
            'resolved': 0,
        }


def resolve(shared_docs: Sequence[SourceDocument],
            customer_docs: Sequence[SourceDocument],
            exclude_ids: Iterable[str],
            enabled_connector_ids: Iterable[str]) -> List[SourceDocument]:
    """Functional shortcut for MergeEngine().resolve(...)."""
    return MergeEngine().resolve(shared_docs, customer_docs, exclude_ids, enabled_connector_ids)
