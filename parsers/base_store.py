"""
Document Store Interface
=======================

The builder never touches storage directly. It asks a DocumentStore for the
parsed documents under a logical path (the shared artifacts, a customer's
Rules directory, a customer's Artifacts directory) and receives them in a
stable enumeration order.

Subclasses decide where documents live; the filesystem store in
file_store.py is the one the CLI uses, and tests use an in-memory store.
The base class also keeps the read statistics every store reports.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple
import logging
import threading

logger = logging.getLogger(__name__)

# (source_id, parsed document)
StoredDocument = Tuple[str, Dict[str, Any]]


class DocumentStore(ABC):
    """
    Abstract source of parsed content documents.

    Contract for `list`:
    - returns (source_id, document) pairs in a stable order,
    - every document is a mapping,
    - a path with no documents yields an empty list rather than an error,
    - unreadable or unparsable entries are skipped and counted, not raised.
    """

    def __init__(self, store_name: str):
        self.store_name = store_name
        self.read_statistics = self._empty_statistics()
        self._stats_lock = threading.Lock()

    @abstractmethod
    def list(self, path: str) -> List[StoredDocument]:
        """
        Return the parsed documents under `path`.

        Args:
            path: Logical path relative to the store root

        Returns:
            List[StoredDocument]: (source_id, document) pairs in enumeration order
        """
        pass

    def update_statistics(self, outcome: str) -> None:
        """Count one entry as 'documents_read', 'failed_reads' or 'skipped'."""
        with self._stats_lock:
            self.read_statistics['entries_seen'] += 1
            self.read_statistics[outcome] += 1

    def get_statistics(self) -> Dict[str, Any]:
        with self._stats_lock:
            stats = self.read_statistics.copy()
        stats['store_name'] = self.store_name
        return stats

    def reset_statistics(self) -> None:
        with self._stats_lock:
            self.read_statistics = self._empty_statistics()
        logger.debug(f"Reset statistics for {self.store_name} store")

    @staticmethod
    def _empty_statistics() -> Dict[str, int]:
        return {
            'entries_seen': 0,
            'documents_read': 0,
            'failed_reads': 0,
            'skipped': 0,
        }

    def __str__(self) -> str:
        return f"{self.store_name}Store(documents_read={self.read_statistics['documents_read']})"


class InMemoryDocumentStore(DocumentStore):
    """
    DocumentStore backed by a dict of path -> [(source_id, document), ...].

    Useful for embedding the builder in another tool that already holds parsed
    documents, and for tests.
    """

    def __init__(self, documents: Dict[str, List[StoredDocument]] = None):
        super().__init__("InMemory")
        self.documents = documents or {}

    def list(self, path: str) -> List[StoredDocument]:
        entries = []
        for source_id, document in self.documents.get(path.strip('/'), []):
            if isinstance(document, dict):
                entries.append((source_id, document))
                self.update_statistics('documents_read')
            else:
                logger.warning(f"Skipping non-mapping document {source_id}")
                self.update_statistics('skipped')
        return entries
