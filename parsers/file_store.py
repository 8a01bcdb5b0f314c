"""
Filesystem Document Store
========================

Reads content documents from a directory tree. Rule files are authored as
YAML (.yaml/.yml) while exported content such as workbooks and connectors is
usually JSON, so both are supported and chosen by extension.

Enumeration is recursive and sorted by relative path, which makes the order
stable across machines. That order matters downstream: when two documents map
to the same resource name, the first one produced wins.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from config import ENCODING, SUPPORTED_EXTENSIONS
from parsers.base_store import DocumentStore, StoredDocument
from validators.security_validator import SecurityValidator

logger = logging.getLogger(__name__)


class FileDocumentStore(DocumentStore):
    """
    DocumentStore reading YAML and JSON files below a root directory.

    Files that fail validation or parsing are logged and skipped; hidden
    directories are ignored.
    """

    def __init__(self, root: str):
        """
        Args:
            root: Root of the content repository; `list` paths are relative to it
        """
        super().__init__("File")
        self.root = Path(root)
        logger.debug(f"File document store rooted at {self.root}")

    def list(self, path: str) -> List[StoredDocument]:
        """
        Return parsed documents found below `root/path`, sorted by path.

        A missing directory yields an empty list: customers without a Rules
        or Artifacts directory are normal.
        """
        directory = self.root / path
        if not directory.exists():
            logger.debug(f"Content directory does not exist, nothing to read: {directory}")
            return []

        is_valid, error_msg = SecurityValidator.validate_directory_path(str(directory))
        if not is_valid:
            logger.error(f"Cannot read content directory {directory}: {error_msg}")
            return []

        entries = []
        for file_path in self._discover_files(directory):
            document = self.read_document(str(file_path))
            if document is not None:
                entries.append((str(file_path), document))

        logger.info(f"Read {len(entries)} documents from {directory}")
        return entries

    def read_document(self, file_path: str) -> Optional[Dict[str, Any]]:
        """
        Read and parse a single content file.

        Returns:
            The parsed mapping, or None when the file is invalid, unparsable or
            does not contain a mapping
        """
        is_valid, error_msg = SecurityValidator.validate_file_path(file_path, SUPPORTED_EXTENSIONS)
        if not is_valid:
            logger.warning(f"Skipping {file_path}: {error_msg}")
            self.update_statistics('skipped')
            return None

        try:
            with open(file_path, 'r', encoding=ENCODING) as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading {file_path}: {str(e)}")
            self.update_statistics('failed_reads')
            return None

        try:
            document = self.parse_content(content, Path(file_path).suffix.lower())
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            logger.error(f"Parsing error in {file_path}: {str(e)}")
            self.update_statistics('failed_reads')
            return None

        if not isinstance(document, dict):
            logger.warning(f"Skipping {file_path}: document is not a mapping")
            self.update_statistics('skipped')
            return None

        self.update_statistics('documents_read')
        return document

    @staticmethod
    def parse_content(content: str, extension: str) -> Any:
        """
        Parse file content according to its extension.

        Raises:
            yaml.YAMLError: For malformed YAML
            json.JSONDecodeError: For malformed JSON
        """
        if extension == '.json':
            return json.loads(content)
        return yaml.safe_load(content)

    @staticmethod
    def _discover_files(directory: Path) -> List[Path]:
        files = []
        for current, dirs, names in os.walk(directory):
            dirs[:] = sorted(d for d in dirs if not d.startswith('.'))
            for name in names:
                if Path(name).suffix.lower() in SUPPORTED_EXTENSIONS:
                    files.append(Path(current) / name)
        return sorted(files, key=lambda p: p.relative_to(directory).as_posix())
