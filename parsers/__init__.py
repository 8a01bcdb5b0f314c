from .base_store import DocumentStore, InMemoryDocumentStore
from .file_store import FileDocumentStore
from .config_loader import ConfigStore, FileConfigStore, InMemoryConfigStore

__all__ = [
    'DocumentStore',
    'InMemoryDocumentStore',
    'FileDocumentStore',
    'ConfigStore',
    'FileConfigStore',
    'InMemoryConfigStore',
]
