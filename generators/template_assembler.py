"""
Template Assembler
=================

Drives one customer build end to end:

1. load the customer's DeploymentConfig (any ConfigError aborts the build),
2. read the shared artifacts, the customer's Rules and the customer's
   Artifacts from the document store,
3. resolve overrides, exclusions and connector gating with the merge engine,
4. classify each surviving document, build its resource, and add it to the
   template unless a resource with the same name is already there.

Per-document problems (no matching signature, an unsupported kind, a duplicate
name) are recorded as warnings and the document is skipped. A RunPlaybook rule
without a linked playbook is fatal, and so is any configuration error: the
build raises BuildError and no template is returned, so a half-built template
can never be deployed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from config import (
    SHARED_ARTIFACTS_DIRECTORY,
    CUSTOMER_RULES_DIRECTORY,
    CUSTOMER_ARTIFACTS_DIRECTORY,
    customer_directory,
)
from core.classifier import classify
from core.merge_engine import MergeEngine, to_source_documents
from generators.resource_builder import build_resource
from models.arm_template import ArmTemplate
from models.content_kind import ContentKind
from models.deployment_config import DeploymentConfig
from models.diagnostics import Diagnostics
from models.errors import ConfigError, MappingError, BuildError
from models.source_document import SourceDocument, SHARED, CUSTOMER
from parsers.base_store import DocumentStore
from parsers.config_loader import ConfigStore
from utils.logging_config import log_function_timing

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Outcome of a successful customer build."""

    customer: str
    template: ArmTemplate
    diagnostics: Diagnostics
    statistics: Dict[str, Any] = field(default_factory=dict)


class TemplateAssembler:
    """
    Accumulates resources into one template, first writer wins on names.

    An assembler can be driven two ways: `build(customer)` runs the whole
    pipeline against the injected stores, while `start(config)` followed by
    `add_document(...)` calls lets a caller feed documents directly.

    Attributes:
        document_store: Source of shared and customer documents
        config_store: Source of customer configuration
        merge_engine: Precedence rules between shared and customer content
    """

    def __init__(self, document_store: DocumentStore, config_store: Optional[ConfigStore] = None,
                 merge_engine: Optional[MergeEngine] = None):
        self.document_store = document_store
        self.config_store = config_store
        self.merge_engine = merge_engine or MergeEngine()

        self.config: Optional[DeploymentConfig] = None
        self.template: Optional[ArmTemplate] = None
        self.diagnostics = Diagnostics()
        self._seen_names: Set[str] = set()
        self.build_stats = self._empty_statistics()

    @log_function_timing
    def build(self, customer: str) -> BuildResult:
        """
        Build the template for one customer.

        Args:
            customer: Customer name (directory name under Customers/)

        Returns:
            BuildResult: Template, diagnostics and statistics

        Raises:
            BuildError: On a configuration error or a missing playbook link
        """
        if self.config_store is None:
            raise BuildError("No configuration store available", customer)

        logger.info(f"Starting template build for customer '{customer}'")

        try:
            config = self.config_store.load(customer)
        except ConfigError as e:
            self.diagnostics = Diagnostics()
            self.diagnostics.fatal('config-error', e.message, e.source)
            raise BuildError(f"Configuration error for '{customer}': {e}", e.source) from e

        self.start(config)

        shared_docs = to_source_documents(
            self.document_store.list(SHARED_ARTIFACTS_DIRECTORY), SHARED)
        customer_root = customer_directory(customer)
        customer_docs = (
            to_source_documents(
                self.document_store.list(f"{customer_root}/{CUSTOMER_RULES_DIRECTORY}"), CUSTOMER)
            + to_source_documents(
                self.document_store.list(f"{customer_root}/{CUSTOMER_ARTIFACTS_DIRECTORY}"), CUSTOMER)
        )

        resolved = self.merge_engine.resolve(
            shared_docs,
            customer_docs,
            config.exclude_rules,
            config.enabled_connector_ids(),
            self.diagnostics,
        )

        for source in resolved:
            self.add_document(source)

        return self.finish(customer)

    def start(self, config: DeploymentConfig) -> ArmTemplate:
        """Begin a new template for `config`, discarding any previous state."""
        self.config = config
        self.template = ArmTemplate(workspace_name=config.workspace_name, location=config.location)
        self.diagnostics = Diagnostics()
        self._seen_names = set()
        self.build_stats = self._empty_statistics()
        return self.template

    def add_document(self, source: SourceDocument) -> bool:
        """
        Classify, map and add one document.

        Returns:
            bool: True if a resource was added

        Raises:
            BuildError: If the document hits a fatal mapping error
        """
        if self.template is None or self.config is None:
            raise BuildError("add_document called before start()")

        self.build_stats['documents_processed'] += 1
        kind = classify(source.document)
        if kind == ContentKind.UNKNOWN:
            self.build_stats['classification_misses'] += 1
            self.diagnostics.warning('classification-miss',
                                     f"Document '{source.content_id}' matches no content kind",
                                     source.source_id)
            return False

        try:
            resource = build_resource(source.document, kind, self.config, self.diagnostics)
        except MappingError as e:
            if e.fatal:
                self.diagnostics.fatal('missing-content-link', e.message, source.source_id)
                raise BuildError(f"Fatal mapping error: {e.message}", source.source_id) from e
            self.build_stats['mapping_errors'] += 1
            self.diagnostics.warning('mapping-error', e.message, source.source_id)
            return False

        if resource.name in self._seen_names:
            self.build_stats['duplicates_dropped'] += 1
            self.diagnostics.warning('duplicate-resource-name',
                                     f"Resource {resource.name} already added; dropping {kind} "
                                     f"document '{source.content_id}'",
                                     source.source_id)
            return False

        self._seen_names.add(resource.name)
        self.template.add_resource(resource)
        self.build_stats['resources_added'] += 1
        kind_counts = self.build_stats['by_kind']
        kind_counts[kind.value] = kind_counts.get(kind.value, 0) + 1
        return True

    def finish(self, customer: str) -> BuildResult:
        """Close the current build and package its result."""
        if self.template is None:
            raise BuildError("finish called before start()", customer)

        statistics = dict(self.build_stats)
        statistics['merge'] = self.merge_engine.get_statistics()
        statistics['diagnostics'] = self.diagnostics.summary()

        logger.info(f"Template for '{customer}' contains {self.template.get_resource_count()} resources "
                    f"({statistics['duplicates_dropped']} duplicates dropped, "
                    f"{statistics['classification_misses']} unclassified, "
                    f"{statistics['mapping_errors']} mapping errors)")

        return BuildResult(
            customer=customer,
            template=self.template,
            diagnostics=self.diagnostics,
            statistics=statistics,
        )

    def get_statistics(self) -> Dict[str, Any]:
        return dict(self.build_stats)

    @staticmethod
    def _empty_statistics() -> Dict[str, Any]:
        return {
            'documents_processed': 0,
            'resources_added': 0,
            'duplicates_dropped': 0,
            'classification_misses': 0,
            'mapping_errors': 0,
            'by_kind': {},
        }


def build_template(document_store: DocumentStore, config_store: ConfigStore,
                   customer: str) -> BuildResult:
    """Build one customer's template with a fresh assembler."""
    return TemplateAssembler(document_store, config_store).build(customer)


def assemble(documents: List[SourceDocument], config: DeploymentConfig,
             diagnostics: Optional[Diagnostics] = None) -> ArmTemplate:
    """
    Assemble already-resolved documents into a template.

    Raises:
        BuildError: On a fatal mapping error
    """
    assembler = TemplateAssembler(document_store=None)
    assembler.start(config)
    if diagnostics is not None:
        assembler.diagnostics = diagnostics
    for source in documents:
        assembler.add_document(source)
    return assembler.template
