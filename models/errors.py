"""
Build Error Taxonomy
===================

Errors raised while turning content documents into a template. The split
between recoverable and fatal errors drives the assembler: recoverable errors
skip one document and the build continues, fatal errors abort the whole
customer build and no template is produced.
"""

from typing import Optional


class TemplateBuilderError(Exception):
    """Base class for all errors raised by the template builder."""

    fatal = False

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"{self.message} (source: {self.source})"
        return self.message


class ConfigError(TemplateBuilderError):
    """Customer configuration is missing, unreadable or incomplete."""

    fatal = True


class ClassificationMiss(TemplateBuilderError):
    """A document matched none of the content-kind signatures."""


class MappingError(TemplateBuilderError):
    """A classified document could not be projected into a resource body."""


class UnsupportedKindError(MappingError):
    """The content kind is recognised but cannot be deployed yet."""

    def __init__(self, kind, source: Optional[str] = None):
        super().__init__(f"Content kind '{kind}' is not yet supported", source)
        self.kind = kind


class MissingContentLinkError(MappingError):
    """
    An automation rule references no playbook in the customer's ContentLinks.

    This is fatal: an automation rule without its playbook action would deploy
    but never do anything, so no partial resource is emitted.
    """

    fatal = True

    def __init__(self, kind, rule_id: str, source: Optional[str] = None):
        super().__init__(
            f"No ContentLinks entry for {kind} rule '{rule_id}'", source
        )
        self.kind = kind
        self.rule_id = rule_id


class BuildError(TemplateBuilderError):
    """A fatal condition aborted a customer build."""

    fatal = True
