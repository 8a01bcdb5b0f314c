"""
ARM Template Data Model
======================

This module defines the data structures for the deployment template the
builder produces. A template is a fixed envelope ($schema, contentVersion,
parameters) around an ordered list of resources; every resource is a
kind-specific property body wrapped in a type/apiVersion/name envelope.

Keeping the output format here lets the mapper and assembler work with plain
Python objects, while `to_dict` guarantees the exact key order and shape the
Azure Resource Manager expects.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional

from config import (
    TEMPLATE_SCHEMA,
    TEMPLATE_CONTENT_VERSION,
    WORKSPACE_PARAMETER,
    WORKSPACE_LOCATION_PARAMETER,
)


def quote_literal(value: Any) -> str:
    """
    Escape a value for use inside a single-quoted ARM expression literal.

    Example:
        quote_literal("O'Brien")  # -> "O''Brien"
    """
    return str(value).replace("'", "''")


def _json_default(value: Any) -> str:
    # YAML timestamps arrive as date/datetime objects
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return str(value)


@dataclass
class ArmResource:
    """
    A single resource entry in the template.

    Resources are identified within a template by `name`, which is an ARM
    expression string such as
    "[concat(parameters('workspace'), '/Microsoft.SecurityInsights/<id>')]".

    Attributes:
        type: ARM resource type
        api_version: ARM API version for the type
        name: Resource name expression, unique within a template
        properties: Kind-specific property body
        kind: Alert-rule kind (Scheduled, NRT, ...), alert rules only
        scope: Explicit scope expression, automation rules only
    """

    type: str
    api_version: str
    name: str
    properties: Dict[str, Any] = field(default_factory=dict)
    kind: Optional[str] = None
    scope: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the ordered ARM resource mapping.

        Key order is type, apiVersion, name, kind?, scope?, properties;
        kind and scope are omitted when unset.
        """
        resource: Dict[str, Any] = {
            "type": self.type,
            "apiVersion": self.api_version,
            "name": self.name,
        }
        if self.kind:
            resource["kind"] = self.kind
        if self.scope:
            resource["scope"] = self.scope
        resource["properties"] = self.properties
        return resource

    def __str__(self) -> str:
        return f"ArmResource(type='{self.type}', name='{self.name}')"


@dataclass
class ArmTemplate:
    """
    Complete deployment template for one customer build.

    The template is created once per build, filled incrementally by the
    assembler, and serialised once at the end.

    Attributes:
        workspace_name: Default value of the "workspace" parameter
        location: Default value of the "workspace-location" parameter
        resources: Resources in insertion order
    """

    workspace_name: str = ""
    location: str = ""
    resources: List[ArmResource] = field(default_factory=list)

    def has_resource(self, name: str) -> bool:
        return any(r.name == name for r in self.resources)

    def add_resource(self, resource: ArmResource) -> None:
        """
        Append a resource.

        Name uniqueness is the assembler's job; this raises only to protect
        the invariant if a caller bypasses it.
        """
        if self.has_resource(resource.name):
            raise ValueError(f"Resource '{resource.name}' already exists in the template")
        self.resources.append(resource)

    def get_resource_count(self) -> int:
        return len(self.resources)

    def get_type_summary(self) -> Dict[str, int]:
        """Count resources per ARM type, for reporting."""
        summary: Dict[str, int] = {}
        for resource in self.resources:
            summary[resource.type] = summary.get(resource.type, 0) + 1
        return summary

    def parameters(self) -> Dict[str, Any]:
        """Build the fixed parameters block."""
        workspace = {"type": "string"}
        if self.workspace_name:
            workspace["defaultValue"] = self.workspace_name

        workspace_location = {"type": "string"}
        if self.location:
            workspace_location["defaultValue"] = self.location

        return {
            WORKSPACE_PARAMETER: workspace,
            WORKSPACE_LOCATION_PARAMETER: workspace_location,
        }

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this template to the ARM JSON structure.

        Returns:
            Dict[str, Any]: {$schema, contentVersion, parameters, resources}
        """
        return {
            "$schema": TEMPLATE_SCHEMA,
            "contentVersion": TEMPLATE_CONTENT_VERSION,
            "parameters": self.parameters(),
            "resources": [r.to_dict() for r in self.resources],
        }

    def save_to_file(self, file_path: str) -> None:
        """
        Serialise the template to a JSON file.

        The whole template is rendered before anything is written, and the
        file is replaced in one step, so a failed save never leaves a
        truncated template behind.

        Raises:
            ValueError: If the template cannot be serialised
            IOError: If the file cannot be written
        """
        content = json.dumps(self.to_dict(), indent=2, ensure_ascii=False, default=_json_default)

        temp_path = f"{file_path}.tmp"
        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                f.write(content)
            os.replace(temp_path, file_path)
        except IOError as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise IOError(f"Failed to save template to {file_path}: {str(e)}")

    def __str__(self) -> str:
        return f"ArmTemplate(workspace='{self.workspace_name}', resources={len(self.resources)})"
