"""
Resource Builder
===============

Wraps a mapped property body in the ARM envelope of its resource family:

- ASIM / Hunt / Parser        -> workspace saved search
- RunPlaybook (and reserved)  -> Sentinel automation rule, workspace-scoped
- Scheduled / NRT / Fusion /
  MLBehaviorAnalytics /
  ThreatIntelligence /
  MicrosoftSecurityIncidentCreation -> Sentinel alert rule with a `kind`

The resource name doubles as the template-wide identity used for
de-duplication, so it is computed here from the kind-specific name field.
"""

import logging
from typing import Any, Dict, Optional

from config import (
    SAVED_SEARCH_TYPE,
    SAVED_SEARCH_API_VERSION,
    ALERT_RULE_TYPE,
    ALERT_RULE_API_VERSION,
    ALERT_RULE_PROVIDER_SEGMENT,
    AUTOMATION_RULE_TYPE,
    AUTOMATION_RULE_API_VERSION,
    WORKSPACE_PARAMETER,
)
from core.field_extractor import get_value
from generators.property_mapper import build_properties
from models.arm_template import ArmResource, quote_literal
from models.content_kind import (
    ContentKind,
    SAVED_SEARCH_KINDS,
    AUTOMATION_RULE_KINDS,
    ALERT_RULE_KINDS,
)
from models.deployment_config import DeploymentConfig
from models.diagnostics import Diagnostics
from models.errors import UnsupportedKindError, MappingError

logger = logging.getLogger(__name__)

# Field holding the saved-search name for each saved-search kind
_SAVED_SEARCH_NAME_FIELDS = {
    ContentKind.ASIM: 'ParserName',
    ContentKind.PARSER: 'FunctionName',
    ContentKind.HUNT: 'id',
}

WORKSPACE_SCOPE = f"[concat('Microsoft.OperationalInsights/workspaces/', parameters('{WORKSPACE_PARAMETER}'))]"


def saved_search_name(name: str) -> str:
    return f"[concat(parameters('{WORKSPACE_PARAMETER}'), '/{quote_literal(name)}')]"


def alert_rule_name(rule_id: str) -> str:
    return (f"[concat(parameters('{WORKSPACE_PARAMETER}'), "
            f"'/{ALERT_RULE_PROVIDER_SEGMENT}/{quote_literal(rule_id)}')]")


def resource_name(doc: Dict[str, Any], kind: ContentKind) -> str:
    """
    Compute the resource name a document will be deployed under.

    Raises:
        UnsupportedKindError: If the kind has no resource family
        MappingError: If the naming field is empty
    """
    if kind in SAVED_SEARCH_KINDS:
        field_name = _SAVED_SEARCH_NAME_FIELDS[kind]
        name = str(get_value(doc, field_name, clean=True))
        if not name:
            raise MappingError(f"{kind} document has no '{field_name}' to name its resource")
        return saved_search_name(name)

    rule_id = str(get_value(doc, 'id', clean=True))
    if kind in AUTOMATION_RULE_KINDS or kind in ALERT_RULE_KINDS:
        if not rule_id:
            raise MappingError(f"{kind} document has no 'id' to name its resource")
        if kind in AUTOMATION_RULE_KINDS:
            return rule_id
        return alert_rule_name(rule_id)

    raise UnsupportedKindError(kind, rule_id or None)


def build_resource(doc: Dict[str, Any], kind: ContentKind, config: DeploymentConfig,
                   diagnostics: Optional[Diagnostics] = None) -> ArmResource:
    """
    Build the complete ARM resource for a classified document.

    Args:
        doc: Parsed content document
        kind: Kind returned by the classifier
        config: Customer deployment configuration
        diagnostics: Accumulator for non-fatal notes

    Returns:
        ArmResource: Envelope plus property body

    Raises:
        UnsupportedKindError: For kinds outside the three resource families
        MappingError: For documents that cannot be mapped
    """
    # The envelope check comes first so unsupported kinds never reach a mapper
    name = resource_name(doc, kind)
    try:
        properties = build_properties(doc, kind, config, diagnostics)
    except (TypeError, ValueError, AttributeError) as e:
        # Badly typed nested values fail this document only
        raise MappingError(f"Malformed {kind} document: {str(e)}",
                           str(get_value(doc, 'id')) or None) from e

    if kind in SAVED_SEARCH_KINDS:
        resource = ArmResource(
            type=SAVED_SEARCH_TYPE,
            api_version=SAVED_SEARCH_API_VERSION,
            name=name,
            properties=properties,
        )
    elif kind in AUTOMATION_RULE_KINDS:
        resource = ArmResource(
            type=AUTOMATION_RULE_TYPE,
            api_version=AUTOMATION_RULE_API_VERSION,
            name=name,
            scope=WORKSPACE_SCOPE,
            properties=properties,
        )
    else:
        resource = ArmResource(
            type=ALERT_RULE_TYPE,
            api_version=ALERT_RULE_API_VERSION,
            name=name,
            kind=kind.value,
            properties=properties,
        )

    logger.debug(f"Built {resource}")
    return resource
