"""
Property Mapper
==============

Projects a classified content document into the exact property body its ARM
resource type expects. There is one mapping function per content kind, and
`build_properties` dispatches on the ContentKind the classifier produced.

Every mapping reads the source document through the field extractor (so a
missing optional field is simply left out) and never mutates it; nested values
that need rewriting (incidentConfiguration, triggeringLogic) are deep-copied
first.

Conditions worth a note but not worth failing the document (an operator that
fell back to GreaterThan, an entity mapping that had to be wrapped in a list)
are recorded on the Diagnostics accumulator passed in by the caller.
"""

import copy
import logging
from typing import Any, Callable, Dict, Optional

from config import (
    ASIM_CATEGORY,
    HUNTING_CATEGORY,
    SAVED_SEARCH_VERSION,
    DEFAULT_SEVERITY,
    DEFAULT_SUPPRESSION_DURATION,
    DEFAULT_TEMPLATE_VERSION,
    LOGIC_APP_TYPE,
)
from core.field_extractor import get_value, get_tag, build_tags, is_blank
from core.normalizers import (
    normalize_duration,
    normalize_operator,
    is_known_operator,
    is_raw_duration,
    split_techniques,
    format_function_parameters,
)
from models.arm_template import quote_literal
from models.content_kind import ContentKind
from models.deployment_config import DeploymentConfig
from models.diagnostics import Diagnostics
from models.errors import UnsupportedKindError, MissingContentLinkError

logger = logging.getLogger(__name__)

Mapper = Callable[[Dict[str, Any], DeploymentConfig, Diagnostics], Dict[str, Any]]

# Optional analytics-rule fields copied through untouched
_PASSTHROUGH_RULE_FIELDS = (
    'alertRuleTemplateName',
    'customDetails',
    'alertDetailsOverride',
    'eventGroupingSettings',
)

# Fields that the deployment schema requires to be lists
_LIST_RULE_FIELDS = ('entityMappings', 'sentinelEntitiesMappings')

_INCIDENT_FILTER_FIELDS = (
    'displayNamesFilter',
    'displayNamesExcludeFilter',
    'severitiesFilter',
)


def _source(doc: Dict[str, Any]) -> str:
    return str(get_value(doc, 'id') or get_value(doc, 'ParserName')
               or get_value(doc, 'FunctionName') or '<unknown>')


def _enabled(doc: Dict[str, Any]) -> bool:
    # Only an explicit false disables a rule
    value = doc.get('enabled', True)
    if isinstance(value, str):
        return value.strip().lower() != 'false'
    return value is not False


def _saved_search_body(category: Any, display_name: Any, query: Any) -> Dict[str, Any]:
    return {
        "category": category,
        "displayName": display_name,
        "query": query,
        "version": SAVED_SEARCH_VERSION,
    }


def map_asim(doc: Dict[str, Any], config: DeploymentConfig,
             diagnostics: Diagnostics) -> Dict[str, Any]:
    """ASIM parser -> saved search exposing the parser as a KQL function."""
    properties = _saved_search_body(
        ASIM_CATEGORY,
        get_value(doc, 'Parser', 'Title', clean=True),
        get_value(doc, 'ParserQuery'),
    )
    properties["functionAlias"] = get_value(doc, 'ParserName', clean=True)

    parameters = format_function_parameters(doc.get('ParserParams'))
    if parameters:
        properties["functionParameters"] = parameters

    properties["tags"] = build_tags(
        get_tag(doc, 'Description', tag_name='description', clean=True),
        get_tag(doc, 'Parser', 'Version', tag_name='version', clean=True),
        get_tag(doc, 'Product', 'Name', tag_name='product', clean=True),
        get_tag(doc, 'Normalization', 'Schema', tag_name='schema', clean=True),
        get_tag(doc, 'Normalization', 'Version', tag_name='schemaVersion', clean=True),
    )
    return properties


def map_hunt(doc: Dict[str, Any], config: DeploymentConfig,
             diagnostics: Diagnostics) -> Dict[str, Any]:
    """Hunting query -> saved search in the hunting category."""
    properties = _saved_search_body(
        HUNTING_CATEGORY,
        get_value(doc, 'name', clean=True),
        get_value(doc, 'query'),
    )
    properties["tags"] = build_tags(
        get_tag(doc, 'description', clean=True),
        get_tag(doc, 'id'),
        get_tag(doc, 'severity'),
        get_tag(doc, 'version'),
        get_tag(doc, 'tactics'),
        get_tag(doc, 'relevantTechniques', tag_name='techniques'),
    )
    return properties


def map_parser(doc: Dict[str, Any], config: DeploymentConfig,
               diagnostics: Diagnostics) -> Dict[str, Any]:
    """KQL function definition -> saved search with a function alias."""
    properties = _saved_search_body(
        get_value(doc, 'Category', clean=True),
        get_value(doc, 'FunctionName', clean=True),
        get_value(doc, 'FunctionQuery'),
    )
    properties["functionAlias"] = get_value(doc, 'FunctionAlias', clean=True)

    parameters = format_function_parameters(doc.get('FunctionParams'))
    if parameters:
        properties["functionParameters"] = parameters

    properties["tags"] = build_tags(
        get_tag(doc, 'Version', tag_name='version', clean=True),
        get_tag(doc, 'id'),
        get_tag(doc, 'Description', tag_name='description', clean=True),
    )
    return properties


def map_built_in_rule(doc: Dict[str, Any], config: DeploymentConfig,
                      diagnostics: Diagnostics) -> Dict[str, Any]:
    """Fusion / MLBehaviorAnalytics / ThreatIntelligence -> template reference."""
    properties: Dict[str, Any] = {
        "alertRuleTemplateName": get_value(doc, 'alertRuleTemplateName') or get_value(doc, 'id'),
        "enabled": _enabled(doc),
    }
    for optional in ('scenarioExclusionPatterns', 'sourceSettings'):
        if optional in doc and doc[optional] is not None:
            properties[optional] = copy.deepcopy(doc[optional])
    return properties


def map_incident_creation(doc: Dict[str, Any], config: DeploymentConfig,
                          diagnostics: Diagnostics) -> Dict[str, Any]:
    """MicrosoftSecurityIncidentCreation rule -> product-filtered incident rule."""
    properties: Dict[str, Any] = {}

    template_name = get_value(doc, 'alertRuleTemplateName')
    if template_name:
        properties["alertRuleTemplateName"] = template_name

    properties.update({
        "description": get_value(doc, 'description'),
        "displayName": get_value(doc, 'name', clean=True),
        "enabled": _enabled(doc),
        "productFilter": get_value(doc, 'productFilter', clean=True),
    })

    for filter_field in _INCIDENT_FILTER_FIELDS:
        value = doc.get(filter_field)
        if value is None:
            continue
        properties[filter_field] = list(value) if isinstance(value, (list, tuple)) else [value]
    return properties


def map_analytics_rule(doc: Dict[str, Any], config: DeploymentConfig,
                       diagnostics: Diagnostics) -> Dict[str, Any]:
    """
    Scheduled / NRT analytics rule -> alert-rule body.

    Required fields get defaults (severity Medium, suppression PT1H, enabled
    unless explicitly false, template version 1.0.0); optional fields are
    copied with the coercions the schema needs: ISO durations, canonical
    trigger operator, list-wrapped entity mappings, and relevantTechniques
    split into techniques and subTechniques.
    """
    source = _source(doc)

    suppression = get_value(doc, 'suppressionDuration')
    properties: Dict[str, Any] = {
        "displayName": get_value(doc, 'name', clean=True),
        "description": get_value(doc, 'description'),
        "query": get_value(doc, 'query'),
        "severity": get_value(doc, 'severity', clean=True) or DEFAULT_SEVERITY,
        "enabled": _enabled(doc),
        "suppressionDuration": normalize_duration(suppression) if suppression else DEFAULT_SUPPRESSION_DURATION,
        "suppressionEnabled": doc.get('suppressionEnabled') is True,
        "tactics": _clean_tactics(doc.get('tactics')),
        "templateVersion": str(get_value(doc, 'templateVersion') or get_value(doc, 'version')
                               or DEFAULT_TEMPLATE_VERSION),
    }

    for field_name in ('queryFrequency', 'queryPeriod'):
        value = get_value(doc, field_name)
        if value != "":
            properties[field_name] = normalize_duration(value)

    if 'triggerOperator' in doc:
        raw_operator = doc['triggerOperator']
        if not is_known_operator(raw_operator):
            diagnostics.warning('operator-defaulted',
                                f"Unrecognised triggerOperator {raw_operator!r} treated as GreaterThan",
                                source)
        properties["triggerOperator"] = normalize_operator(raw_operator)

    if 'triggerThreshold' in doc and doc['triggerThreshold'] is not None:
        properties["triggerThreshold"] = doc['triggerThreshold']

    for field_name in _PASSTHROUGH_RULE_FIELDS:
        value = doc.get(field_name)
        if value is not None and value != "":
            properties[field_name] = copy.deepcopy(value)

    for field_name in _LIST_RULE_FIELDS:
        value = doc.get(field_name)
        if value is None:
            continue
        if not isinstance(value, list):
            diagnostics.warning('wrapped-in-list', f"'{field_name}' was not a list and has been wrapped", source)
            value = [value]
        properties[field_name] = copy.deepcopy(value)

    incident_configuration = doc.get('incidentConfiguration')
    if isinstance(incident_configuration, dict):
        properties["incidentConfiguration"] = _normalize_incident_configuration(incident_configuration)

    techniques, sub_techniques = split_techniques(doc.get('relevantTechniques'))
    if techniques:
        properties["techniques"] = techniques
    if sub_techniques:
        properties["subTechniques"] = sub_techniques

    return properties


def map_run_playbook(doc: Dict[str, Any], config: DeploymentConfig,
                     diagnostics: Diagnostics) -> Dict[str, Any]:
    """
    Automation rule bound to a playbook.

    The playbook is looked up in ContentLinks.RunPlaybook by rule id and
    referenced through a resourceId() expression in the customer's automation
    resource group, following the "<customer>-<playbook>" naming convention.

    Raises:
        MissingContentLinkError: If the rule has no linked playbook (fatal)
    """
    rule_id = str(get_value(doc, 'id'))
    playbook = config.playbook_for(ContentKind.RUN_PLAYBOOK, rule_id)
    if playbook is None:
        raise MissingContentLinkError(ContentKind.RUN_PLAYBOOK, rule_id, _source(doc))

    workflow_name = quote_literal(f"{config.customer_name}-{playbook}")
    logic_app_id = (f"[resourceId('{quote_literal(config.automation_resource_group)}', "
                    f"'{LOGIC_APP_TYPE}', '{workflow_name}')]")

    action = doc['actions'][0]
    action_order = action.get('order', 1) if isinstance(action, dict) else 1

    return {
        "displayName": get_value(doc, 'displayName', clean=True),
        "order": doc.get('order'),
        "triggeringLogic": copy.deepcopy(doc.get('triggeringLogic')),
        "actions": [
            {
                "order": action_order,
                "actionType": ContentKind.RUN_PLAYBOOK.value,
                "actionConfiguration": {
                    "tenantId": "[subscription().tenantId]",
                    "logicAppResourceId": logic_app_id,
                },
            }
        ],
    }


def map_fallback(doc: Dict[str, Any], config: DeploymentConfig,
                 diagnostics: Diagnostics) -> Dict[str, Any]:
    return {
        "alertRuleTemplateName": get_value(doc, 'id'),
        "enabled": _enabled(doc),
    }


def _unsupported(kind: ContentKind) -> Mapper:
    def mapper(doc: Dict[str, Any], config: DeploymentConfig,
               diagnostics: Diagnostics) -> Dict[str, Any]:
        raise UnsupportedKindError(kind, _source(doc))
    return mapper


MAPPERS: Dict[ContentKind, Mapper] = {
    ContentKind.ASIM: map_asim,
    ContentKind.HUNT: map_hunt,
    ContentKind.PARSER: map_parser,
    ContentKind.FUSION: map_built_in_rule,
    ContentKind.ML_BEHAVIOR_ANALYTICS: map_built_in_rule,
    ContentKind.THREAT_INTELLIGENCE: map_built_in_rule,
    ContentKind.MICROSOFT_SECURITY_INCIDENT_CREATION: map_incident_creation,
    ContentKind.SCHEDULED: map_analytics_rule,
    ContentKind.NRT: map_analytics_rule,
    ContentKind.RUN_PLAYBOOK: map_run_playbook,
    ContentKind.CONNECTOR: _unsupported(ContentKind.CONNECTOR),
    ContentKind.ADD_INCIDENT_TASK: _unsupported(ContentKind.ADD_INCIDENT_TASK),
    ContentKind.MODIFY_PROPERTIES: _unsupported(ContentKind.MODIFY_PROPERTIES),
}


def build_properties(doc: Dict[str, Any], kind: ContentKind, config: DeploymentConfig,
                     diagnostics: Optional[Diagnostics] = None) -> Dict[str, Any]:
    """
    Build the resource property body for a classified document.

    Args:
        doc: Parsed content document (not modified)
        kind: Kind returned by the classifier
        config: Customer deployment configuration
        diagnostics: Accumulator for non-fatal notes (a private one is used if None)

    Returns:
        Dict[str, Any]: Property body for the kind's resource type

    Raises:
        UnsupportedKindError: For Connector and the reserved automation kinds
        MissingContentLinkError: For a RunPlaybook rule without a linked playbook
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    mapper = MAPPERS.get(kind, map_fallback)
    logger.debug(f"Mapping {kind} document '{_source(doc)}' with {mapper.__name__}")
    return mapper(doc, config, diagnostics)


def _clean_tactics(tactics: Any) -> list:
    # Tactic names may not contain spaces ("Initial Access" -> "InitialAccess")
    if tactics is None or tactics == "":
        return []
    if isinstance(tactics, str):
        tactics = tactics.split(',')
    elif not isinstance(tactics, (list, tuple)):
        tactics = [tactics]
    cleaned = []
    for tactic in tactics:
        if is_blank(tactic):
            continue
        name = "".join(str(tactic).split())
        if name not in cleaned:
            cleaned.append(name)
    return cleaned


def _normalize_incident_configuration(incident_configuration: Dict[str, Any]) -> Dict[str, Any]:
    normalized = copy.deepcopy(incident_configuration)
    grouping = normalized.get('groupingConfiguration')
    if isinstance(grouping, dict):
        lookback = grouping.get('lookbackDuration')
        if is_raw_duration(lookback):
            grouping['lookbackDuration'] = normalize_duration(lookback)
    return normalized
