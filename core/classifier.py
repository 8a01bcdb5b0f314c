"""
Document Classifier
==================

Most content documents carry no type tag, so their kind is inferred from their
shape. Each kind has a structural signature (a set of keys that must be
present, plus a few values that must not be blank) and the signatures are
tested in a fixed order, the first match winning.

The order is the load-bearing part. Several signatures are relaxed versions
of others: a hunting query needs only description/id/name/query/tactics,
which every scheduled analytics rule also has. Testing the specific
signatures first is what keeps a Scheduled rule from being deployed as a
hunting query, so SIGNATURES must not be reordered.
"""

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from config import WORKBOOK_VERSION_PATTERN
from core.field_extractor import is_blank
from models.content_kind import ContentKind, BUILT_IN_RULE_KINDS

logger = logging.getLogger(__name__)

_ANALYTICS_KINDS = {ContentKind.SCHEDULED.value, ContentKind.NRT.value}
_BUILT_IN_KINDS = {kind.value for kind in BUILT_IN_RULE_KINDS}


def _has(doc: Dict[str, Any], *keys: str) -> bool:
    return all(key in doc for key in keys)


def _not_blank(doc: Dict[str, Any], *keys: str) -> bool:
    return all(key in doc and not is_blank(doc[key]) for key in keys)


def _nested(doc: Dict[str, Any], key: str, sub_key: str) -> Any:
    parent = doc.get(key)
    if isinstance(parent, dict):
        return parent.get(sub_key)
    return None


def _has_nested(doc: Dict[str, Any], key: str, sub_key: str) -> bool:
    parent = doc.get(key)
    return isinstance(parent, dict) and sub_key in parent


def _kind_of(doc: Dict[str, Any]) -> str:
    kind = doc.get('kind')
    return kind.strip() if isinstance(kind, str) else ""


def _match_workbook(doc: Dict[str, Any]) -> Optional[ContentKind]:
    version = doc.get('version')
    if (isinstance(version, str) and WORKBOOK_VERSION_PATTERN.match(version.strip())
            and 'items' in doc and _not_blank(doc, '$schema')):
        return ContentKind.WORKBOOK
    return None


def _match_run_playbook(doc: Dict[str, Any]) -> Optional[ContentKind]:
    # Locally defined automation-rule shape, not an official schema
    if not _has(doc, 'id', 'displayName', 'order', 'triggeringLogic', 'actions'):
        return None
    actions = doc['actions']
    if not isinstance(actions, list) or len(actions) != 1:
        return None
    action = actions[0]
    if not isinstance(action, dict) or action.get('actionType') != ContentKind.RUN_PLAYBOOK.value:
        return None
    if not _not_blank(doc, 'id', 'displayName'):
        return None
    return ContentKind.RUN_PLAYBOOK


def _match_connector(doc: Dict[str, Any]) -> Optional[ContentKind]:
    if (_has(doc, 'connectivityCriterias', 'dataTypes', 'descriptionMarkdown',
             'graphQueries', 'id', 'publisher', 'title')
            and _not_blank(doc, 'id', 'title')):
        return ContentKind.CONNECTOR
    return None


def _match_analytics_rule(doc: Dict[str, Any]) -> Optional[ContentKind]:
    kind = _kind_of(doc)
    if (kind in _ANALYTICS_KINDS
            and _has(doc, 'description', 'id', 'name', 'query',
                     'relevantTechniques', 'severity', 'tactics')
            and _not_blank(doc, 'id', 'name')):
        return ContentKind(kind)
    return None


def _match_incident_creation(doc: Dict[str, Any]) -> Optional[ContentKind]:
    if (_kind_of(doc) == ContentKind.MICROSOFT_SECURITY_INCIDENT_CREATION.value
            and _not_blank(doc, 'id', 'name', 'productFilter')):
        return ContentKind.MICROSOFT_SECURITY_INCIDENT_CREATION
    return None


def _match_built_in_rule(doc: Dict[str, Any]) -> Optional[ContentKind]:
    kind = _kind_of(doc)
    if kind in _BUILT_IN_KINDS and _not_blank(doc, 'id', 'name'):
        return ContentKind(kind)
    return None


def _match_parser(doc: Dict[str, Any]) -> Optional[ContentKind]:
    if (_has(doc, 'Category', 'FunctionAlias', 'FunctionName', 'FunctionQuery', 'id')
            and _not_blank(doc, 'FunctionName', 'id')):
        return ContentKind.PARSER
    return None


def _match_asim(doc: Dict[str, Any]) -> Optional[ContentKind]:
    if (_has_nested(doc, 'Normalization', 'Schema')
            and _has_nested(doc, 'Parser', 'Title')
            and _has(doc, 'ParserName', 'ParserQuery')
            and not is_blank(_nested(doc, 'Parser', 'Title'))
            and _not_blank(doc, 'ParserName')):
        return ContentKind.ASIM
    return None


def _match_hunt(doc: Dict[str, Any]) -> Optional[ContentKind]:
    if (_has(doc, 'description', 'id', 'name', 'query', 'tactics')
            and _not_blank(doc, 'id', 'name')):
        return ContentKind.HUNT
    return None


# Most specific first. Do not reorder: see the module docstring.
SIGNATURES: Tuple[Tuple[str, Callable[[Dict[str, Any]], Optional[ContentKind]]], ...] = (
    ('workbook', _match_workbook),
    ('run-playbook', _match_run_playbook),
    ('connector', _match_connector),
    ('scheduled-or-nrt', _match_analytics_rule),
    ('incident-creation', _match_incident_creation),
    ('built-in-rule', _match_built_in_rule),
    ('parser', _match_parser),
    ('asim', _match_asim),
    ('hunt', _match_hunt),
)


def classify(doc: Any) -> ContentKind:
    """
    Determine the content kind of a parsed document.

    Never raises: empty, null or non-mapping input and documents matching no
    signature are all reported as ContentKind.UNKNOWN.

    Args:
        doc: Parsed YAML/JSON document

    Returns:
        ContentKind: The first matching kind, or UNKNOWN
    """
    if not isinstance(doc, dict) or not doc:
        return ContentKind.UNKNOWN

    for name, matcher in SIGNATURES:
        try:
            kind = matcher(doc)
        except (TypeError, ValueError, AttributeError) as e:
            # Unhashable or oddly typed values just fail this signature
            logger.debug(f"Signature '{name}' rejected document: {str(e)}")
            continue
        if kind is not None:
            return kind

    return ContentKind.UNKNOWN
