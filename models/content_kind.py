"""
Content Kind Catalog
===================

Security content arrives without a universal type tag, so every document is
classified into one of the kinds below before it is mapped. The catalog is
closed: supporting a new kind means adding a classifier signature and a mapper
branch, not configuration.

The enum values are the literal strings used both in source documents (the
`kind` field of analytics rules) and in the `kind` property of alert-rule
resources, which is why `ContentKind("Scheduled")` works directly.
"""

from enum import Enum
from typing import FrozenSet


class ContentKind(Enum):
    """Semantic category of a security-content document."""

    CONNECTOR = "Connector"
    SCHEDULED = "Scheduled"
    NRT = "NRT"
    MICROSOFT_SECURITY_INCIDENT_CREATION = "MicrosoftSecurityIncidentCreation"
    FUSION = "Fusion"
    ML_BEHAVIOR_ANALYTICS = "MLBehaviorAnalytics"
    THREAT_INTELLIGENCE = "ThreatIntelligence"
    PARSER = "Parser"
    ASIM = "ASIM"
    HUNT = "Hunt"
    RUN_PLAYBOOK = "RunPlaybook"
    WORKBOOK = "Workbook"
    UNKNOWN = "Unknown"

    # Reserved automation-rule kinds; the classifier does not detect them yet
    ADD_INCIDENT_TASK = "AddIncidentTask"
    MODIFY_PROPERTIES = "ModifyProperties"

    def __str__(self) -> str:
        return self.value


# Kinds deployed as workspace saved searches (KQL functions and hunting queries)
SAVED_SEARCH_KINDS: FrozenSet[ContentKind] = frozenset({
    ContentKind.ASIM,
    ContentKind.HUNT,
    ContentKind.PARSER,
})

# Kinds deployed as Sentinel automation rules
AUTOMATION_RULE_KINDS: FrozenSet[ContentKind] = frozenset({
    ContentKind.RUN_PLAYBOOK,
    ContentKind.ADD_INCIDENT_TASK,
    ContentKind.MODIFY_PROPERTIES,
})

# Kinds deployed as Sentinel alert rules
ALERT_RULE_KINDS: FrozenSet[ContentKind] = frozenset({
    ContentKind.FUSION,
    ContentKind.MICROSOFT_SECURITY_INCIDENT_CREATION,
    ContentKind.ML_BEHAVIOR_ANALYTICS,
    ContentKind.NRT,
    ContentKind.SCHEDULED,
    ContentKind.THREAT_INTELLIGENCE,
})

# Alert-rule kinds whose body is only a template reference plus an enabled flag
BUILT_IN_RULE_KINDS: FrozenSet[ContentKind] = frozenset({
    ContentKind.FUSION,
    ContentKind.ML_BEHAVIOR_ANALYTICS,
    ContentKind.THREAT_INTELLIGENCE,
})
