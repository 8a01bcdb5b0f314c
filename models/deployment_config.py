"""
Deployment Configuration Model
=============================

Typed view over a customer's parsed configuration file. The raw file looks
like this:

    Settings:
      CustomerName: contoso
      Location: westeurope
      Workspace-Name: contoso-sentinel
      Automation-Resource-Group: contoso-automation
      Connectors:
        - id: AzureActiveDirectory
          enabled: true
    ExcludeRules:
      - 0b9ae89d-8cad-461c-808f-0494f70ad5c4
    ContentLinks:
      RunPlaybook:
        a1b2c3d4-0000-0000-0000-000000000001: Notify-SOC

`parse_deployment_config` validates that shape and raises ConfigError for any
missing required piece. The resulting object is read-only for the duration of
a build.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from config import REQUIRED_SETTINGS
from models.errors import ConfigError


@dataclass(frozen=True)
class ConnectorSetting:
    """A data connector and whether it is enabled for the customer."""

    id: str
    enabled: bool = False


@dataclass(frozen=True)
class DeploymentConfig:
    """
    Parsed customer settings.

    Attributes:
        customer_name: Customer identifier, also used as playbook name prefix
        location: Azure region of the workspace
        workspace_name: Log Analytics workspace name
        automation_resource_group: Resource group holding the customer's playbooks
        exclude_rules: Content ids never deployed for this customer
        connectors: Data connectors and their enabled state
        content_links: Kind name -> rule id -> playbook name
    """

    customer_name: str
    location: str
    workspace_name: str
    automation_resource_group: str
    exclude_rules: List[str] = field(default_factory=list)
    connectors: List[ConnectorSetting] = field(default_factory=list)
    content_links: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def enabled_connector_ids(self) -> Set[str]:
        """Return the ids of every connector flagged as enabled."""
        return {c.id for c in self.connectors if c.enabled}

    def playbook_for(self, kind: Any, rule_id: str) -> Optional[str]:
        """
        Look up the playbook linked to a rule.

        Args:
            kind: ContentKind or kind name (e.g. "RunPlaybook")
            rule_id: The automation rule's id

        Returns:
            Optional[str]: Playbook logical name, or None when not linked
        """
        links = self.content_links.get(str(kind)) or {}
        playbook = links.get(str(rule_id).strip())
        if playbook is None or not str(playbook).strip():
            return None
        return str(playbook).strip()


def parse_deployment_config(raw: Any, source: Optional[str] = None,
                            shared_links: Optional[Dict[str, Any]] = None) -> DeploymentConfig:
    """
    Validate a parsed configuration document and build a DeploymentConfig.

    Args:
        raw: Parsed YAML/JSON configuration document
        source: Where the document came from, for error messages
        shared_links: Optional ContentLinks from the shared settings; customer
            links take precedence per rule id

    Returns:
        DeploymentConfig: Validated configuration

    Raises:
        ConfigError: If Settings, Connectors or a required setting is missing
    """
    if not isinstance(raw, dict):
        raise ConfigError("Configuration document is not a mapping", source)

    settings = raw.get('Settings')
    if not isinstance(settings, dict):
        raise ConfigError("Configuration is missing the 'Settings' section", source)

    if 'Connectors' not in settings or settings['Connectors'] is None:
        raise ConfigError("Configuration is missing 'Settings.Connectors'", source)

    missing = [key for key in REQUIRED_SETTINGS
               if settings.get(key) is None or not str(settings.get(key)).strip()]
    if missing:
        raise ConfigError(f"Configuration is missing required settings: {', '.join(missing)}", source)

    connectors = _parse_connectors(settings['Connectors'], source)

    exclude_rules = raw.get('ExcludeRules') or []
    if isinstance(exclude_rules, str):
        exclude_rules = [exclude_rules]
    if not isinstance(exclude_rules, list):
        raise ConfigError("'ExcludeRules' must be a list of content ids", source)

    content_links = merge_content_links(shared_links, raw.get('ContentLinks'), source)

    return DeploymentConfig(
        customer_name=str(settings['CustomerName']).strip(),
        location=str(settings['Location']).strip(),
        workspace_name=str(settings['Workspace-Name']).strip(),
        automation_resource_group=str(settings['Automation-Resource-Group']).strip(),
        exclude_rules=[str(rule_id).strip() for rule_id in exclude_rules if rule_id is not None],
        connectors=connectors,
        content_links=content_links,
    )


def merge_content_links(shared: Any, customer: Any,
                        source: Optional[str] = None) -> Dict[str, Dict[str, str]]:
    """
    Merge shared and customer ContentLinks; customer entries win per rule id.

    Raises:
        ConfigError: If either value is present but not a mapping of mappings
    """
    merged: Dict[str, Dict[str, str]] = {}
    for links in (shared, customer):
        if not links:
            continue
        if not isinstance(links, dict):
            raise ConfigError("'ContentLinks' must be a mapping of kind to rule links", source)
        for kind, rule_links in links.items():
            if rule_links is None:
                continue
            if not isinstance(rule_links, dict):
                raise ConfigError(f"'ContentLinks.{kind}' must map rule ids to playbook names", source)
            target = merged.setdefault(str(kind), {})
            for rule_id, playbook in rule_links.items():
                target[str(rule_id).strip()] = str(playbook).strip()
    return merged


def _parse_connectors(raw_connectors: Any, source: Optional[str]) -> List[ConnectorSetting]:
    if not isinstance(raw_connectors, list):
        raise ConfigError("'Settings.Connectors' must be a list", source)

    connectors = []
    for entry in raw_connectors:
        if not isinstance(entry, dict) or not str(entry.get('id') or '').strip():
            raise ConfigError(f"Connector entry without an id: {entry!r}", source)
        connectors.append(ConnectorSetting(
            id=str(entry['id']).strip(),
            enabled=_as_bool(entry.get('enabled', False)),
        ))
    return connectors


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', 'yes', '1')
    return bool(value)
