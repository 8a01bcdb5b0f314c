import pytest
import yaml

from models.deployment_config import DeploymentConfig, ConnectorSetting


SCHEDULED_RULE = """
id: 11111111-1111-1111-1111-111111111111
name: Suspicious sign-in burst
description: |
  Detects bursts of failed sign-ins from a single account.
severity: High
kind: Scheduled
requiredDataConnectors:
  - connectorId: AzureActiveDirectory
    dataTypes:
      - SigninLogs
queryFrequency: 1h
queryPeriod: 14d
triggerOperator: gt
triggerThreshold: 5
tactics:
  - CredentialAccess
  - Initial Access
relevantTechniques:
  - T1110
  - T1078.004
query: |
  SigninLogs
  | where ResultType != 0
  | summarize count() by UserPrincipalName
entityMappings:
  entityType: Account
  fieldMappings:
    - identifier: FullName
      columnName: UserPrincipalName
incidentConfiguration:
  createIncident: true
  groupingConfiguration:
    enabled: true
    lookbackDuration: 5h
    matchingMethod: AllEntities
version: 1.0.2
"""

NRT_RULE = """
id: 22222222-2222-2222-2222-222222222222
name: Mailbox forwarding rule created
description: A forwarding rule was added to a mailbox.
severity: Medium
kind: NRT
tactics:
  - Collection
relevantTechniques:
  - T1114.003
query: |
  OfficeActivity | where Operation == "New-InboxRule"
"""

HUNTING_QUERY = """
id: 33333333-3333-3333-3333-333333333333
name: Rare process launched by Office
description: |
  'Office applications spawning uncommon child processes.'
tactics:
  - Execution
relevantTechniques:
  - T1204.002
query: |
  DeviceProcessEvents | where InitiatingProcessFileName in~ ("winword.exe", "excel.exe")
version: 1.0.0
"""

KQL_FUNCTION = """
id: 44444444-4444-4444-4444-444444444444
Category: Parsers
FunctionName: ContosoFirewall
FunctionAlias: ContosoFirewall
FunctionQuery: |
  CommonSecurityLog | where DeviceVendor == "Contoso"
FunctionParams:
  - Name: starttime
    Type: datetime
    Default: datetime(null)
  - Name: action
    Type: string
    Default: allow
Version: 1.1.0
Description: Normalises Contoso firewall events.
"""

ASIM_PARSER = """
Parser:
  Title: Process Create Event ASIM parser for Contoso EDR
  Version: '0.2.0'
  LastUpdated: Mar 1, 2024
Product:
  Name: Contoso EDR
Normalization:
  Schema: ProcessEvent
  Version: '0.1.4'
Description: |
  This ASIM parser supports normalizing Contoso EDR logs to the ProcessEvent schema.
ParserName: vimProcessCreateContosoEDR
ParserParams:
  - Name: starttime
    Type: datetime
    Default: datetime(null)
  - Name: disabled
    Type: bool
    Default: false
ParserQuery: |
  ContosoEDR_CL | where EventType == "ProcessCreate"
"""

RUN_PLAYBOOK_RULE = """
id: 55555555-5555-5555-5555-555555555555
displayName: Notify SOC on high severity incidents
order: 1
triggeringLogic:
  isEnabled: true
  triggersOn: Incidents
  triggersWhen: Created
  conditions:
    - conditionType: Property
      conditionProperties:
        propertyName: IncidentSeverity
        operator: Equals
        propertyValues:
          - High
actions:
  - order: 1
    actionType: RunPlaybook
"""

FUSION_RULE = """
id: f71aba3d-28fb-450b-b192-4e76a83015c8
name: Advanced Multistage Attack Detection
kind: Fusion
enabled: true
"""

INCIDENT_CREATION_RULE = """
id: 66666666-6666-6666-6666-666666666666
name: Create incidents from Defender for Cloud
description: Creates incidents from Defender for Cloud alerts.
kind: MicrosoftSecurityIncidentCreation
productFilter: Azure Security Center
severitiesFilter:
  - High
  - Medium
"""

CONNECTOR_DEFINITION = """
id: ContosoConnector
title: Contoso Firewall
publisher: Contoso
descriptionMarkdown: Streams Contoso firewall logs.
graphQueries: []
dataTypes: []
connectivityCriterias: []
"""

WORKBOOK = """
version: Notebook/1.0
items: []
$schema: https://github.com/Microsoft/Application-Insights-Workbooks/blob/master/schema/workbook.json
"""


def load(text):
    """Parse a YAML fixture."""
    return yaml.safe_load(text)


@pytest.fixture
def scheduled_rule():
    return load(SCHEDULED_RULE)


@pytest.fixture
def nrt_rule():
    return load(NRT_RULE)


@pytest.fixture
def hunting_query():
    return load(HUNTING_QUERY)


@pytest.fixture
def kql_function():
    return load(KQL_FUNCTION)


@pytest.fixture
def asim_parser():
    return load(ASIM_PARSER)


@pytest.fixture
def run_playbook_rule():
    return load(RUN_PLAYBOOK_RULE)


@pytest.fixture
def fusion_rule():
    return load(FUSION_RULE)


@pytest.fixture
def incident_creation_rule():
    return load(INCIDENT_CREATION_RULE)


@pytest.fixture
def connector_definition():
    return load(CONNECTOR_DEFINITION)


@pytest.fixture
def workbook():
    return load(WORKBOOK)


@pytest.fixture
def deployment_config():
    return DeploymentConfig(
        customer_name="contoso",
        location="westeurope",
        workspace_name="contoso-sentinel",
        automation_resource_group="contoso-automation",
        exclude_rules=[],
        connectors=[
            ConnectorSetting(id="AzureActiveDirectory", enabled=True),
            ConnectorSetting(id="Office365", enabled=False),
        ],
        content_links={
            "RunPlaybook": {
                "55555555-5555-5555-5555-555555555555": "Notify-SOC",
            }
        },
    )
