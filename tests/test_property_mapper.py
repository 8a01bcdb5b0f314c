import copy

import pytest

from generators.property_mapper import build_properties, MAPPERS
from models.content_kind import ContentKind
from models.diagnostics import Diagnostics
from models.errors import UnsupportedKindError, MissingContentLinkError


class TestAnalyticsRuleMapping:
    def test_scheduled_rule(self, scheduled_rule, deployment_config):
        diagnostics = Diagnostics()
        properties = build_properties(scheduled_rule, ContentKind.SCHEDULED, deployment_config, diagnostics)

        assert properties["displayName"] == "Suspicious sign-in burst"
        assert properties["severity"] == "High"
        assert properties["enabled"] is True
        assert properties["suppressionDuration"] == "PT1H"
        assert properties["suppressionEnabled"] is False
        assert properties["queryFrequency"] == "PT1H"
        assert properties["queryPeriod"] == "P14D"
        assert properties["triggerOperator"] == "GreaterThan"
        assert properties["triggerThreshold"] == 5
        assert properties["tactics"] == ["CredentialAccess", "InitialAccess"]
        assert properties["templateVersion"] == "1.0.2"
        assert properties["techniques"] == ["T1110", "T1078"]
        assert properties["subTechniques"] == ["T1078.004"]
        assert properties["incidentConfiguration"]["groupingConfiguration"]["lookbackDuration"] == "PT5H"
        assert diagnostics.by_code("operator-defaulted") == []

    def test_sub_technique_only(self, scheduled_rule, deployment_config):
        scheduled_rule["relevantTechniques"] = ["T1001.002"]
        properties = build_properties(scheduled_rule, ContentKind.SCHEDULED, deployment_config)
        assert properties["techniques"] == ["T1001"]
        assert properties["subTechniques"] == ["T1001.002"]

    def test_entity_mappings_wrapped_in_list(self, scheduled_rule, deployment_config):
        diagnostics = Diagnostics()
        properties = build_properties(scheduled_rule, ContentKind.SCHEDULED, deployment_config, diagnostics)

        assert isinstance(properties["entityMappings"], list)
        assert properties["entityMappings"][0]["entityType"] == "Account"
        assert len(diagnostics.by_code("wrapped-in-list")) == 1

    def test_source_document_not_mutated(self, scheduled_rule, deployment_config):
        original = copy.deepcopy(scheduled_rule)
        build_properties(scheduled_rule, ContentKind.SCHEDULED, deployment_config)
        assert scheduled_rule == original
        assert scheduled_rule["incidentConfiguration"]["groupingConfiguration"]["lookbackDuration"] == "5h"

    def test_defaults(self, nrt_rule, deployment_config):
        del nrt_rule["severity"]
        properties = build_properties(nrt_rule, ContentKind.NRT, deployment_config)

        assert properties["severity"] == "Medium"
        assert properties["enabled"] is True
        assert properties["suppressionDuration"] == "PT1H"
        assert properties["templateVersion"] == "1.0.0"
        assert "queryFrequency" not in properties
        assert "triggerOperator" not in properties
        assert "incidentConfiguration" not in properties

    def test_explicit_suppression_is_normalised(self, nrt_rule, deployment_config):
        nrt_rule["suppressionDuration"] = "5h"
        nrt_rule["suppressionEnabled"] = True
        properties = build_properties(nrt_rule, ContentKind.NRT, deployment_config)
        assert properties["suppressionDuration"] == "PT5H"
        assert properties["suppressionEnabled"] is True

    @pytest.mark.parametrize("value", [False, "false", "False"])
    def test_only_explicit_false_disables(self, nrt_rule, deployment_config, value):
        nrt_rule["enabled"] = value
        assert build_properties(nrt_rule, ContentKind.NRT, deployment_config)["enabled"] is False

    def test_empty_techniques_are_omitted(self, nrt_rule, deployment_config):
        nrt_rule["relevantTechniques"] = []
        properties = build_properties(nrt_rule, ContentKind.NRT, deployment_config)
        assert "techniques" not in properties
        assert "subTechniques" not in properties

    def test_unknown_operator_defaults_with_warning(self, scheduled_rule, deployment_config):
        scheduled_rule["triggerOperator"] = "gretaer"
        diagnostics = Diagnostics()
        properties = build_properties(scheduled_rule, ContentKind.SCHEDULED, deployment_config, diagnostics)

        assert properties["triggerOperator"] == "GreaterThan"
        assert len(diagnostics.by_code("operator-defaulted")) == 1

    def test_short_operator_expanded(self, scheduled_rule, deployment_config):
        scheduled_rule["triggerOperator"] = "lt"
        properties = build_properties(scheduled_rule, ContentKind.SCHEDULED, deployment_config)
        assert properties["triggerOperator"] == "LessThan"

    def test_iso_lookback_left_alone(self, scheduled_rule, deployment_config):
        scheduled_rule["incidentConfiguration"]["groupingConfiguration"]["lookbackDuration"] = "PT2H"
        properties = build_properties(scheduled_rule, ContentKind.SCHEDULED, deployment_config)
        assert properties["incidentConfiguration"]["groupingConfiguration"]["lookbackDuration"] == "PT2H"


class TestSavedSearchMapping:
    def test_hunting_query(self, hunting_query, deployment_config):
        properties = build_properties(hunting_query, ContentKind.HUNT, deployment_config)

        assert properties["category"] == "Hunting Queries"
        assert properties["displayName"] == "Rare process launched by Office"
        assert properties["version"] == 1
        assert properties["query"].startswith("DeviceProcessEvents")
        assert properties["tags"] == [
            {"name": "description", "value": "Office applications spawning uncommon child processes."},
            {"name": "id", "value": "33333333-3333-3333-3333-333333333333"},
            {"name": "version", "value": "1.0.0"},
            {"name": "tactics", "value": "Execution"},
            {"name": "techniques", "value": "T1204.002"},
        ]

    def test_kql_function(self, kql_function, deployment_config):
        properties = build_properties(kql_function, ContentKind.PARSER, deployment_config)

        assert properties["category"] == "Parsers"
        assert properties["displayName"] == "ContosoFirewall"
        assert properties["functionAlias"] == "ContosoFirewall"
        assert properties["functionParameters"] == "starttime:datetime=datetime(null), action:string='allow'"
        assert [tag["name"] for tag in properties["tags"]] == ["version", "id", "description"]

    def test_kql_function_without_parameters(self, kql_function, deployment_config):
        del kql_function["FunctionParams"]
        properties = build_properties(kql_function, ContentKind.PARSER, deployment_config)
        assert "functionParameters" not in properties

    def test_asim_parser(self, asim_parser, deployment_config):
        properties = build_properties(asim_parser, ContentKind.ASIM, deployment_config)

        assert properties["category"] == "ASIM"
        assert properties["displayName"] == "Process Create Event ASIM parser for Contoso EDR"
        assert properties["functionAlias"] == "vimProcessCreateContosoEDR"
        assert properties["functionParameters"] == "starttime:datetime=datetime(null), disabled:bool=false"
        tags = {tag["name"]: tag["value"] for tag in properties["tags"]}
        assert tags["version"] == "0.2.0"
        assert tags["product"] == "Contoso EDR"
        assert tags["schema"] == "ProcessEvent"
        assert tags["schemaVersion"] == "0.1.4"
        assert tags["description"].startswith("This ASIM parser")


class TestOtherRuleMapping:
    def test_fusion_rule(self, fusion_rule, deployment_config):
        properties = build_properties(fusion_rule, ContentKind.FUSION, deployment_config)
        assert properties == {
            "alertRuleTemplateName": "f71aba3d-28fb-450b-b192-4e76a83015c8",
            "enabled": True,
        }

    def test_incident_creation_rule(self, incident_creation_rule, deployment_config):
        properties = build_properties(incident_creation_rule,
                                      ContentKind.MICROSOFT_SECURITY_INCIDENT_CREATION,
                                      deployment_config)
        assert properties["displayName"] == "Create incidents from Defender for Cloud"
        assert properties["productFilter"] == "Azure Security Center"
        assert properties["severitiesFilter"] == ["High", "Medium"]
        assert properties["enabled"] is True
        assert "alertRuleTemplateName" not in properties
        assert "displayNamesFilter" not in properties

    def test_run_playbook_rule(self, run_playbook_rule, deployment_config):
        properties = build_properties(run_playbook_rule, ContentKind.RUN_PLAYBOOK, deployment_config)

        assert properties["displayName"] == "Notify SOC on high severity incidents"
        assert properties["order"] == 1
        assert properties["triggeringLogic"]["triggersOn"] == "Incidents"
        action = properties["actions"][0]
        assert action["actionType"] == "RunPlaybook"
        assert action["actionConfiguration"] == {
            "tenantId": "[subscription().tenantId]",
            "logicAppResourceId": "[resourceId('contoso-automation', 'Microsoft.Logic/workflows', "
                                  "'contoso-Notify-SOC')]",
        }

    def test_run_playbook_without_link_is_fatal(self, run_playbook_rule, deployment_config):
        run_playbook_rule["id"] = "99999999-9999-9999-9999-999999999999"
        with pytest.raises(MissingContentLinkError) as exc_info:
            build_properties(run_playbook_rule, ContentKind.RUN_PLAYBOOK, deployment_config)
        assert exc_info.value.fatal is True
        assert exc_info.value.rule_id == "99999999-9999-9999-9999-999999999999"


class TestUnsupportedKinds:
    @pytest.mark.parametrize("kind", [
        ContentKind.CONNECTOR,
        ContentKind.ADD_INCIDENT_TASK,
        ContentKind.MODIFY_PROPERTIES,
    ])
    def test_unsupported_kind(self, connector_definition, deployment_config, kind):
        with pytest.raises(UnsupportedKindError, match="not yet supported"):
            build_properties(connector_definition, kind, deployment_config)

    def test_unsupported_is_not_fatal(self, connector_definition, deployment_config):
        with pytest.raises(UnsupportedKindError) as exc_info:
            build_properties(connector_definition, ContentKind.CONNECTOR, deployment_config)
        assert exc_info.value.fatal is False

    def test_every_deployable_kind_has_a_mapper(self):
        for kind in ContentKind:
            if kind in (ContentKind.WORKBOOK, ContentKind.UNKNOWN):
                assert kind not in MAPPERS
            else:
                assert kind in MAPPERS


class TestPlaybookReference:
    def test_quote_in_playbook_name_is_doubled(self, run_playbook_rule, deployment_config):
        deployment_config.content_links["RunPlaybook"][run_playbook_rule["id"]] = "Bob's-Playbook"
        properties = build_properties(run_playbook_rule, ContentKind.RUN_PLAYBOOK, deployment_config)
        assert properties["actions"][0]["actionConfiguration"]["logicAppResourceId"] == (
            "[resourceId('contoso-automation', 'Microsoft.Logic/workflows', 'contoso-Bob''s-Playbook')]"
        )

    def test_scalar_tactics(self, nrt_rule, deployment_config):
        nrt_rule["tactics"] = 5
        assert build_properties(nrt_rule, ContentKind.NRT, deployment_config)["tactics"] == ["5"]
