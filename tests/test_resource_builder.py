import pytest

from generators.property_mapper import MAPPERS
from generators.resource_builder import build_resource, resource_name, WORKSPACE_SCOPE
from models.content_kind import ContentKind
from models.errors import UnsupportedKindError, MappingError


class TestResourceEnvelopes:
    def test_scheduled_rule_is_alert_rule(self, scheduled_rule, deployment_config):
        resource = build_resource(scheduled_rule, ContentKind.SCHEDULED, deployment_config).to_dict()

        assert list(resource) == ["type", "apiVersion", "name", "kind", "properties"]
        assert resource["type"] == "Microsoft.OperationalInsights/workspaces/providers/alertRules"
        assert resource["apiVersion"] == "2023-02-01-preview"
        assert resource["kind"] == "Scheduled"
        assert resource["name"] == ("[concat(parameters('workspace'), "
                                    "'/Microsoft.SecurityInsights/11111111-1111-1111-1111-111111111111')]")

    def test_fusion_rule_kind(self, fusion_rule, deployment_config):
        resource = build_resource(fusion_rule, ContentKind.FUSION, deployment_config)
        assert resource.kind == "Fusion"
        assert resource.scope is None

    def test_hunting_query_is_saved_search(self, hunting_query, deployment_config):
        resource = build_resource(hunting_query, ContentKind.HUNT, deployment_config).to_dict()

        assert list(resource) == ["type", "apiVersion", "name", "properties"]
        assert resource["type"] == "Microsoft.OperationalInsights/workspaces/savedSearches"
        assert resource["apiVersion"] == "2020-08-01"
        assert resource["name"] == ("[concat(parameters('workspace'), "
                                    "'/33333333-3333-3333-3333-333333333333')]")

    def test_parser_named_by_function_name(self, kql_function, deployment_config):
        resource = build_resource(kql_function, ContentKind.PARSER, deployment_config)
        assert resource.name == "[concat(parameters('workspace'), '/ContosoFirewall')]"

    def test_asim_named_by_parser_name(self, asim_parser, deployment_config):
        resource = build_resource(asim_parser, ContentKind.ASIM, deployment_config)
        assert resource.name == "[concat(parameters('workspace'), '/vimProcessCreateContosoEDR')]"

    def test_run_playbook_is_scoped_automation_rule(self, run_playbook_rule, deployment_config):
        resource = build_resource(run_playbook_rule, ContentKind.RUN_PLAYBOOK, deployment_config).to_dict()

        assert list(resource) == ["type", "apiVersion", "name", "scope", "properties"]
        assert resource["type"] == "Microsoft.SecurityInsights/automationRules"
        assert resource["apiVersion"] == "2022-12-01-preview"
        assert resource["name"] == "55555555-5555-5555-5555-555555555555"
        assert resource["scope"] == WORKSPACE_SCOPE


class TestResourceNames:
    @pytest.mark.parametrize("kind", [ContentKind.CONNECTOR, ContentKind.WORKBOOK, ContentKind.UNKNOWN])
    def test_kinds_without_resource_family(self, connector_definition, kind):
        with pytest.raises(UnsupportedKindError):
            resource_name(connector_definition, kind)

    def test_missing_name_field(self, kql_function, deployment_config):
        kql_function["FunctionName"] = "  "
        with pytest.raises(MappingError):
            build_resource(kql_function, ContentKind.PARSER, deployment_config)

    def test_unsupported_kind_never_reaches_mapper(self, workbook, deployment_config):
        with pytest.raises(UnsupportedKindError, match="Workbook"):
            build_resource(workbook, ContentKind.WORKBOOK, deployment_config)


class TestExpressionQuoting:
    def test_quote_in_rule_id_is_doubled(self, fusion_rule, deployment_config):
        fusion_rule["id"] = "contoso's-fusion"
        resource = build_resource(fusion_rule, ContentKind.FUSION, deployment_config)
        assert resource.name == ("[concat(parameters('workspace'), "
                                 "'/Microsoft.SecurityInsights/contoso''s-fusion')]")

    def test_quote_in_function_name_is_doubled(self, kql_function, deployment_config):
        kql_function["FunctionName"] = "O'Brien"
        resource = build_resource(kql_function, ContentKind.PARSER, deployment_config)
        assert resource.name == "[concat(parameters('workspace'), '/O''Brien')]"

    def test_badly_typed_document_raises_mapping_error(self, nrt_rule, deployment_config, monkeypatch):
        def broken_mapper(doc, config, diagnostics):
            raise AttributeError("'int' object has no attribute 'get'")

        monkeypatch.setitem(MAPPERS, ContentKind.NRT, broken_mapper)
        with pytest.raises(MappingError, match="Malformed NRT document"):
            build_resource(nrt_rule, ContentKind.NRT, deployment_config)
