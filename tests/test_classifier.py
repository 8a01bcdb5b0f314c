import pytest
import yaml

from core.classifier import classify, SIGNATURES
from models.content_kind import ContentKind


class TestClassifyKnownKinds:
    def test_scheduled_rule(self, scheduled_rule):
        assert classify(scheduled_rule) == ContentKind.SCHEDULED

    def test_nrt_rule(self, nrt_rule):
        assert classify(nrt_rule) == ContentKind.NRT

    def test_hunting_query(self, hunting_query):
        assert classify(hunting_query) == ContentKind.HUNT

    def test_kql_function(self, kql_function):
        assert classify(kql_function) == ContentKind.PARSER

    def test_asim_parser(self, asim_parser):
        assert classify(asim_parser) == ContentKind.ASIM

    def test_run_playbook_rule(self, run_playbook_rule):
        assert classify(run_playbook_rule) == ContentKind.RUN_PLAYBOOK

    def test_fusion_rule(self, fusion_rule):
        assert classify(fusion_rule) == ContentKind.FUSION

    def test_incident_creation_rule(self, incident_creation_rule):
        assert classify(incident_creation_rule) == ContentKind.MICROSOFT_SECURITY_INCIDENT_CREATION

    def test_connector_definition(self, connector_definition):
        assert classify(connector_definition) == ContentKind.CONNECTOR

    def test_workbook(self, workbook):
        assert classify(workbook) == ContentKind.WORKBOOK

    @pytest.mark.parametrize("kind", ["MLBehaviorAnalytics", "ThreatIntelligence"])
    def test_other_built_in_rules(self, kind):
        doc = {"id": "rule-1", "name": "Built-in", "kind": kind}
        assert classify(doc) == ContentKind(kind)


class TestClassifyOrder:
    def test_scheduled_wins_over_hunt(self, scheduled_rule):
        # A scheduled rule also satisfies the hunting-query signature
        assert classify(scheduled_rule) == ContentKind.SCHEDULED
        del scheduled_rule["kind"]
        assert classify(scheduled_rule) == ContentKind.HUNT

    def test_unrecognised_kind_falls_through_to_hunt(self, scheduled_rule):
        scheduled_rule["kind"] = "Banana"
        assert classify(scheduled_rule) == ContentKind.HUNT

    def test_scheduled_without_techniques_is_hunt(self, scheduled_rule):
        del scheduled_rule["relevantTechniques"]
        assert classify(scheduled_rule) == ContentKind.HUNT

    def test_key_order_does_not_matter(self, scheduled_rule, asim_parser):
        for doc in (scheduled_rule, asim_parser):
            reordered = dict(reversed(list(doc.items())))
            assert classify(reordered) == classify(doc)

    def test_signature_order(self):
        names = [name for name, _ in SIGNATURES]
        assert names.index("scheduled-or-nrt") < names.index("hunt")
        assert names.index("run-playbook") < names.index("hunt")
        assert names[-1] == "hunt"


class TestClassifyUnknown:
    @pytest.mark.parametrize("doc", [None, {}, [], "Scheduled", 42])
    def test_empty_or_non_mapping(self, doc):
        assert classify(doc) == ContentKind.UNKNOWN

    def test_blank_identity_fields(self, hunting_query):
        hunting_query["name"] = "   "
        assert classify(hunting_query) == ContentKind.UNKNOWN

    def test_fusion_without_name(self):
        assert classify({"id": "abc", "kind": "Fusion"}) == ContentKind.UNKNOWN

    def test_incident_creation_without_product_filter(self, incident_creation_rule):
        incident_creation_rule["productFilter"] = ""
        assert classify(incident_creation_rule) == ContentKind.UNKNOWN

    def test_run_playbook_with_two_actions(self, run_playbook_rule):
        run_playbook_rule["actions"].append({"order": 2, "actionType": "RunPlaybook"})
        assert classify(run_playbook_rule) == ContentKind.UNKNOWN

    def test_run_playbook_with_other_action_type(self, run_playbook_rule):
        run_playbook_rule["actions"][0]["actionType"] = "ModifyProperties"
        assert classify(run_playbook_rule) == ContentKind.UNKNOWN

    def test_workbook_version_must_match(self, workbook):
        workbook["version"] = "1.0"
        assert classify(workbook) == ContentKind.UNKNOWN

    def test_asim_without_parser_title(self, asim_parser):
        asim_parser["Parser"] = {"Version": "0.1"}
        assert classify(asim_parser) == ContentKind.UNKNOWN

    def test_oddly_typed_values_never_raise(self):
        doc = yaml.safe_load("""
        kind: [Scheduled]
        version: 3
        actions: RunPlaybook
        Parser: not-a-mapping
        """)
        assert classify(doc) == ContentKind.UNKNOWN
