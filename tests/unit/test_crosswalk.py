"""
Unit tests for the crosswalk graph and its YAML loader.
"""

import os

import pytest

from golden_layer.core.crosswalk import CrosswalkConfigLoader, CrosswalkGraph
from golden_layer.core.exceptions import CrosswalkConfigError
from golden_layer.core.models import CrosswalkPath, CrosswalkRule, KeySpace, PrefixTransformation
from golden_layer.entities import seed
from golden_layer.observability import metrics

CONFIG_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "config")


def _rule(crosswalk_id, from_space, to_space, strip=None, add=None, **kwargs):
    transformation = PrefixTransformation(strip_prefix=strip, add_prefix=add) if strip else None
    return CrosswalkRule(
        crosswalk_id=crosswalk_id,
        from_space=from_space,
        to_space=to_space,
        transformation=transformation,
        **kwargs,
    )


def _lookups(outcome):
    return metrics.REGISTRY.get_sample_value("golden_crosswalk_lookups_total", {"outcome": outcome}) or 0


@pytest.mark.unit
class TestDirectTranslation:
    """Tests for one-hop translation over the seed graph"""

    @pytest.mark.parametrize("value,from_space,to_space,expected", [
        ("ENT-IT-10001", seed.ENT_INVESTMENT_TEAM_ID, seed.INVESTMENT_TEAM_EK, "IT-10001"),
        ("ENT-PG-20001", seed.ENT_PORTFOLIO_GROUP_ID, seed.PORTFOLIO_GROUP_EK, "PG-20001"),
        ("ENT-P-30001", seed.ENT_PORTFOLIO_ID, seed.PORTFOLIO_EK, "P-30001"),
        ("SEM-E-20001", seed.SEM_ENTITY_ID, seed.ENTITY_EK, "E-20001"),
        ("SEM-P-30001", seed.SEM_PORTFOLIO_REF_ID, seed.PORTFOLIO_EK, "P-30001"),
        ("SEM-A-40001", seed.SEM_ASSET_REF_ID, seed.ASSET_EK, "A-40001"),
        ("SAM-A-40001", seed.SAM_ASSET_ID, seed.ASSET_EK, "A-40001"),
        ("SSM-SEC-50001", seed.SSM_SECURITY_ID, seed.SECURITY_EK, "SEC-50001"),
        ("STM-P-30001", seed.STM_PORTFOLIO_ID, seed.PORTFOLIO_EK, "P-30001"),
        ("STM-E-20001", seed.STM_ENTITY_ID, seed.ENTITY_EK, "E-20001"),
        ("STM-SEC-50001", seed.STM_SECURITY_ID, seed.SECURITY_EK, "SEC-50001"),
        ("WSO-SEC-70001", seed.WSO_SECURITY_ID, seed.SECURITY_EK, "SEC-70001"),
        ("SSM-IT-001", seed.SSM_TEAM_REF_ID, seed.INVESTMENT_TEAM_EK, "IT-001"),
        ("SSM-E-20001", seed.SSM_ENTITY_REF_ID, seed.ENTITY_EK, "E-20001"),
        ("SSM-A-40001", seed.SSM_ASSET_REF_ID, seed.ASSET_EK, "A-40001"),
    ])
    def test_seed_prefixes(self, graph, value, from_space, to_space, expected):
        assert graph.translate(value, from_space, to_space) == expected

    def test_malformed_value_returns_none(self, graph):
        before = _lookups("malformed")

        result = graph.translate("SSM-SEC-50001", seed.ENT_INVESTMENT_TEAM_ID, seed.INVESTMENT_TEAM_EK)

        assert result is None
        assert _lookups("malformed") == before + 1

    def test_null_value(self, graph):
        assert graph.translate(None, seed.ENT_INVESTMENT_TEAM_ID, seed.INVESTMENT_TEAM_EK) is None

    def test_unconnected_spaces(self, graph):
        before = _lookups("unresolved")
        assert graph.translate("MER.RE", seed.WSO_TICKER, seed.ASSET_EK) is None
        assert _lookups("unresolved") == before + 1

    def test_lookup_only_path_does_not_translate(self, graph):
        # Rule 16 resolves through conformed data, not by prefix
        assert graph.translate("STM-SEC-50001", seed.STM_SECURITY_ID, seed.ASSET_EK) is None
        assert not graph.can_translate(seed.STM_SECURITY_ID, seed.ASSET_EK)
        assert graph.can_translate(seed.STM_SECURITY_ID, seed.SECURITY_EK)

    def test_inactive_rule_ignored(self):
        graph = CrosswalkGraph(rules=[_rule(1, "a", "b", "A-", "B-", is_active=False)])
        assert graph.direct_rule("a", "b") is None
        assert graph.translate("A-1", "a", "b") is None


@pytest.mark.unit
class TestPathTranslation:
    """Tests for multi-hop translation"""

    def test_translates_along_discovered_path(self):
        graph = CrosswalkGraph(rules=[
            _rule(1, "a", "b", "A-", "B-"),
            _rule(2, "b", "c", "B-", "C-"),
        ])

        assert graph.translate("A-7", "a", "c") == "C-7"

    def test_malformed_midway(self):
        graph = CrosswalkGraph(rules=[
            _rule(1, "a", "b", "A-", "X-"),
            _rule(2, "b", "c", "B-", "C-"),
        ])

        assert graph.translate("A-7", "a", "c") is None

    def test_precomputed_path_preferred(self):
        graph = CrosswalkGraph(
            rules=[
                _rule(1, "a", "b", "A-", "B-"),
                _rule(2, "b", "c", "B-", "C-"),
                _rule(3, "a", "d", "A-", "D-"),
                _rule(4, "d", "c", "D-", "Z-"),
            ],
            paths=[CrosswalkPath(from_space="a", to_space="c", crosswalk_ids=[3, 4], hop_count=2, reliability="HIGH")],
        )

        assert graph.resolve_paths("a", "c")[0].crosswalk_ids == [3, 4]
        assert graph.translate("A-7", "a", "c") == "Z-7"


@pytest.mark.unit
class TestFindPaths:
    """Tests for bounded path discovery"""

    def test_shortest_first_then_insertion_order(self):
        graph = CrosswalkGraph(rules=[
            _rule(1, "a", "b"),
            _rule(2, "b", "d"),
            _rule(3, "a", "c"),
            _rule(4, "c", "d"),
            _rule(5, "a", "d"),
        ])

        paths = graph.find_paths("a", "d")

        assert [p.crosswalk_ids for p in paths] == [[5], [1, 2], [3, 4]]
        assert all(p.reliability == "DISCOVERED" for p in paths)

    def test_cycle_terminates(self):
        graph = CrosswalkGraph(rules=[
            _rule(1, "a", "b"),
            _rule(2, "b", "a"),
            _rule(3, "b", "c"),
            _rule(4, "c", "b"),
        ])

        paths = graph.find_paths("a", "c")

        assert [p.crosswalk_ids for p in paths] == [[1, 3]]

    def test_max_hops_bound(self):
        graph = CrosswalkGraph(rules=[
            _rule(1, "a", "b"),
            _rule(2, "b", "c"),
            _rule(3, "c", "d"),
        ])

        assert graph.find_paths("a", "d", max_hops=2) == []
        assert [p.hop_count for p in graph.find_paths("a", "d", max_hops=3)] == [3]

    def test_same_space_has_no_path(self):
        graph = CrosswalkGraph(rules=[_rule(1, "a", "b")])
        assert graph.find_paths("a", "a") == []

    def test_edges_not_reversed(self):
        graph = CrosswalkGraph(rules=[_rule(1, "a", "b", bidirectional=True)])
        assert graph.find_paths("b", "a") == []

    def test_seed_security_paths(self, graph):
        paths = graph.precomputed_paths(seed.WSO_SECURITY_ID, seed.ENTITY_EK)
        assert [p.crosswalk_ids for p in paths] == [[12, 17]]


@pytest.mark.unit
class TestGraphValidation:
    """Tests for graph construction errors"""

    def test_duplicate_id(self):
        with pytest.raises(CrosswalkConfigError, match="Duplicate"):
            CrosswalkGraph(rules=[_rule(1, "a", "b"), _rule(1, "b", "c")])

    def test_same_pair_same_conditions(self):
        with pytest.raises(CrosswalkConfigError, match="same conditions"):
            CrosswalkGraph(rules=[_rule(1, "a", "b"), _rule(2, "a", "b")])

    def test_same_pair_different_conditions(self):
        graph = CrosswalkGraph(rules=[
            _rule(1, "a", "b", conditions="region = EU"),
            _rule(2, "a", "b", conditions="region = US"),
        ])
        assert [r.crosswalk_id for r in graph.rules_between("a", "b")] == [1, 2]

    def test_unknown_space(self):
        spaces = [KeySpace(key_id=1, name="a", source_system_id=1, key_type="PRIMARY")]
        with pytest.raises(CrosswalkConfigError, match="unknown key space"):
            CrosswalkGraph(rules=[_rule(1, "a", "b")], spaces=spaces)

    def test_path_unknown_rule(self):
        with pytest.raises(CrosswalkConfigError, match="unknown crosswalk_id"):
            CrosswalkGraph(
                rules=[_rule(1, "a", "b")],
                paths=[CrosswalkPath(from_space="a", to_space="c", crosswalk_ids=[1, 9], hop_count=2)],
            )

    def test_path_disconnected(self):
        with pytest.raises(CrosswalkConfigError):
            CrosswalkGraph(
                rules=[_rule(1, "a", "b"), _rule(2, "c", "d")],
                paths=[CrosswalkPath(from_space="a", to_space="d", crosswalk_ids=[1, 2], hop_count=2)],
            )

    def test_path_too_long(self):
        with pytest.raises(CrosswalkConfigError, match="maximum"):
            CrosswalkGraph(
                rules=[_rule(1, "a", "b"), _rule(2, "b", "c")],
                paths=[CrosswalkPath(from_space="a", to_space="c", crosswalk_ids=[1, 2], hop_count=2)],
                max_hops=1,
            )

    def test_max_hops_positive(self):
        with pytest.raises(CrosswalkConfigError):
            CrosswalkGraph(max_hops=0)


@pytest.mark.unit
class TestCrosswalkConfigLoader:
    """Tests for CrosswalkConfigLoader"""

    def test_load_shipped_config(self):
        graph = CrosswalkConfigLoader(os.path.join(CONFIG_DIR, "crosswalk.yaml")).load_graph()

        assert len(graph) == len(seed.CROSSWALK_RULES)
        assert set(graph.spaces) == {s.name for s in seed.KEY_SPACES}
        assert graph.translate("ENT-IT-10001", seed.ENT_INVESTMENT_TEAM_ID, seed.INVESTMENT_TEAM_EK) == "IT-10001"
        assert graph.precomputed_paths(seed.STM_SECURITY_ID, seed.ASSET_EK)[0].crosswalk_ids == [11, 16]

    def test_shipped_config_matches_seed(self):
        graph = CrosswalkConfigLoader(os.path.join(CONFIG_DIR, "crosswalk.yaml")).load_graph()
        for rule in seed.CROSSWALK_RULES:
            loaded = graph.rule(rule.crosswalk_id)
            assert loaded.pair == rule.pair
            assert loaded.transformation == rule.transformation

    def test_missing_rules_section(self, tmp_path):
        config = tmp_path / "crosswalk.yaml"
        config.write_text("key_spaces: []\n")
        with pytest.raises(ValueError, match="rules"):
            CrosswalkConfigLoader(config).load_graph()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CrosswalkConfigLoader(tmp_path / "missing.yaml")
