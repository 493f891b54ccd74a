"""
Tests for input adapters, configuration loading and presentation helpers.
"""

import json

import pytest

from splitflow_core.config import FlowConfig, config_from_dict, load_config
from splitflow_core.inputs import FlowInput, input_from_document, load_route_file
from splitflow_core.presentation import (
    explorer_url,
    format_balance,
    format_ether,
    format_percentage,
    truncate_identifier,
)


class TestFlowInput:
    def test_from_upstream_route(self):
        route = {"rootSplits": "0xroot", "routes": ["0xa", "0xb"], "allocations": [1, 2]}
        fi = FlowInput.from_route(route, "1.25")
        assert fi.recipients == ("0xa", "0xb")
        assert fi.allocations == (1, 2)
        assert fi.root_identifier == "0xroot"
        assert fi.total_balance_display == "1.25"

    def test_descriptive_keys_win(self):
        route = {"rootIdentifier": "r", "flowTargets": ["x"], "routes": ["y"], "allocations": [1]}
        assert FlowInput.from_route(route).recipients == ("x",)

    def test_missing_route_is_empty(self):
        fi = FlowInput.from_route(None)
        assert fi.is_empty
        assert fi.total_balance_display == "0"

    def test_missing_keys_are_empty(self):
        fi = FlowInput.from_route({"rootSplits": "r"})
        assert fi.recipients == () and fi.allocations == ()

    def test_inputs_compare_by_value(self):
        assert FlowInput.create(["a"], [1], "r", "1") == FlowInput.create(("a",), (1,), "r", "1")


class TestRouteFiles:
    def test_yaml_route_with_wei_balance(self, tmp_path):
        path = tmp_path / "route.yaml"
        path.write_text(
            "rootSplits: '0xroot'\n"
            "routes: ['0xa', '0xb']\n"
            "allocations: [500000, 500000]\n"
            "balanceWei: 1500000000000000000\n",
            encoding="utf-8",
        )
        fi = load_route_file(str(path))
        assert fi.recipients == ("0xa", "0xb")
        assert fi.total_balance_display == "1.5"

    def test_json_list_uses_first_route(self, tmp_path):
        path = tmp_path / "routes.json"
        path.write_text(json.dumps([
            {"rootSplits": "first", "routes": ["a"], "allocations": [1], "totalBalance": "3"},
            {"rootSplits": "second", "routes": ["b"], "allocations": [1]},
        ]), encoding="utf-8")
        fi = load_route_file(str(path))
        assert fi.root_identifier == "first"
        assert fi.total_balance_display == "3"

    def test_empty_documents(self):
        assert input_from_document(None).is_empty
        assert input_from_document([]).is_empty

    def test_bad_documents(self):
        with pytest.raises(ValueError):
            input_from_document("just a string")
        with pytest.raises(ValueError):
            input_from_document([1, 2])
        with pytest.raises(ValueError):
            input_from_document({"routes": ["a"], "allocations": [1], "balanceWei": "lots"})
        with pytest.raises(ValueError):
            input_from_document({"routes": "a", "allocations": [1]})


class TestConfig:
    def test_defaults(self):
        cfg = FlowConfig()
        cfg.validate()
        assert cfg.resolved_target_x == 450.0
        assert cfg.center_y == 175.0
        assert cfg.chain_id == 11155111

    def test_load_yaml_overrides(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("width: 800\nspawn_probability: 0.5\n", encoding="utf-8")
        cfg = load_config(str(path))
        assert cfg.width == 800
        assert cfg.spawn_probability == 0.5
        assert cfg.height == 350.0

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == FlowConfig()

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown config keys"):
            config_from_dict({"colour": "red"})

    @pytest.mark.parametrize("overrides", [
        {"spawn_probability": 1.5},
        {"lifespan_min_ms": 4000},
        {"width": 0},
        {"margin": 200},
        {"waist_ratio": 1.0},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            config_from_dict(overrides)

    def test_base_is_not_mutated(self):
        base = FlowConfig()
        cfg = config_from_dict({"width": 600}, base=base)
        assert cfg.width == 600
        assert base.width == 500.0


class TestPresentation:
    def test_truncate_identifier(self):
        assert truncate_identifier("0xAAAAbbbbccccdddd1234") == "0xAAAA...1234"

    def test_explorer_url(self):
        assert explorer_url("0xabc") == "https://app.splits.org/accounts/0xabc/?chainId=11155111"
        assert explorer_url("0xabc", chain_id=1, base_url="https://x.test/") == "https://x.test/accounts/0xabc/?chainId=1"

    def test_format_percentage(self):
        assert format_percentage(70) == "70.0%"
        assert format_percentage(33.333) == "33.3%"
        assert format_percentage(0) == "0.0%"

    def test_format_balance(self):
        assert format_balance("1.5") == "1.5 ETH"

    @pytest.mark.parametrize("wei,expected", [
        (0, "0"),
        (10 ** 18, "1"),
        (1, "0.000000000000000001"),
        (1_500_000_000_000_000_000, "1.5"),
        (-2_250_000_000_000_000_000, "-2.25"),
    ])
    def test_format_ether(self, wei, expected):
        assert format_ether(wei) == expected
