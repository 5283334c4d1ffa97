"""Tests for parameter mapping."""

from plugincore.mapping import (
    map_config,
    map_config_entries,
    map_input,
    map_output,
    remove_mapped_input,
)


class TestMapInput:
    def test_exposes_internal_name(self):
        mapping = {"carbon": "carbon-product"}
        assert map_input({"carbon-product": 9}, mapping) == {
            "carbon-product": 9,
            "carbon": 9,
        }

    def test_missing_external_field_ignored(self):
        assert map_input({"energy": 1}, {"carbon": "carbon-product"}) == {"energy": 1}

    def test_no_mapping(self):
        assert map_input({"energy": 1}, None) == {"energy": 1}


class TestRemoveMappedInput:
    def test_drops_internal_names(self):
        mapping = {"carbon": "carbon-product"}
        record = {"carbon": 9, "carbon-product": 9, "duration": 1}
        assert remove_mapped_input(record, mapping) == {"carbon-product": 9, "duration": 1}

    def test_no_mapping_copies(self):
        record = {"carbon": 9}
        result = remove_mapped_input(record, {})
        assert result == record
        assert result is not record


class TestMapOutput:
    def test_renames_mapped_keys(self):
        mapping = {"carbon": "carbon-product"}
        assert map_output({"carbon": 9, "duration": 1}, mapping) == {
            "carbon-product": 9,
            "duration": 1,
        }

    def test_no_mapping(self):
        assert map_output({"carbon": 9}, None) == {"carbon": 9}


class TestMapConfig:
    def test_renames_keys_and_values_recursively(self):
        config = {
            "input-parameter": "cpu",
            "nested": {"cpu": 1, "list": ["cpu", "other"]},
        }
        mapping = {"cpu": "cpu/energy"}

        assert map_config(config, mapping) == {
            "input-parameter": "cpu/energy",
            "nested": {"cpu/energy": 1, "list": ["cpu/energy", "other"]},
        }
        assert mapping == {}

    def test_rewrites_variable_inside_expression(self):
        config = {"input-parameter": '=2 * "energy-per-year"'}
        mapping = {"energy-per-year": "energy/year"}

        assert map_config(config, mapping) == {"input-parameter": '=2 * "energy/year"'}

    def test_external_name_with_slash_is_quoted(self):
        mapping = {"cpu": "cpu/energy"}

        assert map_config({"input-parameter": "=2*cpu"}, mapping) == {
            "input-parameter": '=2*"cpu/energy"'
        }
        assert mapping == {}

    def test_bare_external_name_stays_bare(self):
        mapping = {"cpu": "cpu-energy"}
        assert map_config({"input-parameter": "=cpu * 2"}, mapping) == {
            "input-parameter": "=cpu-energy * 2"
        }

    def test_quote_style_preserved(self):
        mapping = {"energy": "energy/year"}
        assert map_config({"input-parameter": "='energy'/12"}, mapping) == {
            "input-parameter": "='energy/year'/12"
        }

    def test_unmapped_entries_survive(self):
        mapping = {"cpu": "cpu/energy", "memory": "memory/energy"}
        map_config({"input-parameter": "cpu"}, mapping)
        assert mapping == {"memory": "memory/energy"}

    def test_config_not_mutated(self):
        config = {"cpu": "cpu"}
        map_config(config, {"cpu": "cpu/energy"})
        assert config == {"cpu": "cpu"}

    def test_empty_mapping_returns_config(self):
        config = {"input-parameter": "cpu"}
        assert map_config(config, {}) is config
        assert map_config(config, None) is config

    def test_non_container_config_returned(self):
        assert map_config("cpu", {"cpu": "cpu/energy"}) == "cpu"

    def test_consumed_entries_not_applied_again(self):
        mapping = {"cpu": "cpu/energy"}
        map_config({"input-parameter": "cpu"}, mapping)

        assert map_config({"input-parameter": "cpu"}, mapping) == {"input-parameter": "cpu"}


class TestMapConfigEntries:
    def test_pure(self):
        mapping = {"cpu": "cpu/energy", "memory": "memory/energy"}
        mapped, consumed = map_config_entries({"input-parameter": "cpu"}, mapping)

        assert mapped == {"input-parameter": "cpu/energy"}
        assert consumed == {"cpu"}
        assert mapping == {"cpu": "cpu/energy", "memory": "memory/energy"}

    def test_unlexable_expression_left_alone(self):
        mapping = {"cpu": "cpu/energy"}
        mapped, consumed = map_config_entries({"input-parameter": "=2^cpu"}, mapping)

        assert mapped == {"input-parameter": "=2^cpu"}
        assert consumed == set()
