"""Tests for build_grid: axis values, cell matching, slider resolution and flat mode."""

from core.dimensions import Artifact, Dimension, DimensionType
from core.grid_builder import (
    FLAT_CELL_KEY,
    build_grid,
    cell_key,
    passes_filters,
    resolve_slider_value,
    visible_axis_values,
)


def _paths(cells):
    return {c.key: (c.artifact.relative_path if c.artifact else None) for c in cells}


# ===================================================================
# Helpers
# ===================================================================

class TestHelpers:
    def test_cell_key(self):
        assert cell_key("42", "500") == "42|500"
        assert cell_key("42", None) == "42|"
        assert cell_key(None, "500") == "|500"
        assert cell_key(None, None) == FLAT_CELL_KEY

    def test_visible_axis_values_keeps_domain_order(self, sample_dims):
        assert visible_axis_values(sample_dims["seed"], {"seed": frozenset({"123", "42"})}) == ("42", "123")
        assert visible_axis_values(sample_dims["seed"], {"seed": frozenset({"123"})}) == ("123",)
        assert visible_axis_values(None, {}) == ()

    def test_passes_filters(self):
        artifact = Artifact("a.png", {"seed": "42", "cfg": "3"})
        assert passes_filters(artifact, {"seed": frozenset({"42"})})
        assert not passes_filters(artifact, {"cfg": frozenset({"7"})})
        assert passes_filters(artifact, {"cfg": frozenset({"7"})}, skip=("cfg",))

    def test_resolve_slider_value_order(self, sample_dims):
        cfg = sample_dims["cfg"]
        assert resolve_slider_value("a|b", cfg, {"a|b": "7"}, "3") == "7"
        assert resolve_slider_value("a|b", cfg, {}, "7") == "7"
        assert resolve_slider_value("a|b", cfg, {}, None) == "3"
        assert resolve_slider_value("a|b", None, {"a|b": "7"}, "7") is None

    def test_resolve_slider_value_keeps_empty_strings(self):
        cfg = Dimension("cfg", DimensionType.STRING, ("", "3"))
        assert resolve_slider_value("a|b", cfg, {"a|b": ""}, "3") == ""
        assert resolve_slider_value("a|b", cfg, {}, "") == ""


# ===================================================================
# build_grid
# ===================================================================

class TestBuildGrid:
    def test_end_to_end_scenario(self, sample_artifacts, sample_dims):
        result = build_grid(sample_artifacts, sample_dims["seed"], sample_dims["step"], sample_dims["cfg"],
                            default_slider_value="3")
        assert result.x_values == ("42", "123")
        assert result.y_values == ("500", "1000")
        assert len(result.cells) == 4
        assert result.filled_count == 3
        assert result.missing_count == 1
        assert result.cell_by_key("123|1000").is_missing

    def test_override_changes_only_that_cell(self, sample_artifacts, sample_dims):
        base = build_grid(sample_artifacts, sample_dims["seed"], sample_dims["step"], sample_dims["cfg"],
                          default_slider_value="3")
        overridden = build_grid(sample_artifacts, sample_dims["seed"], sample_dims["step"], sample_dims["cfg"],
                                slider_overrides={"42|500": "7"}, default_slider_value="3")
        before, after = _paths(base.cells), _paths(overridden.cells)
        assert after["42|500"] == "ckpt/seed=42&step=500&cfg=7&_00001_.png"
        assert before["42|500"] != after["42|500"]
        for key in ("123|500", "42|1000", "123|1000"):
            assert before[key] == after[key]

    def test_cells_are_row_major(self, sample_artifacts, sample_dims):
        result = build_grid(sample_artifacts, sample_dims["seed"], sample_dims["step"], sample_dims["cfg"])
        assert [c.key for c in result.cells] == ["42|500", "123|500", "42|1000", "123|1000"]
        assert [(c.row, c.column) for c in result.cells] == [(0, 0), (0, 1), (1, 0), (1, 1)]

    def test_deterministic(self, sample_artifacts, sample_dims):
        args = (sample_artifacts, sample_dims["seed"], sample_dims["step"], sample_dims["cfg"])
        assert build_grid(*args) == build_grid(*reversed_args(args))

    def test_slider_values_follow_slider_filter(self, sample_artifacts, sample_dims):
        result = build_grid(sample_artifacts, sample_dims["seed"], None, sample_dims["cfg"],
                            effective_sets={"cfg": frozenset({"7"})})
        assert result.slider_values == ("7",)

    def test_duplicate_matches_show_as_missing(self, sample_artifacts, sample_dims):
        duplicate = Artifact("other/seed=42&step=500&cfg=3&_00002_.png",
                             {"seed": "42", "step": "500", "cfg": "3"})
        result = build_grid(sample_artifacts + [duplicate], sample_dims["seed"], sample_dims["step"],
                            sample_dims["cfg"], default_slider_value="3")
        assert result.cell_by_key("42|500").is_missing
        assert result.missing_count == 2

    def test_empty_string_override_is_honoured(self):
        cfg = Dimension("cfg", DimensionType.STRING, ("", "3"))
        seed = Dimension("seed", DimensionType.INT, ("42",))
        blank = Artifact("d/a.png", {"seed": "42", "cfg": ""})
        three = Artifact("d/b.png", {"seed": "42", "cfg": "3"})
        result = build_grid([blank, three], seed, None, cfg, slider_overrides={"42|": ""}, default_slider_value="3")
        assert result.cell_by_key("42|").artifact is blank

    def test_empty_string_default_is_honoured(self):
        cfg = Dimension("cfg", DimensionType.STRING, ("3", ""))
        seed = Dimension("seed", DimensionType.INT, ("42",))
        blank = Artifact("d/a.png", {"seed": "42", "cfg": ""})
        result = build_grid([blank], seed, None, cfg, default_slider_value="")
        assert result.cell_by_key("42|").artifact is blank

    def test_filter_collapses_axis(self, sample_artifacts, sample_dims):
        result = build_grid(sample_artifacts, sample_dims["seed"], sample_dims["step"], sample_dims["cfg"],
                            effective_sets={"seed": frozenset({"42"})})
        assert result.x_values == ("42",)
        assert len(result.cells) == 2

    def test_empty_axis_gives_empty_grid(self, sample_artifacts, sample_dims):
        result = build_grid(sample_artifacts, sample_dims["seed"], sample_dims["step"],
                            effective_sets={"seed": frozenset()})
        assert result.is_empty
        assert result.row_count == 0 and result.column_count == 0

    def test_filter_on_unassigned_dimension(self, sample_artifacts, sample_dims):
        result = build_grid(sample_artifacts, sample_dims["seed"], sample_dims["step"],
                            effective_sets={"cfg": frozenset({"7"})})
        assert result.filled_count == 2
        assert result.cell_by_key("123|500").is_missing

    def test_x_only(self, sample_artifacts, sample_dims):
        result = build_grid(sample_artifacts, sample_dims["seed"], None, sample_dims["cfg"],
                            effective_sets={"step": frozenset({"500"})})
        assert [c.key for c in result.cells] == ["42|", "123|"]
        assert result.row_count == 1
        assert result.filled_count == 2

    def test_y_only(self, sample_artifacts, sample_dims):
        result = build_grid(sample_artifacts, None, sample_dims["step"], sample_dims["cfg"],
                            effective_sets={"seed": frozenset({"42"})})
        assert [c.key for c in result.cells] == ["|500", "|1000"]
        assert result.column_count == 1


class TestFlatMode:
    def test_no_axes_lists_filtered_artifacts(self, sample_artifacts):
        result = build_grid(sample_artifacts, None, None)
        assert result.is_flat
        assert len(result.flat) == 5
        assert result.cells == ()

    def test_flat_with_slider_uses_resolved_value(self, sample_artifacts, sample_dims):
        result = build_grid(sample_artifacts, None, None, sample_dims["cfg"], default_slider_value="7")
        assert {a.value_of("cfg") for a in result.flat} == {"7"}
        assert len(result.flat) == 2

    def test_flat_override_key(self, sample_artifacts, sample_dims):
        result = build_grid(sample_artifacts, None, None, sample_dims["cfg"],
                            slider_overrides={FLAT_CELL_KEY: "7"}, default_slider_value="3")
        assert len(result.flat) == 2

    def test_flat_empty(self, sample_artifacts):
        result = build_grid(sample_artifacts, None, None, effective_sets={"seed": frozenset()})
        assert result.is_flat
        assert result.is_empty


def reversed_args(args):
    artifacts, *rest = args
    return (list(reversed(artifacts)), *rest)
