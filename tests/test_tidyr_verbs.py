"""Tests for extract/unite/separate/pivot_longer on containers."""

import logging
from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest

from tidyse.convert.reconstruct import DATA_FRAME_RETURNED_MESSAGE
from tidyse.core.errors import ProtectedColumnError
from tidyse.core.experiment import SummarizedExperiment
from tidyse.verbs.tidyr import extract, pivot_longer, separate, unite

VIEW_ONLY = [
    "sample", "transcript",
    "condition", "type", "batch",
    "symbol", "biotype",
    "seqnames", "start", "end", "strand",
]


class TestExtract:
    """extract() on a SummarizedExperiment."""

    def test_new_sample_column(self, small_se):
        result = extract(small_se, "type", into="sequencing", regex="([a-z]*)_end")

        assert isinstance(result, SummarizedExperiment)
        assert list(result.sample_metadata.columns) == ["condition", "sequencing", "batch"]
        assert result.sample_metadata.loc["S00", "sequencing"] == "single"
        assert result.sample_metadata.loc["S05", "sequencing"] == "paired"
        np.testing.assert_array_equal(result.assay("counts"), small_se.assay("counts"))
        pd.testing.assert_frame_equal(result.row_ranges, small_se.row_ranges)

    @pytest.mark.parametrize("target", VIEW_ONLY)
    def test_into_view_only_column_fails(self, small_se, target):
        with pytest.raises(ProtectedColumnError) as excinfo:
            extract(small_se, "type", into=target, regex="([a-z]*)_end")
        assert excinfo.value.columns == [target]

    def test_guard_runs_before_flattening(self, small_se):
        with patch("tidyse.verbs.tidyr.as_tibble") as flatten_mock:
            with pytest.raises(ProtectedColumnError):
                extract(small_se, "type", into="sample", regex="([a-z]*)_end")
        flatten_mock.assert_not_called()

    def test_into_key_without_removal_falls_back(self, small_se):
        """Overwriting the key duplicates (sample, transcript) pairs: a table comes back."""
        result = extract(small_se, "type", into="sample", regex="([a-z]*)_end", remove=False)

        assert isinstance(result, pd.DataFrame)
        assert set(result["sample"]) == {"single", "paired"}

    def test_dataframe_input(self):
        df = pd.DataFrame({"x": ["a-1", "b-2"]})
        result = extract(df, "x", into=["letter", "num"], regex=r"([a-z])-(\d)")
        assert list(result.columns) == ["letter", "num"]

    def test_other_input(self):
        with pytest.raises(TypeError, match="extract expects"):
            extract([1, 2], "x", into="y")


class TestUnite:
    """unite() on a SummarizedExperiment."""

    def test_unite_sample_columns(self, small_se):
        result = unite(small_se, "group", ["condition", "type"])

        assert isinstance(result, SummarizedExperiment)
        assert list(result.sample_metadata.columns) == ["group", "batch"]
        assert result.sample_metadata.loc["S00", "group"] == "untreated_single_end"
        assert result.sample_metadata.loc["S05", "group"] == "treated_paired_end"
        assert result.assay_names == small_se.assay_names

    def test_unite_into_view_only_column_fails(self, small_se):
        with pytest.raises(ProtectedColumnError):
            unite(small_se, "condition", ["condition", "type"])

    def test_unite_into_view_only_column_keeping_sources(self, small_se):
        result = unite(small_se, "condition", ["condition", "type"], remove=False)

        assert isinstance(result, SummarizedExperiment)
        assert result.sample_metadata.loc["S01", "condition"] == "treated_single_end"
        assert "type" in result.sample_metadata.columns

    def test_unite_feature_columns(self, small_se):
        result = unite(small_se, "label", ["symbol", "biotype"], sep=":")

        assert list(result.feature_metadata.columns) == ["label"]
        assert result.feature_metadata.loc["FBgn0000000", "label"] == "gene0:lncRNA"

    def test_dataframe_input(self):
        df = pd.DataFrame({"a": ["x"], "b": ["y"]})
        assert unite(df, "ab", ["a", "b"])["ab"].tolist() == ["x_y"]


class TestSeparate:
    """separate() on a SummarizedExperiment."""

    @pytest.fixture
    def united(self, small_se):
        return unite(small_se, "group", ["condition", "type"])

    def test_separate_keeping_source(self, united):
        result = separate(united, "group", into=["cond", "kind"], sep="_", extra="merge", remove=False)

        assert isinstance(result, SummarizedExperiment)
        assert list(result.sample_metadata.columns) == ["group", "cond", "kind", "batch"]
        assert result.sample_metadata.loc["S00", "cond"] == "untreated"
        assert result.sample_metadata.loc["S00", "kind"] == "single_end"

    def test_separate_removing_view_only_column_fails(self, united):
        with pytest.raises(ProtectedColumnError) as excinfo:
            separate(united, "group", into=["cond", "kind"], sep="_", extra="merge")
        assert excinfo.value.columns == ["group"]

    def test_dataframe_input(self):
        df = pd.DataFrame({"g": ["a_b"]})
        result = separate(df, "g", into=["x", "y"])
        assert result["x"].tolist() == ["a"]


class TestPivotLonger:
    """pivot_longer() on a SummarizedExperiment."""

    def test_cardinality_change_returns_table(self, tiny_se, caplog):
        with caplog.at_level(logging.INFO, logger="tidyse"):
            result = pivot_longer(tiny_se, ["condition", "symbol"])

        assert isinstance(result, pd.DataFrame)
        assert len(result) == 8
        assert list(result.columns) == ["sample", "transcript", "counts", "name", "value"]
        assert DATA_FRAME_RETURNED_MESSAGE in caplog.text

    def test_pivot_assays(self, small_se):
        result = pivot_longer(small_se, ["counts", "logcounts"], names_to="assay", values_to="abundance")

        assert isinstance(result, pd.DataFrame)
        assert len(result) == 2 * 72
        assert result["assay"].tolist()[:2] == ["counts", "logcounts"]

    def test_same_cardinality_reconstructs(self, tiny_se):
        """A single pivoted column keeps one row per pair."""
        result = pivot_longer(tiny_se, "condition")

        assert isinstance(result, SummarizedExperiment)
        assert list(result.sample_metadata.columns) == ["name", "value"]
        assert result.sample_metadata.loc["s2", "value"] == "treated"

    def test_dataframe_input(self):
        df = pd.DataFrame({"id": [1], "a": [2], "b": [3]})
        assert len(pivot_longer(df, ["a", "b"])) == 2
