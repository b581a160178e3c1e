"""Tests for nest() and unnest()."""

import logging

import numpy as np
import pandas as pd
import pytest

from conftest import list_column
from tidyse.convert.flatten import as_tibble
from tidyse.core.errors import ReservedKeyError
from tidyse.core.experiment import SummarizedExperiment
from tidyse.verbs.nesting import NestedFrame, nest, unnest


def _sorted(table: pd.DataFrame, columns) -> pd.DataFrame:
    return (
        table[list(columns)]
        .sort_values(["sample", "transcript"])
        .reset_index(drop=True)
    )


@pytest.fixture
def per_cell_se():
    """2 × 2 container whose count values repeat across samples and features."""
    return SummarizedExperiment(
        assays={"counts": np.array([[1, 2], [2, 1]], dtype=np.int64)},
        sample_metadata=pd.DataFrame({"condition": ["a", "b"]}, index=pd.Index(["s1", "s2"])),
        feature_metadata=pd.DataFrame({"symbol": ["g1", "g2"]}, index=pd.Index(["f1", "f2"])),
    )


class TestNest:
    """nest() on a SummarizedExperiment."""

    def test_nest_by_sample_annotation(self, small_se):
        nested = nest(small_se, by="condition")

        assert isinstance(nested, NestedFrame)
        assert list(nested.columns) == ["condition", "data"]
        assert nested["condition"].tolist() == ["untreated", "treated"]

        first = nested["data"].iloc[0]
        assert isinstance(first, SummarizedExperiment)
        assert list(first.sample_ids) == ["S00", "S02", "S04"]
        assert first.n_features == small_se.n_features
        assert "condition" not in first.sample_metadata.columns
        assert first.row_ranges is not None
        np.testing.assert_array_equal(
            first.assay("counts"), small_se.assay("counts")[:, [0, 2, 4]]
        )

    def test_nest_by_feature_annotation(self, small_se):
        nested = nest(small_se, by="biotype")

        lnc = nested["data"].iloc[0]
        assert nested["biotype"].iloc[0] == "lncRNA"
        assert lnc.shape == (4, 6)
        assert list(lnc.feature_metadata.columns) == ["symbol"]

    def test_nest_by_both_axes(self, small_se):
        nested = nest(small_se, by=["condition", "biotype"])

        assert len(nested) == 4
        assert all(isinstance(cell, SummarizedExperiment) for cell in nested["data"])
        assert sum(cell.n_samples * cell.n_features for cell in nested["data"]) == 72

    def test_custom_name(self, small_se):
        nested = nest(small_se, by="condition", name="se")
        assert list(nested.columns) == ["condition", "se"]

    @pytest.mark.parametrize("key", ["sample", "transcript"])
    def test_reserved_key_in_by(self, small_se, key):
        with pytest.raises(ReservedKeyError, match=f"columns {key} among the nesting keys"):
            nest(small_se, by=[key, "condition"])

    def test_reserved_key_through_cols(self, small_se):
        """Nesting only some columns leaves the keys outside."""
        with pytest.raises(ReservedKeyError) as excinfo:
            nest(small_se, cols=["counts", "logcounts"])
        assert excinfo.value.columns == ["sample", "transcript"]

    def test_per_cell_key_gives_plain_tables(self, per_cell_se, caplog):
        with caplog.at_level(logging.INFO, logger="tidyse.verbs.nesting"):
            nested = nest(per_cell_se, by="counts")

        assert isinstance(nested, NestedFrame)
        assert nested["counts"].tolist() == [1, 2]
        assert all(isinstance(cell, pd.DataFrame) for cell in nested["data"])
        assert "plain tables" in caplog.text

    def test_dataframe_input(self, small_se):
        nested = nest(as_tibble(small_se), by="condition")

        assert not isinstance(nested, NestedFrame)
        assert isinstance(nested["data"].iloc[0], pd.DataFrame)

    def test_nested_frame_keeps_type(self, small_se):
        nested = nest(small_se, by="condition")

        assert isinstance(nested.head(1), NestedFrame)
        assert isinstance(nested[nested["condition"] == "treated"], NestedFrame)


class TestUnnest:
    """unnest() and the nest/unnest inverse."""

    def test_unnest_containers(self, small_se):
        long = as_tibble(small_se)
        result = unnest(nest(small_se, by="condition"))

        assert type(result) is pd.DataFrame
        assert len(result) == small_se.n_samples * small_se.n_features
        pd.testing.assert_frame_equal(
            _sorted(result, long.columns), _sorted(long, long.columns), check_dtype=False
        )

    def test_unnest_puts_outer_columns_last(self, small_se):
        result = unnest(nest(small_se, by=["condition", "biotype"]))
        assert list(result.columns[-2:]) == ["condition", "biotype"]

    def test_unnest_custom_name(self, small_se):
        result = unnest(nest(small_se, by="condition", name="se"), "se")
        assert len(result) == 72

    def test_unnest_plain_tables_keeps_nested_frame(self, per_cell_se):
        result = unnest(nest(per_cell_se, by="counts"))

        assert isinstance(result, NestedFrame)
        assert len(result) == 4
        assert list(result.columns) == ["counts", "sample", "condition", "transcript", "symbol"]

    def test_plain_table_inverse(self, small_se):
        long = as_tibble(small_se)
        result = unnest(nest(long, by="condition"), "data")

        pd.testing.assert_frame_equal(
            _sorted(result, long.columns), _sorted(long, long.columns), check_dtype=False
        )

    def test_unnest_containers_names_sep(self, small_se):
        result = unnest(nest(small_se, by="condition"), names_sep="_")

        assert len(result) == 72
        assert {"data_sample", "data_transcript", "data_counts"} <= set(result.columns)
        assert "sample" not in result.columns
        assert result.columns[-1] == "condition"

    def test_unnest_containers_keep_empty(self, small_se):
        nested = nest(small_se, by="condition")
        nested["data"] = list_column([nested["data"].iloc[0], None], index=nested.index)

        assert len(unnest(nested)) == 36

        result = unnest(nested, keep_empty=True)
        assert len(result) == 37
        assert result["condition"].iloc[-1] == "treated"
        assert pd.isna(result["sample"].iloc[-1])

    def test_several_container_columns_rejected(self, small_se):
        nested = nest(small_se, by="condition")
        nested["copy"] = list_column(list(nested["data"]), index=nested.index)

        with pytest.raises(ValueError, match="one column at a time"):
            unnest(nested, ["data", "copy"])

    def test_rejects_container(self, small_se):
        with pytest.raises(TypeError, match="unnest expects"):
            unnest(small_se)
