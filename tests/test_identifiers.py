"""Tests for reserved keys and the view-only column guard."""

import pytest

from tidyse.core.errors import ProtectedColumnError
from tidyse.core.identifiers import (
    FEATURE_KEY,
    SAMPLE_KEY,
    assert_mutable,
    get_needed_columns,
    get_special_columns,
    protected_columns,
)


class TestProtectedColumns:
    """protected_columns() snapshot."""

    def test_keys(self):
        assert get_needed_columns() == [SAMPLE_KEY, FEATURE_KEY]
        assert SAMPLE_KEY == "sample"
        assert FEATURE_KEY == "transcript"

    def test_includes_annotations_and_ranges(self, small_se):
        protected = protected_columns(small_se)

        assert protected == {
            "sample", "transcript",
            "condition", "type", "batch",
            "symbol", "biotype",
            "seqnames", "start", "end", "strand",
        }

    def test_assays_are_not_protected(self, small_se):
        protected = protected_columns(small_se)
        assert "counts" not in protected
        assert "logcounts" not in protected

    def test_special_columns_without_ranges(self, plain_se):
        assert get_special_columns(plain_se) == []

    def test_snapshot_is_immutable(self, tiny_se):
        assert isinstance(protected_columns(tiny_se), frozenset)


class TestAssertMutable:
    """assert_mutable() only blocks removal of protected columns."""

    def test_removal_of_protected_column_fails(self, small_se):
        protected = protected_columns(small_se)
        with pytest.raises(ProtectedColumnError) as excinfo:
            assert_mutable(["condition", "new"], protected, removal_requested=True)

        assert excinfo.value.columns == ["condition"]
        assert "view only" in str(excinfo.value)
        assert "make a copy" in str(excinfo.value)

    def test_error_is_value_error(self, small_se):
        with pytest.raises(ValueError):
            assert_mutable(["sample"], protected_columns(small_se), removal_requested=True)

    def test_keeping_source_is_allowed(self, small_se):
        assert_mutable(["condition"], protected_columns(small_se), removal_requested=False)

    def test_unprotected_target_is_allowed(self, small_se):
        assert_mutable(["condition_type"], protected_columns(small_se), removal_requested=True)

    def test_none_targets_ignored(self, small_se):
        assert_mutable([None, "new"], protected_columns(small_se), removal_requested=True)
