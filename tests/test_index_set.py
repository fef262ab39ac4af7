"""Tests for the ranked sample index set."""

import numpy as np
import pytest

from sacseg.consensus.types import SampleIndexSet


class TestSampleIndexSet:
    """Test pool / full views and promotion."""

    def test_defaults_to_full_pool(self):
        """A fresh set samples from every index."""
        index_set = SampleIndexSet([4, 2, 7])
        assert index_set.size == 3
        assert len(index_set) == 3
        assert index_set.pool_size == 3
        assert list(index_set.pool) == [4, 2, 7]
        assert list(index_set.full) == [4, 2, 7]

    def test_promote_grows_pool_in_rank_order(self):
        """Promotion adds the next-ranked index and never reorders the arena."""
        index_set = SampleIndexSet([4, 2, 7, 9])
        index_set.reset(2)
        assert list(index_set.pool) == [4, 2]

        assert index_set.promote() == 7
        assert index_set.pool_size == 3
        assert list(index_set.pool) == [4, 2, 7]

        assert index_set.promote() == 9
        assert list(index_set.full) == [4, 2, 7, 9]

    def test_promote_past_end_raises(self):
        """Pool never exceeds the full set."""
        index_set = SampleIndexSet([0, 1])
        with pytest.raises(IndexError):
            index_set.promote()
        assert index_set.pool_size == 2

    def test_reset_bounds(self):
        """Reset rejects sizes outside [0, N]."""
        index_set = SampleIndexSet(np.arange(5))
        with pytest.raises(ValueError):
            index_set.reset(6)
        with pytest.raises(ValueError):
            index_set.reset(-1)

    def test_views_are_read_only(self):
        """Callers cannot write through pool or full."""
        index_set = SampleIndexSet(np.arange(5))
        with pytest.raises(ValueError):
            index_set.pool[0] = 3
        with pytest.raises(ValueError):
            index_set.full[0] = 3

    def test_duplicates_rejected(self):
        """Each point index appears once."""
        with pytest.raises(ValueError):
            SampleIndexSet([1, 2, 2])

    def test_rank_of(self):
        """Ranks are arena positions, not index values."""
        index_set = SampleIndexSet([5, 3, 9, 1])
        assert list(index_set.rank_of([9, 1])) == [2, 3]
        assert list(index_set.rank_of([5])) == [0]
        assert index_set.rank_of([]).size == 0

    def test_rank_of_unknown_index(self):
        """Indices outside the set are an error."""
        index_set = SampleIndexSet([5, 3, 9, 1])
        with pytest.raises(KeyError):
            index_set.rank_of([4])
