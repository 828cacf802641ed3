"""Tests for the batcher."""

import math

import pytest

from bookmark_archive.core.batcher import DEFAULT_BATCH_SIZE, make_batches


class TestMakeBatches:
    """Tests for make_batches()."""

    def test_scenario_45_by_20(self):
        batches = make_batches(list(range(45)), 20)
        assert [len(b) for b in batches] == [20, 20, 5]

    def test_empty_input_yields_no_batches(self):
        assert make_batches([], 20) == []

    def test_exact_multiple_has_no_short_batch(self):
        batches = make_batches(list(range(40)), 20)
        assert [len(b) for b in batches] == [20, 20]

    def test_batch_size_one(self):
        assert make_batches(["a", "b", "c"], 1) == [["a"], ["b"], ["c"]]

    def test_batch_larger_than_input(self):
        assert make_batches(["a", "b"], 20) == [["a", "b"]]

    @pytest.mark.parametrize("size", [1, 2, 3, 7, 20])
    @pytest.mark.parametrize("count", [0, 1, 5, 19, 20, 21, 64])
    def test_batches_partition_input_in_order(self, count, size):
        items = list(range(count))
        batches = make_batches(items, size)

        assert len(batches) == math.ceil(count / size)
        assert [x for batch in batches for x in batch] == items
        assert all(len(b) == size for b in batches[:-1])

    @pytest.mark.parametrize("size", [0, -1])
    def test_invalid_batch_size_raises(self, size):
        with pytest.raises(ValueError):
            make_batches([1, 2, 3], size)

    def test_default_batch_size(self):
        assert DEFAULT_BATCH_SIZE == 20
        assert [len(b) for b in make_batches(list(range(25)))] == [20, 5]

    def test_batches_are_new_lists(self):
        items = [1, 2, 3]
        batches = make_batches(items, 3)
        batches[0].append(4)
        assert items == [1, 2, 3]
