"""
Unit tests for GPTree and the traversal / growth helpers.

Tests cover traversal, random growth, evaluation (including protected
division), rendering, copying, sub-tree crossover, point mutation, and
binary persistence.
"""

import io
import random
import pytest
import numpy as np
from unittest.mock import patch

from evorep.errors     import CorruptDataError
from evorep.gp         import ADD, SUB, MUL, DIV, NUM_FUNC, GPContext, GPTree, grow, traverse
from evorep.utils      import binio


# Codes used throughout (see the 'gp_context' fixture):
C0, C1, X0 = 4, 5, 6   # constant 2.0, constant 3.0, input x[0]


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def random_context():
    """Context with a random constant pool, for growth tests."""
    return GPContext(n_constants=10, x_dim=3, init_depth=5)


# ============================================================================
# Test traverse
# ============================================================================

class TestTraverse:
    """Test sub-tree delimitation."""

    def test_terminal_consumes_one(self):
        assert traverse([C0], 0) == 1

    def test_operator_consumes_two_subtrees(self):
        assert traverse([ADD, C0, C1], 0) == 3

    def test_nested_subtree(self):
        tree = [MUL, SUB, X0, C0, C1]
        assert traverse(tree, 0) == 5
        assert traverse(tree, 1) == 4
        assert traverse(tree, 4) == 5

    def test_invalid_code_raises(self):
        with pytest.raises(CorruptDataError, match="Invalid GP function"):
            traverse([-1], 0)

    def test_overrun_raises(self):
        with pytest.raises(CorruptDataError, match="past the end"):
            traverse([ADD, C0], 0)


# ============================================================================
# Test grow / random
# ============================================================================

class TestGrow:
    """Test random tree growth."""

    def test_grow_exceeding_max_len_returns_minus_one(self, gp_context):
        buffer = [0] * 10
        # root is forced to be an operator, whose first child does not fit
        assert grow(gp_context, buffer, 0, 1, 3) == -1

    def test_grow_depth_zero_gives_terminal(self, gp_context):
        buffer = [0] * 10
        assert grow(gp_context, buffer, 0, 10, 0) == 1
        assert NUM_FUNC <= buffer[0] < gp_context.terminal_max

    @pytest.mark.parametrize("seed", range(20))
    def test_random_tree_is_complete(self, random_context, seed):
        """Every generated tree is exactly one complete prefix expression."""
        random.seed(seed)
        tree = GPTree.random(random_context)
        assert traverse(tree.tree, 0) == tree.len

    @pytest.mark.parametrize("seed", range(10))
    def test_random_tree_root_is_operator(self, random_context, seed):
        random.seed(seed)
        tree = GPTree.random(random_context)
        assert tree.tree[0] < NUM_FUNC

    def test_random_tree_codes_in_range(self, random_context):
        tree = GPTree.random(random_context)
        assert all(0 <= code < random_context.terminal_max for code in tree.tree)

    def test_random_tree_has_one_mutation_rate(self, random_context):
        tree = GPTree.random(random_context)
        assert tree.mu.shape == (1,)
        assert 0.0 < tree.mu[0] <= 1.0


# ============================================================================
# Test construction
# ============================================================================

class TestConstruction:
    """Test explicit construction and validation."""

    def test_incomplete_tree_raises(self, gp_context):
        with pytest.raises(CorruptDataError):
            GPTree(gp_context, [ADD, C0])

    def test_tree_with_remainder_raises(self, gp_context):
        with pytest.raises(CorruptDataError, match="ends at 1"):
            GPTree(gp_context, [C0, C1])

    def test_empty_tree_raises(self, gp_context):
        with pytest.raises(CorruptDataError, match="Empty"):
            GPTree(gp_context, [])

    def test_terminal_out_of_range_raises(self, gp_context):
        with pytest.raises(CorruptDataError, match="terminal"):
            GPTree(gp_context, [ADD, C0, 7])


# ============================================================================
# Test evaluate
# ============================================================================

class TestEvaluate:
    """Test expression evaluation."""

    def test_add_constants(self, gp_context):
        """[ADD, c0, c1] with c0=2.0 and c1=3.0 evaluates to 5.0 on any input."""
        tree = GPTree(gp_context, [ADD, C0, C1])
        assert tree.evaluate([0.0]) == 5.0
        assert tree.evaluate([123.4]) == 5.0

    def test_input_terminal(self, gp_context):
        tree = GPTree(gp_context, [SUB, X0, C0])
        assert tree.evaluate([5.0]) == 3.0

    def test_multiply(self, gp_context):
        tree = GPTree(gp_context, [MUL, X0, C1])
        assert tree.evaluate([1.5]) == 4.5

    def test_divide(self, gp_context):
        tree = GPTree(gp_context, [DIV, C1, C0])
        assert tree.evaluate([0.0]) == 1.5

    def test_protected_division_returns_numerator(self, gp_context):
        """2.0 / (3.0 - 3.0) returns 2.0 instead of failing."""
        tree = GPTree(gp_context, [DIV, C0, SUB, C1, C1])
        assert tree.evaluate([0.0]) == 2.0

    def test_protected_division_by_zero_input(self, gp_context):
        tree = GPTree(gp_context, [DIV, C1, X0])
        assert tree.evaluate([0.0]) == 3.0

    def test_evaluation_leaves_cursor_untouched(self, gp_context):
        tree = GPTree(gp_context, [ADD, C0, C1])
        tree.evaluate([0.0])
        assert tree.p == 0

    def test_repeated_evaluation_is_consistent(self, random_context):
        tree = GPTree.random(random_context)
        x = [0.1, -0.2, 0.3]
        assert tree.evaluate(x) == tree.evaluate(x)

    def test_closed_context_raises(self, gp_context):
        tree = GPTree(gp_context, [ADD, C0, C1])
        gp_context.close()
        with pytest.raises(ValueError, match="closed"):
            tree.evaluate([0.0])


# ============================================================================
# Test render
# ============================================================================

class TestRender:
    """Test infix rendering."""

    def test_render_terminal_returns_next_position(self, gp_context):
        tree = GPTree(gp_context, [ADD, C0, X0])
        text, p = tree.render(1)
        assert text == "2.000000"
        assert p == 2

    def test_render_full_tree(self, gp_context):
        tree = GPTree(gp_context, [ADD, C0, X0])
        text, p = tree.render(0)
        assert text == "(2.000000 + IN:0 )"
        assert p == 3

    def test_render_nested(self, gp_context):
        tree = GPTree(gp_context, [MUL, SUB, X0, C0, C1])
        text, _ = tree.render()
        assert text == "((IN:0  - 2.000000) * 3.000000)"

    def test_str(self, gp_context):
        tree = GPTree(gp_context, [DIV, C0, C1])
        assert str(tree) == "GP tree: (2.000000 / 3.000000)"


# ============================================================================
# Test copy
# ============================================================================

class TestCopy:
    """Test deep copying."""

    def test_copy_is_equal(self, random_context):
        tree = GPTree.random(random_context)
        clone = tree.copy()
        assert clone.tree == tree.tree
        assert np.array_equal(clone.mu, tree.mu)
        assert clone.p == tree.p

    def test_copy_is_independent(self, gp_context):
        tree = GPTree(gp_context, [ADD, C0, C1])
        clone = tree.copy()
        clone.tree[1] = X0
        clone.mu[0] = 0.5
        assert tree.tree == [ADD, C0, C1]
        assert clone.mu is not tree.mu


# ============================================================================
# Test crossover
# ============================================================================

class TestCrossover:
    """Test sub-tree crossover."""

    def test_crossover_splices_chosen_subtrees(self, gp_context):
        """child1 = prefix1 + subtree2 + suffix1, child2 = prefix2 + subtree1 + suffix2."""
        t1 = GPTree(gp_context, [ADD, C0, C1])
        t2 = GPTree(gp_context, [MUL, SUB, X0, C0, C1])

        with patch('evorep.gp.tree.random.randrange', side_effect=[1, 1]):
            t1.crossover(t2)

        assert t1.tree == [ADD, SUB, X0, C0, C1]
        assert t2.tree == [MUL, C0, C1]
        assert t1.len == 5
        assert t2.len == 3

    def test_crossover_at_roots_swaps_trees(self, gp_context):
        t1 = GPTree(gp_context, [ADD, C0, C1])
        t2 = GPTree(gp_context, [X0])

        with patch('evorep.gp.tree.random.randrange', side_effect=[0, 0]):
            t1.crossover(t2)

        assert t1.tree == [X0]
        assert t2.tree == [ADD, C0, C1]

    @pytest.mark.parametrize("seed", range(20))
    def test_crossover_children_are_complete(self, random_context, seed):
        random.seed(seed)
        t1 = GPTree.random(random_context)
        t2 = GPTree.random(random_context)
        total = t1.len + t2.len

        t1.crossover(t2)

        assert traverse(t1.tree, 0) == t1.len
        assert traverse(t2.tree, 0) == t2.len
        assert t1.len + t2.len == total


# ============================================================================
# Test mutate
# ============================================================================

class TestMutate:
    """Test point mutation."""

    def test_certain_mutation_preserves_node_kinds(self, random_context):
        tree = GPTree.random(random_context)
        before = list(tree.tree)
        tree.mu[0] = 1.0

        with patch('evorep.gp.tree.sam_adapt'):
            changed = tree.mutate()

        assert changed is True
        assert tree.len == len(before)
        for old, new in zip(before, tree.tree):
            assert (old < NUM_FUNC) == (new < NUM_FUNC)
            assert 0 <= new < random_context.terminal_max
        assert traverse(tree.tree, 0) == tree.len

    def test_zero_rate_changes_nothing(self, random_context):
        tree = GPTree.random(random_context)
        before = list(tree.tree)
        tree.mu[0] = 0.0

        with patch('evorep.gp.tree.sam_adapt'):
            changed = tree.mutate()

        assert changed is False
        assert tree.tree == before

    def test_mutation_adapts_rates(self, gp_context):
        tree = GPTree(gp_context, [ADD, C0, C1])
        with patch('evorep.gp.tree.sam_adapt') as mock_adapt:
            tree.mutate()
        mock_adapt.assert_called_once()
        assert mock_adapt.call_args[0][0] is tree.mu


# ============================================================================
# Test save / load
# ============================================================================

class TestPersistence:
    """Test binary persistence."""

    def test_save_returns_element_count(self, gp_context):
        tree = GPTree(gp_context, [ADD, C0, C1])
        fp = io.BytesIO()
        # cursor + length + 3 codes + 1 rate
        assert tree.save(fp) == 6
        assert len(fp.getvalue()) == 4 + 4 + 3 * 4 + 8

    def test_round_trip_reproduces_evaluation(self, random_context):
        tree = GPTree.random(random_context)
        fp = io.BytesIO()
        tree.save(fp)
        fp.seek(0)

        loaded = GPTree.load(fp, random_context)

        x = [0.25, -1.5, 2.0]
        assert loaded.tree == tree.tree
        assert np.array_equal(loaded.mu, tree.mu)
        assert loaded.evaluate(x) == tree.evaluate(x)

    def test_load_zero_length_raises(self, gp_context):
        fp = io.BytesIO()
        binio.write_ints(fp, [0, 0])
        fp.seek(0)
        with pytest.raises(CorruptDataError, match="length"):
            GPTree.load(fp, gp_context)

    def test_load_truncated_raises(self, gp_context):
        fp = io.BytesIO()
        binio.write_ints(fp, [0, 3, ADD, C0])
        fp.seek(0)
        with pytest.raises(CorruptDataError):
            GPTree.load(fp, gp_context)

    def test_load_incomplete_codes_raises(self, gp_context):
        fp = io.BytesIO()
        binio.write_ints(fp, [0, 2, ADD, C0])
        binio.write_doubles(fp, [0.01])
        fp.seek(0)
        with pytest.raises(CorruptDataError):
            GPTree.load(fp, gp_context)

    def test_file_round_trip(self, gp_context, tmp_path):
        tree = GPTree(gp_context, [DIV, X0, C1])
        path = tmp_path / 'tree.bin'
        tree.save_file(path)
        loaded = GPTree.load_file(path, gp_context)
        assert loaded.evaluate([6.0]) == 2.0


# ============================================================================
# Test deep trees
# ============================================================================

class TestDeepTrees:
    """Test trees far deeper than the interpreter's recursion limit."""

    DEPTH = 5000

    @pytest.fixture
    def left_deep(self, gp_context):
        """(((c1 + c1) + c1) ... + c1), an operator chain down the left side."""
        return GPTree(gp_context, [ADD] * self.DEPTH + [C1] * (self.DEPTH + 1))

    @pytest.fixture
    def right_deep(self, gp_context):
        """(x + (x + (x + ... x))), an operator chain down the right side."""
        return GPTree(gp_context, [ADD, X0] * self.DEPTH + [X0])

    def test_construction_and_traverse(self, left_deep, right_deep):
        assert traverse(left_deep.tree, 0) == 2 * self.DEPTH + 1
        assert traverse(right_deep.tree, 0) == 2 * self.DEPTH + 1

    def test_evaluate(self, left_deep, right_deep):
        assert left_deep.evaluate([0.0]) == 3.0 * (self.DEPTH + 1)
        assert right_deep.evaluate([1.0]) == float(self.DEPTH + 1)

    def test_render(self, left_deep):
        text, p = left_deep.render()
        assert p == left_deep.len
        assert text.count('+') == self.DEPTH

    def test_save_load(self, right_deep, gp_context):
        fp = io.BytesIO()
        right_deep.save(fp)
        fp.seek(0)
        loaded = GPTree.load(fp, gp_context)
        assert loaded.evaluate([2.0]) == right_deep.evaluate([2.0])

    def test_deep_incomplete_tree_is_corrupt(self, gp_context):
        with pytest.raises(CorruptDataError, match="past the end"):
            GPTree(gp_context, [ADD] * self.DEPTH + [C1] * self.DEPTH)
