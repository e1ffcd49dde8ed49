"""
Tests for decision networks.

Tests cover:
- Compact per-action networks as diffs to a default network
- Factored-action networks selecting tables by action tag
"""

import itertools as it

import pytest

from factored_adp import (
    ActionNode, CompactDDN, CompactDynamicDecisionNetwork, ConfigurationError, DiffNode,
    DynamicBayesianNetworkRef, FactoredDynamicDecisionNetwork, IndexOutOfRange, Node,
    PartialFactors, ScopeCoverageError, domain_size,
)

from conftest import full_assignments, random_table


class TestCompactDynamicDecisionNetwork:
    """Test diff-based decision networks."""

    def test_scenario_diff_transition(self, compact_network, two_bit_network, flip_node):
        transition = compact_network.make_diff_transition(1)
        assert isinstance(transition, DynamicBayesianNetworkRef)
        assert transition[0] is two_bit_network[0]
        assert transition[1] is flip_node

    def test_action_without_diffs_is_default(self, compact_network, two_bit_network):
        transition = compact_network.make_diff_transition(0)
        assert all(transition[i] is two_bit_network[i] for i in range(len(two_bit_network)))

    def test_overrides_exactly_diffed_variables(self, space, network, generator):
        diffs = [
            [DiffNode(1, Node((1,), random_table(3, 3, generator)))],
            [DiffNode(0, Node((), random_table(1, 2, generator))), DiffNode(3, Node((0, 3), random_table(4, 2, generator)))],
            [],
        ]
        cddn = CompactDynamicDecisionNetwork(diffs, network, space=space)

        for a, action_diffs in enumerate(diffs):
            transition = cddn.make_diff_transition(a)
            overrides = {diff.id: diff.node for diff in action_diffs}
            assert len(transition) == len(network)
            for i in range(len(network)):
                assert transition[i] is overrides.get(i, network[i])

    def test_default_left_untouched(self, compact_network, two_bit_network):
        compact_network.make_diff_transition(1)
        assert compact_network.default_transition is two_bit_network
        assert compact_network.make_diff_transition(0)[1] is two_bit_network[1]

    def test_accessors(self, compact_network, flip_node):
        assert len(compact_network) == 2
        assert compact_network.diff_nodes[0] == ()
        assert compact_network.diff_nodes[1] == (DiffNode(1, flip_node),)
        assert CompactDDN is CompactDynamicDecisionNetwork

    def test_transition_probability_under_action(self, two_bit_space, compact_network):
        # Under action 1, variable 1 deterministically flips variable 0
        assert compact_network.transition_probability(two_bit_space, [0, 0], 1, [1, 1]) == pytest.approx(0.5)
        assert compact_network.transition_probability(two_bit_space, [0, 0], 1, [1, 0]) == 0.0
        assert compact_network.transition_probability(two_bit_space, [0, 0], 0, [1, 1]) == pytest.approx(0.05)

    def test_diff_id_out_of_range(self, two_bit_network, flip_node):
        with pytest.raises(ConfigurationError):
            CompactDynamicDecisionNetwork([[DiffNode(2, flip_node)]], two_bit_network)

    def test_diff_shape_checked_against_space(self, two_bit_network):
        with pytest.raises(ConfigurationError):
            CompactDynamicDecisionNetwork([[DiffNode(1, Node((), [[1.0, 0.0]]))]], two_bit_network, space=[2, 3])

    def test_action_out_of_range(self, compact_network):
        with pytest.raises(IndexOutOfRange):
            compact_network.make_diff_transition(2)

    def test_duplicate_override_warns(self, two_bit_network, flip_node):
        other = Node((0,), [[0.5, 0.5], [0.5, 0.5]])
        with pytest.warns(UserWarning):
            cddn = CompactDynamicDecisionNetwork([[DiffNode(1, flip_node), DiffNode(1, other)]], two_bit_network)
        assert cddn.make_diff_transition(0)[1] is other

    def test_accepts_plain_tuples(self, two_bit_network, flip_node):
        cddn = CompactDynamicDecisionNetwork([[(1, flip_node)]], two_bit_network)
        assert cddn.diff_nodes[0][0].id == 1

    def test_as_table(self, compact_network):
        table = compact_network.as_table(width=40, height=10)
        assert table.startswith("CompactDynamicDecisionNetwork(")
        assert "{1}" in table


class TestFactoredDynamicDecisionNetwork:
    """Test factored-action decision networks."""

    def test_full_sums_to_one(self, space, actions, factored_ddn):
        for a in full_assignments(actions):
            total = sum(factored_ddn.transition_probability(space, actions, [1, 2, 0, 1], a, s1)
                        for s1 in full_assignments(space))
            assert total == pytest.approx(1.0)

    def test_depends_only_on_action_tags(self, actions):
        # Only action variable 0 matters; assignments differing in action variable 1 must agree
        nodes = [
            ActionNode((0,), [Node((), [[1.0, 0.0]]), Node((), [[0.25, 0.75]])]),
            ActionNode((0,), [Node((1,), [[0.5, 0.5]] * 2), Node((0,), [[0.1, 0.9]] * 2)]),
        ]
        fddn = FactoredDynamicDecisionNetwork(nodes, space=[2, 2], actions=actions)
        for s, s1 in it.product(full_assignments([2, 2]), full_assignments([2, 2])):
            for a0 in range(actions[0]):
                probabilities = {fddn.transition_probability([2, 2], actions, s, [a0, a1], s1) for a1 in range(actions[1])}
                assert len(probabilities) == 1

    def test_action_scope_invariance(self, space, actions, factored_ddn):
        # Variables 2 and 3 only see action variable 1
        s = PartialFactors(tuple(range(len(space))), (1, 0, 1, 1))
        for a, b in it.combinations(full_assignments(actions), 2):
            if a[1] != b[1]:
                continue
            for v2, v3 in it.product(range(space[2]), range(space[3])):
                s1 = PartialFactors((2, 3), (v2, v3))
                pa = factored_ddn.transition_probability(space, actions, s, PartialFactors((0, 1), tuple(a)), s1)
                pb = factored_ddn.transition_probability(space, actions, s, PartialFactors((0, 1), tuple(b)), s1)
                assert pa == pb

    def test_matches_action_transition(self, space, actions, factored_ddn):
        for a in full_assignments(actions):
            transition = factored_ddn.make_action_transition(actions, a)
            for s1 in full_assignments(space)[::5]:
                expected = transition.transition_probability(space, [0, 2, 1, 0], s1)
                assert factored_ddn.transition_probability(space, actions, [0, 2, 1, 0], a, s1) == pytest.approx(expected)

    def test_action_transition_aliases_tables(self, actions, factored_ddn):
        transition = factored_ddn.make_action_transition(actions, [1, 2])
        # Variable 1 has action tag (0, 1): index 1 + 2 * 2
        assert transition[1] is factored_ddn[1].nodes[5]
        assert transition[3] is factored_ddn[3].nodes[0]

    def test_partial_matches_full(self, space, actions, factored_ddn):
        s = [1, 2, 1, 0]
        a = [1, 1]
        s_partial = PartialFactors(tuple(range(len(space))), tuple(s))
        a_partial = PartialFactors((0, 1), tuple(a))
        for s1 in full_assignments(space):
            full = factored_ddn.transition_probability(space, actions, s, a, s1)
            partial = factored_ddn.transition_probability(
                space, actions, s_partial, a_partial, PartialFactors(tuple(range(len(space))), tuple(s1)))
            assert partial == pytest.approx(full)

    def test_partial_only_needs_covered_scopes(self, space, actions, factored_ddn):
        # Variable 3 ignores the actions
        p = factored_ddn.transition_probability(
            space, actions, PartialFactors((0, 3), (1, 1)), PartialFactors((), ()), PartialFactors((3,), (0,)))
        assert 0.0 <= p <= 1.0

    def test_partial_missing_action(self, space, actions, factored_ddn):
        with pytest.raises(ScopeCoverageError):
            factored_ddn.transition_probability(
                space, actions, PartialFactors((0, 1), (0, 0)), PartialFactors((1,), (0,)), PartialFactors((0,), (1,)))

    def test_partial_missing_parent(self, space, actions, factored_ddn):
        # Under action value 1, variable 0 also depends on variable 1
        with pytest.raises(ScopeCoverageError):
            factored_ddn.transition_probability(
                space, actions, PartialFactors((0,), (0,)), PartialFactors((0,), (1,)), PartialFactors((0,), (1,)))

    def test_value_out_of_range(self, space, actions, factored_ddn):
        with pytest.raises(IndexOutOfRange):
            factored_ddn.transition_probability(space, actions, [0, 0, 0, 0], [0, 3], [0, 0, 0, 0])
        with pytest.raises(IndexOutOfRange):
            factored_ddn.transition_probability(space, actions, [0, 0, 0, 0], [0, 0], [0, 0, 0, -1])
        with pytest.raises(IndexOutOfRange):
            factored_ddn.transition_probability(
                space, actions, PartialFactors((3,), (0,)), PartialFactors((), ()), PartialFactors((3,), (2,)))

    def test_wrong_number_of_tables(self, actions):
        nodes = [ActionNode((1,), [Node((), [[1.0, 0.0]])] * 2)]
        with pytest.raises(ConfigurationError):
            FactoredDynamicDecisionNetwork(nodes, space=[2], actions=actions)

    def test_action_tag_outside_action_space(self, actions):
        nodes = [ActionNode((2,), [Node((), [[1.0, 0.0]])] * 2)]
        with pytest.raises(ConfigurationError):
            FactoredDynamicDecisionNetwork(nodes, space=[2], actions=actions)

    def test_indexing(self, space, actions, factored_ddn):
        assert len(factored_ddn) == len(space)
        assert factored_ddn[1].action_tag == (0, 1)
        assert len(factored_ddn[1].nodes) == domain_size((0, 1), actions)
        with pytest.raises(IndexOutOfRange):
            factored_ddn[len(space)]

    def test_parent_tag_union(self, factored_ddn):
        assert factored_ddn.parent_tag(0) == (0, 1)
        assert factored_ddn.parent_tag(3) == (3,)

    def test_as_table(self, factored_ddn):
        table = factored_ddn.as_table(width=60, height=20)
        assert table.startswith("FactoredDynamicDecisionNetwork(")
        assert "{0, 1}" in table
