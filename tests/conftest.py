import itertools as it

import pytest
import torch

from factored_adp import (
    ActionNode, BasisFunction, CompactDynamicDecisionNetwork, DiffNode, DynamicBayesianNetwork,
    FactoredDynamicDecisionNetwork, Node, domain_size,
)


def random_table(rows, cols, generator):
    table = torch.rand(rows, cols, generator=generator, dtype=torch.double) + 0.05
    return table / table.sum(dim=1, keepdim=True)


def random_network(space, parents, generator):
    return DynamicBayesianNetwork(
        [Node(tag, random_table(domain_size(tag, space), space[child], generator))
         for child, tag in enumerate(parents)],
        space=space
    )


def random_basis(space, tag, generator):
    return BasisFunction(tag, torch.randn(domain_size(tag, space), generator=generator, dtype=torch.double))


def full_assignments(space):
    return [list(x) for x in it.product(*(range(size) for size in space))]


@pytest.fixture
def generator():
    return torch.Generator().manual_seed(0)


@pytest.fixture
def two_bit_space():
    return [2, 2]


@pytest.fixture
def two_bit_network():
    """Variable 0 is a fair coin, variable 1 mostly copies variable 0's current value."""
    return DynamicBayesianNetwork([
        Node((), [[0.5, 0.5]]),
        Node((0,), [[0.9, 0.1],
                    [0.2, 0.8]]),
    ], space=[2, 2])


@pytest.fixture
def flip_node():
    return Node((0,), [[0.0, 1.0],
                       [1.0, 0.0]])


@pytest.fixture
def compact_network(two_bit_network, flip_node):
    return CompactDynamicDecisionNetwork([[], [DiffNode(1, flip_node)]], two_bit_network)


@pytest.fixture
def space():
    return [2, 3, 2, 2]


@pytest.fixture
def parents():
    return [(0,), (0, 1), (1, 2), (2, 3)]


@pytest.fixture
def network(space, parents, generator):
    return random_network(space, parents, generator)


@pytest.fixture
def actions():
    return [2, 3]


@pytest.fixture
def factored_ddn(space, actions, generator):
    # Variable 3 ignores the actions, variable 1 depends on both action variables
    action_tags = [(0,), (0, 1), (1,), ()]
    nodes = []
    for child, action_tag in enumerate(action_tags):
        tables = []
        for a in range(domain_size(action_tag, actions)):
            # Parent tags may change with the action
            tag = (child,) if a % 2 == 0 else tuple(sorted({child, (child + 1) % len(space)}))
            tables.append(Node(tag, random_table(domain_size(tag, space), space[child], generator)))
        nodes.append(ActionNode(action_tag, tables))
    return FactoredDynamicDecisionNetwork(nodes, space=space, actions=actions)
