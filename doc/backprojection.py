import torch

from factored_adp import (
    BasisFunction, CompactDynamicDecisionNetwork, DiffNode, DynamicBayesianNetwork, FactoredVector, Node,
    back_project,
)

# Ring of n machines, each either down (0) or up (1); a machine stays up if it and its neighbour i-1 are up
n = 4
space = [2] * n

default_transition = DynamicBayesianNetwork([
    Node(sorted({(i - 1) % n, i}), [[0.95, 0.05],  # Both down
                                    [0.5, 0.5],
                                    [0.5, 0.5],
                                    [0.1, 0.9]])   # Both up
    for i in range(n)
], space=space)

# Action i reboots machine i: it is up with high probability, whatever the state
reboot = Node((), [[0.05, 0.95]])
cddn = CompactDynamicDecisionNetwork([[DiffNode(i, reboot)] for i in range(n)], default_transition)

# Value function approximation: one indicator per machine being up
values = FactoredVector([BasisFunction((i,), torch.tensor([0., 1.])) for i in range(n)])

for a in range(len(cddn)):
    g = back_project(space, cddn.make_diff_transition(a), values)  # Expected number of machines up, per basis
    print(f"Reboot machine {a}:")
    for basis in g:
        print(f"  {basis.tag}: {basis.values.tolist()}")
