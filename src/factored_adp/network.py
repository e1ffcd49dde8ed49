r""" Factored transition models

    A factored transition model over a factor space $X = X_0\times\dots\times X_{n-1}$ describes the transition $x\to x'$ variable by variable:
    $$P(x'\mid x) = \prod_{i=0}^{n-1} P_i(x'_i\mid x_{\Gamma_i})$$
    where $\Gamma_i$ is the *parent tag* of variable $i$.
    Each factor $P_i$ is stored as a :class:`Node`, and a sequence of them, one per variable, as a :class:`DynamicBayesianNetwork`.

    Decision networks attach such transition models to actions, either compactly, as differences to a default network (:class:`CompactDynamicDecisionNetwork`),
    or per variable, depending on a small subset of the variables of a factored action space (:class:`FactoredDynamicDecisionNetwork`).
"""
from __future__ import annotations

import logging
import operator
import warnings
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import NamedTuple, Optional, Protocol, runtime_checkable

import torch

from factored_adp.exceptions import ConfigurationError, IndexOutOfRange
from factored_adp.utils._repr import create_table, tag_repr
from factored_adp.utils.checks import DTYPE, check_node, checking
from factored_adp.utils.factors import (
    Factors, PartialFactors, PartialKeys, as_tag, checked_value, domain_size, merge, to_index, to_index_partial
)


logger = logging.getLogger(__name__)


def _checked_index(i: int, size: int, what: str) -> int:
    try:
        i = operator.index(i)
    except TypeError:
        raise TypeError(f"Query {what}s using int's.") from None
    if not 0 <= i < size:
        raise IndexOutOfRange(f"No {what} {i}, have {size}.")
    return i


def _full_or_partial(*assignments) -> bool:
    # True for partial, False for full assignments; no mixing
    partial = [isinstance(assignment, PartialFactors) for assignment in assignments]
    if all(partial):
        return True
    if any(partial):
        raise TypeError("Provide either only full assignments or only `PartialFactors`.")
    return False


@dataclass(frozen=True, eq=False)
class Node:
    r"""Conditional probability table of a single variable

        Saves a parent tag $\Gamma$ and a matrix $M$ with
        $$M[\mathrm{idx}(x_\Gamma), v] = P(x'_i = v\mid x_\Gamma).$$
        The child $i$ is not stored: it is the position of the node within its network.

        On construction, ``matrix`` is copied into a :data:`factored_adp.utils.checks.DTYPE` tensor and,
        unless within :func:`factored_adp.utils.checks.unchecked`, checked to be row-stochastic.
    """
    tag: PartialKeys
    matrix: torch.Tensor

    def __post_init__(self) -> None:
        object.__setattr__(self, "tag", as_tag(self.tag))
        object.__setattr__(self, "matrix", torch.as_tensor(self.matrix, dtype=DTYPE).clone())
        if checking():
            check_node(self)

    @property
    def rows(self) -> int:
        """The number of parent assignments"""
        return self.matrix.shape[0]

    @property
    def cols(self) -> int:
        """The number of child values"""
        return self.matrix.shape[1]

    def __repr__(self) -> str:
        return f"Node(tag={tag_repr(self.tag)}, shape={tuple(self.matrix.shape)})"


@runtime_checkable
class TransitionModel(Protocol):
    """What back-projection needs of a transition model"""
    def __len__(self) -> int: ...

    def __getitem__(self, i: int) -> Node: ...

    def transition_probability(self, space: Factors,
                               s: Factors | PartialFactors,
                               s1: Factors | PartialFactors) -> float: ...


class _Network(Sequence):
    """Sequence of :class:`Node`'s, one per variable, with the transition probability queries"""

    _nodes: tuple[Node, ...]

    @property
    def nodes(self) -> tuple[Node, ...]:
        """The nodes, indexed by the variable they are the table of"""
        return self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, i: int) -> Node:
        return self._nodes[_checked_index(i, len(self._nodes), "variable")]

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def transition_probability(self,
                               space: Factors,
                               s: Factors | PartialFactors,
                               s1: Factors | PartialFactors) -> float:
        r""" Return the probability of a transition $s\to s'$

            For full assignments, computes
            $$P(s'\mid s) = \prod_{i} M_i[\mathrm{idx}(s_{\Gamma_i}), s'_i].$$
            For partial assignments, the product only runs over the variables assigned by ``s1``,
            and ``s`` must assign all their parents.

            Parameters
            ----------
            space
                The factor space
            s
                The initial assignment (full or :class:`PartialFactors`)
            s1
                The final assignment (of the same kind as ``s``)

            Returns
            -------
            float
                The probability of the transition

            Raises
            ------
            ScopeCoverageError
                Raised if ``s`` misses a parent of a variable of ``s1``.
            IndexOutOfRange
                Raised if a value of an assignment is out of range for its variable.
        """
        probability = 1.
        if _full_or_partial(s, s1):
            for key, value in zip(as_tag(s1.keys), s1.values, strict=True):
                node = self[key]
                probability *= float(node.matrix[to_index_partial(node.tag, space, s), checked_value(key, value, space)])
        else:
            for i, (node, value) in enumerate(zip(self._nodes, s1, strict=True)):
                probability *= float(node.matrix[to_index(node.tag, space, s), checked_value(i, value, space)])
        return probability

    def as_table(self, width: Optional[int] = None, height: Optional[int] = None) -> str:
        """ Return a string representation of ``self`` as a table

            Parameters
            ----------
            width
                The width of the table (optional).
            height
                The height of the table (optional).
        """
        rows = [(tag_repr(node.tag), f"{node.rows} x {node.cols}") for node in self._nodes]
        return "\n".join(create_table(self.__class__.__name__, ["parents", "table"], rows, width=width, height=height))

    def __repr__(self) -> str:
        return self.as_table()


class DynamicBayesianNetwork(_Network):
    r"""Factored transition model owning its nodes

        Saves nodes $(\Gamma_0, M_0), \dots, (\Gamma_{n-1}, M_{n-1})$ and implements
        $$P(x'\mid x) = \prod_{i=0}^{n-1} M_i[\mathrm{idx}(x_{\Gamma_i}), x'_i].$$
    """
    def __init__(self, nodes: Iterable[Node], space: Optional[Factors] = None) -> None:
        """ Construct :class:`DynamicBayesianNetwork` from its nodes

            Parameters
            ----------
            nodes
                The nodes, the $i$-th one being the table of variable $i$
            space
                The factor space; if given, the shapes of the tables are checked against it (optional)

            Raises
            ------
            ConfigurationError
                Raised if ``space`` is given and does not fit the nodes.
        """
        self._nodes = tuple(nodes)
        for node in self._nodes:
            if not isinstance(node, Node):
                raise TypeError("May only hold `Node`'s.")

        if space is not None and checking():
            if len(space) != len(self._nodes):
                raise ConfigurationError(f"Space has {len(space)} variables but there are {len(self._nodes)} nodes.")
            for child, node in enumerate(self._nodes):
                check_node(node, space, child)

        logger.debug("Built network of %d nodes", len(self._nodes))


DBN = DynamicBayesianNetwork


class DynamicBayesianNetworkRef(_Network):
    """Factored transition model borrowing its nodes

        Same interface as :class:`DynamicBayesianNetwork`, but every entry is an alias of a :class:`Node` owned elsewhere:
        no table is copied or checked on construction.
        A :class:`DynamicBayesianNetworkRef` is a view, valid only as long as its source is not rebuilt.
    """
    def __init__(self, nodes: Iterable[Node]) -> None:
        self._nodes = tuple(nodes)

    @classmethod
    def view(cls, network: TransitionModel) -> DynamicBayesianNetworkRef:
        """ Construct a :class:`DynamicBayesianNetworkRef` aliasing all nodes of ``network``"""
        return cls(network[i] for i in range(len(network)))


DBNRef = DynamicBayesianNetworkRef


class DiffNode(NamedTuple):
    """Override of the node of variable ``id``"""
    id: int
    node: Node


class CompactDynamicDecisionNetwork:
    r"""Per-action transition models as differences to a default model

        Saves a default :class:`DynamicBayesianNetwork` and, for every action $a$, a list of :class:`DiffNode`'s
        replacing the nodes of the variables the action affects.
        The network of an action is assembled on demand by :meth:`make_diff_transition` without copying any table.
    """
    def __init__(self,
                 diffs: Sequence[Iterable[DiffNode | tuple[int, Node]]],
                 default_transition: DynamicBayesianNetwork,
                 space: Optional[Factors] = None) -> None:
        """ Construct :class:`CompactDynamicDecisionNetwork` from per-action diffs and a default network

            Parameters
            ----------
            diffs
                For each action, the overrides of the default network
            default_transition
                The default network
            space
                The factor space; if given, the shapes of the override tables are checked against it (optional)

            Raises
            ------
            ConfigurationError
                Raised if an override refers to a variable the default network does not have.
        """
        self._default_transition = default_transition
        self._diffs = tuple(
            tuple(DiffNode(int(id_), node) for id_, node in action_diffs)
            for action_diffs in diffs
        )

        size = len(default_transition)
        for action, action_diffs in enumerate(self._diffs):
            seen = set()
            for id_, node in action_diffs:
                if not 0 <= id_ < size:
                    raise ConfigurationError(f"Action {action} overrides variable {id_}, but the default network has {size}.")
                if not isinstance(node, Node):
                    raise TypeError("May only override with `Node`'s.")
                if space is not None and checking():
                    check_node(node, space, id_)
                if id_ in seen:
                    warnings.warn(f"Action {action} overrides variable {id_} more than once. Using the last override.")
                seen.add(id_)

        logger.debug("Built compact decision network of %d actions over %d variables", len(self._diffs), size)

    @property
    def default_transition(self) -> DynamicBayesianNetwork:
        """The default network"""
        return self._default_transition

    @property
    def diff_nodes(self) -> tuple[tuple[DiffNode, ...], ...]:
        """The overrides, per action"""
        return self._diffs

    def __len__(self) -> int:
        """ Return the number of actions"""
        return len(self._diffs)

    def make_diff_transition(self, a: int) -> DynamicBayesianNetworkRef:
        """ Construct the network of action ``a``

            Starts from aliases of all nodes of the default network and replaces those overridden by ``a``.

            Parameters
            ----------
            a
                The action

            Returns
            -------
            DynamicBayesianNetworkRef
                The network of ``a``, borrowing its nodes from ``self``

            Raises
            ------
            IndexOutOfRange
                Raised if there is no action ``a``.
        """
        nodes = list(self._default_transition.nodes)
        for id_, node in self._diffs[_checked_index(a, len(self._diffs), "action")]:
            nodes[id_] = node
        return DynamicBayesianNetworkRef(nodes)

    def transition_probability(self,
                               space: Factors,
                               s: Factors | PartialFactors,
                               a: int,
                               s1: Factors | PartialFactors) -> float:
        """ Return the probability of a transition from ``s`` to ``s1`` under action ``a``

            See :meth:`DynamicBayesianNetwork.transition_probability`.
        """
        return self.make_diff_transition(a).transition_probability(space, s, s1)

    def as_table(self, width: Optional[int] = None, height: Optional[int] = None) -> str:
        """ Return a string representation of ``self`` as a table, listing the overridden variables per action"""
        rows = [(tag_repr(sorted({id_ for id_, _ in action_diffs})),) for action_diffs in self._diffs]
        return "\n".join(create_table(self.__class__.__name__, ["overrides"], rows, width=width, height=height))

    def __repr__(self) -> str:
        return self.as_table()


CompactDDN = CompactDynamicDecisionNetwork


class ActionNode(NamedTuple):
    """Tables of a variable, one per joint assignment of ``action_tag``"""
    action_tag: PartialKeys
    nodes: tuple[Node, ...]


class FactoredDynamicDecisionNetwork:
    r"""Transition model over a factored action space

        For a factored action space $A = A_0\times\dots\times A_{m-1}$, variable $i$ depends on the action only through
        the variables of its *action tag* $\Lambda_i$:
        $$P(x'\mid x, a) = \prod_{i} M_{i, \mathrm{idx}(a_{\Lambda_i})}[\mathrm{idx}(x_{\Gamma_{i, \mathrm{idx}(a_{\Lambda_i})}}), x'_i].$$
        Each variable is stored as an :class:`ActionNode`; its parent tag may differ from one action assignment to another.
    """
    def __init__(self,
                 nodes: Iterable[ActionNode | tuple[Iterable[int], Iterable[Node]]],
                 space: Optional[Factors] = None,
                 actions: Optional[Factors] = None) -> None:
        """ Construct :class:`FactoredDynamicDecisionNetwork` from per-variable action nodes

            Parameters
            ----------
            nodes
                The $i$-th entry holds the action tag of variable $i$ and its tables for every assignment of that tag
            space
                The factor space (optional)
            actions
                The action space; if given together with ``space``, the number and shapes of the tables are checked (optional)

            Raises
            ------
            ConfigurationError
                Raised if ``space`` and ``actions`` are given and do not fit the nodes.
        """
        self._nodes = tuple(ActionNode(as_tag(action_tag), tuple(tables)) for action_tag, tables in nodes)
        for entry in self._nodes:
            if not all(isinstance(node, Node) for node in entry.nodes):
                raise TypeError("May only hold `Node`'s.")

        if space is not None and actions is not None and checking():
            if len(space) != len(self._nodes):
                raise ConfigurationError(f"Space has {len(space)} variables but there are {len(self._nodes)} nodes.")
            for child, (action_tag, tables) in enumerate(self._nodes):
                if any(key >= len(actions) for key in action_tag):
                    raise ConfigurationError(f"Action tag {action_tag} of variable {child} is not in a space of {len(actions)} action variables.")
                if (expected := domain_size(action_tag, actions)) != len(tables):
                    raise ConfigurationError(f"Variable {child} has {len(tables)} tables but its action tag has {expected} assignments.")
                for node in tables:
                    check_node(node, space, child)

        logger.debug("Built factored decision network over %d variables", len(self._nodes))

    @property
    def nodes(self) -> tuple[ActionNode, ...]:
        """The action nodes, indexed by the variable they are the tables of"""
        return self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, i: int) -> ActionNode:
        return self._nodes[_checked_index(i, len(self._nodes), "variable")]

    def __iter__(self) -> Iterator[ActionNode]:
        return iter(self._nodes)

    def parent_tag(self, i: int) -> PartialKeys:
        """ Return the union of the parent tags of variable ``i`` over all action assignments"""
        tag = ()
        for node in self[i].nodes:
            tag = merge(tag, node.tag)
        return tag

    def transition_probability(self,
                               space: Factors,
                               actions: Factors,
                               s: Factors | PartialFactors,
                               a: Factors | PartialFactors,
                               s1: Factors | PartialFactors) -> float:
        """ Return the probability of a transition from ``s`` to ``s1`` under the action ``a``

            For partial assignments, the product only runs over the variables assigned by ``s1``;
            ``a`` must assign their action tags and ``s`` the parents of the tables these select.

            Parameters
            ----------
            space
                The factor space
            actions
                The action space
            s
                The initial assignment (full or :class:`PartialFactors`)
            a
                The action (of the same kind as ``s``)
            s1
                The final assignment (of the same kind as ``s``)

            Returns
            -------
            float
                The probability of the transition

            Raises
            ------
            ScopeCoverageError
                Raised if ``a`` or ``s`` misses a required variable.
            IndexOutOfRange
                Raised if a value of an assignment is out of range for its variable.
        """
        probability = 1.
        if _full_or_partial(s, a, s1):
            for key, value in zip(as_tag(s1.keys), s1.values, strict=True):
                action_tag, tables = self[key]
                node = tables[to_index_partial(action_tag, actions, a)]
                probability *= float(node.matrix[to_index_partial(node.tag, space, s), checked_value(key, value, space)])
        else:
            for i, ((action_tag, tables), value) in enumerate(zip(self._nodes, s1, strict=True)):
                node = tables[to_index(action_tag, actions, a)]
                probability *= float(node.matrix[to_index(node.tag, space, s), checked_value(i, value, space)])
        return probability

    def make_action_transition(self, actions: Factors, a: Factors) -> DynamicBayesianNetworkRef:
        """ Construct the network of the full action assignment ``a``

            Returns
            -------
            DynamicBayesianNetworkRef
                The network selecting, for every variable, the table of ``a``, borrowing its nodes from ``self``
        """
        return DynamicBayesianNetworkRef(
            tables[to_index(action_tag, actions, a)] for action_tag, tables in self._nodes
        )

    def as_table(self, width: Optional[int] = None, height: Optional[int] = None) -> str:
        """ Return a string representation of ``self`` as a table"""
        rows = [(tag_repr(entry.action_tag), tag_repr(self.parent_tag(i)), str(len(entry.nodes)))
                for i, entry in enumerate(self._nodes)]
        return "\n".join(create_table(self.__class__.__name__, ["actions", "parents", "tables"], rows,
                                      width=width, height=height))

    def __repr__(self) -> str:
        return self.as_table()


FactoredDDN = FactoredDynamicDecisionNetwork
