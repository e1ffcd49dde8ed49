r"""Factor spaces, scopes and their enumeration

    A *factor space* $X = X_0\times\dots\times X_{n-1}$ is given by the cardinalities $(|X_0|, \dots, |X_{n-1}|)$ of its variables.
    A *tag* $K=(k_0 < \dots < k_{m-1})$ selects variables of the space and a *partial assignment* $x_K$ gives values to exactly those.

    Throughout :mod:`factored_adp`, an assignment $x_K$ is identified with its mixed-radix index
    $$\mathrm{idx}(x_K) = \sum_{j=0}^{m-1} x_{k_j} \prod_{l < j} |X_{k_l}|,$$
    so that the first key of a tag is the least significant digit.
    Dense tables, value vectors and the enumeration order of :class:`PartialFactorsEnumerator` all follow this convention.
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from typing import NamedTuple

from factored_adp.exceptions import ConfigurationError, IndexOutOfRange, ScopeCoverageError


Factors = Sequence[int]
PartialKeys = tuple[int, ...]


class PartialFactors(NamedTuple):
    """Assignment to the variables of a tag

        ``values[j]`` is the value of variable ``keys[j]``.
    """
    keys: PartialKeys
    values: tuple[int, ...]


def as_tag(keys: Iterable[int]) -> PartialKeys:
    """ Return ``keys`` as a tag

        Raises
        ------
        ConfigurationError
            Raised if ``keys`` is not strictly increasing or contains negative ids.
    """
    tag = tuple(int(key) for key in keys)
    if any(key < 0 for key in tag) or any(lhs >= rhs for lhs, rhs in zip(tag, tag[1:])):
        raise ConfigurationError(f"Tag {tag} is not a strictly increasing sequence of variable ids.")
    return tag


def merge(lhs: Iterable[int], rhs: Iterable[int]) -> PartialKeys:
    """Sorted, duplicate-free union of two tags"""
    return tuple(sorted(set(lhs) | set(rhs)))


def domain_size(tag: Iterable[int], space: Factors) -> int:
    r""" Return the number of joint assignments of the variables in ``tag``

        Equal to $\prod_{k\in K} |X_k|$; the empty tag has exactly one (empty) assignment.
    """
    return math.prod(space[key] for key in tag)


def checked_value(key: int, value: int, space: Factors) -> int:
    """ Return ``value`` if it is a value of variable ``key``

        Raises
        ------
        IndexOutOfRange
            Raised if not ``0 <= value < space[key]``.
    """
    if not 0 <= value < space[key]:
        raise IndexOutOfRange(f"Value {value} of variable {key} is not in range({space[key]}).")
    return value


def to_index(tag: Iterable[int], space: Factors, assignment: Factors) -> int:
    """ Return the mixed-radix index of a full assignment projected onto ``tag``

        Parameters
        ----------
        tag
            The variables to project onto
        space
            The factor space
        assignment
            A value for every variable of ``space``

        Returns
        -------
        int
            The index of ``assignment`` restricted to ``tag``

        Raises
        ------
        IndexOutOfRange
            Raised if a value of ``assignment`` on ``tag`` is out of range.
    """
    index, multiplier = 0, 1
    for key in tag:
        index += checked_value(key, assignment[key], space) * multiplier
        multiplier *= space[key]
    return index


def to_index_partial(tag: Iterable[int], space: Factors, assignment: PartialFactors) -> int:
    """ Return the mixed-radix index of a partial assignment projected onto ``tag``

        The keys of ``assignment`` must be a superset of ``tag``.

        Raises
        ------
        ConfigurationError
            Raised if the keys of ``assignment`` are not strictly increasing or do not match its values.
        ScopeCoverageError
            Raised if a variable of ``tag`` is not assigned by ``assignment``.
        IndexOutOfRange
            Raised if a value of ``assignment`` on ``tag`` is out of range.
    """
    keys, values = assignment
    if len(keys) != len(values) or any(lhs >= rhs for lhs, rhs in zip(keys, keys[1:])):
        raise ConfigurationError(f"Keys {keys} of a partial assignment of {len(values)} values are not a tag.")
    index, multiplier = 0, 1
    j = 0
    for key in tag:
        # Both sequences are sorted, so a single forward walk suffices
        while j < len(keys) and keys[j] < key:
            j += 1
        if j == len(keys) or keys[j] != key:
            raise ScopeCoverageError(f"Variable {key} is required but only {keys} are assigned.")
        index += checked_value(key, values[j], space) * multiplier
        multiplier *= space[key]
    return index


class PartialFactorsEnumerator:
    r"""Resettable cursor over all joint assignments of a tag

        Visits the assignments $x_K$ in order of their index (see :mod:`factored_adp.utils.factors`),
        so the $i$-th assignment visited is the one stored at position $i$ of a dense array over $K$.
        The state of the cursor is explicit: nested loops drive it with :meth:`advance` and restart it with :meth:`reset`.
    """
    def __init__(self, space: Factors, tag: Iterable[int]) -> None:
        self._space = tuple(space)
        self._keys = tuple(tag)

        for key in self._keys:
            if not 0 <= key < len(self._space):
                raise IndexOutOfRange(f"Variable {key} is not in a space of {len(self._space)} variables.")

        self._values = [0] * len(self._keys)
        self._valid = True

    @property
    def keys(self) -> PartialKeys:
        """The tag being enumerated"""
        return self._keys

    @property
    def current(self) -> PartialFactors:
        """The assignment the cursor points to"""
        return PartialFactors(self._keys, tuple(self._values))

    def __len__(self) -> int:
        return domain_size(self._keys, self._space)

    def is_valid(self) -> bool:
        """ Indicates whether :attr:`current` is an assignment not visited before"""
        return self._valid

    def advance(self) -> None:
        """ Move on to the assignment with the next index (invalidates the cursor after the last one)"""
        if not self._valid:
            return
        for j, key in enumerate(self._keys):
            self._values[j] += 1
            if self._values[j] < self._space[key]:
                return
            self._values[j] = 0
        self._valid = False

    def reset(self) -> None:
        """ Move back to the first assignment"""
        self._values = [0] * len(self._keys)
        self._valid = True
