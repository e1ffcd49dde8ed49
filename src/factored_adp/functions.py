r""" Scope-restricted functions and their factored sums

    A *basis function* $f\colon X_K\to\mathbb{R}$ depends only on the variables of its tag $K$ and is stored densely,
    $f(x_K)$ at position $\mathrm{idx}(x_K)$.
    A *factored vector* represents the larger function $x\mapsto\sum_j f_j(x_{K_j})$ by its terms $f_j$.
    :class:`BasisMatrix` and :class:`Factored2DMatrix` are the analogues for functions of a state and an action.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

import torch

from factored_adp.exceptions import ConfigurationError
from factored_adp.utils.checks import DTYPE
from factored_adp.utils.factors import (
    Factors, PartialFactors, PartialFactorsEnumerator, PartialKeys, as_tag, to_index, to_index_partial
)


def _index(tag: PartialKeys, space: Factors, x: Factors | PartialFactors) -> int:
    if isinstance(x, PartialFactors):
        return to_index_partial(tag, space, x)
    return to_index(tag, space, x)


def _projection(space: Factors, tag: PartialKeys, subtag: PartialKeys) -> torch.Tensor:
    # Position over `subtag` of every assignment over `tag`, in the order of `tag`
    indices = []
    domain = PartialFactorsEnumerator(space, tag)
    while domain.is_valid():
        indices.append(to_index_partial(subtag, space, domain.current))
        domain.advance()
    return torch.tensor(indices, dtype=torch.long)


@dataclass(frozen=True, eq=False)
class BasisFunction:
    r"""Function $f\colon X_K\to\mathbb{R}$ of the variables of ``tag``

        ``values[idx(x_K)]`` holds $f(x_K)$.
    """
    tag: PartialKeys
    values: torch.Tensor

    def __post_init__(self) -> None:
        object.__setattr__(self, "tag", as_tag(self.tag))
        object.__setattr__(self, "values", torch.as_tensor(self.values, dtype=DTYPE).clone())
        if self.values.dim() != 1:
            raise ConfigurationError("Values of a basis function must be a vector.")

    def evaluate(self, space: Factors, x: Factors | PartialFactors) -> float:
        """ Return $f(x_K)$ for a full or partial assignment ``x`` covering :attr:`tag`"""
        return float(self.values[_index(self.tag, space, x)])


@dataclass(eq=False)
class FactoredVector:
    r"""Sum $\sum_j f_j$ of :class:`BasisFunction`'s"""
    bases: list[BasisFunction] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.bases = list(self.bases)

    def __len__(self) -> int:
        return len(self.bases)

    def __iter__(self) -> Iterator[BasisFunction]:
        return iter(self.bases)

    def evaluate(self, space: Factors, x: Factors | PartialFactors) -> float:
        r""" Return $\sum_j f_j(x_{K_j})$"""
        return sum((basis.evaluate(space, x) for basis in self.bases), 0.)


@dataclass(frozen=True, eq=False)
class BasisMatrix:
    r"""Function $q\colon X_K\times A_L\to\mathbb{R}$ of the state variables of ``tag`` and the action variables of ``action_tag``

        ``values[idx(x_K), idx(a_L)]`` holds $q(x_K, a_L)$.
    """
    tag: PartialKeys
    action_tag: PartialKeys
    values: torch.Tensor

    def __post_init__(self) -> None:
        object.__setattr__(self, "tag", as_tag(self.tag))
        object.__setattr__(self, "action_tag", as_tag(self.action_tag))
        object.__setattr__(self, "values", torch.as_tensor(self.values, dtype=DTYPE).clone())
        if self.values.dim() != 2:
            raise ConfigurationError("Values of a basis matrix must be a matrix.")

    def evaluate(self,
                 space: Factors,
                 actions: Factors,
                 s: Factors | PartialFactors,
                 a: Factors | PartialFactors) -> float:
        """ Return $q(s_K, a_L)$"""
        return float(self.values[_index(self.tag, space, s), _index(self.action_tag, actions, a)])


@dataclass(eq=False)
class Factored2DMatrix:
    r"""Sum $\sum_j q_j$ of :class:`BasisMatrix`'s"""
    bases: list[BasisMatrix] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.bases = list(self.bases)

    def __len__(self) -> int:
        return len(self.bases)

    def __iter__(self) -> Iterator[BasisMatrix]:
        return iter(self.bases)

    def evaluate(self,
                 space: Factors,
                 actions: Factors,
                 s: Factors | PartialFactors,
                 a: Factors | PartialFactors) -> float:
        r""" Return $\sum_j q_j(s_{K_j}, a_{L_j})$"""
        return sum((basis.evaluate(space, actions, s, a) for basis in self.bases), 0.)


def plus_equal(space: Factors, fv: FactoredVector, bf: BasisFunction) -> FactoredVector:
    """ Add ``bf`` to ``fv`` in place

        If ``fv`` has a term whose tag contains that of ``bf``, ``bf`` is folded into it;
        otherwise, ``bf`` is appended as a new term.
        Either way, the function represented by ``fv`` grows by ``bf``.

        Parameters
        ----------
        space
            The factor space
        fv
            The factored vector to add to
        bf
            The term to add

        Returns
        -------
        FactoredVector
            ``fv``
    """
    for j, basis in enumerate(fv.bases):
        if basis.tag == bf.tag:
            fv.bases[j] = BasisFunction(basis.tag, basis.values + bf.values)
            return fv
        if set(bf.tag) <= set(basis.tag):
            fv.bases[j] = BasisFunction(basis.tag, basis.values + bf.values[_projection(space, basis.tag, bf.tag)])
            return fv

    fv.bases.append(bf)
    return fv


def plus_equal_matrix(space: Factors,
                      actions: Factors,
                      fm: Factored2DMatrix,
                      bm: BasisMatrix) -> Factored2DMatrix:
    """ Add ``bm`` to ``fm`` in place

        Like :func:`plus_equal`: folds ``bm`` into the first term whose state and action tags both contain those of ``bm``,
        or appends it.

        Returns
        -------
        Factored2DMatrix
            ``fm``
    """
    for j, basis in enumerate(fm.bases):
        if basis.tag == bm.tag and basis.action_tag == bm.action_tag:
            fm.bases[j] = BasisMatrix(basis.tag, basis.action_tag, basis.values + bm.values)
            return fm
        if set(bm.tag) <= set(basis.tag) and set(bm.action_tag) <= set(basis.action_tag):
            rows = _projection(space, basis.tag, bm.tag)
            cols = _projection(actions, basis.action_tag, bm.action_tag)
            fm.bases[j] = BasisMatrix(basis.tag, basis.action_tag, basis.values + bm.values[rows][:, cols])
            return fm

    fm.bases.append(bm)
    return fm


def to_factored_vector(space: Factors, bases: Iterable[BasisFunction]) -> FactoredVector:
    """ Sum up ``bases`` into a :class:`FactoredVector` using :func:`plus_equal`"""
    fv = FactoredVector()
    for basis in bases:
        plus_equal(space, fv, basis)
    return fv
