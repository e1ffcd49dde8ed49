r""" Back-projection of scope-restricted functions through factored transition models

    For a transition model $P$ and a function $f$ of the next-state variables of its tag $K$, the *back-projection* is
    $$g(x) = \mathbb{E}[f(X'_K)\mid X = x] = \sum_{x'_K} P(x'_K\mid x) f(x'_K).$$
    As $P(x'_K\mid x) = \prod_{k\in K} P_k(x'_k\mid x_{\Gamma_k})$, $g$ depends only on the variables of $\bigcup_{k\in K}\Gamma_k$,
    and computing it takes $|X_{\cup\Gamma_k}|\cdot|X_K|$ probability queries, regardless of the total number of variables.

    Back-projection is linear in $f$, so a :class:`factored_adp.functions.FactoredVector` is back-projected term by term.
"""
from __future__ import annotations

import logging

import torch

from factored_adp.exceptions import ConfigurationError
from factored_adp.functions import (
    BasisFunction, BasisMatrix, Factored2DMatrix, FactoredVector, plus_equal, plus_equal_matrix
)
from factored_adp.network import FactoredDynamicDecisionNetwork, TransitionModel
from factored_adp.utils.checks import DTYPE
from factored_adp.utils.factors import Factors, PartialFactorsEnumerator, domain_size, merge


logger = logging.getLogger(__name__)


def _basis_values(space: Factors, bf: BasisFunction) -> list[float]:
    if (size := domain_size(bf.tag, space)) != len(bf.values):
        raise ConfigurationError(f"Basis function over {bf.tag} has {len(bf.values)} values, expected {size}.")
    return bf.values.tolist()


def back_project(space: Factors,
                 network: TransitionModel,
                 f: BasisFunction | FactoredVector) -> BasisFunction | FactoredVector:
    r""" Back-project ``f`` through ``network``

        For a :class:`BasisFunction` $f$ over $K$, computes the :class:`BasisFunction`
        $$g(x_\Gamma) = \sum_{x'_K} P(x'_K\mid x_\Gamma) f(x'_K), \quad \Gamma = \bigcup_{k\in K}\Gamma_k.$$
        For a :class:`FactoredVector`, back-projects every term and sums up the results with :func:`factored_adp.functions.plus_equal`.

        Parameters
        ----------
        space
            The factor space
        network
            The transition model, e.g. a :class:`factored_adp.network.DynamicBayesianNetwork` or a
            :class:`factored_adp.network.DynamicBayesianNetworkRef`
        f
            The function of the next state

        Returns
        -------
        BasisFunction | FactoredVector
            The back-projection, of the same kind as ``f``

        Raises
        ------
        ConfigurationError
            Raised if the values of ``f`` do not fit its tag.
    """
    if isinstance(network, FactoredDynamicDecisionNetwork):
        raise TypeError("Back-project through `FactoredDynamicDecisionNetwork`'s using `back_project_actions`.")

    if isinstance(f, FactoredVector):
        retval = FactoredVector()
        for basis in f:
            plus_equal(space, retval, back_project(space, network, basis))
        return retval
    elif not isinstance(f, BasisFunction):
        raise TypeError("May only back-project `BasisFunction`'s and `FactoredVector`'s")

    f_values = _basis_values(space, f)

    # The result depends on the parents of every variable f depends on
    tag = ()
    for d in f.tag:
        tag = merge(tag, network[d].tag)

    # Every entry is written exactly once below
    values = torch.empty(domain_size(tag, space), dtype=DTYPE)
    logger.debug("Back-projecting basis over %s onto %s (%d x %d queries)", f.tag, tag, len(values), len(f_values))

    domain = PartialFactorsEnumerator(space, tag)
    rhs_domain = PartialFactorsEnumerator(space, f.tag)

    id_ = 0
    while domain.is_valid():
        x = domain.current
        # Next-state assignments are visited in the order f.values is stored in
        current = 0.
        i = 0
        while rhs_domain.is_valid():
            current += f_values[i] * network.transition_probability(space, x, rhs_domain.current)
            i += 1
            rhs_domain.advance()
        values[id_] = current

        id_ += 1
        domain.advance()
        rhs_domain.reset()

    assert id_ == len(values)

    return BasisFunction(tag, values)


def back_project_actions(space: Factors,
                         actions: Factors,
                         ddn: FactoredDynamicDecisionNetwork,
                         f: BasisFunction | FactoredVector) -> BasisMatrix | Factored2DMatrix:
    r""" Back-project ``f`` through ``ddn`` for every action

        For a :class:`BasisFunction` $f$ over $K$, computes the :class:`BasisMatrix`
        $$q(x_\Gamma, a_\Lambda) = \sum_{x'_K} P(x'_K\mid x_\Gamma, a_\Lambda) f(x'_K)$$
        where $\Lambda$ is the union of the action tags of the variables of $K$ and $\Gamma$ the union of
        the parent tags of all their tables.
        For a :class:`FactoredVector`, back-projects every term and sums up the results with :func:`factored_adp.functions.plus_equal_matrix`.

        Parameters
        ----------
        space
            The factor space
        actions
            The action space
        ddn
            The transition model
        f
            The function of the next state

        Returns
        -------
        BasisMatrix | Factored2DMatrix
            The back-projection, a :class:`BasisMatrix` for a :class:`BasisFunction` and a :class:`Factored2DMatrix` for a :class:`FactoredVector`

        Raises
        ------
        ConfigurationError
            Raised if the values of ``f`` do not fit its tag.
    """
    if isinstance(f, FactoredVector):
        retval = Factored2DMatrix()
        for basis in f:
            plus_equal_matrix(space, actions, retval, back_project_actions(space, actions, ddn, basis))
        return retval
    elif not isinstance(f, BasisFunction):
        raise TypeError("May only back-project `BasisFunction`'s and `FactoredVector`'s")

    f_values = _basis_values(space, f)

    tag, action_tag = (), ()
    for d in f.tag:
        entry = ddn[d]
        action_tag = merge(action_tag, entry.action_tag)
        for node in entry.nodes:
            tag = merge(tag, node.tag)

    # Every entry is written exactly once below
    values = torch.empty(domain_size(tag, space), domain_size(action_tag, actions), dtype=DTYPE)
    logger.debug("Back-projecting basis over %s onto %s x actions %s (%d x %d x %d queries)",
                 f.tag, tag, action_tag, values.shape[0], values.shape[1], len(f_values))

    s_domain = PartialFactorsEnumerator(space, tag)
    a_domain = PartialFactorsEnumerator(actions, action_tag)
    rhs_domain = PartialFactorsEnumerator(space, f.tag)

    s_id = 0
    while s_domain.is_valid():
        s = s_domain.current
        a_id = 0
        while a_domain.is_valid():
            a = a_domain.current
            current = 0.
            i = 0
            while rhs_domain.is_valid():
                current += f_values[i] * ddn.transition_probability(space, actions, s, a, rhs_domain.current)
                i += 1
                rhs_domain.advance()
            values[s_id, a_id] = current

            a_id += 1
            a_domain.advance()
            rhs_domain.reset()

        assert a_id == values.shape[1]

        s_id += 1
        s_domain.advance()
        a_domain.reset()

    assert s_id == values.shape[0]

    return BasisMatrix(tag, action_tag, values)
