r"""Factored transition models and back-projection for approximate dynamic programming

    A factored Markov decision process lives on a state space $X = X_0\times\dots\times X_{n-1}$ far too large to enumerate.
    Its transition model is instead given variable by variable, each next-state variable $x'_i$ depending only on a small
    *parent tag* $\Gamma_i$ of current-state variables:
    $$P(x'\mid x) = \prod_{i=0}^{n-1} P_i(x'_i\mid x_{\Gamma_i}).$$
    Value functions are approximated as sums of *basis functions* $f_j$, each depending on a small tag $K_j$ of variables.

    The central operation of planning with such approximations is the *back-projection*
    $$g_j(x) = \sum_{x'} P(x'\mid x) f_j(x'_{K_j}),$$
    the expected next-step value of a basis function.
    It depends only on the variables $\bigcup_{k\in K_j}\Gamma_k$ and can be computed locally, without ever materializing $X$.

    :mod:`factored_adp.network` provides the transition models (:class:`DynamicBayesianNetwork` and its borrowing counterpart
    :class:`DynamicBayesianNetworkRef`, and the decision networks :class:`CompactDynamicDecisionNetwork` and
    :class:`FactoredDynamicDecisionNetwork`), :mod:`factored_adp.functions` the basis functions and their factored sums and
    :mod:`factored_adp.backproject` the back-projection algorithms.
"""

__version__ = "0.1.0"

from .exceptions import ConfigurationError, FactoredModelError, IndexOutOfRange, ScopeCoverageError
from .utils.factors import PartialFactors, PartialFactorsEnumerator, domain_size, merge
from .network import (
    Node, TransitionModel,
    DynamicBayesianNetwork, DBN, DynamicBayesianNetworkRef, DBNRef,
    DiffNode, CompactDynamicDecisionNetwork, CompactDDN,
    ActionNode, FactoredDynamicDecisionNetwork, FactoredDDN,
)
from .functions import BasisFunction, FactoredVector, BasisMatrix, Factored2DMatrix, plus_equal, plus_equal_matrix
from .backproject import back_project, back_project_actions
