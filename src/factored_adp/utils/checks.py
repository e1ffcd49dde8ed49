""" Validation of conditional probability tables
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Optional, TYPE_CHECKING

import torch

from factored_adp.exceptions import ConfigurationError
from factored_adp.utils.factors import Factors, domain_size

if TYPE_CHECKING:
    from factored_adp.network import Node


ROW_SUM_ATOL = 1e-6
DTYPE = torch.double

_checking = True


def checking() -> bool:
    """ Indicates whether tables are validated on construction"""
    return _checking


@contextmanager
def unchecked():
    '''Temporarily skip the validation of tables on construction.

    For bulk construction of tables known to be well-formed.
    Scope coverage of probability queries is enforced regardless.
    '''
    global _checking
    previous = _checking
    try:
        _checking = False
        yield
    finally:
        _checking = previous


def check_node(node: Node,
               space: Optional[Factors] = None,
               child: Optional[int] = None,
               *, atol: Optional[float] = None) -> None:
    r""" Check that ``node`` holds a conditional probability table

        The table must be a matrix with non-negative entries whose rows sum to one.
        If ``space`` is given, it must moreover have $\prod_{k\in\mathrm{tag}}|X_k|$ rows
        and, if ``child`` is given as well, $|X_{\mathrm{child}}|$ columns.

        Parameters
        ----------
        node
            The node to check
        space
            The factor space the node lives in (optional)
        child
            The variable the node is the table of (optional)
        atol
            Tolerance of the row sums, by default :data:`ROW_SUM_ATOL`

        Raises
        ------
        ConfigurationError
            Raised if any of the above does not hold.
    """
    if atol is None:
        atol = ROW_SUM_ATOL

    matrix = node.matrix
    if matrix.dim() != 2:
        raise ConfigurationError(f"Table must be a matrix, got {matrix.dim()} dimensions.")
    if (matrix < 0).any():
        raise ConfigurationError("Table has negative entries.")

    row_sums = matrix.sum(dim=1)
    if not torch.allclose(row_sums, torch.ones_like(row_sums), rtol=0., atol=atol):
        bad_row = int((row_sums - 1.).abs().argmax())
        raise ConfigurationError(f"Row {bad_row} of table sums to {float(row_sums[bad_row])}, not 1.")

    if space is None:
        return

    for key in node.tag:
        if key >= len(space):
            raise ConfigurationError(f"Parent {key} is not in a space of {len(space)} variables.")
    if (rows := domain_size(node.tag, space)) != matrix.shape[0]:
        raise ConfigurationError(f"Table has {matrix.shape[0]} rows but parents {node.tag} have {rows} assignments.")
    if child is not None and space[child] != matrix.shape[1]:
        raise ConfigurationError(f"Table has {matrix.shape[1]} columns but variable {child} has {space[child]} values.")
