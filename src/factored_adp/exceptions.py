"""Exceptions raised by :mod:`factored_adp`

    All of them are programming errors of the caller: every operation of the package is pure and deterministic,
    so nothing here is meant to be retried.
"""


class FactoredModelError(Exception):
    """Base class of the errors raised by :mod:`factored_adp`"""


class ConfigurationError(FactoredModelError, ValueError):
    """A conditional probability table is malformed

        Raised at construction if a table has negative entries, rows not summing to one,
        or a shape that does not fit the parents' and the child's cardinalities.
    """


class ScopeCoverageError(FactoredModelError, ValueError):
    """A partial assignment misses a variable required by a query"""


class IndexOutOfRange(FactoredModelError, IndexError):
    """A variable, action or diff id beyond the declared size of a network"""
