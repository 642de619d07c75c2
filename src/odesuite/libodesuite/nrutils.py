"""
Error types and assertion utilities shared by the ODE integrators.

The classic ``nrerror`` reported a message and stopped the program.  Here
every failure is a distinct exception type so a caller can tell a
completed integration from one that gave up, and decide for itself
whether a condition is fatal.

Author: odesuite developers
"""

from typing import Any, Optional


# ===================================================================
#  Integrator exceptions
# ===================================================================

class IntegratorError(RuntimeError):
    """
    Base class for failures reported by the adaptive integrators.

    Parameters
    ----------
    msg : str
        Human readable description.
    x : float, optional
        Independent-variable coordinate reached when the failure occurred.
    """

    def __init__(self, msg: str, x: Optional[float] = None):
        super().__init__(msg)
        self.x = x


class StepsizeUnderflow(IntegratorError):
    """Shrinking the step left ``x + h`` numerically equal to ``x``."""


class StepsizeBelowMinimum(IntegratorError):
    """
    The proposed next step fell below the caller's ``hmin``.

    Advisory by default: ``odeint`` logs and counts it, and only raises it
    in strict mode.
    """

    def __init__(self, msg: str, x: Optional[float] = None,
                 hnext: Optional[float] = None):
        super().__init__(msg, x)
        self.hnext = hnext


class StepCountExhausted(IntegratorError):
    """
    ``maxstp`` iterations passed without reaching the end of the segment.

    The state vector handed to ``odeint`` holds the partial result at
    ``x``.
    """

    def __init__(self, msg: str, x: Optional[float] = None,
                 nok: int = 0, nbad: int = 0):
        super().__init__(msg, x)
        self.nok = nok
        self.nbad = nbad


class NonFiniteError(IntegratorError):
    """The scaled error norm of a trial step was NaN or infinite."""


# ===================================================================
#  Assertion utilities
# ===================================================================

def assertTrue(test: bool, msg: str = "Assertion failed") -> None:
    """Raise ``ValueError`` with *msg* unless *test* holds."""
    if not test:
        raise ValueError(msg)


def assertEq(*args: Any, msg: str = "Equality assertion failed") -> Any:
    """
    Assert all positional arguments are equal; return the common value.

    Parameters
    ----------
    *args
        Values that must be equal.
    msg : str
        Message on failure.

    Returns
    -------
    value
        The common value.

    Raises
    ------
    ValueError
        If any value differs from the first.
    """
    first = args[0]
    if all(a == first for a in args[1:]):
        return first
    raise ValueError(f"{msg}: {args}")
