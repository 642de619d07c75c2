"""
Adaptive-stepsize ODE integration with the Cash-Karp Runge-Kutta pair.

Advances a state vector ``y`` of a first-order system
``dy/dx = D(x, y, params)`` while holding the local truncation error to a
fractional tolerance ``eps``, and samples the solution at arbitrary
caller-supplied coordinates.

Vectorised with NumPy; real and complex state vectors share one code path.

Implements:
    - Cash-Karp Runge-Kutta step (rkck)
    - Quality-controlled adaptive RK step (rkqs)
    - Adaptive single-segment driver (odeint)
    - Multi-point sampling driver (int_sys_eqns)
    - Object wrapper bundling derivative, params and settings (Integrator)

Derivative contract
-------------------
``D(x, y, params) -> array_like`` of the same length as ``y``.  ``D`` must
not mutate ``y`` or ``params``; ``params`` is forwarded untouched.
Exceptions raised by ``D`` propagate through every layer unchanged.
"""

from dataclasses import dataclass

import numpy as np

from .logger import get_logger
from .nrutils import (
    NonFiniteError,
    StepCountExhausted,
    StepsizeBelowMinimum,
    StepsizeUnderflow,
    assertEq,
    assertTrue,
)
from .typeintegrator import MAXSTP, IntegratorConfig

log = get_logger(__name__)

# ─── Step-control constants ──────────────────────────────────────────
SAFETY = 0.9
PGROW = -0.20
PSHRNK = -0.25
ERRCON = 1.89e-4  # (5 / SAFETY) ** (1 / PGROW): caps growth at 5x
TINY = 1.0e-30


# ─── Cash-Karp Butcher tableau ───────────────────────────────────────
_a2 = 1.0 / 5.0
_a3 = 3.0 / 10.0
_a4 = 3.0 / 5.0
_a5 = 1.0
_a6 = 7.0 / 8.0

_b21 = 1.0 / 5.0
_b31 = 3.0 / 40.0
_b32 = 9.0 / 40.0
_b41 = 3.0 / 10.0
_b42 = -9.0 / 10.0
_b43 = 6.0 / 5.0
_b51 = -11.0 / 54.0
_b52 = 5.0 / 2.0
_b53 = -70.0 / 27.0
_b54 = 35.0 / 27.0
_b61 = 1631.0 / 55296.0
_b62 = 175.0 / 512.0
_b63 = 575.0 / 13824.0
_b64 = 44275.0 / 110592.0
_b65 = 253.0 / 4096.0

# 5th-order weights; c2 = c5 = 0.
_c1 = 37.0 / 378.0
_c3 = 250.0 / 621.0
_c4 = 125.0 / 594.0
_c6 = 512.0 / 1771.0

# Error weights: 5th-order minus embedded 4th-order weights.
_dc1 = _c1 - 2825.0 / 27648.0
_dc3 = _c3 - 18575.0 / 48384.0
_dc4 = _c4 - 13525.0 / 55296.0
_dc5 = -277.0 / 14336.0
_dc6 = _c6 - 1.0 / 4.0


def _deriv(D, x, y, params):
    return np.asarray(D(x, y, params))


# ═════════════════════════════════════════════════════════════════════
#  Cash-Karp Runge-Kutta step  (rkck)
#  Returns (yout, yerr).  Does NOT modify y.
# ═════════════════════════════════════════════════════════════════════

def rkck(y, dydx, x, h, D, params=None):
    """
    Advance ``y`` over one trial step with the Cash-Karp tableau.

    Parameters
    ----------
    y : ndarray
        State at ``x`` (not modified).
    dydx : ndarray
        Derivative at ``(x, y)``; reused as the first stage.
    x : float
        Current coordinate.
    h : float
        Signed trial stepsize.
    D : callable(x, y, params) -> array_like
        Derivative function; evaluated five more times.
    params : object, optional
        Forwarded unchanged to ``D``.

    Returns
    -------
    yout : ndarray
        Fifth-order estimate of ``y(x + h)``.
    yerr : ndarray
        Difference between the fifth- and embedded fourth-order estimates.
    """
    ytmp = y + _b21 * h * dydx
    ak2 = _deriv(D, x + _a2 * h, ytmp, params)

    ytmp = y + h * (_b31 * dydx + _b32 * ak2)
    ak3 = _deriv(D, x + _a3 * h, ytmp, params)

    ytmp = y + h * (_b41 * dydx + _b42 * ak2 + _b43 * ak3)
    ak4 = _deriv(D, x + _a4 * h, ytmp, params)

    ytmp = y + h * (_b51 * dydx + _b52 * ak2 + _b53 * ak3 + _b54 * ak4)
    ak5 = _deriv(D, x + _a5 * h, ytmp, params)

    ytmp = y + h * (_b61 * dydx + _b62 * ak2 + _b63 * ak3
                    + _b64 * ak4 + _b65 * ak5)
    ak6 = _deriv(D, x + _a6 * h, ytmp, params)

    yout = y + h * (_c1 * dydx + _c3 * ak3 + _c4 * ak4 + _c6 * ak6)
    yerr = h * (_dc1 * dydx + _dc3 * ak3 + _dc4 * ak4
                + _dc5 * ak5 + _dc6 * ak6)
    return yout, yerr


def scale_vector(y, dydx, h):
    """Per-component error scale ``|y| + |h*dydx| + TINY``."""
    return np.abs(y) + np.abs(h * dydx) + TINY


# ═════════════════════════════════════════════════════════════════════
#  Adaptive Cash-Karp quality-controlled step  (rkqs)
#  Modifies y in-place.  Returns (x_new, hdid, hnext).
# ═════════════════════════════════════════════════════════════════════

def rkqs(y, dydx, x, htry, eps, yscal, D, params=None):
    """
    Take one step that satisfies the tolerance, shrinking as needed.

    Trial steps whose scaled error ``max|yerr/yscal| / eps`` exceeds one
    are retried with ``SAFETY * h * errmax**PSHRNK``, never shrinking by
    more than a factor of ten.  An accepted step proposes
    ``SAFETY * h * errmax**PGROW`` for the next one, capped at ``5 * h``.

    Modifies ``y`` in-place.

    Returns
    -------
    x_new : float
        Coordinate after the accepted step.
    hdid : float
        Stepsize actually taken.
    hnext : float
        Proposed next stepsize.

    Raises
    ------
    StepsizeUnderflow
        If shrinking leaves ``x + h == x``.
    NonFiniteError
        If the error estimate is NaN or infinite.
    """
    h = htry

    while True:
        ytmp, yerr = rkck(y, dydx, x, h, D, params)

        errmax = float(np.max(np.abs(yerr / yscal))) / eps

        if not np.isfinite(errmax):
            msg = f"Non-finite error estimate in rkqs at x={x!r}, h={h!r}"
            log.error(msg)
            raise NonFiniteError(msg, x)

        if errmax <= 1.0:
            break

        htmp = SAFETY * h * errmax ** PSHRNK

        if h >= 0.0:
            h = max(htmp, 0.1 * h)
        else:
            h = min(htmp, 0.1 * h)

        log.trial("rkqs reject: x=%r errmax=%.3e retry h=%r", x, errmax, h)

        xnew = x + h
        if xnew == x:
            msg = f"Stepsize underflow in rkqs at x={x!r}"
            log.error(msg)
            raise StepsizeUnderflow(msg, x)

    if errmax > ERRCON:
        hnext = SAFETY * h * errmax ** PGROW
    else:
        hnext = 5.0 * h

    x_new = x + h
    hdid = h
    y[...] = ytmp
    return x_new, hdid, hnext


# ═════════════════════════════════════════════════════════════════════
#  Adaptive step-size ODE driver  (odeint)
#  Modifies y in-place.  Returns OdeintStats.
# ═════════════════════════════════════════════════════════════════════

@dataclass(slots=True)
class OdeintStats:
    """Bookkeeping for one ``odeint`` call."""

    nok: int = 0      # steps accepted at the trial size
    nbad: int = 0     # steps that needed at least one shrink
    nstp: int = 0     # driver iterations
    hnext: float = 0.0  # last proposed stepsize
    nsmall: int = 0   # stepsize-below-minimum advisories


def _check_state(y):
    if not isinstance(y, np.ndarray):
        raise TypeError(f"y must be a numpy array, got {type(y).__name__}")
    if not np.issubdtype(y.dtype, np.inexact):
        raise TypeError(f"y must have a float or complex dtype, got {y.dtype}")


def odeint(y, x1, x2, eps, h1, hmin, D, params=None,
           maxstp=MAXSTP, strict=False):
    """
    Adaptive ODE driver: advance ``y`` from ``x1`` to ``x2`` in-place.

    Parameters
    ----------
    y : ndarray, float or complex (modified in-place)
        State at ``x1`` on entry, at ``x2`` on return.
    x1, x2 : float
        Integration bounds; ``x2 < x1`` integrates backwards.
    eps : float
        Fractional error tolerance (> 0).
    h1 : float
        Initial trial stepsize; its sign is taken from ``x2 - x1``.
    hmin : float
        Stepsize floor (>= 0).
    D : callable(x, y, params) -> array_like
        Derivative function.
    params : object, optional
        Forwarded unchanged to ``D``.
    maxstp : int
        Iteration bound.
    strict : bool
        Raise ``StepsizeBelowMinimum`` instead of logging it.

    Returns
    -------
    OdeintStats

    Raises
    ------
    StepCountExhausted
        ``maxstp`` iterations without reaching ``x2``; ``y`` holds the
        partial state.
    StepsizeBelowMinimum
        Only when ``strict`` is set.
    StepsizeUnderflow, NonFiniteError
        Propagated from ``rkqs``.
    """
    _check_state(y)
    assertTrue(eps > 0.0, f"eps must be positive, got {eps}")
    assertTrue(h1 != 0.0, "h1 must be nonzero")
    assertTrue(hmin >= 0.0, f"hmin must be >= 0, got {hmin}")
    assertTrue(maxstp >= 1, f"maxstp must be >= 1, got {maxstp}")

    stats = OdeintStats(hnext=h1)
    if x1 == x2:
        return stats

    x = x1
    h = float(np.copysign(h1, x2 - x1))
    log.debug("odeint: x1=%r x2=%r eps=%g h1=%g", x1, x2, eps, h)

    for nstp in range(1, maxstp + 1):
        dydx = _deriv(D, x, y, params)
        assertEq(dydx.shape, y.shape, msg="Derivative shape does not match y")
        yscal = scale_vector(y, dydx, h)

        if (x + h - x2) * (x + h - x1) > 0.0:
            h = x2 - x

        x, hdid, hnext = rkqs(y, dydx, x, h, eps, yscal, D, params)

        if hdid == h:
            stats.nok += 1
        else:
            stats.nbad += 1
        stats.nstp = nstp
        stats.hnext = hnext
        log.step("odeint step %d: x=%r hdid=%r hnext=%r", nstp, x, hdid, hnext)

        if (x - x2) * (x2 - x1) >= 0.0:
            log.debug("odeint: reached x2=%r (nok=%d, nbad=%d)",
                      x2, stats.nok, stats.nbad)
            return stats

        if abs(hnext) < hmin:
            stats.nsmall += 1
            msg = (f"Step size too small in odeint: |hnext|={abs(hnext):.3e} "
                   f"< hmin={hmin:.3e} at x={x!r}")
            if strict:
                log.error(msg)
                raise StepsizeBelowMinimum(msg, x, hnext)
            if stats.nsmall == 1:
                log.warning(msg)
            else:
                log.debug(msg)

        h = hnext

    msg = (f"Too many steps in odeint: {maxstp} steps reached x={x!r}, "
           f"target x2={x2!r}")
    log.error(msg)
    raise StepCountExhausted(msg, x, stats.nok, stats.nbad)


# ═════════════════════════════════════════════════════════════════════
#  Multi-point driver  (int_sys_eqns)
#  Returns the (N, M) sample table.
# ═════════════════════════════════════════════════════════════════════

def int_sys_eqns(x, y0, D, params=None, eps=1.0e-4, h1=1.0e-5, hmin=1.0e-13,
                 maxstp=MAXSTP, strict=False, progress=None,
                 stats=None):
    """
    Sample the solution of ``dy/dx = D(x, y, params)`` at every ``x[k]``.

    Column 0 of the result is ``y0``; column ``j`` holds the state after
    integrating across ``(x[j-1], x[j])``.  The coordinates need not be
    uniform or monotonic: each segment derives its own direction.

    Parameters
    ----------
    x : array_like, shape (M,)
        Sample coordinates, ``M >= 1``.
    y0 : array_like, shape (N,)
        Initial state at ``x[0]``.
    D : callable(x, y, params) -> array_like
        Derivative function.
    params : object, optional
        Forwarded unchanged to ``D``.
    eps, h1, hmin, maxstp, strict
        Passed to ``odeint`` for every segment.
    progress : callable(done, total), optional
        Invoked after each completed segment.
    stats : list, optional
        When given, the ``OdeintStats`` of every segment is appended to it,
        so stepsize-below-minimum advisories (``nsmall``) and step counts
        reach the caller.

    Returns
    -------
    ndarray, shape (N, M)
        The sample table.
    """
    x = np.asarray(x, dtype=np.float64).ravel()
    assertTrue(x.size >= 1, "int_sys_eqns needs at least one sample coordinate")

    y = np.array(y0)
    if not np.issubdtype(y.dtype, np.inexact):
        y = y.astype(np.float64)
    y = y.ravel()

    table = np.empty((y.size, x.size), dtype=y.dtype)
    table[:, 0] = y

    total = x.size - 1
    for j in range(1, x.size):
        seg = odeint(y, float(x[j - 1]), float(x[j]), eps, h1, hmin, D, params,
                     maxstp=maxstp, strict=strict)
        table[:, j] = y
        if stats is not None:
            stats.append(seg)
        if progress is not None:
            progress(j, total)

    return table


# ═════════════════════════════════════════════════════════════════════
#  Class-based API
# ═════════════════════════════════════════════════════════════════════

class Integrator:
    """
    Adaptive ODE integrator bound to one derivative function.

    Parameters
    ----------
    deriv : callable(x, y, params) -> array_like
        Derivative function.
    params : object, optional
        Forwarded unchanged to ``deriv``.
    config : IntegratorConfig, optional
        Tolerance and stepsize settings.  Defaults are used when omitted.
    """

    def __init__(self, deriv, params=None, config=None):
        self._D = deriv
        self._params = params
        self.config = (config or IntegratorConfig()).validate()

    def solve(self, y0, x1, x2):
        """Integrate a copy of ``y0`` from ``x1`` to ``x2``; return ``(y, stats)``."""
        y = np.array(y0)
        if not np.issubdtype(y.dtype, np.inexact):
            y = y.astype(np.float64)
        cfg = self.config
        stats = odeint(y, x1, x2, cfg.eps, cfg.h1, cfg.hmin, self._D,
                       self._params, maxstp=cfg.maxstp, strict=cfg.strict)
        return y, stats

    def sample(self, x, y0, progress=None, stats=None):
        """Return the ``(N, M)`` table of states at the coordinates ``x``.

        Per-segment ``OdeintStats`` are appended to ``stats`` when it is given.
        """
        cfg = self.config
        return int_sys_eqns(x, y0, self._D, self._params, eps=cfg.eps,
                            h1=cfg.h1, hmin=cfg.hmin, maxstp=cfg.maxstp,
                            strict=cfg.strict, progress=progress,
                            stats=stats)
