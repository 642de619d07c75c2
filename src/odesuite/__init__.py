"""
odesuite: adaptive-stepsize integration of first-order ODE systems.

This package advances a state vector with the embedded Cash-Karp
Runge-Kutta pair under fractional error control and samples the solution
at caller-supplied coordinates.
"""

# Import main sub-packages
from . import libodesuite

__all__ = [
    "libodesuite",
]
