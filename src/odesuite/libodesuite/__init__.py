"""libodesuite sub-package for the adaptive integrators and their support code."""

# Import modules themselves (allows: from odesuite.libodesuite import integrator)
from . import integrator
from . import logger
from . import nrutils
from . import progress
from . import typeintegrator

__all__ = [
    "integrator",
    "logger",
    "nrutils",
    "progress",
    "typeintegrator",
]
