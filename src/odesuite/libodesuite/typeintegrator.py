"""
Integrator settings structure.

This module provides the settings structure used by the adaptive
integrators together with functions for reading and writing it from
plain-text parameter files.

File format (one value per line, optional trailing ``!`` comments)::

    1e-4        ! eps
    1e-5        ! h1
    1e-13       ! hmin
    1000000     ! maxstp
"""

from dataclasses import dataclass

from .nrutils import assertTrue

MAXSTP = 1_000_000


# ---------------------------------------------------------------------------
# File I/O helper
# ---------------------------------------------------------------------------
def GetFileParam(file_handle):
    """Read a single numeric parameter from a file handle.

    Reads one line, extracts the first whitespace-delimited token, and
    converts it to float.  Trailing ``!`` comments are ignored.

    Parameters
    ----------
    file_handle : file-like
        Open text stream.

    Returns
    -------
    float
        The parsed numeric value.

    Raises
    ------
    ValueError
        If the line is missing, empty or cannot be parsed.
    """
    line = file_handle.readline()
    if not line:
        raise ValueError("Unexpected end of file while reading parameter")
    parts = line.split()
    if not parts:
        raise ValueError(f"Empty line in parameter file: {line!r}")
    token = parts[0]
    if token.startswith("!"):
        raise ValueError(f"Comment-only line: {line!r}")
    return float(token)


# ---------------------------------------------------------------------------
# Data structure
# ---------------------------------------------------------------------------
@dataclass
class IntegratorConfig:
    """
    Settings for one adaptive integration call.

    Attributes
    ----------
    eps : float
        Fractional tolerance on the scaled local error.
    h1 : float
        Initial trial stepsize.  Its sign is re-derived per segment.
    hmin : float
        Stepsize floor.  Proposals below it raise an advisory.
    maxstp : int
        Maximum number of steps per segment.
    strict : bool
        Raise on stepsize-below-minimum instead of only logging it.
    """

    eps: float = 1.0e-4
    h1: float = 1.0e-5
    hmin: float = 1.0e-13
    maxstp: int = MAXSTP
    strict: bool = False

    def validate(self):
        """Check ranges; raise ``ValueError`` on the first violation."""
        assertTrue(self.eps > 0.0, f"eps must be positive, got {self.eps}")
        assertTrue(self.h1 != 0.0, "h1 must be nonzero")
        assertTrue(self.hmin >= 0.0, f"hmin must be >= 0, got {self.hmin}")
        assertTrue(self.maxstp >= 1, f"maxstp must be >= 1, got {self.maxstp}")
        return self


def readintegratorconfig_sub(fh, config):
    """Read integrator settings from an open file handle.

    Parameters
    ----------
    fh : file-like
        Readable text stream.
    config : IntegratorConfig
        Settings structure to populate (modified in-place).
    """
    config.eps = GetFileParam(fh)
    config.h1 = GetFileParam(fh)
    config.hmin = GetFileParam(fh)
    config.maxstp = int(GetFileParam(fh))


def ReadIntegratorConfig(filename, config=None):
    """Read integrator settings from a named file.

    Parameters
    ----------
    filename : str or path-like
        Path to the parameter file.
    config : IntegratorConfig, optional
        Structure to populate.  A fresh one is created when omitted.

    Returns
    -------
    IntegratorConfig
        The populated, validated settings.
    """
    if config is None:
        config = IntegratorConfig()
    with open(filename, "r") as fh:
        readintegratorconfig_sub(fh, config)
    return config.validate()


def writeintegratorconfig_sub(fh, config):
    """Write integrator settings to an open file handle."""
    fh.write(f"{config.eps:25.14E} ! Fractional error tolerance.\n")
    fh.write(f"{config.h1:25.14E} ! Initial trial stepsize.\n")
    fh.write(f"{config.hmin:25.14E} ! Minimum stepsize.\n")
    fh.write(f"{config.maxstp:25d} ! Maximum steps per segment.\n")


def WriteIntegratorConfig(filename, config):
    """Write integrator settings to a named file."""
    with open(filename, "w") as fh:
        writeintegratorconfig_sub(fh, config)
