"""
utils/errors.py - Exception taxonomy
=====================================
Only acquisition failures are hard errors.  Everything the numeric core can
run into (short windows, flat signals, unreliable readings) is reported with
sentinel values so the per-frame loop never throws; `DegenerateSignalError`
exists for callers that explicitly ask for strict normalisation.
"""


class VitalsError(Exception):
    """Base class for every error raised by this project."""


class DegenerateSignalError(VitalsError):
    """The window is flat (max == min) and cannot be normalised."""


class AcquisitionFailure(VitalsError):
    """Camera / microphone could not be opened or stopped delivering frames."""
