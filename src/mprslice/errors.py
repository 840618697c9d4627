"""Errors raised by mprslice processes."""


class ResliceError(Exception):
    """Resampling error.

    Exception indicating that the external resampling routine did not produce
    a usable two-dimensional slice for the requested plane.

    """
    pass
