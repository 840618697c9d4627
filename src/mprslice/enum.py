"""Enumerated values."""
from enum import Enum


class SlicePlanes(Enum):

    """Enumerated values for the canonical cutting planes.

    The integer values match the positional plane index accepted by
    :func:`mprslice.create_mpr_slice`.

    """

    AXIAL = 0
    """Plane spanned by the x and y axes of the volume."""

    CORONAL = 1
    """Plane spanned by the x and z axes of the volume."""

    SAGITTAL = 2
    """Plane spanned by the y and z axes of the volume."""

    OBLIQUE = 3
    """Coronal-like plane tilted by 30 degrees about the x axis."""


class SliceOffsetModes(Enum):

    """Enumerated values describing how a slice delta moves the plane."""

    UNIFORM = 'UNIFORM'
    """

    The slice delta, scaled by the voxel spacing, is added to all three
    coordinates of the plane origin regardless of the plane orientation.

    """

    NORMAL = 'NORMAL'
    """

    The slice delta, scaled by the voxel spacing along the plane normal, moves
    the plane origin along the plane normal only.

    """


class InterpolationModes(Enum):

    """Enumerated values for the interpolation used during resampling."""

    NEAREST = 'NEAREST'
    LINEAR = 'LINEAR'
    CUBIC = 'CUBIC'
