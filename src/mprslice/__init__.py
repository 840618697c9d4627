from mprslice import spatial
from mprslice.content import ImagePlaneModule
from mprslice.enum import (
    InterpolationModes,
    SliceOffsetModes,
    SlicePlanes,
)
from mprslice.errors import ResliceError
from mprslice.reslice import (
    DEFAULT_BACKGROUND_COLOR,
    MprSlice,
    ResliceOptions,
    create_mpr_slice,
    create_reslice_axes,
    reslice_volume,
)
from mprslice.version import __version__
from mprslice.volume import Volume


__all__ = [
    'DEFAULT_BACKGROUND_COLOR',
    'ImagePlaneModule',
    'InterpolationModes',
    'MprSlice',
    'ResliceError',
    'ResliceOptions',
    'SliceOffsetModes',
    'SlicePlanes',
    'Volume',
    '__version__',
    'create_mpr_slice',
    'create_reslice_axes',
    'reslice_volume',
    'spatial',
]
