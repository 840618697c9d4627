"""Creation of multi-planar reconstruction slices from image volumes."""
import logging
from collections.abc import Mapping, Sequence
from typing import Any
from typing_extensions import Self

import numpy as np
from vtkmodules.util import numpy_support
from vtkmodules.vtkCommonDataModel import vtkImageData
from vtkmodules.vtkCommonMath import vtkMatrix4x4
from vtkmodules.vtkImagingCore import vtkImageReslice

from mprslice.content import ImagePlaneModule
from mprslice.enum import InterpolationModes, SliceOffsetModes, SlicePlanes
from mprslice.errors import ResliceError
from mprslice.spatial import (
    _build_reslice_axes,
    _normalize_plane,
    check_reslice_axes,
    get_output_geometry,
)
from mprslice.volume import Volume

logger = logging.getLogger(__name__)


DEFAULT_BACKGROUND_COLOR = (255.0, 255.0, 255.0, 255.0)
"""Color (RGBA) of output pixels that fall outside of the volume."""


class ResliceOptions:

    """Options controlling the plane and the resampling of a slice."""

    def __init__(
        self,
        plane: SlicePlanes | int | str = SlicePlanes.AXIAL,
        rotation: float = 0.0,
        slice_delta: float = 0.0,
        offset_mode: SliceOffsetModes | str = SliceOffsetModes.UNIFORM,
        interpolation: InterpolationModes | str = InterpolationModes.LINEAR,
        background_color: Sequence[float] = DEFAULT_BACKGROUND_COLOR,
        apply_rotation: bool = False,
    ):
        """

        Parameters
        ----------
        plane: Union[mprslice.SlicePlanes, int, str], optional
            Canonical plane defining the orientation of the slice.
        rotation: float, optional
            Tilt of the plane about its row direction in degrees. Ignored
            unless `apply_rotation` is ``True``.
        slice_delta: float, optional
            Number of slices by which the plane is moved away from the center
            of the volume.
        offset_mode: Union[mprslice.SliceOffsetModes, str], optional
            How `slice_delta` moves the plane.
        interpolation: Union[mprslice.InterpolationModes, str], optional
            Interpolation used when resampling the volume.
        background_color: Sequence[float], optional
            RGBA color of pixels outside of the volume.
        apply_rotation: bool, optional
            Whether the plane should be tilted by `rotation`.

        """
        self._plane = _normalize_plane(plane)
        self._rotation = float(rotation)
        self._slice_delta = float(slice_delta)
        if not np.isfinite(self._rotation):
            raise ValueError('Argument "rotation" must be finite.')
        if not np.isfinite(self._slice_delta):
            raise ValueError('Argument "slice_delta" must be finite.')
        self._offset_mode = SliceOffsetModes(offset_mode)
        self._interpolation = InterpolationModes(interpolation)
        if len(background_color) != 4:
            raise ValueError(
                'Argument "background_color" must have 4 values (RGBA).'
            )
        self._background_color = tuple(float(c) for c in background_color)
        self._apply_rotation = bool(apply_rotation)

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> Self:
        """Create options from a mapping.

        Both snake case keys and the camel case keys of the web viewer
        convention (``plane``, ``rotation``, ``sliceDelta``) are accepted.
        Missing keys and values of ``None`` fall back to the defaults.

        Parameters
        ----------
        options: Mapping[str, Any]
            Option values.

        Returns
        -------
        mprslice.ResliceOptions
            Options.

        """
        aliases = {
            'sliceDelta': 'slice_delta',
            'offsetMode': 'offset_mode',
            'backgroundColor': 'background_color',
            'applyRotation': 'apply_rotation',
        }
        kwargs = {}
        for key, value in options.items():
            name = aliases.get(key, key)
            if name not in (
                'plane',
                'rotation',
                'slice_delta',
                'offset_mode',
                'interpolation',
                'background_color',
                'apply_rotation',
            ):
                raise ValueError(f'Unknown reslice option "{key}".')
            if value is not None:
                kwargs[name] = value
        return cls(**kwargs)

    @property
    def plane(self) -> SlicePlanes:
        """mprslice.SlicePlanes: Plane defining the orientation."""
        return self._plane

    @property
    def rotation(self) -> float:
        """float: Tilt of the plane about its row direction in degrees."""
        return self._rotation

    @property
    def slice_delta(self) -> float:
        """float: Number of slices from the center of the volume."""
        return self._slice_delta

    @property
    def offset_mode(self) -> SliceOffsetModes:
        """mprslice.SliceOffsetModes: How the slice delta is applied."""
        return self._offset_mode

    @property
    def interpolation(self) -> InterpolationModes:
        """mprslice.InterpolationModes: Interpolation mode."""
        return self._interpolation

    @property
    def background_color(self) -> tuple[float, float, float, float]:
        """Tuple[float, float, float, float]: RGBA background color."""
        return self._background_color

    @property
    def apply_rotation(self) -> bool:
        """bool: Whether the plane is tilted by the rotation angle."""
        return self._apply_rotation

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(plane={self._plane.name}, '
            f'rotation={self._rotation}, slice_delta={self._slice_delta}, '
            f'offset_mode={self._offset_mode.name}, '
            f'apply_rotation={self._apply_rotation})'
        )


class MprSlice:

    """Two-dimensional slice resampled from a volume, with plane metadata."""

    def __init__(
        self,
        image_data: vtkImageData,
        reslice_axes: np.ndarray,
        plane_module: ImagePlaneModule,
    ):
        """

        Parameters
        ----------
        image_data: vtkImageData
            Resampled slice.
        reslice_axes: numpy.ndarray
            Matrix of shape ``(4, 4)`` used to resample the slice.
        plane_module: mprslice.ImagePlaneModule
            Plane metadata of the slice.

        """
        self._image_data = image_data
        self._reslice_axes = np.array(reslice_axes, dtype=np.float64)
        self._plane_module = plane_module

    @property
    def image_data(self) -> vtkImageData:
        """vtkImageData: Resampled slice."""
        return self._image_data

    @property
    def reslice_axes(self) -> np.ndarray:
        """numpy.ndarray: Copy of the reslice axes matrix."""
        return self._reslice_axes.copy()

    @property
    def plane_module(self) -> ImagePlaneModule:
        """mprslice.ImagePlaneModule: Plane metadata of the slice."""
        return self._plane_module

    @property
    def spacing(self) -> tuple[float, float, float]:
        """Tuple[float, float, float]: Spacing of the resampled slice."""
        return tuple(self._image_data.GetSpacing())

    @property
    def array(self) -> np.ndarray:
        """numpy.ndarray:

        Pixel values indexed in ``(row, column)`` order, with a trailing
        component axis for multi-component data.

        """
        scalars = self._image_data.GetPointData().GetScalars()
        values = numpy_support.vtk_to_numpy(scalars)
        columns, rows, _ = self._image_data.GetDimensions()
        shape = (rows, columns)
        if scalars.GetNumberOfComponents() > 1:
            shape = (*shape, scalars.GetNumberOfComponents())
        return values.reshape(shape)

    @property
    def metadata(self) -> dict[str, Any]:
        """Dict[str, Any]:

        Metadata of the slice in the web viewer convention, containing the
        ``imagePlaneModule`` record.

        """
        return {'imagePlaneModule': self._plane_module.to_dict()}


def _as_volume(volume: Volume | vtkImageData) -> Volume:
    """Wrap image data in a volume, leaving volumes unchanged.

    Raises
    ------
    TypeError:
        When `volume` is neither a volume nor VTK image data.

    """
    if isinstance(volume, Volume):
        return volume
    if isinstance(volume, vtkImageData):
        return Volume(volume)
    raise TypeError(
        'Argument "volume" must be of type mprslice.Volume or vtkImageData.'
    )


def create_reslice_axes(
    volume: Volume | vtkImageData,
    options: ResliceOptions | None = None,
) -> np.ndarray:
    """Compute the reslice axes of a plane through the center of a volume.

    Note
    ----
    The origin of the volume is reset to ``(0, 0, 0)`` in place before the
    geometry is read, so the plane is positioned relative to the first voxel.

    Parameters
    ----------
    volume: Union[mprslice.Volume, vtkImageData]
        Volume to be sliced.
    options: Union[mprslice.ResliceOptions, None], optional
        Plane selection. Defaults to an axial plane through the center.

    Returns
    -------
    numpy.ndarray:
        Reslice axes with shape ``(4, 4)``.

    Raises
    ------
    mprslice.errors.ResliceError:
        When the volume does not contain any voxels.

    """
    return _create_reslice_axes(volume, options, stacklevel=4)


def _create_reslice_axes(
    volume: Volume | vtkImageData,
    options: ResliceOptions | None,
    stacklevel: int,
) -> np.ndarray:
    """Compute reslice axes, see :func:`create_reslice_axes`.

    `stacklevel` is passed on to the warning about uniform slice offsets and
    must point at the caller of the public entry point.

    """
    volume = _as_volume(volume)
    if options is None:
        options = ResliceOptions()
    if volume.image_data.GetNumberOfPoints() == 0:
        raise ResliceError('Cannot reslice a volume without any voxels.')

    volume.origin = (0.0, 0.0, 0.0)
    origin = volume.origin
    logger.debug(f'origin of volume: {origin}')

    axes = _build_reslice_axes(
        origin,
        volume.spacing,
        volume.extent,
        plane=options.plane,
        rotation=options.rotation,
        slice_delta=options.slice_delta,
        offset_mode=options.offset_mode,
        apply_rotation=options.apply_rotation,
        stacklevel=stacklevel,
    )
    logger.debug(
        f'reslice axes for {options.plane.name} plane: {axes.tolist()}'
    )
    return axes


def reslice_volume(
    volume: Volume | vtkImageData,
    reslice_axes: np.ndarray,
    background_color: Sequence[float] = DEFAULT_BACKGROUND_COLOR,
    interpolation: InterpolationModes | str = InterpolationModes.LINEAR,
) -> vtkImageData:
    """Resample a volume on a plane using VTK.

    Parameters
    ----------
    volume: Union[mprslice.Volume, vtkImageData]
        Volume to be resampled.
    reslice_axes: numpy.ndarray
        Matrix of shape ``(4, 4)`` defining the plane.
    background_color: Sequence[float], optional
        RGBA color of pixels outside of the volume.
    interpolation: Union[mprslice.InterpolationModes, str], optional
        Interpolation mode.

    Returns
    -------
    vtkImageData:
        Two-dimensional slice.

    Raises
    ------
    mprslice.errors.ResliceError:
        When the resampling does not produce any pixels.

    """
    volume = _as_volume(volume)
    reslice_axes = np.asarray(reslice_axes, dtype=np.float64)
    check_reslice_axes(reslice_axes)
    interpolation = InterpolationModes(interpolation)
    if len(background_color) != 4:
        raise ValueError(
            'Argument "background_color" must have 4 values (RGBA).'
        )
    if volume.image_data.GetNumberOfPoints() == 0:
        raise ResliceError('Cannot reslice a volume without any voxels.')

    # Output geometry guessed by vtkImageReslice is only reliable for
    # orthogonal planes
    output_spacing, output_origin, output_extent = get_output_geometry(
        reslice_axes,
        volume.origin,
        volume.spacing,
        volume.extent,
    )

    matrix = vtkMatrix4x4()
    for i in range(4):
        for j in range(4):
            matrix.SetElement(i, j, float(reslice_axes[i, j]))

    reslice = vtkImageReslice()
    reslice.SetInputData(volume.image_data)
    reslice.SetOutputDimensionality(2)
    reslice.SetBackgroundColor(*background_color)
    if interpolation == InterpolationModes.NEAREST:
        reslice.SetInterpolationModeToNearestNeighbor()
    elif interpolation == InterpolationModes.CUBIC:
        reslice.SetInterpolationModeToCubic()
    else:
        reslice.SetInterpolationModeToLinear()
    reslice.SetResliceAxes(matrix)
    reslice.SetOutputSpacing(*output_spacing)
    reslice.SetOutputOrigin(*output_origin)
    reslice.SetOutputExtent(*output_extent)
    reslice.Update()

    output = vtkImageData()
    output.ShallowCopy(reslice.GetOutput())
    if output.GetNumberOfPoints() == 0:
        raise ResliceError(
            'Resampling the volume did not produce any pixels for the '
            'requested plane.'
        )
    logger.debug(
        f'resliced image with dimensions {output.GetDimensions()} and '
        f'spacing {output.GetSpacing()}'
    )
    return output


def create_mpr_slice(
    volume: Volume | vtkImageData,
    options: ResliceOptions | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> MprSlice:
    """Create a slice through a volume together with its plane metadata.

    The plane passes through the center of the volume (after resetting the
    volume origin to zero) and is moved by the requested slice delta.

    Parameters
    ----------
    volume: Union[mprslice.Volume, vtkImageData]
        Volume to be sliced. Its origin is reset to ``(0, 0, 0)`` in place.
    options: Union[mprslice.ResliceOptions, Mapping[str, Any], None], optional
        Plane and resampling options, either as an options object or as a
        mapping accepted by :meth:`ResliceOptions.from_dict`.
    **kwargs: Any
        Options passed as keyword arguments (e.g. ``plane=1``). Only allowed
        when `options` is not an options object.

    Returns
    -------
    mprslice.MprSlice
        Resampled slice and plane metadata.

    Examples
    --------
    >>> import numpy as np
    >>> import mprslice
    >>> volume = mprslice.Volume.from_array(
    ...     np.zeros((10, 20, 20), dtype=np.int16),
    ...     spacing=(0.5, 0.5, 2.0),
    ... )
    >>> result = mprslice.create_mpr_slice(volume, plane='coronal')
    >>> result.plane_module.row_cosines
    (1.0, 0.0, 0.0)

    """
    if isinstance(options, ResliceOptions):
        if kwargs:
            raise TypeError(
                'Keyword options cannot be combined with an options object.'
            )
    else:
        merged = dict(options or {})
        merged.update(kwargs)
        options = ResliceOptions.from_dict(merged)

    volume = _as_volume(volume)
    axes = _create_reslice_axes(volume, options, stacklevel=4)
    output = reslice_volume(
        volume,
        axes,
        background_color=options.background_color,
        interpolation=options.interpolation,
    )
    plane_module = ImagePlaneModule.from_reslice_axes(
        axes,
        output_spacing=output.GetSpacing(),
        frame_of_reference_uid=volume.frame_of_reference_uid,
    )
    result = MprSlice(output, axes, plane_module)
    logger.debug(f'created slice with metadata {result.metadata}')
    return result
