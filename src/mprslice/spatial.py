"""Geometry of cutting planes through image volumes.

All matrices in this module are 4 x 4 NumPy arrays in ordinary (row, column)
layout. The first two columns of a reslice axes matrix are the in-plane basis
vectors, the third column is the plane normal and the fourth column is the
point through which the plane passes. In the 16 element column-major layout
used by VTK and gl-matrix the plane point occupies offsets 12, 13 and 14.

"""
import itertools
import logging
import warnings
from collections.abc import Sequence

import numpy as np

from mprslice.enum import SliceOffsetModes, SlicePlanes

logger = logging.getLogger(__name__)


_DEFAULT_EQUALITY_TOLERANCE = 1e-5
"""Tolerance value used by default in tests for equality"""


def _stack_axes_matrix(
    row_vector: Sequence[float],
    column_vector: Sequence[float],
    normal_vector: Sequence[float],
    position: Sequence[float] = (0.0, 0.0, 0.0),
) -> np.ndarray:
    """Create a reslice axes matrix by stacking basis vectors as columns.

    Parameters
    ----------
    row_vector: Sequence[float]
        Direction along the rows of the plane (first in-plane basis vector).
    column_vector: Sequence[float]
        Direction along the columns of the plane (second in-plane basis
        vector).
    normal_vector: Sequence[float]
        Normal of the plane.
    position: Sequence[float], optional
        Point through which the plane passes.

    Returns
    -------
    numpy.ndarray:
        Matrix of shape ``(4, 4)``.

    """
    rotation = np.column_stack([
        np.asarray(row_vector, dtype=np.float64),
        np.asarray(column_vector, dtype=np.float64),
        np.asarray(normal_vector, dtype=np.float64),
    ])
    translation = np.asarray(position, dtype=np.float64).reshape(3, 1)
    matrix = np.vstack(
        [
            np.column_stack([rotation, translation]),
            [0.0, 0.0, 0.0, 1.0]
        ]
    )
    matrix.setflags(write=False)
    return matrix


PLANE_AXES = {
    SlicePlanes.AXIAL: _stack_axes_matrix(
        (1.0, 0.0, 0.0),
        (0.0, 1.0, 0.0),
        (0.0, 0.0, 1.0),
    ),
    SlicePlanes.CORONAL: _stack_axes_matrix(
        (1.0, 0.0, 0.0),
        (0.0, 0.0, -1.0),
        (0.0, 1.0, 0.0),
    ),
    SlicePlanes.SAGITTAL: _stack_axes_matrix(
        (0.0, 1.0, 0.0),
        (0.0, 0.0, -1.0),
        (-1.0, 0.0, 0.0),
    ),
    SlicePlanes.OBLIQUE: _stack_axes_matrix(
        (1.0, 0.0, 0.0),
        (0.0, 0.866025, 0.5),
        (0.0, -0.5, 0.866025),
    ),
}
"""Read-only reslice axes for each of the canonical planes."""


def _normalize_plane(plane: SlicePlanes | int | str) -> SlicePlanes:
    """Convert a plane given by index, name or enum member to an enum member.

    Raises
    ------
    ValueError:
        When `plane` does not identify one of the canonical planes.

    """
    if isinstance(plane, SlicePlanes):
        return plane
    if isinstance(plane, str):
        try:
            return SlicePlanes[plane.upper()]
        except KeyError:
            raise ValueError(
                f'Unknown plane "{plane}". Expected one of: '
                f'{", ".join(p.name for p in SlicePlanes)}.'
            ) from None
    if isinstance(plane, bool) or not isinstance(plane, (int, np.integer)):
        raise TypeError(
            'Argument "plane" must be a SlicePlanes member, an integer or '
            'a string.'
        )
    return SlicePlanes(int(plane))


def _check_geometry(
    origin: Sequence[float],
    spacing: Sequence[float],
    extent: Sequence[int],
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Validate volume geometry and convert it to NumPy arrays.

    Parameters
    ----------
    origin: Sequence[float]
        Position of the voxel at index ``(0, 0, 0)``.
    spacing: Sequence[float]
        Voxel spacing along the x, y and z axes.
    extent: Sequence[int]
        Six values ``(x_min, x_max, y_min, y_max, z_min, z_max)``.

    Returns
    -------
    numpy.ndarray:
        Origin with shape ``(3, )``.
    numpy.ndarray:
        Spacing with shape ``(3, )``.
    numpy.ndarray:
        Extent with shape ``(3, 2)``.

    Raises
    ------
    ValueError:
        When any of the arguments has an incorrect length or contains invalid
        values.

    """
    origin_arr = np.asarray(origin, dtype=np.float64)
    spacing_arr = np.asarray(spacing, dtype=np.float64)
    extent_arr = np.asarray(extent, dtype=np.float64)
    if origin_arr.shape != (3, ):
        raise ValueError('Argument "origin" must have length 3.')
    if spacing_arr.shape != (3, ):
        raise ValueError('Argument "spacing" must have length 3.')
    if extent_arr.shape != (6, ):
        raise ValueError('Argument "extent" must have length 6.')
    if not np.all(np.isfinite(origin_arr)):
        raise ValueError('All values in "origin" must be finite.')
    if not np.all(np.isfinite(spacing_arr)) or np.any(spacing_arr <= 0.0):
        raise ValueError(
            'All values in "spacing" must be finite and positive.'
        )
    extent_arr = extent_arr.reshape(3, 2)
    if np.any(extent_arr[:, 1] < extent_arr[:, 0]):
        raise ValueError(
            'Argument "extent" must not have a maximum index smaller than '
            'the corresponding minimum index.'
        )
    return origin_arr, spacing_arr, extent_arr


def _is_matrix_orthogonal(
    m: np.ndarray,
    tol: float = _DEFAULT_EQUALITY_TOLERANCE,
) -> bool:
    """Check whether a matrix is orthogonal with unit column vectors.

    Parameters
    ----------
    m: numpy.ndarray
        A square matrix.
    tol: float, optional
        Tolerance. ``m`` will be deemed orthogonal if the product ``m.T @ m``
        is equal to the identity within this tolerance.

    Returns
    -------
    bool:
        True if the matrix ``m`` is a square orthonormal matrix. False
        otherwise.

    """
    if m.ndim != 2:
        raise ValueError(
            'Argument "m" should be an array with 2 dimensions.'
        )
    if m.shape[0] != m.shape[1]:
        return False
    return np.allclose(m.T @ m, np.eye(m.shape[0]), atol=tol)


def check_reslice_axes(reslice_axes: np.ndarray) -> None:
    """Check that a matrix is a valid reslice axes matrix.

    Parameters
    ----------
    reslice_axes: numpy.ndarray
        Candidate matrix.

    Raises
    ------
    ValueError:
        When the matrix does not have shape ``(4, 4)``, its final row is not
        ``[0, 0, 0, 1]`` or its upper left 3 x 3 block is not a rotation.

    """
    reslice_axes = np.asarray(reslice_axes)
    if reslice_axes.shape != (4, 4):
        raise ValueError('Reslice axes matrix must have shape (4, 4).')
    if not np.array_equal(reslice_axes[-1, :], [0.0, 0.0, 0.0, 1.0]):
        raise ValueError(
            'Final row of reslice axes matrix must be [0.0, 0.0, 0.0, 1.0].'
        )
    if not np.all(np.isfinite(reslice_axes)):
        raise ValueError(
            'Reslice axes matrix must only contain finite values.'
        )
    # The oblique table entry is only accurate to six decimal places
    if not _is_matrix_orthogonal(reslice_axes[:3, :3], tol=1e-4):
        raise ValueError(
            'Upper left 3 x 3 block of reslice axes matrix must be an '
            'orthonormal matrix.'
        )


def _get_directional_spacing(
    directions: np.ndarray,
    spacing: np.ndarray,
) -> np.ndarray:
    """Get the sampling distance along unit direction vectors.

    Uses the rule of :class:`vtkImageReslice` for its default output
    spacing: the voxel spacing weighted by the squared direction cosines.

    Parameters
    ----------
    directions: numpy.ndarray
        Unit vectors stacked as columns, shape ``(3, N)``.
    spacing: numpy.ndarray
        Voxel spacing along the x, y and z axes, shape ``(3, )``.

    Returns
    -------
    numpy.ndarray:
        Spacing along each direction, shape ``(N, )``.

    """
    return (directions ** 2).T @ spacing


def get_plane_axes(plane: SlicePlanes | int | str) -> np.ndarray:
    """Get the reslice axes of one of the canonical planes.

    Parameters
    ----------
    plane: Union[mprslice.SlicePlanes, int, str]
        Plane, given as an enum member, its integer index (0 to 3) or its
        name (e.g. ``"coronal"``).

    Returns
    -------
    numpy.ndarray:
        Writable copy of the plane's reslice axes with shape ``(4, 4)``. The
        translation column is zero.

    Raises
    ------
    ValueError:
        When `plane` does not identify one of the canonical planes.

    """
    return PLANE_AXES[_normalize_plane(plane)].copy()


def get_center_position(
    origin: Sequence[float],
    spacing: Sequence[float],
    extent: Sequence[int],
) -> np.ndarray:
    """Get the geometric center of a volume.

    Parameters
    ----------
    origin: Sequence[float]
        Position of the voxel at index ``(0, 0, 0)``.
    spacing: Sequence[float]
        Voxel spacing along the x, y and z axes.
    extent: Sequence[int]
        Six values ``(x_min, x_max, y_min, y_max, z_min, z_max)``.

    Returns
    -------
    numpy.ndarray:
        Center ``origin + 0.5 * spacing * (min + max)`` with shape ``(3, )``.

    """
    origin_arr, spacing_arr, extent_arr = _check_geometry(
        origin,
        spacing,
        extent,
    )
    return origin_arr + 0.5 * spacing_arr * extent_arr.sum(axis=1)


def get_slice_offset(
    spacing: Sequence[float],
    slice_delta: float,
    reslice_axes: np.ndarray | None = None,
    offset_mode: SliceOffsetModes | str = SliceOffsetModes.UNIFORM,
) -> np.ndarray:
    """Get the displacement of the plane point for a given slice delta.

    Parameters
    ----------
    spacing: Sequence[float]
        Voxel spacing along the x, y and z axes.
    slice_delta: float
        Number of slices by which the plane should be moved.
    reslice_axes: Union[numpy.ndarray, None], optional
        Reslice axes of the plane. Required when `offset_mode` is
        ``"NORMAL"``.
    offset_mode: Union[mprslice.SliceOffsetModes, str], optional
        How the slice delta is applied. ``"UNIFORM"`` adds ``slice_delta *
        spacing`` to every coordinate. ``"NORMAL"`` moves the plane along its
        normal by ``slice_delta`` times the voxel spacing along the normal
        (see :func:`_get_directional_spacing`).

    Returns
    -------
    numpy.ndarray:
        Displacement with shape ``(3, )``.

    """
    offset_mode = SliceOffsetModes(offset_mode)
    spacing_arr = np.asarray(spacing, dtype=np.float64)
    if not np.isfinite(slice_delta):
        raise ValueError('Argument "slice_delta" must be finite.')

    if offset_mode == SliceOffsetModes.UNIFORM:
        return slice_delta * spacing_arr

    if reslice_axes is None:
        raise TypeError(
            'Argument "reslice_axes" is required for offset mode "NORMAL".'
        )
    normal = np.asarray(reslice_axes, dtype=np.float64)[:3, 2]
    step = _get_directional_spacing(normal[:, np.newaxis], spacing_arr)[0]
    return slice_delta * step * normal


def create_rotation_matrix(angle: float) -> np.ndarray:
    """Create a rotation about the x axis of a plane's local frame.

    Post-multiplying reslice axes by this matrix tilts the plane about its
    row direction.

    Parameters
    ----------
    angle: float
        Rotation angle in degrees.

    Returns
    -------
    numpy.ndarray:
        Matrix of shape ``(4, 4)``.

    """
    if not np.isfinite(angle):
        raise ValueError('Argument "angle" must be finite.')
    theta = np.deg2rad(angle)
    c = np.cos(theta)
    s = np.sin(theta)
    return np.array(
        [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, c, -s, 0.0],
            [0.0, s, c, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ]
    )


def build_reslice_axes(
    origin: Sequence[float],
    spacing: Sequence[float],
    extent: Sequence[int],
    plane: SlicePlanes | int | str = SlicePlanes.AXIAL,
    rotation: float = 0.0,
    slice_delta: float = 0.0,
    offset_mode: SliceOffsetModes | str = SliceOffsetModes.UNIFORM,
    apply_rotation: bool = False,
) -> np.ndarray:
    """Build the reslice axes of a plane through a volume.

    The plane passes through the geometric center of the volume, shifted by
    `slice_delta` slices. Unless `apply_rotation` is set, `rotation` is
    ignored and the orientation is exactly that of the canonical plane.

    Parameters
    ----------
    origin: Sequence[float]
        Position of the voxel at index ``(0, 0, 0)``.
    spacing: Sequence[float]
        Voxel spacing along the x, y and z axes.
    extent: Sequence[int]
        Six values ``(x_min, x_max, y_min, y_max, z_min, z_max)``.
    plane: Union[mprslice.SlicePlanes, int, str], optional
        Canonical plane that defines the orientation.
    rotation: float, optional
        Tilt of the plane about its row direction in degrees. Only used
        when `apply_rotation` is ``True``.
    slice_delta: float, optional
        Number of slices by which the plane is moved away from the center.
    offset_mode: Union[mprslice.SliceOffsetModes, str], optional
        How `slice_delta` is applied (see :func:`get_slice_offset`).
    apply_rotation: bool, optional
        Whether the plane should be tilted by `rotation`.

    Returns
    -------
    numpy.ndarray:
        Reslice axes with shape ``(4, 4)``.

    Raises
    ------
    ValueError:
        When the plane is unknown or the geometry is invalid.

    """
    return _build_reslice_axes(
        origin,
        spacing,
        extent,
        plane=plane,
        rotation=rotation,
        slice_delta=slice_delta,
        offset_mode=offset_mode,
        apply_rotation=apply_rotation,
        stacklevel=3,
    )


def _build_reslice_axes(
    origin: Sequence[float],
    spacing: Sequence[float],
    extent: Sequence[int],
    plane: SlicePlanes | int | str,
    rotation: float,
    slice_delta: float,
    offset_mode: SliceOffsetModes | str,
    apply_rotation: bool,
    stacklevel: int,
) -> np.ndarray:
    """Build reslice axes, see :func:`build_reslice_axes`.

    `stacklevel` is passed to :func:`warnings.warn` and must point at the
    caller of the public entry point.

    """
    plane = _normalize_plane(plane)
    offset_mode = SliceOffsetModes(offset_mode)

    axes = get_plane_axes(plane)
    if apply_rotation:
        axes = axes @ create_rotation_matrix(rotation)
    elif rotation != 0.0:
        logger.debug(
            f'rotation of {rotation} degrees is ignored for {plane.name} '
            'plane'
        )

    center = get_center_position(origin, spacing, extent)
    logger.debug(f'center of volume: {center.tolist()}')

    if offset_mode == SliceOffsetModes.UNIFORM and slice_delta != 0.0:
        warnings.warn(
            'The slice delta is applied to all three axes of the plane '
            'point, not only along the plane normal. Pass '
            'offset_mode="NORMAL" to move the plane along its normal.',
            UserWarning,
            stacklevel=stacklevel,
        )
    offset = get_slice_offset(
        spacing,
        slice_delta,
        reslice_axes=axes,
        offset_mode=offset_mode,
    )
    logger.debug(f'slice offset: {offset.tolist()}')

    axes[:3, 3] = center + offset
    return axes


def flatten_column_major(matrix: np.ndarray) -> list[float]:
    """Flatten a 4 x 4 matrix into the column-major layout of VTK/gl-matrix.

    Parameters
    ----------
    matrix: numpy.ndarray
        Matrix of shape ``(4, 4)``.

    Returns
    -------
    List[float]:
        Sixteen values, column after column.

    """
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.shape != (4, 4):
        raise ValueError('Argument "matrix" must have shape (4, 4).')
    return matrix.T.flatten().tolist()


def from_column_major(values: Sequence[float]) -> np.ndarray:
    """Create a 4 x 4 matrix from sixteen values in column-major layout.

    Parameters
    ----------
    values: Sequence[float]
        Sixteen values, column after column.

    Returns
    -------
    numpy.ndarray:
        Matrix of shape ``(4, 4)``.

    """
    values_arr = np.asarray(values, dtype=np.float64)
    if values_arr.size != 16:
        raise ValueError('Argument "values" must have 16 elements.')
    return values_arr.reshape(4, 4).T.copy()


def get_output_geometry(
    reslice_axes: np.ndarray,
    origin: Sequence[float],
    spacing: Sequence[float],
    extent: Sequence[int],
) -> tuple[
    tuple[float, float, float],
    tuple[float, float, float],
    tuple[int, int, int, int, int, int],
]:
    """Get spacing, origin and extent of a slice in plane coordinates.

    The slice covers the projection of the volume bounds onto the plane. Plane
    coordinates are measured along the in-plane basis vectors from the plane
    point, so the slice lies at zero along the normal.

    Parameters
    ----------
    reslice_axes: numpy.ndarray
        Matrix of shape ``(4, 4)`` defining the plane.
    origin: Sequence[float]
        Position of the voxel at index ``(0, 0, 0)``.
    spacing: Sequence[float]
        Voxel spacing along the x, y and z axes.
    extent: Sequence[int]
        Six values ``(x_min, x_max, y_min, y_max, z_min, z_max)``.

    Returns
    -------
    Tuple[float, float, float]:
        Output spacing. The in-plane values are the voxel spacing along the
        basis vectors, the third value is 1.
    Tuple[float, float, float]:
        Output origin in plane coordinates.
    Tuple[int, int, int, int, int, int]:
        Output extent with a single sample along the normal.

    """
    origin_arr, spacing_arr, extent_arr = _check_geometry(
        origin,
        spacing,
        extent,
    )
    reslice_axes = np.asarray(reslice_axes, dtype=np.float64)
    rotation = reslice_axes[:3, :3]

    lower = origin_arr + spacing_arr * extent_arr[:, 0]
    upper = origin_arr + spacing_arr * extent_arr[:, 1]
    corners = np.array(list(itertools.product(*zip(lower, upper))))
    local = (corners - reslice_axes[:3, 3]) @ rotation

    output_spacing = _get_directional_spacing(rotation[:, :2], spacing_arr)
    minimum = local[:, :2].min(axis=0)
    maximum = local[:, :2].max(axis=0)
    counts = np.floor(
        (maximum - minimum) / output_spacing + _DEFAULT_EQUALITY_TOLERANCE
    ).astype(int)

    return (
        (float(output_spacing[0]), float(output_spacing[1]), 1.0),
        (float(minimum[0]), float(minimum[1]), 0.0),
        (0, int(counts[0]), 0, int(counts[1]), 0, 0),
    )
