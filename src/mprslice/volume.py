"""Representation of image volumes stored in VTK image data objects."""
import logging
from collections.abc import Sequence
from typing_extensions import Self

import numpy as np
from pydicom.uid import UID, generate_uid
from vtkmodules.util import numpy_support
from vtkmodules.vtkCommonCore import vtkStringArray
from vtkmodules.vtkCommonDataModel import vtkImageData

from mprslice.spatial import get_center_position

logger = logging.getLogger(__name__)


_UID_ARRAY_NAME = 'FrameOfReferenceUID'
"""Name of the field data array holding the frame of reference UID."""


class Volume:

    """Image volume backed by a :class:`vtkImageData` object.

    The geometry follows the VTK conventions: voxel positions are given by
    ``origin + spacing * index`` along the x, y and z axes and the range of
    valid indices is given by the six element ``extent``. NumPy views of the
    voxel data are indexed in ``(z, y, x)`` order.

    """

    def __init__(
        self,
        image_data: vtkImageData,
        frame_of_reference_uid: str | None = None,
    ):
        """

        Parameters
        ----------
        image_data: vtkImageData
            Image data holding the voxels. The object is not copied, changes
            made through the volume (such as resetting the origin) are visible
            to other holders of the image data.
        frame_of_reference_uid: Union[str, None], optional
            Frame of reference UID of the volume. If none is given, the UID
            stored in the field data of `image_data` is used, or a new UID is
            generated and stored there, so that every volume wrapping the
            same image data shares the UID.

        """
        if not isinstance(image_data, vtkImageData):
            raise TypeError(
                'Argument "image_data" must be of type vtkImageData.'
            )
        self._image_data = image_data
        if frame_of_reference_uid is None:
            frame_of_reference_uid = self._get_stored_uid()
        if frame_of_reference_uid is None:
            frame_of_reference_uid = generate_uid()
            logger.debug(
                f'generated frame of reference UID {frame_of_reference_uid}'
            )
        self._frame_of_reference_uid = UID(frame_of_reference_uid)
        self._store_uid(self._frame_of_reference_uid)

    def _get_stored_uid(self) -> str | None:
        """Get the UID stored in the field data of the image data, if any."""
        array = self._image_data.GetFieldData().GetAbstractArray(
            _UID_ARRAY_NAME
        )
        if array is None or array.GetNumberOfValues() == 0:
            return None
        return str(array.GetValue(0))

    def _store_uid(self, uid: str) -> None:
        """Store the UID in the field data of the image data."""
        field_data = self._image_data.GetFieldData()
        field_data.RemoveArray(_UID_ARRAY_NAME)
        array = vtkStringArray()
        array.SetName(_UID_ARRAY_NAME)
        array.InsertNextValue(str(uid))
        field_data.AddArray(array)

    @classmethod
    def from_array(
        cls,
        array: np.ndarray,
        spacing: Sequence[float] = (1.0, 1.0, 1.0),
        origin: Sequence[float] = (0.0, 0.0, 0.0),
        frame_of_reference_uid: str | None = None,
    ) -> Self:
        """Create a volume from a NumPy array.

        Parameters
        ----------
        array: numpy.ndarray
            Three dimensional array of voxel values indexed in ``(z, y, x)``
            order.
        spacing: Sequence[float], optional
            Voxel spacing along the x, y and z axes in millimeters.
        origin: Sequence[float], optional
            Position of the voxel at index ``(0, 0, 0)``.
        frame_of_reference_uid: Union[str, None], optional
            Frame of reference UID of the volume.

        Returns
        -------
        mprslice.Volume:
            Volume holding a deep copy of the array.

        """
        if array.ndim != 3:
            raise ValueError('Argument "array" must be three-dimensional.')
        if array.dtype.kind not in ('u', 'i', 'f'):
            raise TypeError(
                'Argument "array" must have an integer or floating point '
                'data type.'
            )
        if len(spacing) != 3:
            raise ValueError('Argument "spacing" must have length 3.')
        if len(origin) != 3:
            raise ValueError('Argument "origin" must have length 3.')

        image_data = vtkImageData()
        image_data.SetDimensions(*array.shape[::-1])
        image_data.SetSpacing(*[float(s) for s in spacing])
        image_data.SetOrigin(*[float(o) for o in origin])
        scalars = numpy_support.numpy_to_vtk(
            np.ascontiguousarray(array).ravel(),
            deep=True,
        )
        image_data.GetPointData().SetScalars(scalars)
        logger.debug(
            f'created volume with dimensions {array.shape[::-1]} and '
            f'spacing {tuple(spacing)}'
        )
        return cls(image_data, frame_of_reference_uid=frame_of_reference_uid)

    @property
    def image_data(self) -> vtkImageData:
        """vtkImageData: Underlying VTK image data."""
        return self._image_data

    @property
    def frame_of_reference_uid(self) -> UID:
        """pydicom.uid.UID: Frame of reference UID."""
        return self._frame_of_reference_uid

    @property
    def origin(self) -> tuple[float, float, float]:
        """Tuple[float, float, float]:

        Position of the voxel at index ``(0, 0, 0)``.

        """
        return tuple(self._image_data.GetOrigin())

    @origin.setter
    def origin(self, value: Sequence[float]) -> None:
        if len(value) != 3:
            raise ValueError('Origin must have length 3.')
        self._image_data.SetOrigin(*[float(v) for v in value])

    @property
    def spacing(self) -> tuple[float, float, float]:
        """Tuple[float, float, float]: Voxel spacing along x, y and z."""
        return tuple(self._image_data.GetSpacing())

    @property
    def extent(self) -> tuple[int, int, int, int, int, int]:
        """Tuple[int, int, int, int, int, int]:

        Index range ``(x_min, x_max, y_min, y_max, z_min, z_max)``.

        """
        return tuple(self._image_data.GetExtent())

    @property
    def dimensions(self) -> tuple[int, int, int]:
        """Tuple[int, int, int]: Number of voxels along x, y and z."""
        return tuple(self._image_data.GetDimensions())

    @property
    def center_position(self) -> tuple[float, float, float]:
        """Tuple[float, float, float]: Geometric center of the volume."""
        center = get_center_position(self.origin, self.spacing, self.extent)
        return tuple(center.tolist())

    @property
    def array(self) -> np.ndarray:
        """numpy.ndarray:

        View of the voxel values indexed in ``(z, y, x)`` order, with a
        trailing component axis for multi-component data.

        """
        scalars = self._image_data.GetPointData().GetScalars()
        if scalars is None:
            raise ValueError('Volume does not contain any scalar data.')
        values = numpy_support.vtk_to_numpy(scalars)
        shape = self.dimensions[::-1]
        if scalars.GetNumberOfComponents() > 1:
            shape = (*shape, scalars.GetNumberOfComponents())
        return values.reshape(shape)

    def copy(self) -> Self:
        """Get a deep copy of the volume.

        Returns
        -------
        mprslice.Volume:
            Copy of the volume sharing the frame of reference UID.

        """
        image_data = vtkImageData()
        image_data.DeepCopy(self._image_data)
        return self.__class__(
            image_data,
            frame_of_reference_uid=self._frame_of_reference_uid,
        )

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(dimensions={self.dimensions}, '
            f'spacing={self.spacing}, origin={self.origin})'
        )
