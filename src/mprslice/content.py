"""Plane metadata of resliced images."""
from collections.abc import Sequence
from typing import Any
from typing_extensions import Self

import numpy as np
from pydicom.dataset import Dataset
from pydicom.uid import UID
from pydicom.valuerep import DS


def _check_triplet(value: Sequence[float], name: str) -> tuple[float, ...]:
    """Convert a vector of three finite values to a tuple of floats.

    Raises
    ------
    ValueError:
        When `value` does not have three elements or any of them is not
        finite.

    """
    values = tuple(float(v) for v in value)
    if len(values) != 3:
        raise ValueError(f'Argument "{name}" must have length 3.')
    if not all(np.isfinite(values)):
        raise ValueError(f'All values in "{name}" must be finite.')
    return values


class ImagePlaneModule:

    """Position, orientation and spacing of a two-dimensional image plane.

    Mirrors the attributes of the DICOM Image Plane module. Direction cosines
    are stored as given and are not required to be unit vectors.

    """

    def __init__(
        self,
        image_position: Sequence[float],
        row_cosines: Sequence[float],
        column_cosines: Sequence[float],
        row_pixel_spacing: float,
        column_pixel_spacing: float,
        frame_of_reference_uid: str,
    ) -> None:
        """
        Parameters
        ----------
        image_position: Sequence[float]
            Position of the center of the first pixel in the frame of
            reference (ImagePositionPatient).
        row_cosines: Sequence[float]
            Direction along the rows, i.e. of increasing column index.
        column_cosines: Sequence[float]
            Direction along the columns, i.e. of increasing row index.
        row_pixel_spacing: float
            Spacing between adjacent rows in millimeters (first value of the
            DICOM PixelSpacing attribute).
        column_pixel_spacing: float
            Spacing between adjacent columns in millimeters (second value of
            the DICOM PixelSpacing attribute).
        frame_of_reference_uid: str
            Frame of reference UID.

        """
        self._image_position = _check_triplet(image_position, 'image_position')
        self._row_cosines = _check_triplet(row_cosines, 'row_cosines')
        self._column_cosines = _check_triplet(column_cosines, 'column_cosines')
        if row_pixel_spacing <= 0.0 or column_pixel_spacing <= 0.0:
            raise ValueError('Pixel spacing values must be positive.')
        self._row_pixel_spacing = float(row_pixel_spacing)
        self._column_pixel_spacing = float(column_pixel_spacing)
        self._frame_of_reference_uid = UID(frame_of_reference_uid)

    @classmethod
    def from_reslice_axes(
        cls,
        reslice_axes: np.ndarray,
        output_spacing: Sequence[float],
        frame_of_reference_uid: str,
    ) -> Self:
        """Create the plane module of a slice from its reslice axes.

        Parameters
        ----------
        reslice_axes: numpy.ndarray
            Matrix of shape ``(4, 4)`` used to resample the slice. Columns 0,
            1 and 3 are used as row cosines, column cosines and position.
        output_spacing: Sequence[float]
            Spacing of the resampled slice along its x and y axes (further
            values are ignored).
        frame_of_reference_uid: str
            Frame of reference UID of the resampled volume.

        Returns
        -------
        mprslice.ImagePlaneModule
            Plane module of the slice.

        """
        reslice_axes = np.asarray(reslice_axes, dtype=np.float64)
        if reslice_axes.shape != (4, 4):
            raise ValueError('Reslice axes matrix must have shape (4, 4).')
        if len(output_spacing) < 2:
            raise ValueError(
                'Argument "output_spacing" must have at least 2 values.'
            )
        return cls(
            image_position=reslice_axes[:3, 3].tolist(),
            row_cosines=reslice_axes[:3, 0].tolist(),
            column_cosines=reslice_axes[:3, 1].tolist(),
            row_pixel_spacing=output_spacing[1],
            column_pixel_spacing=output_spacing[0],
            frame_of_reference_uid=frame_of_reference_uid,
        )

    @classmethod
    def from_dataset(cls, dataset: Dataset) -> Self:
        """Read the plane module from a DICOM dataset.

        Parameters
        ----------
        dataset: pydicom.dataset.Dataset
            Dataset containing the attributes of the Image Plane module and a
            frame of reference UID.

        Returns
        -------
        mprslice.ImagePlaneModule
            Plane module of the image.

        Raises
        ------
        AttributeError:
            When a required attribute is missing from the dataset.

        """
        required = [
            'ImagePositionPatient',
            'ImageOrientationPatient',
            'PixelSpacing',
            'FrameOfReferenceUID',
        ]
        missing = [kw for kw in required if not hasattr(dataset, kw)]
        if missing:
            raise AttributeError(
                'Dataset does not have the required attributes for an image '
                f'plane: {", ".join(missing)}.'
            )
        orientation = [float(v) for v in dataset.ImageOrientationPatient]
        if len(orientation) != 6:
            raise ValueError(
                'Attribute "ImageOrientationPatient" must have 6 values.'
            )
        return cls(
            image_position=dataset.ImagePositionPatient,
            row_cosines=orientation[:3],
            column_cosines=orientation[3:],
            row_pixel_spacing=float(dataset.PixelSpacing[0]),
            column_pixel_spacing=float(dataset.PixelSpacing[1]),
            frame_of_reference_uid=dataset.FrameOfReferenceUID,
        )

    @property
    def image_position(self) -> tuple[float, float, float]:
        """Tuple[float, float, float]: Position of the first pixel."""
        return self._image_position

    @property
    def row_cosines(self) -> tuple[float, float, float]:
        """Tuple[float, float, float]: Direction along the rows."""
        return self._row_cosines

    @property
    def column_cosines(self) -> tuple[float, float, float]:
        """Tuple[float, float, float]: Direction along the columns."""
        return self._column_cosines

    @property
    def image_orientation(self) -> tuple[float, ...]:
        """Tuple[float, float, float, float, float, float]:

        Row cosines followed by column cosines, matching the format of the
        DICOM ImageOrientationPatient attribute.

        """
        return (*self._row_cosines, *self._column_cosines)

    @property
    def row_pixel_spacing(self) -> float:
        """float: Spacing between adjacent rows."""
        return self._row_pixel_spacing

    @property
    def column_pixel_spacing(self) -> float:
        """float: Spacing between adjacent columns."""
        return self._column_pixel_spacing

    @property
    def pixel_spacing(self) -> tuple[float, float]:
        """Tuple[float, float]:

        Spacing between rows and between columns, matching the format of the
        DICOM PixelSpacing attribute.

        """
        return self._row_pixel_spacing, self._column_pixel_spacing

    @property
    def frame_of_reference_uid(self) -> UID:
        """pydicom.uid.UID: Frame of reference UID."""
        return self._frame_of_reference_uid

    @property
    def normal(self) -> np.ndarray:
        """numpy.ndarray: Cross product of row and column cosines."""
        return np.cross(self._row_cosines, self._column_cosines)

    def to_dict(self) -> dict[str, Any]:
        """Get the plane module as a plain dictionary.

        Keys follow the camel case naming of the ``imagePlaneModule``
        metadata used by web viewers.

        Returns
        -------
        Dict[str, Any]:
            Plane module attributes.

        """
        return {
            'imagePositionPatient': list(self._image_position),
            'rowCosines': list(self._row_cosines),
            'columnCosines': list(self._column_cosines),
            'rowPixelSpacing': self._row_pixel_spacing,
            'columnPixelSpacing': self._column_pixel_spacing,
            'frameOfReferenceUID': str(self._frame_of_reference_uid),
        }

    def to_dataset(self) -> Dataset:
        """Get the plane module as a DICOM dataset.

        Returns
        -------
        pydicom.dataset.Dataset:
            Dataset with the attributes ImagePositionPatient,
            ImageOrientationPatient, PixelSpacing and FrameOfReferenceUID.

        """
        dataset = Dataset()
        dataset.ImagePositionPatient = [
            DS(v, auto_format=True) for v in self._image_position
        ]
        dataset.ImageOrientationPatient = [
            DS(v, auto_format=True) for v in self.image_orientation
        ]
        dataset.PixelSpacing = [
            DS(v, auto_format=True) for v in self.pixel_spacing
        ]
        dataset.FrameOfReferenceUID = self._frame_of_reference_uid
        return dataset

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.to_dict()})'
