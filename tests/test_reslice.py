import logging

import numpy as np
import pytest
from vtkmodules.vtkCommonDataModel import vtkImageData
from vtkmodules.vtkCommonMath import vtkMatrix4x4
from vtkmodules.vtkImagingCore import vtkImageReslice

from mprslice import (
    DEFAULT_BACKGROUND_COLOR,
    ImagePlaneModule,
    InterpolationModes,
    MprSlice,
    ResliceOptions,
    SliceOffsetModes,
    SlicePlanes,
    Volume,
    create_mpr_slice,
    create_reslice_axes,
    reslice_volume,
)
from mprslice.errors import ResliceError
from mprslice.spatial import PLANE_AXES


class TestResliceOptions:

    def test_defaults(self):
        options = ResliceOptions()
        assert options.plane == SlicePlanes.AXIAL
        assert options.rotation == 0.0
        assert options.slice_delta == 0.0
        assert options.offset_mode == SliceOffsetModes.UNIFORM
        assert options.interpolation == InterpolationModes.LINEAR
        assert options.background_color == DEFAULT_BACKGROUND_COLOR
        assert options.apply_rotation is False

    def test_from_dict_camel_case(self):
        options = ResliceOptions.from_dict(
            {
                'plane': 2,
                'rotation': 15,
                'sliceDelta': -3,
                'offsetMode': 'NORMAL',
                'applyRotation': True,
            }
        )
        assert options.plane == SlicePlanes.SAGITTAL
        assert options.rotation == 15.0
        assert options.slice_delta == -3.0
        assert options.offset_mode == SliceOffsetModes.NORMAL
        assert options.apply_rotation is True

    def test_from_dict_none_values(self):
        options = ResliceOptions.from_dict(
            {'plane': None, 'rotation': None, 'sliceDelta': None}
        )
        assert options.plane == SlicePlanes.AXIAL
        assert options.rotation == 0.0
        assert options.slice_delta == 0.0

    def test_from_dict_unknown_key(self):
        with pytest.raises(ValueError):
            ResliceOptions.from_dict({'thickness': 2})

    @pytest.mark.parametrize(
        'kwargs',
        [
            {'plane': 4},
            {'plane': 'axil'},
            {'rotation': float('nan')},
            {'slice_delta': float('inf')},
            {'offset_mode': 'DIAGONAL'},
            {'interpolation': 'SINC'},
            {'background_color': (0, 0, 0)},
        ]
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ResliceOptions(**kwargs)


def test_create_reslice_axes_resets_origin(ramp_volume):
    assert ramp_volume.origin == (10.0, -20.0, 5.0)
    axes = create_reslice_axes(ramp_volume)
    assert ramp_volume.origin == (0.0, 0.0, 0.0)
    assert ramp_volume.image_data.GetOrigin() == (0.0, 0.0, 0.0)
    # Center of 12 x 10 x 8 voxels with unit spacing, relative to zero
    assert np.array_equal(axes[:3, 3], [5.5, 4.5, 3.5])
    assert np.array_equal(axes[:3, :3], np.eye(3))


def test_create_reslice_axes_image_data(ramp_volume):
    image_data = ramp_volume.image_data
    image_data.SetOrigin(1.0, 2.0, 3.0)
    options = ResliceOptions(plane=SlicePlanes.CORONAL)
    axes = create_reslice_axes(image_data, options)
    assert image_data.GetOrigin() == (0.0, 0.0, 0.0)
    assert np.array_equal(
        axes[:3, :3],
        PLANE_AXES[SlicePlanes.CORONAL][:3, :3],
    )


def test_create_reslice_axes_uniform_slice_delta(anisotropic_volume):
    options = ResliceOptions(slice_delta=2.0)
    with pytest.warns(UserWarning):
        axes = create_reslice_axes(anisotropic_volume, options)
    center = np.array([0.25 * 15, 0.375 * 19, 1.5 * 4])
    assert np.allclose(axes[:3, 3], center + 2.0 * np.array([0.5, 0.75, 3.0]))


def test_create_reslice_axes_invalid_volume():
    with pytest.raises(TypeError):
        create_reslice_axes(np.zeros((3, 3, 3)))


def test_create_reslice_axes_logs_axes(ramp_volume, caplog):
    with caplog.at_level(logging.DEBUG, logger='mprslice'):
        create_reslice_axes(ramp_volume)
    assert 'reslice axes for AXIAL plane' in caplog.text


def test_reslice_volume_axial(anisotropic_volume):
    axes = create_reslice_axes(anisotropic_volume)
    output = reslice_volume(
        anisotropic_volume,
        axes,
        interpolation=InterpolationModes.NEAREST,
    )
    assert isinstance(output, vtkImageData)
    assert output.GetDimensions()[2] == 1
    assert output.GetSpacing()[:2] == (0.5, 0.75)


def test_reslice_volume_invalid_axes(anisotropic_volume):
    with pytest.raises(ValueError):
        reslice_volume(anisotropic_volume, np.eye(3))
    with pytest.raises(ValueError):
        reslice_volume(anisotropic_volume, np.diag([2.0, 1.0, 1.0, 1.0]))


def test_reslice_volume_empty_input():
    image_data = vtkImageData()
    with pytest.raises(ResliceError):
        reslice_volume(image_data, np.eye(4))


def test_create_mpr_slice_axial(anisotropic_volume):
    result = create_mpr_slice(anisotropic_volume, interpolation='NEAREST')
    assert isinstance(result, MprSlice)
    assert anisotropic_volume.origin == (0.0, 0.0, 0.0)
    assert result.array.ndim == 2
    assert result.array.shape == (20, 16)
    # The center plane cuts through the bright slab at z index 2
    values = set(np.unique(result.array).tolist())
    assert 100 in values
    assert values <= {100, 255}


def test_create_mpr_slice_normal_offset(anisotropic_volume):
    result = create_mpr_slice(
        anisotropic_volume,
        slice_delta=1,
        offset_mode=SliceOffsetModes.NORMAL,
        interpolation=InterpolationModes.NEAREST,
    )
    assert np.allclose(result.reslice_axes[:3, 3], [3.75, 7.125, 9.0])
    values = set(np.unique(result.array).tolist())
    assert 0 in values
    assert values <= {0, 255}


def test_create_mpr_slice_outside_volume(anisotropic_volume):
    result = create_mpr_slice(
        anisotropic_volume,
        slice_delta=100,
        offset_mode='NORMAL',
    )
    assert np.all(result.array == 255)


def test_create_mpr_slice_background_color(anisotropic_volume):
    result = create_mpr_slice(
        anisotropic_volume,
        slice_delta=100,
        offset_mode='NORMAL',
        background_color=(0, 0, 0, 0),
    )
    assert np.all(result.array == 0)


def test_create_mpr_slice_sagittal_geometry(anisotropic_volume):
    result = create_mpr_slice(anisotropic_volume, plane=SlicePlanes.SAGITTAL)
    # Rows run along y and columns run along z
    assert result.array.shape == (5, 20)
    module = result.plane_module
    assert module.column_pixel_spacing == 0.75
    assert module.row_pixel_spacing == 3.0
    assert module.row_cosines == (0.0, 1.0, 0.0)
    assert module.column_cosines == (0.0, 0.0, -1.0)


@pytest.mark.parametrize('plane', list(SlicePlanes))
def test_create_mpr_slice_metadata(ramp_volume, plane):
    result = create_mpr_slice(ramp_volume, {'plane': plane.value})
    axes = result.reslice_axes
    metadata = result.metadata
    assert list(metadata.keys()) == ['imagePlaneModule']
    plane_module = metadata['imagePlaneModule']
    assert plane_module['imagePositionPatient'] == axes[:3, 3].tolist()
    assert plane_module['rowCosines'] == axes[:3, 0].tolist()
    assert plane_module['columnCosines'] == axes[:3, 1].tolist()
    spacing = result.spacing
    assert plane_module['rowPixelSpacing'] == spacing[1]
    assert plane_module['columnPixelSpacing'] == spacing[0]
    assert plane_module['frameOfReferenceUID'] == (
        '1.2.826.0.1.3680043.8.498.1'
    )
    assert isinstance(result.plane_module, ImagePlaneModule)
    assert result.plane_module.to_dict() == plane_module
    assert ramp_volume.origin == (0.0, 0.0, 0.0)


def test_create_mpr_slice_image_data(ramp_volume):
    result = create_mpr_slice(ramp_volume.image_data, plane=1)
    assert result.array.ndim == 2
    assert ramp_volume.image_data.GetOrigin() == (0.0, 0.0, 0.0)


def test_create_mpr_slice_options_object(ramp_volume):
    options = ResliceOptions(plane='oblique')
    result = create_mpr_slice(ramp_volume, options)
    assert np.array_equal(
        result.reslice_axes[:3, :3],
        PLANE_AXES[SlicePlanes.OBLIQUE][:3, :3],
    )


def test_create_mpr_slice_options_object_with_kwargs(ramp_volume):
    with pytest.raises(TypeError):
        create_mpr_slice(ramp_volume, ResliceOptions(), plane=1)


def test_create_mpr_slice_invalid_plane(ramp_volume):
    with pytest.raises(ValueError):
        create_mpr_slice(ramp_volume, plane=7)


def test_reslice_axes_property_is_copy(ramp_volume):
    result = create_mpr_slice(ramp_volume)
    axes = result.reslice_axes
    axes[0, 3] = 1000.0
    assert result.reslice_axes[0, 3] != 1000.0


def test_create_mpr_slice_volume_array_unchanged(ramp_volume):
    before = ramp_volume.array.copy()
    create_mpr_slice(ramp_volume, plane='sagittal', rotation=20.0)
    assert np.array_equal(ramp_volume.array, before)


def _get_default_reslice_spacing(volume, reslice_axes):
    """Spacing chosen by vtkImageReslice when no output geometry is set."""
    matrix = vtkMatrix4x4()
    for i in range(4):
        for j in range(4):
            matrix.SetElement(i, j, float(reslice_axes[i, j]))
    reslice = vtkImageReslice()
    reslice.SetInputData(volume.image_data)
    reslice.SetOutputDimensionality(2)
    reslice.SetResliceAxes(matrix)
    reslice.Update()
    return reslice.GetOutput().GetSpacing()[:2]


@pytest.mark.parametrize('plane', list(SlicePlanes))
def test_create_mpr_slice_spacing_matches_vtk(anisotropic_volume, plane):
    result = create_mpr_slice(anisotropic_volume, plane=plane)
    expected = _get_default_reslice_spacing(
        anisotropic_volume,
        result.reslice_axes,
    )
    assert np.allclose(result.spacing[:2], expected)
    assert result.plane_module.column_pixel_spacing == result.spacing[0]
    assert result.plane_module.row_pixel_spacing == result.spacing[1]


def test_create_mpr_slice_oblique(ramp_volume):
    result = create_mpr_slice(ramp_volume, plane=SlicePlanes.OBLIQUE)
    assert np.allclose(result.spacing[:2], (1.0, 1.0), atol=1e-5)
    assert result.array.shape == (12, 12)
    # Rows run along x, so a row through the volume samples the ramp at
    # every voxel position
    row = result.array[result.array.shape[0] // 2]
    assert np.allclose(row[1:11], np.arange(1, 11), atol=1e-4)
    assert np.allclose(
        result.plane_module.column_cosines,
        (0.0, 0.866025, 0.5),
    )


def test_create_mpr_slice_rotation_ignored(ramp_volume):
    result = create_mpr_slice(ramp_volume, plane=0, rotation=45.0)
    assert np.array_equal(result.reslice_axes[:3, :3], np.eye(3))
    assert result.plane_module.column_cosines == (0.0, 1.0, 0.0)


def test_create_mpr_slice_rotation_applied(ramp_volume):
    result = create_mpr_slice(
        ramp_volume,
        plane=SlicePlanes.AXIAL,
        rotation=90.0,
        apply_rotation=True,
    )
    assert np.allclose(result.plane_module.column_cosines, (0.0, 0.0, 1.0))
    # Columns of the tilted plane run along z
    assert result.array.shape == (8, 12)
    row = result.array[4]
    assert np.allclose(row[1:11], np.arange(1, 11), atol=1e-4)


def test_create_mpr_slice_image_data_shares_uid(ramp_volume):
    image_data = vtkImageData()
    image_data.DeepCopy(ramp_volume.image_data)
    image_data.GetFieldData().Initialize()
    first = create_mpr_slice(image_data, plane=0)
    second = create_mpr_slice(image_data, plane=1)
    assert (
        first.plane_module.frame_of_reference_uid ==
        second.plane_module.frame_of_reference_uid
    )


def test_create_mpr_slice_empty_volume():
    with pytest.raises(ResliceError):
        create_mpr_slice(vtkImageData())
    with pytest.raises(ResliceError):
        create_reslice_axes(Volume(vtkImageData()))


def test_create_mpr_slice_uniform_offset_warning_location(ramp_volume):
    with pytest.warns(UserWarning) as record:
        create_mpr_slice(ramp_volume, slice_delta=1)
    assert len(record) == 1
    assert record[0].filename == __file__


def test_create_reslice_axes_uniform_offset_warning_location(ramp_volume):
    options = ResliceOptions(slice_delta=1)
    with pytest.warns(UserWarning) as record:
        create_reslice_axes(ramp_volume, options)
    assert len(record) == 1
    assert record[0].filename == __file__
