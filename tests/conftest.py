import numpy as np
import pytest

from pydicom import config

from mprslice import Volume


@pytest.fixture(autouse=True, scope='session')
def setup_pydicom_config():
    """Fixture that sets up pydicom config values for all tests."""
    config.enforce_valid_values = True
    yield


@pytest.fixture
def ramp_volume():
    """Volume of 8 x 10 x 12 voxels (z, y, x) whose values increase along x.

    The voxel at index (z, y, x) has value x, so resampled pixels reveal
    which x position they were taken from.
    """
    array = np.broadcast_to(
        np.arange(12, dtype=np.float32),
        (8, 10, 12),
    ).copy()
    return Volume.from_array(
        array,
        spacing=(1.0, 1.0, 1.0),
        origin=(10.0, -20.0, 5.0),
        frame_of_reference_uid='1.2.826.0.1.3680043.8.498.1',
    )


@pytest.fixture
def anisotropic_volume():
    """Volume of 5 x 20 x 16 voxels (z, y, x) with thick slices."""
    array = np.zeros((5, 20, 16), dtype=np.int16)
    array[2] = 100
    return Volume.from_array(
        array,
        spacing=(0.5, 0.75, 3.0),
        origin=(-4.0, 2.0, 7.5),
    )
