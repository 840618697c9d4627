from io import BytesIO

from pydicom.dataset import Dataset
from pydicom.filereader import dcmread


def write_and_read_dataset(dataset: Dataset):
    """Write DICOM dataset to buffer and read it back from buffer."""
    clone = Dataset(dataset)
    with BytesIO() as fp:
        clone.save_as(
            fp,
            implicit_vr=True,
            little_endian=True,
        )
        return dcmread(fp, force=True)
