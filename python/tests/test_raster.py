import numpy as np
import pytest

from pixcorr import Raster, as_raster


def test_from_buffer_is_row_major():
    raster = Raster.from_buffer(3, 2, [0, 1, 2, 10, 11, 12])

    assert raster.width == 3
    assert raster.height == 2
    assert raster.size == 6
    assert raster[2, 0] == 2
    assert raster[0, 1] == 10
    assert list(raster.samples) == [0, 1, 2, 10, 11, 12]


def test_from_buffer_length_mismatch():
    with pytest.raises(ValueError):
        Raster.from_buffer(3, 2, [1, 2, 3])


def test_rejects_non_2d():
    with pytest.raises(ValueError):
        Raster([1, 2, 3])
    with pytest.raises(ValueError):
        Raster(np.zeros((2, 2, 3)))


def test_rejects_non_numeric():
    with pytest.raises(ValueError):
        Raster([["a", "b"]])


def test_rejects_complex_samples():
    with pytest.raises(ValueError):
        Raster(np.ones((2, 2), dtype=complex))


def test_is_read_only_copy():
    data = np.arange(6).reshape(2, 3)
    raster = Raster(data)
    data[0, 0] = 99

    assert raster[0, 0] == 0
    with pytest.raises(ValueError):
        raster.data[0, 0] = 5


def test_crop():
    raster = Raster(np.arange(20).reshape(4, 5))
    window = raster.crop(1, 2, 3, 2)

    assert window.shape == (3, 2)
    assert window == Raster([[11, 12, 13], [16, 17, 18]])


@pytest.mark.parametrize("region", [(-1, 0, 2, 2), (4, 0, 2, 1), (0, 3, 1, 2)])
def test_crop_out_of_bounds(region):
    with pytest.raises(ValueError):
        Raster(np.zeros((4, 5))).crop(*region)


def test_empty_raster_can_be_built():
    raster = Raster(np.zeros((0, 4)))
    assert raster.is_empty()
    assert raster.shape == (4, 0)


def test_as_raster_passes_rasters_through():
    raster = Raster([[1, 2]])
    assert as_raster(raster) is raster
    assert as_raster([[1, 2]]) == raster


def test_keeps_sample_dtype():
    assert Raster(np.zeros((2, 2), dtype=np.uint16)).dtype == np.uint16
