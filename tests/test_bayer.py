import numpy as np
import pytest

from vidbuf.bayer import from_bayer, to_bayer
from vidbuf.extent import VideoSize
from vidbuf.video import Video


def _mosaic():
    return Video.from_array(np.arange(2 * 4 * 6, dtype=np.float32).reshape(2, 1, 4, 6))


def test_from_bayer_packs_cfa_cells():
    mosaic = _mosaic()
    packed = from_bayer(mosaic)
    assert packed.size == VideoSize(3, 2, 2, 4)
    # packed pixel (1, 1) covers mosaic samples (2..3, 2..3)
    assert packed[1, 1, 1, 0] == mosaic[2, 2, 1]
    assert packed[1, 1, 1, 1] == mosaic[3, 2, 1]
    assert packed[1, 1, 1, 2] == mosaic[2, 3, 1]
    assert packed[1, 1, 1, 3] == mosaic[3, 3, 1]


def test_to_bayer_inverts_from_bayer():
    mosaic = _mosaic()
    assert to_bayer(from_bayer(mosaic)) == mosaic


def test_from_bayer_rejects_bad_input():
    with pytest.raises(ValueError):
        from_bayer(Video.alloc(4, 4, 1, 3))
    with pytest.raises(ValueError):
        from_bayer(Video.alloc(5, 4, 1, 1))


def test_to_bayer_requires_four_channels():
    with pytest.raises(ValueError):
        to_bayer(Video.alloc(2, 2, 1, 3))
