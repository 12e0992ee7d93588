import numpy as np
import pytest

from vidbuf.extent import VideoSize
from vidbuf.rawio import (
    UnsupportedChannelsError,
    broadcast_channels,
    decode_into,
    encode_from,
)
from vidbuf.video import Video


def test_decode_single_channel_broadcasts():
    size = VideoSize(3, 2, 2, 1)
    samples = np.arange(size.volume_size, dtype=np.float32) * 1.5
    video = decode_into(Video(), samples, size)

    assert video.size == VideoSize(3, 2, 2, 3)
    for t in range(2):
        for y in range(2):
            for x in range(3):
                expected = samples[(t * 2 + y) * 3 + x]
                assert [video[x, y, t, c] for c in range(3)] == [expected] * 3


def test_decode_three_channels_in_canonical_order():
    size = VideoSize(2, 2, 1, 3)
    samples = np.arange(12, dtype=np.float32)
    video = decode_into(Video(), samples, size)
    # samples nested (t, y, x, c) with c innermost
    assert video[0, 0, 0, 0] == 0
    assert video[0, 0, 0, 2] == 2
    assert video[1, 0, 0, 0] == 3
    assert video[0, 1, 0, 1] == 7
    assert video[1, 1, 0, 2] == 11


def test_decode_accepts_lists():
    video = decode_into(Video(), [1.0, 2.0], VideoSize(2, 1, 1, 1))
    assert video.as_array()[0, :, 0, :].tolist() == [[1.0, 2.0]] * 3


@pytest.mark.parametrize("channels", [0, 2, 4])
def test_decode_rejects_unsupported_channels(channels):
    video = Video.alloc(2, 2, 1, 1, fill=5.0)
    size = VideoSize(2, 2, 1, channels)
    with pytest.raises(UnsupportedChannelsError) as excinfo:
        decode_into(video, np.zeros(size.volume_size), size)
    assert excinfo.value.channels == channels
    assert isinstance(excinfo.value, ValueError)
    # nothing decoded
    assert video.size == VideoSize(2, 2, 1, 1)
    assert np.all(video.data == 5.0)


def test_decode_rejects_wrong_sample_count():
    with pytest.raises(ValueError):
        decode_into(Video(), np.zeros(10), VideoSize(2, 2, 1, 3))


def test_encode_decode_round_trip():
    rng = np.random.default_rng(0)
    video = Video.from_array(rng.random((3, 3, 4, 5), dtype=np.float32))
    samples = encode_from(video)
    assert samples.shape == (video.size.volume_size,)

    restored = decode_into(Video(), samples, video.size)
    assert restored == video


def test_encode_interleaves_channels():
    video = Video.alloc(2, 1, 1, 3)
    for c in range(3):
        video[0, 0, 0, c] = c
        video[1, 0, 0, c] = 10 + c
    assert encode_from(video).tolist() == [0, 1, 2, 10, 11, 12]


def test_encode_keeps_channel_count():
    video = Video.alloc(2, 2, 2, 1, fill=4.0)
    assert encode_from(video).size == 8


def test_encode_into_caller_array():
    video = Video.alloc(2, 2, 1, 3, fill=1.0)
    out = np.zeros(12, dtype=np.float32)
    result = encode_from(video, out)
    assert result is out
    assert np.all(out == 1.0)

    with pytest.raises(ValueError):
        encode_from(video, np.zeros(11, dtype=np.float32))


@pytest.mark.parametrize("channels", [1, 3])
def test_encoded_array_is_not_a_view(channels):
    video = Video.alloc(2, 2, 1, channels)
    samples = encode_from(video)
    samples[:] = 9.0
    assert not video.data.any()


def test_broadcast_channels():
    video = Video.alloc(2, 2, 2, 1)
    video.data[:] = np.arange(8)
    rgb = broadcast_channels(video)
    assert rgb.size == VideoSize(2, 2, 2, 3)
    for c in range(3):
        assert rgb[1, 1, 1, c] == video[1, 1, 1]

    with pytest.raises(ValueError):
        broadcast_channels(rgb)
