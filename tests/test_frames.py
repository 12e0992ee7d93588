import numpy as np
import pytest
from PIL import Image

from vidbuf.extent import VideoSize
from vidbuf.frames import load_video, read_video_size, save_video, save_video_ascii
from vidbuf.rawio import UnsupportedChannelsError
from vidbuf.video import Video


def _write_gray_sequence(directory, count=3, width=4, height=3):
    for f in range(count):
        pixels = (np.arange(width * height, dtype=np.uint8).reshape(height, width) + 10 * f)
        Image.fromarray(pixels).save(directory / f"frame_{f:03d}.png")
    return str(directory / "frame_%03d.png")


def test_load_gray_sequence(tmp_path):
    pattern = _write_gray_sequence(tmp_path)
    video = load_video(pattern, 0, 2)
    assert video.size == VideoSize(4, 3, 3, 1)
    assert video[3, 2, 2] == 11 + 20
    assert video.data.dtype == np.float32


def test_load_with_step(tmp_path):
    pattern = _write_gray_sequence(tmp_path, count=5)
    video = load_video(pattern, 1, 4, 2)
    assert video.size.frames == 2
    assert video[0, 0, 0] == 10
    assert video[0, 0, 1] == 30


def test_load_rgb_sequence(tmp_path):
    pixels = np.zeros((2, 3, 3), dtype=np.uint8)
    pixels[..., 0] = 50
    pixels[..., 2] = 200
    Image.fromarray(pixels).save(tmp_path / "rgb_0.png")
    video = load_video(str(tmp_path / "rgb_%d.png"), 0, 0)
    assert video.size == VideoSize(3, 2, 1, 3)
    assert (video[1, 1, 0, 0], video[1, 1, 0, 1], video[1, 1, 0, 2]) == (50, 0, 200)


def test_load_missing_frame(tmp_path):
    pattern = _write_gray_sequence(tmp_path, count=2)
    with pytest.raises(FileNotFoundError):
        load_video(pattern, 0, 2)


def test_load_inconsistent_frames(tmp_path):
    Image.new("L", (4, 3)).save(tmp_path / "f_0.png")
    Image.new("L", (5, 3)).save(tmp_path / "f_1.png")
    with pytest.raises(ValueError):
        load_video(str(tmp_path / "f_%d.png"), 0, 1)


@pytest.mark.parametrize("first,last,step", [(2, 1, 1), (0, 1, 0), (-1, 1, 1)])
def test_load_invalid_range(tmp_path, first, last, step):
    pattern = _write_gray_sequence(tmp_path)
    with pytest.raises(ValueError):
        load_video(pattern, first, last, step)


def test_save_and_reload_sequence(tmp_path):
    video = Video.alloc(4, 3, 2, 3)
    video.data[:] = np.arange(video.size.volume_size) % 256
    paths = save_video(video, str(tmp_path / "out" / "%02d.png"), first=5, step=2)
    assert [p.name for p in paths] == ["05.png", "07.png"]

    reloaded = load_video(str(tmp_path / "out" / "%02d.png"), 5, 7, 2)
    assert reloaded == video


def test_save_clips_to_range(tmp_path):
    video = Video.alloc(2, 1, 1, 1)
    video[0, 0, 0] = -20.0
    video[1, 0, 0] = 400.0
    save_video(video, str(tmp_path / "c_%d.png"), 0)
    with Image.open(tmp_path / "c_0.png") as img:
        assert np.asarray(img).tolist() == [[0, 255]]


def test_save_rescales_with_pmin_pmax(tmp_path):
    video = Video.alloc(3, 1, 1, 1)
    video.data[:] = [0.0, 0.5, 1.0]
    save_video(video, str(tmp_path / "s_%d.png"), 0, pmin=0.0, pmax=1.0)
    with Image.open(tmp_path / "s_0.png") as img:
        assert np.asarray(img).tolist() == [[0, 128, 255]]


def test_float_tiff_stack_round_trip(tmp_path):
    video = Video.alloc(3, 2, 3, 1)
    video.data[:] = np.linspace(-1.5, 700.25, video.size.volume_size)
    path = tmp_path / "stack.tif"
    assert save_video(video, str(path)) == [path]

    reloaded = load_video(str(path), 0, 2)
    np.testing.assert_array_equal(reloaded.data, video.data)
    assert reloaded.size == video.size


def test_multipage_partial_range(tmp_path):
    video = Video.from_array(np.arange(4 * 2 * 2, dtype=np.float32).reshape(4, 1, 2, 2))
    path = tmp_path / "stack.tif"
    save_video(video, str(path))
    reloaded = load_video(str(path), 1, 3, 2)
    assert reloaded.size.frames == 2
    np.testing.assert_array_equal(reloaded.as_array()[1], video.as_array()[3])


def test_single_image_file(tmp_path):
    Image.new("RGB", (5, 4), (1, 2, 3)).save(tmp_path / "still.png")
    assert read_video_size(str(tmp_path / "still.png")) == VideoSize(5, 4, 1, 3)


def test_save_unsupported_channels(tmp_path):
    with pytest.raises(UnsupportedChannelsError):
        save_video(Video.alloc(2, 2, 1, 2), str(tmp_path / "x_%d.png"))


def test_save_video_ascii(tmp_path):
    video = Video.alloc(3, 2, 2, 2)
    video.data[:] = np.arange(video.size.volume_size)
    paths = save_video_ascii(video, tmp_path / "dump", first=1)
    assert [p.name for p in paths] == ["dump_001.txt", "dump_002.txt"]

    frame = np.loadtxt(paths[1])
    assert frame.shape == (4, 3)
    np.testing.assert_allclose(frame.reshape(-1), video.frame(1).reshape(-1))
