# -*- coding: utf-8 -*-
"""Image sequence reading and writing for videos.

A video on disk is either a printf-style sequence of images
(``frames/%03d.png``, one file per frame) or a single multi-page image such as
a TIFF stack or an animated GIF. Pixel decoding is delegated to Pillow.
"""

from pathlib import Path
from typing import List, Union

import numpy as np
from loguru import logger
from PIL import Image, ImageSequence

from vidbuf.extent import VideoSize
from vidbuf.rawio import UnsupportedChannelsError
from vidbuf.utils import ensure_parent_dir, frame_path, frame_range, is_sequence_pattern
from vidbuf.video import DTYPE, Video

DEFAULT_PMIN = 0.0
DEFAULT_PMAX = 255.0

FLOAT_SUFFIXES = (".tif", ".tiff")
EIGHT_BIT_CHANNELS = (1, 3, 4)


def _image_to_planes(img):
    # type: (Image.Image) -> np.ndarray
    """Convert a Pillow image to a (channels, height, width) float32 array."""
    if img.mode == "P":
        img = img.convert("RGBA" if "transparency" in img.info else "RGB")

    array = np.asarray(img)
    if array.ndim == 2:
        array = array[np.newaxis]
    else:
        array = array.transpose(2, 0, 1)
    return array.astype(DTYPE)


def _stack_frames(planes, source):
    # type: (List[np.ndarray], str) -> Video
    shapes = {p.shape for p in planes}
    if len(shapes) > 1:
        raise ValueError(f"{source} - frames differ in size or channels: {sorted(shapes)}")
    return Video.from_array(np.stack(planes))


def load_video(pattern, first=0, last=0, step=1):
    # type: (Union[str, Path], int, int, int) -> Video
    """Read frames ``first, first + step, ... <= last`` into a video.

    :param pattern: printf-style sequence pattern (``img_%03d.png``) or path to
        a single (possibly multi-page) image
    :param first: First frame number (page index for single files)
    :param last: Last frame number, inclusive
    :param step: Frame step
    :return: Video whose channel count follows the image mode
    :raises FileNotFoundError: If a frame file is missing
    :raises ValueError: On an invalid range or frames of differing size
    """
    frames = frame_range(first, last, step)

    if is_sequence_pattern(pattern):
        planes = []
        for f in frames:
            path = frame_path(pattern, f)
            if not path.exists():
                raise FileNotFoundError(f"Frame file not found: {path}")
            with Image.open(path) as img:
                planes.append(_image_to_planes(img))
            logger.debug(f"{path.name} - read frame {f}, shape={planes[-1].shape}")
        video = _stack_frames(planes, str(pattern))
    else:
        path = Path(pattern)
        if not path.exists():
            raise FileNotFoundError(f"Video file not found: {path}")
        with Image.open(path) as img:
            n_pages = getattr(img, "n_frames", 1)
            if first >= n_pages:
                raise ValueError(f"{path.name} - first frame {first} beyond {n_pages} pages")
            if last >= n_pages:
                logger.warning(f"{path.name} - only {n_pages} pages, truncating range at {n_pages - 1}")
            wanted = set(frames)
            planes = [
                _image_to_planes(page)
                for idx, page in enumerate(ImageSequence.Iterator(img))
                if idx in wanted
            ]
        logger.debug(f"{path.name} - read {len(planes)} of {n_pages} pages")
        video = _stack_frames(planes, path.name)

    logger.info(f"Loaded {pattern}: {video.size}")
    return video


def _to_8bit(planes, pmin, pmax):
    # type: (np.ndarray, float, float) -> np.ndarray
    if pmax <= pmin:
        raise ValueError(f"pmax ({pmax}) must exceed pmin ({pmin})")
    outside = np.count_nonzero((planes < pmin) | (planes > pmax))
    if outside:
        logger.debug(f"Clipping {outside} samples to [{pmin}, {pmax}]")
    scaled = (np.clip(planes, pmin, pmax) - pmin) * (255.0 / (pmax - pmin))
    return np.rint(scaled).astype(np.uint8)


def _frame_image(planes, suffix, pmin, pmax):
    # type: (np.ndarray, str, float, float) -> Image.Image
    channels = planes.shape[0]
    if channels == 1 and suffix.lower() in FLOAT_SUFFIXES:
        return Image.fromarray(np.ascontiguousarray(planes[0], dtype=np.float32))
    if channels not in EIGHT_BIT_CHANNELS:
        raise UnsupportedChannelsError(channels, EIGHT_BIT_CHANNELS)
    pixels = _to_8bit(planes, pmin, pmax)
    if channels == 1:
        return Image.fromarray(pixels[0])
    return Image.fromarray(np.ascontiguousarray(pixels.transpose(1, 2, 0)))


def save_video(video, pattern, first=0, step=1, pmin=DEFAULT_PMIN, pmax=DEFAULT_PMAX):
    # type: (Video, Union[str, Path], int, int, float, float) -> List[Path]
    """Write a video as an image sequence or a multi-page image.

    Frame ``t`` goes to ``pattern % (first + t * step)``. Without a frame field
    in ``pattern`` all frames are stored as pages of one file. Single-channel
    TIFF output keeps float samples; everything else is clipped to
    ``[pmin, pmax]`` and scaled to 8 bits.

    :return: Paths of the written files
    """
    size = video.size
    suffix = Path(str(pattern)).suffix

    if is_sequence_pattern(pattern):
        paths = []
        for t in range(size.frames):
            path = ensure_parent_dir(frame_path(pattern, first + t * step))
            _frame_image(video.frame(t), suffix, pmin, pmax).save(path)
            logger.debug(f"{path.name} - wrote frame {first + t * step}")
            paths.append(path)
        logger.info(f"Saved {size.frames} frames to {pattern}")
        return paths

    if size.frames == 0:
        raise ValueError("Cannot save a video without frames")
    path = ensure_parent_dir(pattern)
    images = [_frame_image(video.frame(t), suffix, pmin, pmax) for t in range(size.frames)]
    if len(images) == 1:
        images[0].save(path)
    else:
        images[0].save(path, save_all=True, append_images=images[1:])
    logger.info(f"Saved {size.frames} pages to {path}")
    return [path]


def save_video_ascii(video, prefix, first=0, step=1):
    # type: (Video, Union[str, Path], int, int) -> List[Path]
    """Dump each frame as text, channel planes stacked vertically.

    Frame ``t`` is written to ``{prefix}_{first + t * step:03d}.txt``.
    """
    size = video.size
    paths = []
    for t in range(size.frames):
        path = ensure_parent_dir(Path(f"{prefix}_{first + t * step:03d}.txt"))
        planes = video.frame(t).reshape(size.channels * size.height, size.width)
        np.savetxt(path, planes, fmt="%.6f")
        paths.append(path)
    logger.debug(f"Wrote {len(paths)} ascii frames with prefix {prefix}")
    return paths


def read_video_size(pattern, first=0):
    # type: (Union[str, Path], int) -> VideoSize
    """Return the extent of a single frame without keeping its samples."""
    return load_video(pattern, first, first).size
