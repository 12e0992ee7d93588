"""Caller-facing helpers exchanging raw arrays with the video and transform codecs.

Each helper takes caller-owned storage and either fills it or reads from it;
nothing is retained between calls. Failures raise instead of returning zero.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

import numpy as np

from vidbuf import transforms as tf
from vidbuf.extent import VideoSize
from vidbuf.frames import DEFAULT_PMAX, DEFAULT_PMIN, load_video, read_video_size, save_video
from vidbuf.rawio import broadcast_channels, check_channels, encode_from
from vidbuf.video import Video

logger = logging.getLogger(__name__)


def get_frame_size(path: Union[str, Path], first: int = 0) -> Tuple[int, int, int]:
    """Return ``(width, height, channels)`` of frame ``first``.

    Raises:
        UnsupportedChannelsError: If the frame has neither 1 nor 3 channels
    """
    size = read_video_size(path, first)
    check_channels(size.channels)
    return size.width, size.height, size.channels


def read_video(
    path: Union[str, Path],
    first: int,
    last: int,
    step: int = 1,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Load frames and return them as an interleaved 3-channel array.

    Single-channel input is replicated into three channels so the result
    always holds ``width * height * frames * 3`` samples.

    Args:
        path: Sequence pattern or video file
        first: First frame
        last: Last frame, inclusive
        step: Frame step
        out: Optional caller-owned flat float32 array to fill

    Returns:
        The filled array

    Raises:
        UnsupportedChannelsError: If the video has neither 1 nor 3 channels
    """
    video = load_video(path, first, last, step)
    check_channels(video.size.channels)
    if video.size.channels == 1:
        video = broadcast_channels(video)
    logger.debug(f"Exporting {video.size} from {path}")
    return encode_from(video, out)


def write_video(
    path: Union[str, Path],
    first: int,
    step: int,
    samples,
    width: int,
    height: int,
    frames: int,
    channels: int,
    pmin: float = DEFAULT_PMIN,
    pmax: float = DEFAULT_PMAX,
) -> int:
    """Save an interleaved array of the given extent as frames.

    Returns:
        Number of samples written, always ``width * height * frames * channels``
    """
    size = VideoSize(width, height, frames, channels)
    flat = np.asarray(samples, dtype=np.float32).reshape(-1)
    if flat.size != size.volume_size:
        raise ValueError(f"Expected {size.volume_size} samples for {size}, got {flat.size}")

    planar = flat.reshape(frames, height, width, channels)
    video = Video.from_array(planar.transpose(0, 3, 1, 2))
    save_video(video, path, first, step, pmin, pmax)
    return size.volume_size


def save_transforms(
    path: Union[str, Path],
    params,
    nparams: int,
    ntransforms: int,
    width: Optional[int] = None,
    height: Optional[int] = None,
    to_matrix: Callable = tf.params_to_matrix,
) -> Path:
    """Save transforms as 3x3 matrices, one per line."""
    return tf.write_transforms(path, params, nparams, ntransforms, width, height, to_matrix)


def read_transforms(
    path: Union[str, Path],
    out: np.ndarray,
    nparams: Optional[int] = None,
    ntransforms: Optional[int] = None,
) -> Tuple[int, int]:
    """Fill ``out`` from a legacy raw transform file.

    Returns:
        ``(width, height)`` from the file header
    """
    result = tf.read_transforms(path, nparams, ntransforms, out=out)
    return result.width, result.height
