"""Conversion between caller-owned interleaved sample arrays and videos.

External arrays are flat float arrays nested frame, row, column, channel
(channel innermost). :class:`~vidbuf.video.Video` stores channels as separate
planes, so every transfer is a reordering between the two layouts.
"""

import logging
from typing import Optional

import numpy as np

from vidbuf.extent import VideoSize
from vidbuf.video import DTYPE, Video

logger = logging.getLogger(__name__)

SUPPORTED_CHANNELS = (1, 3)


class UnsupportedChannelsError(ValueError):
    """Raised when a video has a channel count the interchange format can't carry."""

    def __init__(self, channels: int, supported=SUPPORTED_CHANNELS):
        self.channels = channels
        self.supported = tuple(supported)
        allowed = " or ".join(str(c) for c in self.supported)
        super().__init__(f"Video needs to have {allowed} channels, got {channels}")


def check_channels(channels: int, supported=SUPPORTED_CHANNELS) -> int:
    if channels not in supported:
        raise UnsupportedChannelsError(channels, supported)
    return channels


def decode_into(video: Video, samples, size: VideoSize) -> Video:
    """Fill ``video`` from an interleaved external array.

    Args:
        video: Destination, resized to 3 channels and the extent of ``size``
        samples: Flat array nested (t, y, x, c)
        size: Extent of ``samples``; ``size.channels`` is the declared
            source channel count (1 or 3)

    Returns:
        ``video``

    A 1-channel source is broadcast so that channels 0, 1 and 2 of every output
    pixel equal the source scalar.

    Raises:
        UnsupportedChannelsError: If ``size.channels`` is not 1 or 3. The
            destination is left untouched.
        ValueError: If the number of samples does not match ``size``
    """
    check_channels(size.channels)

    flat = np.asarray(samples, dtype=DTYPE).reshape(-1)
    if flat.size != size.volume_size:
        raise ValueError(
            f"Expected {size.volume_size} samples for {size}, got {flat.size}"
        )

    # (T, Y, X, C) -> (T, C, Y, X)
    planar = flat.reshape(size.frames, size.height, size.width, size.channels)
    planar = planar.transpose(0, 3, 1, 2)
    if size.channels == 1:
        logger.debug("Broadcasting single-channel samples to 3 channels")
        planar = np.repeat(planar, 3, axis=1)

    video.resize(VideoSize(size.width, size.height, size.frames, 3))
    video.as_array()[...] = planar
    return video


def encode_from(video: Video, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Write a video into an interleaved external array.

    All ``video.size.channels`` channels are emitted in (t, y, x, c) order.

    Args:
        video: Source video
        out: Optional caller-owned flat array of ``volume_size`` samples

    Returns:
        ``out`` if given, otherwise a new float32 array
    """
    interleaved = video.as_array().transpose(0, 2, 3, 1).reshape(-1)
    if out is None:
        # reshape is a view for single-channel videos
        return np.array(interleaved, dtype=DTYPE, copy=True)

    if out.ndim != 1 or out.size != video.size.volume_size:
        raise ValueError(
            f"Output array must be flat with {video.size.volume_size} samples, "
            f"got shape {out.shape}"
        )
    out[:] = interleaved
    return out


def broadcast_channels(video: Video, channels: int = 3) -> Video:
    """Return a copy of a single-channel video replicated to ``channels`` channels."""
    if video.size.channels != 1:
        raise ValueError(f"Expected a single-channel video, got {video.size.channels}")
    return Video.from_array(np.repeat(video.as_array(), channels, axis=1))
