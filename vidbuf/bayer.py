"""Packing of raw Bayer mosaics into 4-channel half-resolution videos.

Channel ``k`` of packed pixel ``(x, y)`` holds the mosaic sample at
``(2x + k % 2, 2y + k // 2)``, i.e. for an RGGB sensor the channels are
R, G1, G2, B. No interpolation or colour conversion is applied.
"""

import logging

import numpy as np

from vidbuf.video import Video

logger = logging.getLogger(__name__)


def from_bayer(video: Video) -> Video:
    """Split a single-channel mosaic into four half-resolution channels."""
    size = video.size
    if size.channels != 1:
        raise ValueError(f"Bayer mosaic must have 1 channel, got {size.channels}")
    if size.width % 2 or size.height % 2:
        raise ValueError(f"Bayer mosaic needs even dimensions, got {size.width}x{size.height}")

    mosaic = video.as_array()[:, 0]
    packed = np.stack(
        [
            mosaic[:, 0::2, 0::2],
            mosaic[:, 0::2, 1::2],
            mosaic[:, 1::2, 0::2],
            mosaic[:, 1::2, 1::2],
        ],
        axis=1,
    )
    logger.debug(f"Packed {size.width}x{size.height} mosaic into 4 channels")
    return Video.from_array(packed)


def to_bayer(video: Video) -> Video:
    """Reassemble a single-channel mosaic from four packed channels."""
    size = video.size
    if size.channels != 4:
        raise ValueError(f"Packed Bayer video must have 4 channels, got {size.channels}")

    packed = video.as_array()
    mosaic = Video.alloc(2 * size.width, 2 * size.height, size.frames, 1)
    out = mosaic.as_array()[:, 0]
    out[:, 0::2, 0::2] = packed[:, 0]
    out[:, 0::2, 1::2] = packed[:, 1]
    out[:, 1::2, 0::2] = packed[:, 2]
    out[:, 1::2, 1::2] = packed[:, 3]
    return mosaic
