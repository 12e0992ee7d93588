"""Float32 video buffer with direct and mirror-boundary pixel access."""

import logging
from typing import Optional, Tuple, Union

import numpy as np

from vidbuf.extent import VideoSize

logger = logging.getLogger(__name__)

DTYPE = np.float32


def _mirror(v: int, n: int, axis: str) -> int:
    # Reflect about the first/last sample, one bounce only
    if not -n < v < 2 * n - 1:
        raise IndexError(f"{axis}={v} more than one reflection outside [0, {n})")
    if v < 0:
        return -v
    if v >= n:
        return 2 * (n - 1) - v
    return v


class Video:
    """Video stored as one contiguous float32 array.

    The sample for ``(x, y, t, c)`` lives at ``size.index(x, y, t, c)`` in
    :attr:`data`. The array is owned by the instance and always holds exactly
    ``size.volume_size`` samples.
    """

    def __init__(self, size: Optional[VideoSize] = None, fill: Optional[float] = None):
        """Allocate a video.

        Args:
            size: Extent of the video; an empty video if omitted
            fill: Initial sample value (zeros if omitted)
        """
        self.size = size.copy() if size is not None else VideoSize()
        self.data = self._allocate(self.size, fill)

    @staticmethod
    def _allocate(size: VideoSize, fill: Optional[float] = None) -> np.ndarray:
        if fill is None:
            return np.zeros(size.volume_size, dtype=DTYPE)
        return np.full(size.volume_size, fill, dtype=DTYPE)

    @classmethod
    def alloc(
        cls,
        width: int,
        height: int,
        frames: int,
        channels: int = 1,
        fill: Optional[float] = None,
    ) -> "Video":
        """Allocate a video from its dimensions."""
        return cls(VideoSize(width, height, frames, channels), fill)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Video":
        """Build a video from a (frames, channels, height, width) array.

        The samples are copied and converted to float32.
        """
        array = np.asarray(array)
        if array.ndim != 4:
            raise ValueError(f"Expected 4D (T, C, Y, X) array, got {array.ndim}D")
        frames, channels, height, width = array.shape
        video = cls(VideoSize(width, height, frames, channels))
        video.data[:] = array.astype(DTYPE, copy=False).ravel(order="C")
        return video

    def copy(self) -> "Video":
        other = Video()
        other.size = self.size.copy()
        other.data = self.data.copy()
        return other

    def __repr__(self):
        s = self.size
        return f"Video(width={s.width}, height={s.height}, frames={s.frames}, channels={s.channels})"

    def __eq__(self, other):
        if not isinstance(other, Video):
            return NotImplemented
        return self.size == other.size and np.array_equal(self.data, other.data)

    def clear(self):
        """Reset to an empty video."""
        self.size = VideoSize()
        self.data = self._allocate(self.size)

    def resize(
        self,
        size: Union[VideoSize, int],
        height: Optional[int] = None,
        frames: Optional[int] = None,
        channels: int = 1,
        fill: Optional[float] = None,
    ):
        """Change the extent of the video.

        Accepts either a :class:`VideoSize` or ``width, height, frames[, channels]``.
        Any change of extent discards the current samples and reallocates
        zeros (or ``fill``); requesting the current extent keeps the data
        untouched.
        """
        if not isinstance(size, VideoSize):
            if height is None or frames is None:
                raise TypeError("resize() needs a VideoSize or width, height and frames")
            size = VideoSize(size, height, frames, channels)
        if size == self.size:
            return
        logger.debug(f"Reallocating video {self.size} -> {size}")
        self.clear()
        self.size = size.copy()
        self.data = self._allocate(self.size, fill)

    def _offset(self, key) -> int:
        if isinstance(key, tuple):
            if len(key) not in (3, 4):
                raise IndexError(f"Expected (x, y, t) or (x, y, t, c), got {key!r}")
            x, y, t = key[:3]
            c = key[3] if len(key) == 4 else 0
            return self.size.index(x, y, t, c)
        if not 0 <= key < self.size.volume_size:
            raise IndexError(f"Index {key} outside [0, {self.size.volume_size})")
        return key

    def __getitem__(self, key) -> float:
        return float(self.data[self._offset(key)])

    def __setitem__(self, key, value: float):
        self.data[self._offset(key)] = value

    def _symmetric_offset(self, x: int, y: int, t: int, c: int) -> int:
        s = self.size
        return s.index(
            _mirror(x, s.width, "x"),
            _mirror(y, s.height, "y"),
            _mirror(t, s.frames, "t"),
            c,
        )

    def get_symmetric(self, x: int, y: int, t: int, c: int = 0) -> float:
        """Read a sample, reflecting out-of-range x, y and t back into the video.

        ``-1`` maps to ``1`` and ``width`` to ``width - 2``; coordinates needing
        more than one reflection raise :class:`IndexError`. The channel is never
        reflected.
        """
        return float(self.data[self._symmetric_offset(x, y, t, c)])

    def set_symmetric(self, x: int, y: int, t: int, c: int, value: float):
        self.data[self._symmetric_offset(x, y, t, c)] = value

    def as_array(self) -> np.ndarray:
        """Return a (frames, channels, height, width) view of the data."""
        return self.data.reshape(self.size.shape)

    def frame(self, t: int) -> np.ndarray:
        """Return a (channels, height, width) view of frame ``t``."""
        if not 0 <= t < self.size.frames:
            raise IndexError(f"Frame {t} outside [0, {self.size.frames})")
        return self.as_array()[t]

    @property
    def shape(self) -> Tuple[int, int, int, int]:
        return self.size.shape
