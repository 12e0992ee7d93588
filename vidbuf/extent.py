"""Size descriptor and linear addressing for 4D video buffers."""

from dataclasses import dataclass, replace
from typing import Optional, Tuple


@dataclass
class VideoSize:
    """Dimensions of a video with width, height, frames and channels.

    Samples are laid out frame-major: within a frame each channel is a separate
    plane, within a plane rows follow each other and x varies fastest.

    :ivar width: Number of columns
    :ivar height: Number of rows
    :ivar frames: Number of frames
    :ivar channels: Number of channels
    """

    width: int = 0
    height: int = 0
    frames: int = 0
    channels: int = 0

    @property
    def plane_size(self) -> int:
        """Samples in one channel plane (width * height)."""
        return self.width * self.height

    @property
    def frame_stride(self) -> int:
        """Samples in one frame across all channels."""
        return self.plane_size * self.channels

    @property
    def volume_size(self) -> int:
        """Total number of samples."""
        return self.frame_stride * self.frames

    @property
    def frame_size(self) -> int:
        """Samples of a single-channel video with the same width, height, frames."""
        return self.plane_size * self.frames

    @property
    def shape(self) -> Tuple[int, int, int, int]:
        """Numpy shape (frames, channels, height, width) of the planar layout."""
        return (self.frames, self.channels, self.height, self.width)

    def copy(self) -> "VideoSize":
        return replace(self)

    def index(self, x: int, y: int, t: int, c: Optional[int] = None) -> int:
        """Return the linear offset of a sample.

        With ``c`` omitted the video is addressed as single-channel, i.e. the
        offset is ``t * plane_size + y * width + x``.

        :raises IndexError: If any coordinate is outside the video
        """
        if c is None:
            if not (0 <= x < self.width and 0 <= y < self.height and 0 <= t < self.frames):
                raise IndexError(f"Coordinates ({x}, {y}, {t}) outside {self}")
            return t * self.plane_size + y * self.width + x

        if not (
            0 <= x < self.width
            and 0 <= y < self.height
            and 0 <= t < self.frames
            and 0 <= c < self.channels
        ):
            raise IndexError(f"Coordinates ({x}, {y}, {t}, {c}) outside {self}")
        return t * self.frame_stride + c * self.plane_size + y * self.width + x

    def coords(self, idx: int, single_channel: bool = False) -> tuple:
        """Inverse of :meth:`index`.

        :return: ``(x, y, t, c)``, or ``(x, y, t)`` when ``single_channel`` is set
        :raises IndexError: If ``idx`` is outside the addressable range
        """
        if single_channel:
            if not 0 <= idx < self.frame_size:
                raise IndexError(f"Index {idx} outside [0, {self.frame_size})")
            t = idx // self.plane_size
            y = (idx % self.plane_size) // self.width
            x = idx % self.width
            return x, y, t

        if not 0 <= idx < self.volume_size:
            raise IndexError(f"Index {idx} outside [0, {self.volume_size})")
        t = idx // self.frame_stride
        c = (idx % self.frame_stride) // self.plane_size
        y = (idx % self.plane_size) // self.width
        x = idx % self.width
        return x, y, t, c
