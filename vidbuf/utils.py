import os
import re
from pathlib import Path
from typing import Union

_PRINTF_FIELD = re.compile(r"%0?\d*d")


def is_sequence_pattern(pattern):
    # type: (Union[str, Path]) -> bool
    """Check whether a path contains a printf frame field such as ``%03d``."""
    return _PRINTF_FIELD.search(str(pattern)) is not None


def frame_path(pattern, frame):
    # type: (Union[str, Path], int) -> Path
    """Expand a printf-style frame pattern (``frames/%03d.png``) for one frame."""
    pattern = str(pattern)
    fields = _PRINTF_FIELD.findall(pattern)
    if len(fields) != 1:
        raise ValueError(f"Pattern needs exactly one frame field (e.g. %03d): {pattern}")
    # Other literal % signs are kept as they are
    head, tail = _PRINTF_FIELD.split(pattern)
    return Path(head + fields[0] % frame + tail)


def frame_range(first, last, step=1):
    # type: (int, int, int) -> range
    """Validate a closed frame interval and return the frame numbers in it."""
    if step <= 0:
        raise ValueError(f"Frame step must be positive, got {step}")
    if first < 0:
        raise ValueError(f"First frame must be non-negative, got {first}")
    if last < first:
        raise ValueError(f"Last frame {last} precedes first frame {first}")
    return range(first, last + 1, step)


def ensure_parent_dir(path):
    # type: (Union[str, Path]) -> Path
    """Create the directory holding ``path`` if it does not exist yet."""
    path = Path(path)
    if path.parent and not path.parent.exists():
        os.makedirs(path.parent, exist_ok=True)
    return path
