from loguru import logger

from vidbuf.extent import VideoSize
from vidbuf.video import Video
from vidbuf.rawio import UnsupportedChannelsError, decode_into, encode_from
from vidbuf.transforms import (
    TransformFileError,
    TransformSet,
    params_to_matrix,
    read_transforms,
    write_transforms,
)

# Silent until an application calls logger.enable("vidbuf")
logger.disable("vidbuf")

__all__ = [
    "VideoSize",
    "Video",
    "UnsupportedChannelsError",
    "decode_into",
    "encode_from",
    "TransformFileError",
    "TransformSet",
    "params_to_matrix",
    "read_transforms",
    "write_transforms",
]

__version__ = "0.1.0"
