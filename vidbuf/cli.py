"""CLI interface for vidbuf."""

import click
from pathlib import Path
import sys
import logging
from loguru import logger as loguru_logger
from vidbuf.frames import DEFAULT_PMAX, DEFAULT_PMIN, load_video, save_video, save_video_ascii
from vidbuf.interop import get_frame_size
from vidbuf.rawio import broadcast_channels
from vidbuf.transforms import read_transforms, write_transforms


# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Looks up sys.stderr on every write so output swapped in by CliRunner is captured
def _stderr_sink(message):
    sys.stderr.write(message)


def _frame_options(f):
    f = click.option("--step", default=1, type=int, help="Frame step (default: 1)")(f)
    f = click.option("--last", default=None, type=int, help="Last frame (default: first)")(f)
    f = click.option("--first", default=0, type=int, help="First frame (default: 0)")(f)
    return f


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """vidbuf - Raw video buffers and registration transform files."""
    loguru_logger.enable("vidbuf")
    loguru_logger.remove()
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        loguru_logger.add(_stderr_sink, level="DEBUG")
    else:
        loguru_logger.add(_stderr_sink, level="INFO")


@cli.command()
@click.argument("pattern")
@_frame_options
def info(pattern, first, last, step):
    """
    Show the size of a video.

    PATTERN is either a frame sequence such as frames/%03d.png or a single
    (multi-page) image file.
    """
    last = first if last is None else last
    try:
        width, height, channels = get_frame_size(pattern, first)
        video = load_video(pattern, first, last, step)
        click.echo(f"✓ {pattern}")
        click.echo(f"  width={width} height={height} frames={video.size.frames} channels={channels}")
    except Exception as e:
        click.echo(f"✗ Error reading {pattern}: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("input")
@click.argument("output")
@_frame_options
@click.option("--out-first", default=None, type=int, help="First output frame number (default: --first)")
@click.option("--pmin", default=DEFAULT_PMIN, type=float, help="Value mapped to black (default: 0)")
@click.option("--pmax", default=DEFAULT_PMAX, type=float, help="Value mapped to white (default: 255)")
@click.option("--gray-to-rgb", is_flag=True, help="Replicate single-channel input to RGB")
def convert(input, output, first, last, step, out_first, pmin, pmax, gray_to_rgb):
    """
    Convert a video between sequence patterns and multi-page files.
    """
    last = first if last is None else last
    out_first = first if out_first is None else out_first
    try:
        logger.info(f"Converting {input} -> {output}")
        video = load_video(input, first, last, step)
        if gray_to_rgb and video.size.channels == 1:
            video = broadcast_channels(video)
        paths = save_video(video, output, out_first, 1, pmin, pmax)
        click.echo(f"✓ Wrote {video.size.frames} frames to {len(paths)} file(s)")
    except Exception as e:
        click.echo(f"✗ Error converting {input}: {e}", err=True)
        sys.exit(1)


@cli.command(name="ascii")
@click.argument("pattern")
@click.argument("prefix", type=click.Path(path_type=Path))
@_frame_options
def ascii_dump(pattern, prefix, first, last, step):
    """
    Dump video frames as text files PREFIX_NNN.txt.
    """
    last = first if last is None else last
    try:
        video = load_video(pattern, first, last, step)
        paths = save_video_ascii(video, prefix, first, step)
        click.echo(f"✓ Wrote {len(paths)} text frames")
        for path in paths:
            click.echo(f"  → {path.name}")
    except Exception as e:
        click.echo(f"✗ Error dumping {pattern}: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("input", type=click.Path(exists=True, path_type=Path))
@click.argument("output", type=click.Path(path_type=Path))
@click.option("--nparams", "-p", default=None, type=int, help="Expected parameters per transform")
@click.option("--ntransforms", "-n", default=None, type=int, help="Expected number of transforms")
def transforms(input, output, nparams, ntransforms):
    """
    Convert a raw transform file into one 3x3 matrix per line.

    INPUT must start with a 'nparams ntransforms width height' header.
    """
    try:
        result = read_transforms(input, nparams, ntransforms)
        write_transforms(
            output, result.params, result.nparams, result.ntransforms, result.width, result.height
        )
        click.echo(
            f"✓ Converted {result.ntransforms} transforms of {result.nparams} parameters "
            f"({result.width}x{result.height})"
        )
    except Exception as e:
        click.echo(f"✗ Error converting {input}: {e}", err=True)
        logger.exception("Transform conversion failed")
        sys.exit(1)


if __name__ == "__main__":
    cli()
