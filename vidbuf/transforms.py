"""Text files holding per-frame registration transforms.

Two formats exist:

Matrix format (what :func:`write_transforms` produces)
    One line per transform with the nine entries of its row-major 3x3 matrix,
    ``%.15f`` each, separated by single spaces. No header.

Legacy raw format (what :func:`read_transforms` consumes)
    A header ``nparams ntransforms width height`` followed by ``ntransforms``
    lines of ``nparams`` raw parameters.

Parameter vectors are mapped to matrices by a ``to_matrix`` callable; the
default :func:`params_to_matrix` understands translation (2), euclidean (3),
similarity (4), affinity (6) and homography (8) parameterisations.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np

from vidbuf.utils import ensure_parent_dir

logger = logging.getLogger(__name__)

MATRIX_FORMAT = "%.15f"

TRANSLATION = 2
EUCLIDEAN = 3
SIMILARITY = 4
AFFINITY = 6
HOMOGRAPHY = 8

SUPPORTED_NPARAMS = (TRANSLATION, EUCLIDEAN, SIMILARITY, AFFINITY, HOMOGRAPHY)


class TransformFileError(ValueError):
    """Raised when a transform file is malformed or disagrees with the caller."""

    def __init__(self, path, message):
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


@dataclass
class TransformSet:
    """Transforms read from a legacy raw file.

    Attributes:
        params: Array of shape (ntransforms, nparams)
        width: Image width stored in the header
        height: Image height stored in the header
    """

    params: np.ndarray
    width: int
    height: int

    @property
    def nparams(self) -> int:
        return self.params.shape[1]

    @property
    def ntransforms(self) -> int:
        return self.params.shape[0]


def params_to_matrix(params) -> np.ndarray:
    """Convert a parameter vector to its 3x3 matrix.

    Parameters are incremental: the zero vector is the identity for every
    model. Layouts are ``(tx, ty)``, ``(tx, ty, theta)``, ``(tx, ty, a, b)``,
    ``(tx, ty, a11, a12, a21, a22)`` and ``(h11 .. h32)``.
    """
    p = np.asarray(params, dtype=np.float64).reshape(-1)
    n = p.size
    m = np.eye(3)

    if n == TRANSLATION:
        m[0, 2], m[1, 2] = p
    elif n == EUCLIDEAN:
        cos, sin = np.cos(p[2]), np.sin(p[2])
        m[0, :] = (cos, -sin, p[0])
        m[1, :] = (sin, cos, p[1])
    elif n == SIMILARITY:
        m[0, :] = (1 + p[2], -p[3], p[0])
        m[1, :] = (p[3], 1 + p[2], p[1])
    elif n == AFFINITY:
        m[0, :] = (1 + p[2], p[3], p[0])
        m[1, :] = (p[4], 1 + p[5], p[1])
    elif n == HOMOGRAPHY:
        m[0, :] = (1 + p[0], p[1], p[2])
        m[1, :] = (p[3], 1 + p[4], p[5])
        m[2, :] = (p[6], p[7], 1)
    else:
        raise ValueError(f"Unsupported number of parameters: {n}")
    return m


def matrix_to_params(matrix, nparams: int) -> np.ndarray:
    """Inverse of :func:`params_to_matrix` for a given parameterisation."""
    m = np.asarray(matrix, dtype=np.float64).reshape(3, 3)
    if m[2, 2] != 0:
        m = m / m[2, 2]

    if nparams == TRANSLATION:
        return np.array([m[0, 2], m[1, 2]])
    if nparams == EUCLIDEAN:
        return np.array([m[0, 2], m[1, 2], np.arctan2(m[1, 0], m[0, 0])])
    if nparams == SIMILARITY:
        return np.array([m[0, 2], m[1, 2], m[0, 0] - 1, m[1, 0]])
    if nparams == AFFINITY:
        return np.array([m[0, 2], m[1, 2], m[0, 0] - 1, m[0, 1], m[1, 0], m[1, 1] - 1])
    if nparams == HOMOGRAPHY:
        return np.array(
            [m[0, 0] - 1, m[0, 1], m[0, 2], m[1, 0], m[1, 1] - 1, m[1, 2], m[2, 0], m[2, 1]]
        )
    raise ValueError(f"Unsupported number of parameters: {nparams}")


def _param_rows(params, nparams: int, ntransforms: int) -> np.ndarray:
    flat = np.asarray(params, dtype=np.float64).reshape(-1)
    if flat.size < nparams * ntransforms:
        raise ValueError(
            f"Need {nparams * ntransforms} parameters for {ntransforms} transforms "
            f"of {nparams}, got {flat.size}"
        )
    return flat[: nparams * ntransforms].reshape(ntransforms, nparams)


def _format_row(values) -> str:
    return " ".join(MATRIX_FORMAT % v for v in values) + "\n"


def write_transforms(
    path: Union[str, Path],
    params,
    nparams: int,
    ntransforms: int,
    width: Optional[int] = None,
    height: Optional[int] = None,
    to_matrix: Callable = params_to_matrix,
) -> Path:
    """Write transforms in the matrix format.

    Args:
        path: Output file
        params: Flat or (ntransforms, nparams) parameter array
        nparams: Parameters per transform
        ntransforms: Number of transforms to write
        width: Accepted for compatibility, not stored
        height: Accepted for compatibility, not stored
        to_matrix: Mapping from a parameter vector to a 3x3 matrix

    Returns:
        Path of the written file
    """
    rows = _param_rows(params, nparams, ntransforms)
    matrices = []
    for row in rows:
        matrix = np.asarray(to_matrix(row), dtype=np.float64)
        if matrix.size != 9:
            raise ValueError(f"to_matrix must return 9 values, got {matrix.size}")
        matrices.append(matrix.reshape(-1))

    # Nothing touches the filesystem until every row is valid
    path = ensure_parent_dir(path)
    with open(path, "w") as fd:
        for matrix in matrices:
            fd.write(_format_row(matrix))

    logger.info(f"Wrote {ntransforms} transforms to {path}")
    return path


def read_matrix_transforms(path: Union[str, Path]) -> np.ndarray:
    """Read a matrix-format file back into an (n, 3, 3) array."""
    path = Path(path)
    matrices = []
    with open(path, "r") as fd:
        for lineno, line in enumerate(fd, start=1):
            fields = line.split()
            if not fields:
                continue
            if len(fields) != 9:
                raise TransformFileError(
                    path, f"line {lineno}: expected 9 values, got {len(fields)}"
                )
            try:
                matrices.append([float(v) for v in fields])
            except ValueError as e:
                raise TransformFileError(path, f"line {lineno}: {e}") from e

    logger.debug(f"Read {len(matrices)} matrices from {path}")
    return np.array(matrices, dtype=np.float64).reshape(-1, 3, 3)


def write_legacy_transforms(
    path: Union[str, Path],
    params,
    nparams: int,
    ntransforms: int,
    width: int,
    height: int,
) -> Path:
    """Write transforms in the legacy raw format (header plus parameter rows)."""
    rows = _param_rows(params, nparams, ntransforms)
    path = ensure_parent_dir(path)

    with open(path, "w") as fd:
        fd.write(f"{nparams} {ntransforms} {width} {height}\n")
        for row in rows:
            fd.write(_format_row(row))

    logger.info(f"Wrote {ntransforms} raw transforms to {path}")
    return path


def read_transforms(
    path: Union[str, Path],
    nparams: Optional[int] = None,
    ntransforms: Optional[int] = None,
    out: Optional[np.ndarray] = None,
) -> TransformSet:
    """Read a legacy raw transform file.

    Args:
        path: Input file
        nparams: Expected parameters per transform (taken from the header if None)
        ntransforms: Expected number of transforms (taken from the header if None)
        out: Optional caller-owned array filled in transform-major order

    Returns:
        TransformSet with the parameters and the stored image size

    Raises:
        FileNotFoundError: If the file does not exist
        TransformFileError: If the header is malformed, disagrees with
            ``nparams``/``ntransforms``, or the file holds fewer values than
            the header declares
    """
    path = Path(path)
    with open(path, "r") as fd:
        tokens = fd.read().split()

    if len(tokens) < 4:
        raise TransformFileError(path, "missing 'nparams ntransforms width height' header")
    try:
        header = [int(v) for v in tokens[:4]]
    except ValueError as e:
        raise TransformFileError(path, f"malformed header: {e}") from e
    file_nparams, file_ntransforms, width, height = header
    if file_nparams <= 0:
        raise TransformFileError(path, f"header nparams must be positive, got {file_nparams}")
    if file_ntransforms < 0 or width < 0 or height < 0:
        raise TransformFileError(path, f"header has negative values: {' '.join(tokens[:4])}")

    if nparams is not None and nparams != file_nparams:
        raise TransformFileError(path, f"header has nparams={file_nparams}, expected {nparams}")
    if ntransforms is not None and ntransforms != file_ntransforms:
        raise TransformFileError(
            path, f"header has ntransforms={file_ntransforms}, expected {ntransforms}"
        )

    expected = file_nparams * file_ntransforms
    body = tokens[4:]
    if len(body) < expected:
        raise TransformFileError(
            path,
            f"header declares {file_ntransforms} transforms of {file_nparams} "
            f"parameters but only {len(body)} values follow",
        )
    if len(body) > expected:
        logger.warning(f"{path}: ignoring {len(body) - expected} trailing values")

    try:
        values = np.array([float(v) for v in body[:expected]], dtype=np.float64)
    except ValueError as e:
        raise TransformFileError(path, f"non-numeric parameter: {e}") from e
    params = values.reshape(file_ntransforms, file_nparams)

    if out is not None:
        if out.size < expected:
            raise ValueError(f"Output array holds {out.size} values, need {expected}")
        out.flat[:expected] = values

    logger.debug(f"Read {file_ntransforms} transforms of {file_nparams} parameters from {path}")
    return TransformSet(params=params, width=width, height=height)
