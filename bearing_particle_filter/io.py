"""
Plain-text input and output.

Measurements are read from a two-column file delimited by whitespace or
commas. Results are written as comma-delimited rows, one value per column
formatted with "% 19.17f" and a trailing comma.
"""

import logging
import os
import numpy as np
from typing import Dict, Optional

from .errors import ConfigurationError
from .filters.base import FilterResult

logger = logging.getLogger(__name__)

FLOAT_FORMAT = "% 19.17f"

OUTPUT_FILES = {
    "baseline": "baselineOut.txt",
    "means": "xMeanOut.txt",
    "weights": "wOut.txt",
    "ess": "essOut.txt",
}


def load_measurements(path: str, n_columns: int = 2) -> np.ndarray:
    """
    Read a [T, n_columns] measurement matrix.

    Args:
        path: Text file, one row per time step
        n_columns: Expected number of columns

    Returns:
        y: [T, n_columns]
    """
    with open(path) as f:
        rows = [line.replace(",", " ").split() for line in f]
    rows = [row for row in rows if row]

    try:
        y = np.array(rows, dtype=np.float64)
    except ValueError as err:
        raise ConfigurationError(f"{path}: malformed measurement rows") from err

    if y.ndim != 2 or y.shape[1] != n_columns:
        raise ConfigurationError(
            f"{path}: expected {n_columns} columns per row, got shape {y.shape}"
        )
    logger.info("Loaded %d measurements from %s", y.shape[0], path)
    return y


def save_matrix(path: str, x: np.ndarray):
    """Write a matrix (or a vector as one column) as comma-delimited text."""
    x = np.asarray(x, dtype=np.float64)
    if x.ndim == 1:
        np.savetxt(path, x[:, np.newaxis], fmt=FLOAT_FORMAT)
    else:
        np.savetxt(path, x, fmt=FLOAT_FORMAT, delimiter=",", newline=",\n")


def load_matrix(path: str) -> np.ndarray:
    """Read a file written by save_matrix back into an array."""
    with open(path) as f:
        rows = [[v for v in line.strip().split(",") if v.strip()] for line in f]
    x = np.array([row for row in rows if row], dtype=np.float64)
    if x.shape[1] == 1:
        return x[:, 0]
    return x


def save_result(
    output_dir: str,
    result: FilterResult,
    baseline: Optional[np.ndarray] = None,
) -> Dict[str, str]:
    """
    Write posterior means, weights, ESS (and optionally the baseline).

    Args:
        output_dir: Target directory, created if missing
        result: FilterResult of a filter run
        baseline: [T, 2] baseline trajectory (optional)

    Returns:
        Mapping of output name to written path
    """
    os.makedirs(output_dir, exist_ok=True)

    arrays = {"means": result.means, "weights": result.weights, "ess": result.ess}
    if baseline is not None:
        arrays["baseline"] = baseline

    written = {}
    for name, array in arrays.items():
        path = os.path.join(output_dir, OUTPUT_FILES[name])
        save_matrix(path, array)
        written[name] = path
        logger.info("Wrote %s to %s", name, path)

    return written
