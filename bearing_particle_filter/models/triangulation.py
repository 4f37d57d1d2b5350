"""
Noiseless solution of the two-sensor bearing-only problem.

Each pair of bearings defines two rays, one from each sensor. Their
intersection solves

    [cos a1  cos a2] [c1]   [s2x - s1x]
    [sin a1  sin a2] [c2] = [s2y - s1y]

(with c2 the negated distance along the second ray), and the position is
s1 + c1 * (cos a1, sin a1). The system is solved per time step by QR.
"""

import numpy as np
from scipy.linalg import qr, solve_triangular

from ..errors import ConfigurationError


def triangulate(angles: np.ndarray, sensor1, sensor2) -> np.ndarray:
    """
    Intersect the bearing rays of two sensors at every time step.

    Args:
        angles: [T, 2] bearings (radians) from sensor1 and sensor2
        sensor1, sensor2: (x, y) sensor locations

    Returns:
        baseline: [T, 2] (x, y) positions

    Raises:
        ConfigurationError: if angles is not [T, 2]
        np.linalg.LinAlgError: if a pair of rays is parallel
    """
    angles = np.asarray(angles, dtype=np.float64)
    if angles.ndim != 2 or angles.shape[1] != 2:
        raise ConfigurationError(f"angles must have shape [T, 2], got {angles.shape}")

    s1 = np.asarray(sensor1, dtype=np.float64)
    s2 = np.asarray(sensor2, dtype=np.float64)
    differences = s2 - s1

    T = angles.shape[0]
    baseline = np.zeros((T, 2))

    for k in range(T):
        a1, a2 = angles[k]
        direction = np.array([np.cos(a1), np.sin(a1)])
        derivatives = np.array([
            [direction[0], np.cos(a2)],
            [direction[1], np.sin(a2)],
        ])

        Q, R = qr(derivatives)
        if np.min(np.abs(np.diag(R))) < 1e-14 * np.max(np.abs(np.diag(R))):
            raise np.linalg.LinAlgError(f"Parallel bearing rays at step {k}")
        coefficients = solve_triangular(R, Q.T @ differences)

        baseline[k] = s1 + direction * coefficients[0]

    return baseline
