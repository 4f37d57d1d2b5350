"""
Bearing-only Tracking Particle Filter.

A NumPy-based library for estimating a target trajectory from two-sensor
bearing measurements with:
- Gaussian primitives on Cholesky factors
- A position/velocity state space model with an importance distribution
- Sequential Importance Sampling with clamped log-domain weight updates
- Pluggable resampling strategies
"""

from . import models
from . import filters
from . import simulation
from . import utils
from .errors import FilterError, ConfigurationError, NumericalError

__version__ = "0.1.0"
