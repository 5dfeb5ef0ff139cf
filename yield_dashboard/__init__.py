"""
Crop Yield Dashboard - Yield Estimation and Dataset API
Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Crop Yield Dashboard Team"

# Core modules
from . import config
from . import errors
from . import models
from . import features
from . import store
from . import estimator
from . import dataset

__all__ = [
    'config', 'errors', 'models', 'features', 'store', 'estimator', 'dataset',
]
