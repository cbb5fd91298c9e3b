"""
deploypipe - staged deployment pipeline with health-checked activation
"""

__version__ = "0.1.0"

from .core import Deployer
from .errors import DeployError

__all__ = ["Deployer", "DeployError"]
