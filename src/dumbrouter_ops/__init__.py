"""
dumbrouter-ops - Test fixtures and release tooling for dumbrouter
"""

__version__ = "0.1.0"

from .errors import OpsError
from .provisioner import FixtureProvisioner
from .release import ReleasePipeline

__all__ = ["FixtureProvisioner", "OpsError", "ReleasePipeline"]
