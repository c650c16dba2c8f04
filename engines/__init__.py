"""
Engines package - browser probe and the run-level control loop
"""
from .probe import Probe
from .browser_engine import PlaywrightProbe, open_probe

__all__ = ['Probe', 'PlaywrightProbe', 'open_probe']
