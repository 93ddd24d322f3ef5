"""
Configuration for terrain generation.
"""

from .config import Settings, settings
from .generation_settings import EdgeMode, EdgeShape, GenerationSettings
from .logging_setup import configure_logging

__all__ = ['Settings', 'settings', 'EdgeMode', 'EdgeShape', 'GenerationSettings',
           'configure_logging']
