"""
Configuration package for the booking engine.

Contains the environment settings and the logging setup.
"""

from busdesk.config.settings import Settings, get_settings
from busdesk.config.logging import setup_logging

__all__ = ['Settings', 'get_settings', 'setup_logging']
