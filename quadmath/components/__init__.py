"""
System components for quadmath.

This module provides the configuration and HTTP server components.
"""

from quadmath.components.config import Config, ConfigManager
from quadmath.components.server import Server, ServerManager
