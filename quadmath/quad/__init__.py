"""
Quad management.

This module provides the Quad aggregate, which holds a quiz's players and
responses and computes analytics from them, and a manager for many quads.
"""

from quadmath.quad.quad import Quad
from quadmath.quad.manager import QuadManager
