"""
Quadmath: analytics and layout for quadrant quizzes.

Players answer slider questions; this package computes who is most alike,
most opposed, most extreme, most neutral and least predictable, finds
notable correlations between questions, and places players on a 2D
quadrant plot.
"""

__version__ = '0.1.0'

from quadmath.system import System, SystemManager
from quadmath.components.config import Config, ConfigManager
