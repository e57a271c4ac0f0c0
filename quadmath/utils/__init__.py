"""
Utility functions for quadmath.
"""
