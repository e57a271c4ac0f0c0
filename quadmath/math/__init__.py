"""
Analytics and layout computations for quadmath.
"""
