"""
Icon and color suggestions for task categories
"""
__version__ = "0.1.0"
