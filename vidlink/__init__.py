"""
vidlink: resolve YouTube and Instagram links into direct media URLs.
"""

__version__ = "1.0.0"
