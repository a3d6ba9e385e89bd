"""
staffbooking - staff appointment booking and availability core.
"""

__version__ = "0.1.0"
