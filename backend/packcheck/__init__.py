"""
PackCheck: order lifecycle engine for takeout and delivery bag verification.
"""

__version__ = "0.1.0"
