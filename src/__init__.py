"""
Land Inventory - Core Package

This package contains the land inventory configuration engine: blocks, plots,
plot status auditing, statistics and layout configuration snapshots.
"""

__version__ = "0.1.0"
