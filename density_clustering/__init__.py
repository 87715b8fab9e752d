"""
Density-based clustering (DBSCAN) over feature vectors.
"""

__version__ = "1.0.0"
