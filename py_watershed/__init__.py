"""
Procedural terrain with drainage, lakes, seas and hydraulic erosion.
"""

__version__ = "0.1.0"
