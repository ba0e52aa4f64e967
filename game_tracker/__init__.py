"""Game time tracking and daily session enforcement"""

__version__ = "0.3.0"
