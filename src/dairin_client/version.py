"""Version information for the Dairin Python client"""

__version__ = "0.1.0"
