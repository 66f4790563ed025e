"""
API support module for the Deal Quality Index Engine.

Property storage backing the HTTP layer in web/app.py.
"""

from .storage import PropertyStorage, create_sample_properties

__all__ = ["PropertyStorage", "create_sample_properties"]
