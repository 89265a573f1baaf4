"""
Key crosswalk graph and its configuration loader.
"""

from .graph import DEFAULT_MAX_HOPS, CrosswalkGraph
from .loader import CrosswalkConfigLoader

__all__ = [
    "CrosswalkGraph",
    "CrosswalkConfigLoader",
    "DEFAULT_MAX_HOPS",
]
