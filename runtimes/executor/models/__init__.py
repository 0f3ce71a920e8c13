"""
Data model definitions package.

Aggregates Pydantic models for use in other modules.
"""

from .output import Output
from .request import NormalizedRequest

__all__ = [
    "NormalizedRequest",
    "Output",
]
