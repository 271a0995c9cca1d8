"""Referral network builder: rebuilds recruiter/lead hierarchies from flat records."""

__version__ = "0.3.0"

from .builder import build_forest
from .models import BuildOptions, NetworkForest, NetworkNode, SourceRecord

__all__ = [
    "BuildOptions",
    "NetworkForest",
    "NetworkNode",
    "SourceRecord",
    "build_forest",
]
