"""Core data structures for frame trees.

This module provides the edge record, the immutable frame tree arena, and
the error types shared by the builder and resolver.
"""

from frametree.errors import (
    CycleDetected,
    DegenerateRotation,
    MalformedEdge,
    MultipleRoots,
    NoRoot,
    TreeError,
    UnknownFrame,
)
from .frame_tree import FrameTree, ParentEdge

__all__ = [
    "FrameTree",
    "ParentEdge",
    "TreeError",
    "NoRoot",
    "MultipleRoots",
    "CycleDetected",
    "MalformedEdge",
    "DegenerateRotation",
    "UnknownFrame",
]
