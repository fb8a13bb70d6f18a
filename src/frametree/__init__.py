"""
frametree: rigid transform trees for robot coordinate frames.

A snapshot maps each child frame to its parent and the pose of the child in
the parent. This library validates such snapshots, turns them into immutable
JAX-native trees, and resolves the pose between any two frames.
"""

import jax
jax.config.update("jax_enable_x64", True)

# Import core modules
from . import transforms
from . import core
from . import frames
from .builder import build
from .core import (
    CycleDetected,
    DegenerateRotation,
    FrameTree,
    MalformedEdge,
    MultipleRoots,
    NoRoot,
    ParentEdge,
    TreeError,
    UnknownFrame,
)
from .resolver import frame_path, resolve, resolve_all, root_pose, transform_points
from .transforms import RigidPose
from .validation import format_report, validate

__version__ = "0.1.0"
__all__ = [
    "transforms",
    "core",
    "frames",
    "build",
    "validate",
    "format_report",
    "resolve",
    "resolve_all",
    "root_pose",
    "transform_points",
    "frame_path",
    "RigidPose",
    "ParentEdge",
    "FrameTree",
    "TreeError",
    "NoRoot",
    "MultipleRoots",
    "CycleDetected",
    "MalformedEdge",
    "DegenerateRotation",
    "UnknownFrame",
]
