"""
JAX-based rigid transform library for frame trees.

This module provides JIT-compilable implementations of:
- unit quaternion rotations (quaternion module)
- SE(3) rigid poses as (translation, quaternion) pairs (se3 module)
- the RigidPose pytree wrapping both (pose module)

All array functions are pure, stateless, and batch-broadcasting.
"""

from . import quaternion
from . import se3
from .pose import RigidPose

__all__ = [
    "quaternion",
    "se3",
    "RigidPose",
]
