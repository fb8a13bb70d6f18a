"""Rigid poses (translation + unit quaternion) implemented with JAX."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import jax
import jax.numpy as jnp
from jax.tree_util import register_pytree_node_class

from . import quaternion, se3

Array = jax.Array


@register_pytree_node_class
@dataclass(frozen=True)
class RigidPose:
    """Immutable rigid pose(s) – batch-friendly & JIT-friendly.

    ``a_pose_b`` is the pose of frame ``b`` expressed in frame ``a``: it maps
    coordinates given in ``b`` to coordinates in ``a``.
    """
    translation: Array  # shape (..., 3)
    rotation: Array     # shape (..., 4), (x, y, z, w)

    # Constructors
    @classmethod
    def from_pos_quat(cls, pos, quat=None, *, frame: Optional[str] = None) -> "RigidPose":
        """Build a pose from concrete values, normalizing the rotation.

        Raises:
            DegenerateRotation: if *quat* has zero norm.
        """
        pos = jnp.asarray(pos, dtype=jnp.float64)
        if pos.shape[-1:] != (3,):
            raise ValueError(f"position must have shape (..., 3), got {pos.shape}")
        if quat is None:
            quat = quaternion.identity(pos.shape[:-1])
        else:
            quat = jnp.asarray(quaternion.check_norm(quat, frame))
            quat = quaternion.normalize(quat)
        return cls(pos, quat)

    @classmethod
    def from_matrix(cls, matrix) -> "RigidPose":
        t, q = se3.from_matrix(jnp.asarray(matrix, dtype=jnp.float64))
        return cls(t, q)

    @classmethod
    def identity(cls, batch_shape: Tuple[int, ...] = (), *, dtype=jnp.float64) -> "RigidPose":
        return cls(*se3.identity(batch_shape, dtype=dtype))

    # PyTree boiler-plate
    def tree_flatten(self):
        return (self.translation, self.rotation), None

    @classmethod
    def tree_unflatten(cls, aux, children):
        translation, rotation = children
        return cls(translation, rotation)

    # Batch access
    @property
    def batch_shape(self) -> Tuple[int, ...]:
        return self.translation.shape[:-1]

    def __len__(self) -> int:
        if not self.batch_shape:
            raise TypeError("len() of unbatched RigidPose")
        return self.batch_shape[0]

    def __getitem__(self, index) -> "RigidPose":
        return RigidPose(self.translation[index], self.rotation[index])

    # Basic operations
    def compose(self, other: "RigidPose") -> "RigidPose":
        """self ∘ other: ``a_pose_b.compose(b_pose_c) == a_pose_c``."""
        return RigidPose(*se3.compose(self.translation, self.rotation,
                                      other.translation, other.rotation))

    def inverse(self) -> "RigidPose":
        """``a_pose_b.inverse() == b_pose_a``."""
        return RigidPose(*se3.invert(self.translation, self.rotation))

    # Point transformation
    def transform_points(self, points) -> Array:
        """
        Map *points* expressed in the child frame into the parent frame.

        Accepted shapes
        ---------------
        * (3,)          – single point
        * (N, 3)        – many points
        * (B, N, 3)     – batched points, for a pose with batch shape (B,)
        """
        points = jnp.asarray(points, dtype=self.translation.dtype)
        if points.shape[-1:] != (3,):
            raise ValueError("points must have shape (3,), (N,3) or (B,N,3)")
        return se3.apply(self.translation, self.rotation, points)

    # Convenience helpers
    def to_matrix(self) -> Array:
        return se3.to_matrix(self.translation, self.rotation)

    def is_close(self, other: "RigidPose", atol: float = 1e-9) -> bool:
        """True if every pose in the batch matches *other* within *atol*."""
        close = se3.is_close(self.translation, self.rotation,
                             other.translation, other.rotation, atol=atol)
        return bool(jnp.all(close))
