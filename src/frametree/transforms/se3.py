"""SE(3) rigid body transforms in JAX.

A pose is a pair ``(t, q)``: a (..., 3) translation and a (..., 4) unit
quaternion in (x, y, z, w) order. ``a_pose_b`` is the pose of frame ``b``
expressed in frame ``a``, so that ``compose(a_pose_b, b_pose_c) = a_pose_c``.
All functions are pure, JIT-able, and operate on JAX arrays.
"""

from typing import Tuple

import jax
import jax.numpy as jnp

from . import quaternion

Array = jax.Array
Pose = Tuple[Array, Array]


def identity(batch_shape=(), *, dtype=jnp.float64) -> Pose:
    """Zero translation and identity rotation."""
    t = jnp.zeros(tuple(batch_shape) + (3,), dtype=dtype)
    return t, quaternion.identity(batch_shape, dtype=dtype)


def compose(t_ab: Array, q_ab: Array, t_bc: Array, q_bc: Array) -> Pose:
    """
    Compose ``a_pose_b`` with ``b_pose_c``.

    Args:
        t_ab, q_ab: (..., 3), (..., 4) pose of b in a
        t_bc, q_bc: (..., 3), (..., 4) pose of c in b

    Returns:
        (t_ac, q_ac), the pose of c in a
    """
    q_ac = quaternion.multiply(q_ab, q_bc)
    t_ac = t_ab + quaternion.rotate(q_ab, t_bc)
    return t_ac, q_ac


def invert(t: Array, q: Array) -> Pose:
    """
    Invert ``a_pose_b`` into ``b_pose_a``.

    The rotation inverse is the conjugate (valid for unit quaternions) and
    the translation is ``-(q* t q)``.
    """
    q_inv = quaternion.conjugate(quaternion.normalize(q))
    t_inv = quaternion.rotate(q_inv, -t)
    return t_inv, q_inv


def apply(t: Array, q: Array, points: Array) -> Array:
    """
    Apply a rigid transform to points.

    Args:
        t: (..., 3) translation
        q: (..., 4) rotation
        points: (..., 3) or (..., N, 3) points to transform

    Returns:
        (..., 3) or (..., N, 3) transformed points
    """
    if points.ndim == t.ndim + 1:
        # Many points per pose: add the point axis to the pose
        t = t[..., None, :]
        q = q[..., None, :]
    return quaternion.rotate(q, points) + t


def to_matrix(t: Array, q: Array) -> Array:
    """
    Convert a pose to a homogeneous transformation matrix.

    Returns:
        (..., 4, 4) matrix ``[[R, t], [0, 1]]``
    """
    R = quaternion.to_matrix(q)
    batch_shape = jnp.broadcast_shapes(t.shape[:-1], R.shape[:-2])
    t = jnp.broadcast_to(t, batch_shape + (3,))
    R = jnp.broadcast_to(R, batch_shape + (3, 3))

    T = jnp.zeros(batch_shape + (4, 4), dtype=t.dtype)
    T = T.at[..., :3, :3].set(R)
    T = T.at[..., :3, 3].set(t)
    T = T.at[..., 3, 3].set(1.0)
    return T


def from_matrix(T: Array) -> Pose:
    """
    Split a (..., 4, 4) homogeneous matrix into ``(t, q)``.
    """
    if T.shape[-2:] != (4, 4):
        raise ValueError(f"matrix must have shape (...,4,4), got {T.shape}")
    return T[..., :3, 3], quaternion.from_matrix(T[..., :3, :3])


def is_close(t1: Array, q1: Array, t2: Array, q2: Array, atol: float = 1e-9) -> Array:
    """
    Element-wise pose comparison.

    ``q`` and ``-q`` encode the same rotation, so the rotation check accepts
    either sign.
    """
    q1 = quaternion.normalize(q1)
    q2 = quaternion.normalize(q2)
    same_t = jnp.all(jnp.abs(t1 - t2) <= atol, axis=-1)
    same_q = jnp.all(jnp.abs(q1 - q2) <= atol, axis=-1)
    flipped_q = jnp.all(jnp.abs(q1 + q2) <= atol, axis=-1)
    return same_t & (same_q | flipped_q)
