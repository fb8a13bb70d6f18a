"""Unit quaternion algebra in JAX.

Quaternions are stored as ``(..., 4)`` arrays in ``(x, y, z, w)`` order, the
scalar part last, so the identity rotation is ``(0, 0, 0, 1)``. Every function
renormalizes its inputs on read, which keeps long composition chains from
drifting off the unit sphere. All functions are pure and JIT-able.
"""

from typing import Optional

import jax
import jax.numpy as jnp
import numpy as np

from frametree.errors import DegenerateRotation

# Type aliases
Array = jax.Array

# Norms below this are treated as "no rotation information at all".
DEGENERATE_NORM = 1e-12


def identity(batch_shape=(), *, dtype=jnp.float64) -> Array:
    """Identity quaternion(s) ``(0, 0, 0, 1)`` with the given batch shape."""
    q = jnp.array([0.0, 0.0, 0.0, 1.0], dtype=dtype)
    return jnp.broadcast_to(q, tuple(batch_shape) + (4,))


def normalize(q: Array) -> Array:
    """Normalize quaternions to unit length."""
    return q / jnp.linalg.norm(q, axis=-1, keepdims=True)


def check_norm(q, frame: Optional[str] = None) -> np.ndarray:
    """Concretely verify that *q* can be normalized.

    This runs on concrete (non-traced) values only and is meant for the
    boundary where poses enter the library.

    Raises:
        DegenerateRotation: if any quaternion in *q* has (near) zero norm or
            is not finite.
    """
    q = np.asarray(q, dtype=np.float64)
    if q.shape[-1:] != (4,):
        raise ValueError(f"quaternion must have shape (..., 4), got {q.shape}")
    norms = np.linalg.norm(q, axis=-1)
    if not np.all(np.isfinite(norms)) or np.any(norms < DEGENERATE_NORM):
        raise DegenerateRotation(frame)
    return q


def conjugate(q: Array) -> Array:
    """Quaternion conjugate, the inverse of a unit quaternion."""
    return q * jnp.array([-1.0, -1.0, -1.0, 1.0], dtype=q.dtype)


def multiply(q1: Array, q2: Array) -> Array:
    """
    Hamilton product ``q1 ⊗ q2`` (apply *q2* first, then *q1*).

    Args:
        q1: (..., 4) first quaternion
        q2: (..., 4) second quaternion

    Returns:
        (..., 4) normalized product
    """
    x1, y1, z1, w1 = jnp.moveaxis(normalize(q1), -1, 0)
    x2, y2, z2, w2 = jnp.moveaxis(normalize(q2), -1, 0)

    product = jnp.stack([
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2,
        w1*w2 - x1*x2 - y1*y2 - z1*z2,
    ], axis=-1)

    # Renormalize to counter floating point drift
    return normalize(product)


def rotate(q: Array, v: Array) -> Array:
    """
    Rotate vector(s) by quaternion(s).

    Uses the expanded form of the sandwich product ``q v q*``:
    ``v' = v + 2w (u × v) + 2 u × (u × v)`` with ``u`` the vector part.

    Args:
        q: (..., 4) quaternion, broadcast against *v*
        v: (..., 3) vector(s)

    Returns:
        (..., 3) rotated vector(s)
    """
    q = normalize(q)
    u = q[..., :3]
    w = q[..., 3:]

    uv = jnp.cross(u, v)
    return v + 2.0 * w * uv + 2.0 * jnp.cross(u, uv)


def to_matrix(q: Array) -> Array:
    """
    Convert quaternions to rotation matrices.

    Args:
        q: (..., 4) array of quaternions in (x, y, z, w) format

    Returns:
        (..., 3, 3) array of rotation matrices
    """
    x, y, z, w = jnp.moveaxis(normalize(q), -1, 0)

    xx, yy, zz = x*x, y*y, z*z
    wx, wy, wz = w*x, w*y, w*z
    xy, xz, yz = x*y, x*z, y*z

    return jnp.stack([
        jnp.stack([1 - 2*(yy + zz), 2*(xy - wz), 2*(xz + wy)], axis=-1),
        jnp.stack([2*(xy + wz), 1 - 2*(xx + zz), 2*(yz - wx)], axis=-1),
        jnp.stack([2*(xz - wy), 2*(yz + wx), 1 - 2*(xx + yy)], axis=-1)
    ], axis=-2)


def from_matrix(matrix: Array) -> Array:
    """
    Convert rotation matrices to quaternions (x, y, z, w).
    Batch-safe and JIT-friendly; the scalar part of the result is non-negative.

    Args:
        matrix: (..., 3, 3) array of rotation matrices

    Returns:
        (..., 4) array of quaternions in (x, y, z, w) format
    """
    m00, m01, m02 = matrix[..., 0, 0], matrix[..., 0, 1], matrix[..., 0, 2]
    m10, m11, m12 = matrix[..., 1, 0], matrix[..., 1, 1], matrix[..., 1, 2]
    m20, m21, m22 = matrix[..., 2, 0], matrix[..., 2, 1], matrix[..., 2, 2]

    trace = m00 + m11 + m22
    eps = jnp.finfo(matrix.dtype).eps

    # Four candidates, one per dominant component, each in (x, y, z, w) order
    q0 = jnp.stack([m21 - m12, m02 - m20, m10 - m01, trace + 1.0], axis=-1) * 0.5
    q1 = jnp.stack([m00 - m11 - m22 + 1.0, m01 + m10, m02 + m20, m21 - m12], axis=-1) * 0.5
    q2 = jnp.stack([m01 + m10, m11 - m00 - m22 + 1.0, m12 + m21, m02 - m20], axis=-1) * 0.5
    q3 = jnp.stack([m02 + m20, m12 + m21, m22 - m00 - m11 + 1.0, m10 - m01], axis=-1) * 0.5

    s0 = 1.0 / jnp.sqrt(jnp.maximum(1.0 + trace, eps))
    s1 = 1.0 / jnp.sqrt(jnp.maximum(1.0 + m00 - m11 - m22, eps))
    s2 = 1.0 / jnp.sqrt(jnp.maximum(1.0 + m11 - m00 - m22, eps))
    s3 = 1.0 / jnp.sqrt(jnp.maximum(1.0 + m22 - m00 - m11, eps))

    q0 = q0 * s0[..., None]
    q1 = q1 * s1[..., None]
    q2 = q2 * s2[..., None]
    q3 = q3 * s3[..., None]

    mask0 = (trace > 0)
    mask1 = (~mask0) & (m00 > m11) & (m00 > m22)
    mask2 = (~mask0) & (~mask1) & (m11 > m22)
    mask3 = (~mask0) & (~mask1) & (~mask2)

    q = (
        jnp.where(mask0[..., None], q0, 0) +
        jnp.where(mask1[..., None], q1, 0) +
        jnp.where(mask2[..., None], q2, 0) +
        jnp.where(mask3[..., None], q3, 0)
    )

    # Ensure non-negative scalar part and normalize
    q = jnp.where(q[..., 3:4] < 0, -q, q)
    return normalize(q)
