"""Pose queries between any two frames of a built FrameTree.

Every frame's pose in the root frame is precomputed when the tree is built,
so a query is two table lookups plus one inverse and one composition. Trees
are immutable, which makes concurrent queries safe without locking.
"""

from typing import Dict, List

import jax
from jax import Array

from frametree.core.frame_tree import FrameTree
from frametree.transforms import RigidPose


def root_pose(tree: FrameTree, name: str) -> RigidPose:
    """Pose of frame *name* expressed in the tree's root frame.

    Raises:
        UnknownFrame: if *name* is not in the tree.
    """
    return tree.root_poses[tree.index_of(name)]


def resolve(tree: FrameTree, source: str, target: str) -> RigidPose:
    """Compute ``target_pose_source``, the pose of *source* in *target*.

    Args:
        tree: A FrameTree produced by ``build``.
        source: Frame whose pose is wanted.
        target: Frame in whose coordinates the pose is expressed.

    Returns:
        RigidPose mapping *source* coordinates to *target* coordinates.

    Raises:
        UnknownFrame: if either frame is not in the tree.
    """
    source_idx = tree.index_of(source)
    target_idx = tree.index_of(target)
    if source == target:
        return RigidPose.identity()
    return _target_pose_source(tree.root_poses, source_idx, target_idx)


@jax.jit
def _target_pose_source(root_poses: RigidPose, source_idx, target_idx) -> RigidPose:
    # target_pose_source = (root_pose_target)^-1 ∘ root_pose_source
    return root_poses[target_idx].inverse().compose(root_poses[source_idx])


def resolve_all(tree: FrameTree, target: str) -> Dict[str, RigidPose]:
    """Express every frame of the tree in *target*'s coordinates.

    Returns:
        Dictionary mapping frame names to ``target_pose_frame``
    """
    target_idx = tree.index_of(target)
    target_poses = _target_poses_all(tree.root_poses, target_idx)

    poses = {name: target_poses[i] for i, name in enumerate(tree.frame_names)}
    poses[target] = RigidPose.identity()
    return poses


@jax.jit
def _target_poses_all(root_poses: RigidPose, target_idx) -> RigidPose:
    return root_poses[target_idx].inverse().compose(root_poses)


def transform_points(tree: FrameTree, points, source: str, target: str) -> Array:
    """Map points given in *source* coordinates into *target* coordinates.

    Args:
        points: (3,) or (N, 3) array-like of points in the source frame

    Returns:
        Array of the same shape, in the target frame
    """
    return resolve(tree, source, target).transform_points(points)


def frame_path(tree: FrameTree, source: str, target: str) -> List[str]:
    """Frames traversed from *source* to *target* through their lowest
    common ancestor, both ends included.

    Raises:
        UnknownFrame: if either frame is not in the tree.
    """
    up = tree.ancestors(source)
    down = tree.ancestors(target)

    # Both chains end at the root; strip the shared tail above the ancestor
    while len(up) > 1 and len(down) > 1 and up[-2] == down[-2]:
        up.pop()
        down.pop()

    return up + down[-2::-1]
