"""Build validated, immutable frame trees from snapshot edge mappings.

The builder front-loads every structural check, orders the frames so that
parents precede children, and precomputes the pose of every frame in the
root frame. Resolver queries can then assume a valid tree and never walk it.
"""

import logging
from collections import defaultdict, deque
from typing import Dict, List, Mapping

import jax
import jax.numpy as jnp

from frametree.core.frame_tree import FrameTree, ParentEdge
from frametree.transforms import RigidPose, quaternion, se3
from frametree.validation import validate

logger = logging.getLogger(__name__)


def build(edges: Mapping[str, ParentEdge]) -> FrameTree:
    """Validate a snapshot and convert it to a FrameTree.

    Args:
        edges: Mapping of child frame name to the ParentEdge holding its
               parent's name and the pose of the child in the parent.

    Returns:
        FrameTree: the immutable, query-ready tree.

    Raises:
        TreeError: the first structural problem reported by ``validate``.
    """
    errors = validate(edges)
    if errors:
        raise errors[0]

    children_of: Dict[str, List[str]] = defaultdict(list)
    for child, edge in edges.items():
        children_of[edge.parent_frame_name].append(child)

    # validate() guarantees exactly one name that is a parent but not a child
    (root_frame,) = set(children_of) - set(edges)

    # Order frames using breadth-first traversal from root
    ordered_frames = []
    queue = deque([root_frame])
    while queue:
        current = queue.popleft()
        ordered_frames.append(current)
        queue.extend(children_of[current])

    frame_index = {name: i for i, name in enumerate(ordered_frames)}

    parent_indices_list = [0]  # Root parents itself
    translations = [jnp.zeros(3)]
    rotations = [quaternion.identity()]
    for name in ordered_frames[1:]:
        edge = edges[name]
        parent_indices_list.append(frame_index[edge.parent_frame_name])
        translations.append(jnp.asarray(edge.parent_pose_child.translation, dtype=jnp.float64))
        rotations.append(jnp.asarray(edge.parent_pose_child.rotation, dtype=jnp.float64))

    parent_indices = jnp.array(parent_indices_list, dtype=jnp.int32)
    parent_poses = RigidPose(jnp.stack(translations), quaternion.normalize(jnp.stack(rotations)))
    root_poses = propagate_root_poses(parent_indices, parent_poses)

    logger.debug("Built frame tree with %d frames rooted at '%s'", len(ordered_frames), root_frame)

    return FrameTree(
        frame_names=tuple(ordered_frames),
        parent_indices=parent_indices,
        parent_poses=parent_poses,
        root_poses=root_poses,
    )


@jax.jit
def propagate_root_poses(parent_indices: jax.Array, parent_poses: RigidPose) -> RigidPose:
    """Compute the pose of every frame in the root frame.

    Frames must be ordered so that parent_indices[i] < i for every non-root
    frame i, with the root at index 0.

    Args:
        parent_indices: Array of shape (num_frames,)
        parent_poses: RigidPose batch of shape (num_frames,), the pose of each
                      frame in its parent

    Returns:
        RigidPose batch of shape (num_frames,) with root-relative poses
    """
    num_frames = parent_indices.shape[0]

    def scan_body(carry, i):
        """Processes frame `i` using its parent's root pose from `carry`."""
        t_root, q_root = carry
        p = parent_indices[i]

        # root_pose_child = root_pose_parent ∘ parent_pose_child
        t, q = se3.compose(t_root[p], q_root[p], parent_poses.translation[i], parent_poses.rotation[i])

        return (t_root.at[i].set(t), q_root.at[i].set(q)), None

    # Row 0 (the root) keeps its identity pose; every other row is
    # overwritten once its parent row is final.
    init = (parent_poses.translation, parent_poses.rotation)
    (t_root, q_root), _ = jax.lax.scan(scan_body, init, jnp.arange(1, num_frames))

    return RigidPose(t_root, q_root)
