"""FrameTree PyTree data structure for JAX-native frame snapshots.

This module defines the input edge record and the immutable arena that a
validated snapshot is turned into. Both are compatible with JAX
transformations.
"""

import functools
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

import numpy as np
from flax import struct
from jax import Array

from frametree.errors import UnknownFrame
from frametree.transforms import RigidPose


@struct.dataclass
class ParentEdge:
    """Relationship from a child frame to its parent frame.

    The child name is the key under which the edge is stored in a snapshot
    mapping, so a child has at most one parent.

    Attributes:
        parent_frame_name: Name of the parent frame. Must be non-empty. If it
                           is not itself a key of the snapshot, it is the root.
        parent_pose_child: Pose of the child frame expressed in the parent.
    """
    parent_frame_name: str = struct.field(pytree_node=False)
    parent_pose_child: RigidPose

    @classmethod
    def create(cls, parent_frame_name: str, position=(0.0, 0.0, 0.0),
               rotation=None) -> "ParentEdge":
        """Build an edge from plain numbers; *rotation* is (x, y, z, w)."""
        pose = RigidPose.from_pos_quat(position, rotation)
        return cls(parent_frame_name=parent_frame_name, parent_pose_child=pose)


@struct.dataclass
class FrameTree:
    """Immutable PyTree representation of one frame tree snapshot.

    Frames are stored as an arena indexed by integers, ordered breadth-first
    from the root so that every parent precedes its children.

    Attributes:
        frame_names: Tuple of all frame names. Index corresponds to frame ID;
                     index 0 is the root. Marked as a static field for JIT.
        parent_indices: Array of shape (num_frames,) where parent_indices[i]
                        is the parent frame index of frame i. Root parents
                        itself.
        parent_poses: RigidPose batch of shape (num_frames,); parent_poses[i]
                      is the pose of frame i in its parent (identity for the
                      root).
        root_poses: RigidPose batch of shape (num_frames,); root_poses[i] is
                    the pose of frame i in the root frame, precomputed when
                    the tree is built.
    """
    frame_names: Tuple[str, ...] = struct.field(pytree_node=False)
    parent_indices: Array
    parent_poses: RigidPose
    root_poses: RigidPose

    @property
    def root_name(self) -> str:
        return self.frame_names[0]

    def __len__(self) -> int:
        return len(self.frame_names)

    def __iter__(self) -> Iterator[str]:
        return iter(self.frame_names)

    @functools.cached_property
    def _frame_index(self) -> Mapping[str, int]:
        # Stored in the instance __dict__, outside the dataclass fields, so
        # it is built once per tree and never flattened.
        return MappingProxyType({name: i for i, name in enumerate(self.frame_names)})

    def __contains__(self, name) -> bool:
        try:
            return name in self._frame_index
        except TypeError:
            return False

    def index_of(self, name: str) -> int:
        """Arena index of *name*.

        Raises:
            UnknownFrame: if *name* is not in the tree.
        """
        try:
            return self._frame_index[name]
        except (KeyError, TypeError):
            raise UnknownFrame(name) from None

    def parent_of(self, name: str) -> Optional[str]:
        """Name of the parent of *name*, or None for the root."""
        i = self.index_of(name)
        if i == 0:
            return None
        return self.frame_names[int(self.parent_indices[i])]

    def children_of(self, name: str) -> Tuple[str, ...]:
        i = self.index_of(name)
        parents = np.asarray(self.parent_indices)
        return tuple(self.frame_names[j] for j in np.flatnonzero(parents == i) if j != 0)

    def ancestors(self, name: str) -> Sequence[str]:
        """Frames from *name* up to and including the root."""
        parents = np.asarray(self.parent_indices)
        i = self.index_of(name)
        chain = [self.frame_names[i]]
        while i != 0:
            i = int(parents[i])
            chain.append(self.frame_names[i])
        return chain

    def edges(self) -> Dict[str, ParentEdge]:
        """Recover the child -> parent edge mapping this tree was built from."""
        parents = np.asarray(self.parent_indices)
        return {
            name: ParentEdge(
                parent_frame_name=self.frame_names[int(parents[i])],
                parent_pose_child=self.parent_poses[i],
            )
            for i, name in enumerate(self.frame_names) if i != 0
        }
