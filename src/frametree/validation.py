"""Structural validation of frame tree snapshots.

``validate`` reports every problem in a child -> parent edge mapping instead
of stopping at the first one, so diagnostic tools can show all of them at
once. ``build`` runs the same checks and raises the first error.
"""

import logging
from collections.abc import Mapping
from typing import Dict, List, Sequence

import numpy as np

from frametree.core.frame_tree import ParentEdge
from frametree.errors import (
    CycleDetected,
    DegenerateRotation,
    MalformedEdge,
    MultipleRoots,
    NoRoot,
    TreeError,
)
from frametree.transforms import RigidPose, quaternion

logger = logging.getLogger(__name__)


def validate(edges: Mapping) -> List[TreeError]:
    """Enumerate all structural problems in a snapshot.

    Args:
        edges: Mapping of child frame name to its ParentEdge.

    Returns:
        List of errors, empty for a valid snapshot. Edge-level problems
        (MalformedEdge, DegenerateRotation) come first, then one
        CycleDetected per frame whose ancestry never terminates, then root
        problems (NoRoot / MultipleRoots).
    """
    if not isinstance(edges, Mapping):
        raise TypeError(f"edges must be a mapping of frame name to ParentEdge, got {type(edges).__name__}")

    errors: List[TreeError] = []

    # First pass: per-edge checks. Only edges with a usable parent name take
    # part in the structural checks below.
    parent_of: Dict[str, str] = {}
    for child, edge in edges.items():
        problem = _check_edge(child, edge)
        if problem is not None:
            errors.append(problem)
        if isinstance(edge, ParentEdge) and _is_frame_name(edge.parent_frame_name) and _is_frame_name(child):
            parent_of[child] = edge.parent_frame_name

    children = {child for child in edges if _is_frame_name(child)}
    parents = set(parent_of.values())
    num_names = len(children | parents)

    # Second pass: every walk must leave the set of children within N steps
    reaches_root = _walk_parents(parent_of, num_names)
    for child in parent_of:
        if not reaches_root[child]:
            errors.append(CycleDetected(child))

    # Third pass: exactly one root candidate
    roots = parents - children
    if not roots:
        errors.append(NoRoot())
    elif len(roots) > 1:
        errors.append(MultipleRoots(roots))

    if errors:
        logger.debug("Frame tree snapshot has %d structural problem(s)", len(errors))
    return errors


def format_report(errors: Sequence[TreeError]) -> str:
    """Render the output of ``validate`` as a human-readable report."""
    if not errors:
        return "frame tree is valid"
    lines = [f"{len(errors)} problem(s) found in frame tree:"]
    lines.extend(f"  - {type(err).__name__}: {err}" for err in errors)
    return "\n".join(lines)


def _is_frame_name(name) -> bool:
    return isinstance(name, str) and name != ""


def _check_edge(child, edge):
    """Return the first problem with a single edge, or None."""
    if not _is_frame_name(child):
        return MalformedEdge(repr(child), "frame name must be a non-empty string")
    if not isinstance(edge, ParentEdge):
        return MalformedEdge(child, f"expected ParentEdge, got {type(edge).__name__}")
    parent = edge.parent_frame_name
    if not isinstance(parent, str):
        return MalformedEdge(child, f"parent frame name must be a string, got {type(parent).__name__}")
    if parent == "":
        return MalformedEdge(child)

    pose = edge.parent_pose_child
    if not isinstance(pose, RigidPose):
        return MalformedEdge(child, f"expected RigidPose, got {type(pose).__name__}")
    translation = np.shape(pose.translation)
    rotation = np.shape(pose.rotation)
    if translation != (3,) or rotation != (4,):
        return MalformedEdge(
            child, f"pose must have translation (3,) and rotation (4,), got {translation} and {rotation}"
        )
    if not np.all(np.isfinite(np.asarray(pose.translation))):
        return MalformedEdge(child, "translation is not finite")
    try:
        quaternion.check_norm(pose.rotation, child)
    except DegenerateRotation as err:
        return err
    return None


def _walk_parents(parent_of: Dict[str, str], num_names: int) -> Dict[str, bool]:
    """Map every child to whether walking its parents reaches a root.

    A frame that is not a key has no further ancestor, so reaching one ends
    the walk. Each frame is settled once; later walks stop as soon as they
    hit a settled frame, so the whole pass is linear in the number of edges.
    """
    reaches_root: Dict[str, bool] = {}
    for start in parent_of:
        path: List[str] = []
        on_path = set()
        outcome = False
        current = start
        # A valid tree needs at most num_names - 1 steps
        for _ in range(num_names + 1):
            if current not in parent_of:
                outcome = True
                break
            if current in reaches_root:
                outcome = reaches_root[current]
                break
            if current in on_path:
                break
            path.append(current)
            on_path.add(current)
            current = parent_of[current]
        for name in path:
            reaches_root[name] = outcome
    return reaches_root
