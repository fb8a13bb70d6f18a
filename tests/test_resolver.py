"""Tests for pose queries between frames."""

import itertools
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from frametree import (
    ParentEdge,
    RigidPose,
    UnknownFrame,
    build,
    frame_path,
    resolve,
    resolve_all,
    root_pose,
    transform_points,
)
from frametree.frames import (
    BODY_FRAME_NAME,
    ODOM_FRAME_NAME,
    VISION_FRAME_NAME,
    get_odom_pose_body,
    get_vision_pose_body,
)

S = np.sqrt(0.5)
IDENTITY = RigidPose.identity()


@pytest.fixture(scope="module")
def arm_tree():
    """The canonical hand/shoulder/body example."""
    return build({
        "hand": ParentEdge.create("shoulder", (1.0, 0.0, 0.0)),
        "shoulder": ParentEdge.create("body", (0.0, 1.0, 0.0)),
    })


@pytest.fixture(scope="module")
def robot_tree():
    """A body with an arm and a rotated sensor head, hanging off odom/vision."""
    return build({
        "body": ParentEdge.create("odom", (2.0, 0.0, 0.0), (0.0, 0.0, S, S)),
        "vision": ParentEdge.create("odom", (0.0, -1.0, 0.0)),
        "shoulder": ParentEdge.create("body", (0.0, 1.0, 0.0)),
        "hand": ParentEdge.create("shoulder", (1.0, 0.0, 0.0), (S, 0.0, 0.0, S)),
        "head": ParentEdge.create("body", (0.3, 0.0, 0.5), (0.0, S, 0.0, S)),
        "camera": ParentEdge.create("head", (0.1, 0.0, 0.0), (0.2, -0.1, 0.4, 0.9)),
    })


# Worked example
def test_resolve_worked_example(arm_tree):
    body_pose_hand = resolve(arm_tree, "hand", "body")
    assert body_pose_hand.is_close(RigidPose.from_pos_quat([1.0, 1.0, 0.0]))

    hand_pose_body = resolve(arm_tree, "body", "hand")
    assert hand_pose_body.is_close(RigidPose.from_pos_quat([-1.0, -1.0, 0.0]))


def test_resolve_unknown_frame(arm_tree):
    with pytest.raises(UnknownFrame) as excinfo:
        resolve(arm_tree, "hand", "nonexistent")
    assert excinfo.value.name == "nonexistent"

    with pytest.raises(UnknownFrame) as excinfo:
        resolve(arm_tree, "nonexistent", "hand")
    assert excinfo.value.name == "nonexistent"

    # Callers may treat it as a plain missing key
    with pytest.raises(LookupError):
        resolve(arm_tree, "ghost", "ghost")


def test_resolve_unknown_frame_leaves_tree_usable(arm_tree):
    with pytest.raises(UnknownFrame):
        resolve(arm_tree, "hand", "nonexistent")
    assert resolve(arm_tree, "hand", "body").is_close(RigidPose.from_pos_quat([1.0, 1.0, 0.0]))


def test_resolve_identity(robot_tree):
    for name in robot_tree:
        pose = resolve(robot_tree, name, name)
        np.testing.assert_array_equal(pose.translation, IDENTITY.translation)
        np.testing.assert_array_equal(pose.rotation, IDENTITY.rotation)


def test_resolve_inverse_roundtrip(robot_tree):
    for a, b in itertools.product(robot_tree, repeat=2):
        roundtrip = resolve(robot_tree, a, b).compose(resolve(robot_tree, b, a))
        assert roundtrip.is_close(IDENTITY, atol=1e-9), (a, b)


def test_resolve_transitivity(robot_tree):
    for a, b, c in itertools.product(robot_tree, repeat=3):
        chained = resolve(robot_tree, b, a).compose(resolve(robot_tree, c, b))
        assert chained.is_close(resolve(robot_tree, c, a), atol=1e-9), (a, b, c)


def test_resolve_matches_edge(robot_tree):
    """Resolving a child in its parent gives back the edge pose."""
    for child, edge in robot_tree.edges().items():
        pose = resolve(robot_tree, child, edge.parent_frame_name)
        assert pose.is_close(edge.parent_pose_child, atol=1e-12), child


def test_resolve_rotated_chain(robot_tree):
    """A point one unit ahead of the hand, seen from odom."""
    odom_pose_hand = resolve(robot_tree, "hand", "odom")
    # hand is 1 along shoulder x, shoulder is 1 along body y, body is yawed 90°
    np.testing.assert_allclose(odom_pose_hand.translation, [1.0, 1.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(
        odom_pose_hand.transform_points([1.0, 0.0, 0.0]), [1.0, 2.0, 0.0], atol=1e-12
    )


def test_root_pose(robot_tree):
    assert robot_tree.root_name == "odom"
    assert root_pose(robot_tree, "odom").is_close(IDENTITY)
    assert root_pose(robot_tree, "hand").is_close(resolve(robot_tree, "hand", "odom"))
    with pytest.raises(UnknownFrame):
        root_pose(robot_tree, "nonexistent")


def test_resolve_all(robot_tree):
    poses = resolve_all(robot_tree, "camera")

    assert set(poses) == set(robot_tree)
    for name, pose in poses.items():
        assert pose.is_close(resolve(robot_tree, name, "camera"), atol=1e-12), name
    np.testing.assert_array_equal(poses["camera"].rotation, IDENTITY.rotation)

    with pytest.raises(UnknownFrame):
        resolve_all(robot_tree, "nonexistent")


def test_transform_points(arm_tree):
    points = transform_points(arm_tree, [[0.0, 0.0, 0.0], [0.0, 0.0, 1.0]], "hand", "body")
    np.testing.assert_allclose(points, [[1.0, 1.0, 0.0], [1.0, 1.0, 1.0]], atol=1e-12)

    back = transform_points(arm_tree, points, "body", "hand")
    np.testing.assert_allclose(back, [[0.0, 0.0, 0.0], [0.0, 0.0, 1.0]], atol=1e-12)


def test_frame_path(robot_tree):
    assert frame_path(robot_tree, "hand", "camera") == ["hand", "shoulder", "body", "head", "camera"]
    assert frame_path(robot_tree, "camera", "odom") == ["camera", "head", "body", "odom"]
    assert frame_path(robot_tree, "odom", "shoulder") == ["odom", "body", "shoulder"]
    assert frame_path(robot_tree, "hand", "vision") == ["hand", "shoulder", "body", "odom", "vision"]
    assert frame_path(robot_tree, "head", "head") == ["head"]
    with pytest.raises(UnknownFrame):
        frame_path(robot_tree, "hand", "nonexistent")


def test_conventional_frames(robot_tree):
    assert (BODY_FRAME_NAME, VISION_FRAME_NAME, ODOM_FRAME_NAME) == ("body", "vision", "odom")

    odom_pose_body = get_odom_pose_body(robot_tree)
    assert odom_pose_body.is_close(RigidPose.from_pos_quat([2.0, 0.0, 0.0], [0.0, 0.0, S, S]))

    vision_pose_body = get_vision_pose_body(robot_tree)
    assert vision_pose_body.is_close(RigidPose.from_pos_quat([2.0, 1.0, 0.0], [0.0, 0.0, S, S]))


def test_conventional_frames_missing(arm_tree):
    with pytest.raises(UnknownFrame) as excinfo:
        get_vision_pose_body(arm_tree)
    assert excinfo.value.name == "vision"


def test_concurrent_queries(robot_tree):
    """Queries from many threads agree with sequential ones."""
    pairs = list(itertools.product(robot_tree, repeat=2)) * 4
    expected = [resolve(robot_tree, a, b) for a, b in pairs]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda pair: resolve(robot_tree, *pair), pairs))

    for pair, want, got in zip(pairs, expected, results):
        assert got.is_close(want, atol=0.0), pair


# Property-based tests on random trees
coords = st.floats(min_value=-5.0, max_value=5.0, allow_nan=False)
quats = st.tuples(coords, coords, coords, coords).filter(lambda q: np.linalg.norm(q) > 0.1)


@st.composite
def snapshots(draw, max_frames=6):
    """Random valid snapshot: frame_i hangs off "world" or an earlier frame."""
    num_frames = draw(st.integers(min_value=1, max_value=max_frames))
    names = ["world"] + [f"frame_{i}" for i in range(1, num_frames + 1)]
    edges = {}
    for i in range(1, num_frames + 1):
        parent = names[draw(st.integers(min_value=0, max_value=i - 1))]
        edges[names[i]] = ParentEdge.create(parent, draw(st.tuples(coords, coords, coords)), draw(quats))
    return edges


@given(snapshots(), st.data())
@settings(deadline=None, max_examples=25)
def test_random_tree_properties(edges, data):
    tree = build(edges)
    names = st.sampled_from(list(tree))
    a, b, c = data.draw(names), data.draw(names), data.draw(names)

    assert resolve(tree, a, a).is_close(IDENTITY)
    assert resolve(tree, a, b).compose(resolve(tree, b, a)).is_close(IDENTITY, atol=1e-9)
    assert resolve(tree, b, a).compose(resolve(tree, c, b)).is_close(resolve(tree, c, a), atol=1e-9)
