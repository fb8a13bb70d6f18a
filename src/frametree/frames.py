"""Conventional frame names shared by snapshot producers.

Every snapshot is expected to carry these frames, but the builder and
resolver treat them as ordinary names.
"""

from frametree.core.frame_tree import FrameTree
from frametree.resolver import resolve
from frametree.transforms import RigidPose

# A frame centered on the robot's body.
BODY_FRAME_NAME = "body"
# Non-moving frame from dead reckoning and visual analysis of the world.
VISION_FRAME_NAME = "vision"
# Non-moving frame from kinematic odometry only.
ODOM_FRAME_NAME = "odom"


def get_vision_pose_body(tree: FrameTree) -> RigidPose:
    """Pose of the body frame in the vision frame."""
    return resolve(tree, BODY_FRAME_NAME, VISION_FRAME_NAME)


def get_odom_pose_body(tree: FrameTree) -> RigidPose:
    """Pose of the body frame in the odom frame."""
    return resolve(tree, BODY_FRAME_NAME, ODOM_FRAME_NAME)
