"""Skeletons and the poses they take, in local and global space."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, replace
from typing import BinaryIO, Sequence

import numpy as np

from gef.animation import AnimNode, AnimNodeType, Animation, TransformAnimNode
from gef.joint import Joint, JointPose

_I32 = struct.Struct("<i")
_UNIT_SCALE = (1.0, 1.0, 1.0)


def _inverse(matrix: np.ndarray) -> np.ndarray:
    return np.linalg.inv(np.asarray(matrix, dtype=np.float64)).astype(np.float32)


def _product(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return (np.asarray(a, dtype=np.float64) @ np.asarray(b, dtype=np.float64)).astype(np.float32)


@dataclass
class Skeleton:
    """An ordered list of joints; parents always come before their children."""

    joints: list[Joint] = field(default_factory=list)

    @property
    def joint_count(self) -> int:
        return len(self.joints)

    def add_joint(self, joint: Joint) -> int:
        """Append a joint and return its index."""
        self.joints.append(joint)
        return len(self.joints) - 1

    def find_joint_index(self, name_id: int) -> int | None:
        """Index of the first joint with this name id, or None."""
        return next(
            (index for index, joint in enumerate(self.joints) if joint.name_id == name_id),
            None,
        )

    def find_joint(self, name_id: int) -> Joint | None:
        index = self.find_joint_index(name_id)
        return None if index is None else self.joints[index]

    @classmethod
    def read(cls, stream: BinaryIO) -> Skeleton:
        data = stream.read(_I32.size)
        if len(data) != _I32.size:
            raise EOFError(f"expected {_I32.size} bytes, got {len(data)}")
        (count,) = _I32.unpack(data)
        return cls([Joint.read(stream) for _ in range(max(count, 0))])

    def write(self, stream: BinaryIO) -> None:
        stream.write(_I32.pack(len(self.joints)))
        for joint in self.joints:
            joint.write(stream)


def _animated_pose(
    node: TransformAnimNode, base: JointPose, bind: JointPose, time: float
) -> JointPose:
    """Pose a joint from a transform node, falling back to the bind pose per channel.

    Scale is always reset to one.
    """
    rotation = node.rotation_at(time) if node.rotation_keys else bind.rotation
    translation = node.translation_at(time) if node.translation_keys else bind.translation
    return replace(base, scale=_UNIT_SCALE, rotation=rotation, translation=translation)


def _node_for_joint(anim: Animation | None, skeleton: Skeleton, joint_index: int) -> AnimNode | None:
    if anim is None:
        return None
    return anim.find_node(skeleton.joints[joint_index].name_id)


def _pose_for_joint(
    anim: Animation | None, bind_pose: SkeletonPose, time: float, joint_index: int
) -> JointPose:
    skeleton = bind_pose.skeleton
    if skeleton is None:
        raise ValueError("bind pose has no skeleton")
    bind = bind_pose.local_pose[joint_index]
    node = _node_for_joint(anim, skeleton, joint_index)
    if node is None:
        return replace(bind)
    if node.type == AnimNodeType.TRANSFORM and isinstance(node, TransformAnimNode):
        return _animated_pose(node, JointPose(), bind, time)
    return JointPose()


def joint_transform_from_anim(
    anim: Animation, bind_pose: SkeletonPose, time: float, joint_index: int
) -> np.ndarray:
    """Local matrix of one joint sampled from an animation at ``time``."""
    return _pose_for_joint(anim, bind_pose, time, joint_index).matrix()


def global_joint_transform_from_anim(
    anim: Animation | None, bind_pose: SkeletonPose, time: float, joint_index: int
) -> np.ndarray:
    """Global matrix of one joint, combining its animated pose with all its parents'."""
    local = _pose_for_joint(anim, bind_pose, time, joint_index).matrix()
    skeleton = bind_pose.skeleton
    assert skeleton is not None
    parent = skeleton.joints[joint_index].parent
    if parent == -1:
        return local
    return _product(local, global_joint_transform_from_anim(anim, bind_pose, time, parent))


class SkeletonPose:
    """Per-joint local transforms and the global matrices derived from them."""

    def __init__(self) -> None:
        self.local_pose: list[JointPose] = []
        self.global_pose: list[np.ndarray] = []
        self.skeleton: Skeleton | None = None

    def calculate_global_pose(self, pose_transform: np.ndarray | None = None) -> None:
        """Rebuild global matrices from the local pose; root joints take ``pose_transform``."""
        if self.skeleton is None:
            return
        for index, (joint, local) in enumerate(zip(self.skeleton.joints, self.local_pose)):
            matrix = local.matrix()
            if joint.parent == -1:
                if pose_transform is not None:
                    matrix = _product(matrix, pose_transform)
            else:
                matrix = _product(matrix, self.global_pose[joint.parent])
            if index < len(self.global_pose):
                self.global_pose[index] = matrix
            else:
                self.global_pose.append(matrix)

    def calculate_local_pose(self, global_pose: Sequence[np.ndarray]) -> None:
        """Set the local pose from a list of global joint matrices."""
        if self.skeleton is None:
            return
        for index, joint in enumerate(self.skeleton.joints):
            matrix = np.asarray(global_pose[index], dtype=np.float32)
            if joint.parent != -1:
                matrix = _product(matrix, _inverse(global_pose[joint.parent]))
            pose = JointPose.from_matrix(matrix)
            if index < len(self.local_pose):
                self.local_pose[index] = pose
            else:
                self.local_pose.append(pose)

    def create_bind_pose(self, skeleton: Skeleton | None) -> None:
        """Build the rest pose of ``skeleton`` from its inverse bind matrices."""
        if skeleton is None:
            return
        self.local_pose = []
        self.global_pose = []
        for joint in skeleton.joints:
            global_matrix = _inverse(joint.inv_bind_pose)
            if joint.parent == -1:
                local_matrix = global_matrix
            else:
                parent = skeleton.joints[joint.parent]
                local_matrix = _product(global_matrix, parent.inv_bind_pose)
            self.local_pose.append(JointPose.from_matrix(local_matrix))
            self.global_pose.append(global_matrix)
        self.skeleton = skeleton

    def set_pose_from_anim(
        self,
        anim: Animation,
        bind_pose: SkeletonPose,
        time: float,
        update_global_pose: bool = True,
    ) -> None:
        """Sample every joint from ``anim``; joints it does not drive take the bind pose."""
        if self.skeleton is None:
            raise ValueError("pose has no skeleton")
        for index, current in enumerate(self.local_pose):
            node = _node_for_joint(anim, self.skeleton, index)
            bind = bind_pose.local_pose[index]
            if node is None:
                self.local_pose[index] = replace(bind)
            elif node.type == AnimNodeType.TRANSFORM and isinstance(node, TransformAnimNode):
                self.local_pose[index] = _animated_pose(node, current, bind, time)
        if update_global_pose:
            self.calculate_global_pose()

    def linear_blend(self, start_pose: SkeletonPose, end_pose: SkeletonPose, t: float) -> None:
        """Blend two poses joint by joint and rebuild the global pose."""
        if not len(start_pose.local_pose) == len(end_pose.local_pose) == len(self.local_pose):
            raise ValueError("poses must have the same number of joints")
        for result, start, end in zip(self.local_pose, start_pose.local_pose, end_pose.local_pose):
            result.blend(start, end, t)
        self.calculate_global_pose()

    def clean_up(self) -> None:
        self.skeleton = None
        self.local_pose = []
        self.global_pose = []