"""Placed mesh instances, including ones deformed by a skeleton."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from gef.skeleton import Skeleton, SkeletonPose


def _identity() -> np.ndarray:
    return np.eye(4, dtype=np.float32)


@dataclass
class MeshInstance:
    """A mesh placed in the world by its own transform."""

    transform: np.ndarray = field(default_factory=_identity)
    mesh: Any = None


class SkinnedMeshInstance(MeshInstance):
    """A mesh instance with a skeleton bind pose and per-bone skinning matrices."""

    def __init__(self, skeleton: Skeleton) -> None:
        super().__init__()
        self.bind_pose = SkeletonPose()
        self.bind_pose.create_bind_pose(skeleton)
        self.bone_matrices: list[np.ndarray] = [_identity() for _ in skeleton.joints]

    def update_bone_matrices(self, pose: SkeletonPose) -> None:
        """Compute skinning matrices: each joint's inverse bind pose times its posed global matrix."""
        skeleton = self.bind_pose.skeleton
        assert skeleton is not None
        if len(pose.global_pose) < len(self.bone_matrices):
            raise ValueError(
                f"pose has {len(pose.global_pose)} global matrices, "
                f"{len(self.bone_matrices)} needed"
            )
        self.bone_matrices = [
            (
                np.asarray(joint.inv_bind_pose, dtype=np.float64)
                @ np.asarray(global_matrix, dtype=np.float64)
            ).astype(np.float32)
            for joint, global_matrix in zip(skeleton.joints, pose.global_pose)
        ]