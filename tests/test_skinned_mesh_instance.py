import numpy as np
import pytest

from gef.joint import Joint
from gef.skeleton import Skeleton, SkeletonPose
from gef.skinned_mesh_instance import MeshInstance, SkinnedMeshInstance
from gef.transform import Transform


def _translation(x, y, z):
    return Transform(translation=(x, y, z)).matrix()


def _make_skeleton():
    skeleton = Skeleton()
    skeleton.add_joint(Joint(1, np.linalg.inv(_translation(0.0, 1.0, 0.0)).astype(np.float32), -1))
    skeleton.add_joint(Joint(2, np.linalg.inv(_translation(0.0, 3.0, 0.0)).astype(np.float32), 0))
    return skeleton


def test_mesh_instance_defaults():
    instance = MeshInstance()
    assert np.array_equal(instance.transform, np.eye(4))
    assert instance.mesh is None


def test_skinned_instance_setup():
    skeleton = _make_skeleton()
    instance = SkinnedMeshInstance(skeleton)
    assert instance.bind_pose.skeleton is skeleton
    assert len(instance.bone_matrices) == skeleton.joint_count
    assert np.array_equal(instance.transform, np.eye(4))


def test_bind_pose_gives_identity_bone_matrices():
    instance = SkinnedMeshInstance(_make_skeleton())
    instance.update_bone_matrices(instance.bind_pose)
    for matrix in instance.bone_matrices:
        assert np.allclose(matrix, np.eye(4), atol=1e-5)


def test_moved_pose_bone_matrices():
    skeleton = _make_skeleton()
    instance = SkinnedMeshInstance(skeleton)
    pose = SkeletonPose()
    pose.create_bind_pose(skeleton)
    pose.local_pose[0].translation = (5.0, 1.0, 0.0)
    pose.calculate_global_pose()
    instance.update_bone_matrices(pose)
    for joint, global_matrix, bone in zip(skeleton.joints, pose.global_pose, instance.bone_matrices):
        assert np.allclose(bone @ np.linalg.inv(global_matrix), joint.inv_bind_pose, atol=1e-5)


def test_update_with_short_pose_raises():
    instance = SkinnedMeshInstance(_make_skeleton())
    with pytest.raises(ValueError):
        instance.update_bone_matrices(SkeletonPose())