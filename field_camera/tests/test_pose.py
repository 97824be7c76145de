"""
Tests for pose representation module.

These tests verify:
    - Rotation vector and quaternion decoding
    - Encoding of rigid transforms
    - Round trips through dense transforms
    - Rejection of malformed poses
"""

import dataclasses

import pytest
import numpy as np
from numpy.testing import assert_allclose
from scipy.spatial.transform import Rotation

from field_camera.pose import (
    Pose3D,
    to_rigid_transform,
    from_rigid_transform,
    validate_rotation_matrix,
)
from field_camera.exceptions import InvalidArgumentError, MalformedPoseError


TEST_POINTS = np.array([
    [0.0, 0.0, 0.0],
    [1.0, 0.0, 0.0],
    [0.0, -2.5, 0.3],
    [4.5, 3.0, 0.0],
    [-4.5, -3.0, 1.2],
])


class TestToRigidTransform:
    """Tests for decoding poses."""

    def test_identity_rotation_vector(self):
        R, t = to_rigid_transform(Pose3D((0, 0, 0), (1, 2, 3)))

        assert_allclose(R, np.eye(3), atol=1e-12)
        assert_allclose(t, [1, 2, 3])

    def test_identity_quaternion(self):
        R, _ = to_rigid_transform(Pose3D((1, 0, 0, 0), (0, 0, 0)))
        assert_allclose(R, np.eye(3), atol=1e-12)

    def test_rotation_vector_quarter_turn(self):
        """A quarter turn about Z maps X onto Y."""
        R, _ = to_rigid_transform(Pose3D((0, 0, np.pi / 2), (0, 0, 0)))

        assert_allclose(R @ [1, 0, 0], [0, 1, 0], atol=1e-12)
        assert validate_rotation_matrix(R)

    def test_quaternion_scalar_first(self):
        """Quaternion is ordered (qw, qx, qy, qz)."""
        half = np.pi / 4
        R, _ = to_rigid_transform(Pose3D((np.cos(half), 0, 0, np.sin(half)), (0, 0, 0)))

        assert_allclose(R @ [1, 0, 0], [0, 1, 0], atol=1e-12)

    def test_quaternion_and_rotation_vector_agree(self):
        rvec = np.array([0.3, -0.2, 0.9])
        angle = np.linalg.norm(rvec)
        axis = rvec / angle
        quat = (np.cos(angle / 2), *(np.sin(angle / 2) * axis))

        R_rvec, _ = to_rigid_transform(Pose3D(rvec, (0, 0, 0)))
        R_quat, _ = to_rigid_transform(Pose3D(quat, (0, 0, 0)))

        assert_allclose(R_rvec, R_quat, atol=1e-12)

    @pytest.mark.parametrize("rotation", [(), (1.0,), (0.0, 1.0), (1, 0, 0, 0, 0)])
    def test_malformed_rotation(self, rotation):
        with pytest.raises(MalformedPoseError):
            to_rigid_transform(Pose3D(rotation, (0, 0, 0)))

    def test_malformed_translation(self):
        with pytest.raises(MalformedPoseError):
            to_rigid_transform(Pose3D((0, 0, 0), (0, 0)))

    def test_malformed_pose_is_value_error(self):
        with pytest.raises(ValueError):
            to_rigid_transform(Pose3D((0, 0), (0, 0, 0)))

    def test_zero_quaternion(self):
        with pytest.raises(MalformedPoseError):
            to_rigid_transform(Pose3D((0, 0, 0, 0), (0, 0, 0)))

    def test_non_finite(self):
        with pytest.raises(InvalidArgumentError):
            to_rigid_transform(Pose3D((0, np.nan, 0), (0, 0, 0)))


class TestFromRigidTransform:
    """Tests for encoding rigid transforms."""

    def test_default_is_rotation_vector(self):
        pose = from_rigid_transform(np.eye(3), [0, 0, 5])

        assert len(pose.rotation) == 3
        assert_allclose(pose.rotation, [0, 0, 0], atol=1e-12)
        assert pose.translation == (0.0, 0.0, 5.0)

    def test_quaternion_requested(self):
        pose = from_rigid_transform(np.eye(3), [0, 0, 5], quaternion=True)

        assert len(pose.rotation) == 4
        assert_allclose(np.abs(pose.rotation), [1, 0, 0, 0], atol=1e-12)

    def test_invalid_shapes(self):
        with pytest.raises(InvalidArgumentError):
            from_rigid_transform(np.eye(4), [0, 0, 0])
        with pytest.raises(InvalidArgumentError):
            from_rigid_transform(np.eye(3), [0, 0])

    def test_scaled_matrix_rejected(self):
        with pytest.raises(InvalidArgumentError):
            from_rigid_transform(2 * np.eye(3), [0, 0, 1])

    def test_reflection_rejected(self):
        with pytest.raises(InvalidArgumentError):
            from_rigid_transform(np.diag([1.0, 1.0, -1.0]), [0, 0, 1])

    def test_round_off_accepted(self):
        R = Rotation.from_rotvec([0.1, -0.2, 0.3]).as_matrix() + 1e-9

        pose = from_rigid_transform(R, [0, 0, 1])
        assert_allclose(to_rigid_transform(pose)[0], R, atol=1e-8)


class TestRoundTrip:
    """Round trips compare transforms, not encodings."""

    @pytest.mark.parametrize("pose", [
        Pose3D((0.1, -0.2, 0.3), (1.0, 2.0, 3.0)),
        Pose3D((2.0, 0.5, -1.0), (-0.5, 0.0, 7.0)),
        Pose3D((0.9238795, 0.0, 0.3826834, 0.0), (0.0, 1.0, 4.0)),
        Pose3D((0.5, 0.5, 0.5, 0.5), (3.0, -1.0, 2.0)),
    ])
    def test_transform_round_trip(self, pose):
        R, t = to_rigid_transform(pose)
        decoded = from_rigid_transform(R, t)

        assert_allclose(decoded.apply(TEST_POINTS), pose.apply(TEST_POINTS), atol=1e-9)

    def test_round_trip_near_half_turn(self):
        """Angle close to pi: encoding may flip, transform must not."""
        pose = Pose3D((0.0, np.pi - 1e-9, 0.0), (0.0, 0.0, 2.0))
        R, t = to_rigid_transform(pose)
        decoded = from_rigid_transform(R, t)

        assert_allclose(decoded.apply(TEST_POINTS), pose.apply(TEST_POINTS), atol=1e-6)

    def test_matrix_round_trip(self):
        pose = Pose3D((0.1, 0.2, 0.3), (4.0, 5.0, 6.0))
        T = pose.to_matrix()

        assert T.shape == (4, 4)
        assert_allclose(T[3], [0, 0, 0, 1])
        assert_allclose(Pose3D.from_matrix(T).apply(TEST_POINTS), pose.apply(TEST_POINTS), atol=1e-9)


class TestPose3DRecord:
    """Tests for the Pose3D record itself."""

    def test_immutable(self):
        pose = Pose3D((0, 0, 0), (0, 0, 1))
        with pytest.raises(dataclasses.FrozenInstanceError):
            pose.translation = (0, 0, 2)

    def test_values_stored_as_float_tuples(self):
        pose = Pose3D(np.array([0, 1, 0]), [1, 2, 3])

        assert pose.rotation == (0.0, 1.0, 0.0)
        assert isinstance(pose.translation, tuple)

    def test_str(self):
        assert 'rvec' in str(Pose3D((0, 0, 0), (0, 0, 1)))
        assert 'quaternion' in str(Pose3D((1, 0, 0, 0), (0, 0, 1)))

    def test_dict_round_trip(self):
        pose = Pose3D((1, 0, 0, 0), (0, 0, 1))
        assert Pose3D.from_dict(pose.to_dict()) == pose

    def test_from_dict_rejects_malformed(self):
        with pytest.raises(MalformedPoseError):
            Pose3D.from_dict({'rotation': [0, 0], 'translation': [0, 0, 0]})


class TestValidateRotationMatrix:

    def test_reflection_rejected(self):
        assert not validate_rotation_matrix(np.diag([1.0, 1.0, -1.0]))

    def test_wrong_shape(self):
        assert not validate_rotation_matrix(np.eye(4))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
