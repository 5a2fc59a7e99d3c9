"""Centroidal model of a quadruped trunk.

Caches total mass, 6x6 spatial inertia about the CoM and the base-to-CoM
offset for one joint posture, and converts poses, twists and accelerations
between the base link and the CoM frame with exact rigid-body algebra.

Frames: the CoM frame is parallel to the base frame and located at the
whole-body center of mass. Poses are [euler_xyz (3), position in origin (3)];
twists and accelerations are local [angular (3), linear (3)].
"""

import logging

import numpy as np

from centroidal_dynamics._internal.validation import (
    validate_vector_size,
    validate_finite,
)
from centroidal_dynamics.kinematics import KinematicsModel
from centroidal_dynamics.parameters import (
    CentroidalModelParameters,
    JOINT_DIMENSION,
    NUM_FEET,
)
from centroidal_dynamics.rotations import rotation_matrix_base_to_origin
from centroidal_dynamics.scalar import ScalarBackend, NUMPY_BACKEND


logger = logging.getLogger(__name__)


def _point_inertia(offset, backend: ScalarBackend):
    """Rotational inertia of a unit point mass at `offset`: |r|^2 I - r r^T."""
    return (
        backend.dot(offset, offset) * backend.eye(3)
        - backend.outer(offset, offset)
    )


def _point_inertia_rate(offset, offset_rate, backend: ScalarBackend):
    """Time derivative of _point_inertia for a moving offset."""
    return (
        2.0 * backend.dot(offset, offset_rate) * backend.eye(3)
        - backend.outer(offset_rate, offset)
        - backend.outer(offset, offset_rate)
    )


class CentroidalModel:
    """Mass, inertia and CoM offset of a quadruped for a given posture.

    Properties are a pure function of the joint configuration: calling
    set_joint_configuration twice with the same angles gives identical
    results. The model is constructed at parameters.default_joint_angles_rad.

    Args:
        parameters: Lumped mass description
        kinematics: Forward kinematics, used to place the leg masses at the feet
        backend: Scalar backend the model computes with
    """

    def __init__(
        self,
        parameters: CentroidalModelParameters,
        kinematics: KinematicsModel,
        backend: ScalarBackend = NUMPY_BACKEND,
    ):
        self._parameters = parameters
        self._kinematics = kinematics
        self._backend = backend

        self._trunk_mass = float(parameters.trunk_mass_kg)
        self._leg_mass = float(parameters.leg_mass_kg)
        self._trunk_inertia = backend.matrix(parameters.trunk_inertia_kg_m2)
        self._trunk_com = backend.vector(parameters.trunk_com_base_frame_m)

        # cached values for the current joint configuration
        self._joint_angles = None
        self._foot_positions = None
        self._com_position_base_frame = None
        self._rotational_inertia = None
        self._com_inertia = None
        self._total_mass = self._trunk_mass + NUM_FEET * self._leg_mass

        self.set_joint_configuration(parameters.default_joint_angles_rad)
        logger.debug(
            "CentroidalModel created: backend=%s, total_mass=%.3f kg",
            backend.name, self._total_mass
        )

    @property
    def parameters(self) -> CentroidalModelParameters:
        return self._parameters

    @property
    def backend(self) -> ScalarBackend:
        return self._backend

    @property
    def joint_angles(self):
        """Joint configuration the cached properties belong to."""
        return self._joint_angles

    def clone(self) -> 'CentroidalModel':
        """Return an independently owned copy at the same joint configuration."""
        model = CentroidalModel(
            self._parameters, self._kinematics.clone(), self._backend
        )
        model.set_joint_configuration(self._joint_angles)
        return model

    def set_joint_configuration(self, joint_angles) -> None:
        """Recompute CoM offset, inertia and mass for a posture.

        Args:
            joint_angles: Joint angles (12,), leg-major order

        Raises:
            ValueError: If joint_angles does not hold 12 finite values
        """
        b = self._backend
        validate_vector_size(b.size(joint_angles), JOINT_DIMENSION, 'joint_angles')
        if not b.is_symbolic:
            validate_finite(np.asarray(joint_angles, dtype=float), 'joint_angles')
        q = b.vector(joint_angles)

        foot_positions = [
            b.vector(self._kinematics.foot_position_base_frame(q, foot_index))
            for foot_index in range(NUM_FEET)
        ]

        weighted_positions = self._trunk_mass * self._trunk_com
        for foot_position in foot_positions:
            weighted_positions = weighted_positions + self._leg_mass * foot_position
        com_position = weighted_positions / self._total_mass

        # parallel-axis theorem about the whole-body CoM
        rotational_inertia = self._trunk_inertia + self._trunk_mass * _point_inertia(
            self._trunk_com - com_position, b
        )
        for foot_position in foot_positions:
            rotational_inertia = rotational_inertia + self._leg_mass * _point_inertia(
                foot_position - com_position, b
            )

        self._joint_angles = q
        self._foot_positions = foot_positions
        self._com_position_base_frame = com_position
        self._rotational_inertia = rotational_inertia
        self._com_inertia = b.block_diag(
            rotational_inertia, self._total_mass * b.eye(3)
        )

    def com_position_base_frame(self):
        """Base-to-CoM offset in the base frame (3,)."""
        return self._com_position_base_frame

    def total_mass(self):
        return self._total_mass

    def com_inertia(self):
        """6x6 spatial inertia about the CoM: blockdiag(rotational, mass * I3)."""
        return self._com_inertia

    def rotational_inertia(self):
        """Top-left 3x3 block of com_inertia()."""
        return self._com_inertia[0:3, 0:3]

    def com_inertia_inverse(self):
        """Closed-form inverse of com_inertia() using its uncoupled blocks."""
        b = self._backend
        return b.block_diag(
            b.inverse(self.rotational_inertia()),
            b.eye(3) / self._total_mass,
        )

    def com_velocity_base_frame(self, joint_velocities):
        """Velocity of the CoM relative to the base caused by joint motion (3,)."""
        b = self._backend
        validate_vector_size(
            b.size(joint_velocities), JOINT_DIMENSION, 'joint_velocities'
        )
        dq = b.vector(joint_velocities)

        com_velocity = b.zeros(3)
        for foot_index in range(NUM_FEET):
            com_velocity = com_velocity + self._leg_mass * self._foot_velocity(foot_index, dq)
        return com_velocity / self._total_mass

    def com_inertia_derivative(self, joint_velocities):
        """Time derivative of com_inertia() for the given joint velocities (6, 6).

        The translational block is zero since the total mass is constant.
        """
        b = self._backend
        com_velocity = self.com_velocity_base_frame(joint_velocities)
        dq = b.vector(joint_velocities)
        com_position = self._com_position_base_frame

        # the trunk CoM is fixed in the base frame and only moves relative to the CoM
        rotational_inertia_rate = self._trunk_mass * _point_inertia_rate(
            self._trunk_com - com_position, -com_velocity, b
        )
        for foot_index, foot_position in enumerate(self._foot_positions):
            rotational_inertia_rate = rotational_inertia_rate + self._leg_mass * _point_inertia_rate(
                foot_position - com_position,
                self._foot_velocity(foot_index, dq) - com_velocity,
                b,
            )

        return b.block_diag(rotational_inertia_rate, b.zeros(3, 3))

    def _foot_velocity(self, foot_index: int, dq):
        b = self._backend
        jacobian = b.matrix(
            self._kinematics.foot_jacobian_base_frame(self._joint_angles, foot_index)
        )
        return b.matmul(jacobian[3:6, :], dq)

    def calculate_base_pose(self, com_pose):
        """Base pose [euler_xyz, position] from the CoM pose."""
        b = self._backend
        com_pose = b.vector(com_pose)
        o_R_b = rotation_matrix_base_to_origin(com_pose[0:3], b)
        return b.vertcat(
            com_pose[0:3],
            com_pose[3:6] - b.matmul(o_R_b, self._com_position_base_frame),
        )

    def calculate_com_pose(self, base_pose):
        """CoM pose [euler_xyz, position] from the base pose."""
        b = self._backend
        base_pose = b.vector(base_pose)
        o_R_b = rotation_matrix_base_to_origin(base_pose[0:3], b)
        return b.vertcat(
            base_pose[0:3],
            base_pose[3:6] + b.matmul(o_R_b, self._com_position_base_frame),
        )

    def calculate_base_local_velocities(self, com_local_velocities):
        """Base local twist from the CoM local twist."""
        b = self._backend
        com_local_velocities = b.vector(com_local_velocities)
        com_to_base = -self._com_position_base_frame
        angular_velocity = com_local_velocities[0:3]
        return b.vertcat(
            angular_velocity,
            com_local_velocities[3:6] + b.cross(angular_velocity, com_to_base),
        )

    def calculate_com_local_velocities(self, base_local_velocities):
        """CoM local twist from the base local twist."""
        b = self._backend
        base_local_velocities = b.vector(base_local_velocities)
        base_to_com = self._com_position_base_frame
        angular_velocity = base_local_velocities[0:3]
        return b.vertcat(
            angular_velocity,
            base_local_velocities[3:6] + b.cross(angular_velocity, base_to_com),
        )

    def calculate_base_local_accelerations(self, com_local_accelerations, com_local_velocities):
        """Base local acceleration from the CoM local acceleration and twist."""
        return self._transport_acceleration(
            com_local_accelerations, com_local_velocities,
            -self._com_position_base_frame,
        )

    def calculate_com_local_accelerations(self, base_local_accelerations, base_local_velocities):
        """CoM local acceleration from the base local acceleration and twist."""
        return self._transport_acceleration(
            base_local_accelerations, base_local_velocities,
            self._com_position_base_frame,
        )

    def _transport_acceleration(self, accelerations, velocities, lever_arm):
        b = self._backend
        accelerations = b.vector(accelerations)
        velocities = b.vector(velocities)
        angular_velocity = velocities[0:3]
        angular_acceleration = accelerations[0:3]
        return b.vertcat(
            angular_acceleration,
            accelerations[3:6]
            + b.cross(angular_acceleration, lever_arm)
            + b.cross(angular_velocity, b.cross(angular_velocity, lever_arm)),
        )
