"""Switched centroidal dynamics of a quadruped trunk.

State x (12): base orientation w.r.t. the origin frame (XYZ Euler angles),
CoM position in the origin frame, CoM local angular and linear velocity in
the CoM frame (parallel to the base frame, located at the CoM).

Input u (12): contact forces of the feet LF, RF, LH, RH in the CoM frame.

Derivative dxdt (12): Euler angle rates, CoM linear velocity in the origin
frame, CoM angular and linear acceleration in the CoM frame, from

    M · a = Σ_stance J_i · λ_i − C − G

where only feet in stance contribute a contact Jacobian J_i. Every formula
is evaluated with the scalar backend of the CentroidalModel, so the same
code yields NumPy values or CasADi expressions.
"""

import logging
from dataclasses import dataclass
from typing import Protocol, Tuple, Any, Optional

import numpy as np

from centroidal_dynamics._internal.validation import (
    validate_positive,
    validate_vector_size,
    validate_finite,
    validate_stance_legs,
)
from centroidal_dynamics.centroidal_model import CentroidalModel
from centroidal_dynamics.config import DynamicsConfig
from centroidal_dynamics.kinematics import KinematicsModel
from centroidal_dynamics.parameters import (
    STATE_DIMENSION,
    INPUT_DIMENSION,
    JOINT_DIMENSION,
    NUM_FEET,
    ORIENTATION_SLICE,
    ANGULAR_VELOCITY_SLICE,
    LINEAR_VELOCITY_SLICE,
)
from centroidal_dynamics.rotations import (
    rotation_matrix_base_to_origin,
    angular_velocities_to_euler_angle_derivatives_matrix,
    skew_matrix,
)


logger = logging.getLogger(__name__)


class ControlledSystem(Protocol):
    """Anything that maps (time, state, input) to a state derivative."""

    def compute_derivative(self, t: float, x: Any, u: Any) -> Any: ...


@dataclass(frozen=True)
class DynamicsEvaluation:
    """Result of one centroidal dynamics evaluation.

    Attributes:
        state_derivative: dxdt (12,)
        inertia_matrix: M (6, 6)
        inertia_matrix_inverse: M^-1 (6, 6)
        inertia_matrix_derivative: dM/dt (6, 6)
        coriolis_vector: C, Coriolis and centrifugal terms (6,)
        gravity_vector: G, gravity effect in the CoM frame (6,)
        stance_legs: Contact flags the evaluation used
        feet_positions: Base-to-foot positions in the base frame, all four feet
    """
    state_derivative: Any
    inertia_matrix: Any
    inertia_matrix_inverse: Any
    inertia_matrix_derivative: Any
    coriolis_vector: Any
    gravity_vector: Any
    stance_legs: Tuple[bool, bool, bool, bool]
    feet_positions: Tuple[Any, ...]


class CentroidalDynamics:
    """Centroidal dynamics for contact forces at the stance feet.

    Usage per integration step:

        dynamics.set_data(stance_legs, joint_angles, joint_velocities)
        dxdt = dynamics.compute_derivative(t, x, u)
        M, C = dynamics.inertia_matrix(), dynamics.coriolis_vector()

    or in one call with evaluate(), which returns a DynamicsEvaluation.

    Args:
        kinematics: Forward kinematics (cloned, the instance owns its copy)
        com_model: Centroidal model (cloned, the instance owns its copy)
        gravitational_acceleration: Gravity magnitude, must be strictly positive
        constrained_integration: Stored and exposed only; has no effect

    Raises:
        ValueError: If gravitational_acceleration <= 0
    """

    def __init__(
        self,
        kinematics: KinematicsModel,
        com_model: CentroidalModel,
        gravitational_acceleration: float = 9.81,
        constrained_integration: bool = True,
    ):
        validate_positive(gravitational_acceleration, 'gravitational_acceleration')

        self._kinematics = kinematics.clone()
        self._com_model = com_model.clone()
        self._backend = self._com_model.backend
        self._gravitational_acceleration = float(gravitational_acceleration)
        self._o_gravity_vector = self._backend.vector(
            [0.0, 0.0, -self._gravitational_acceleration]
        )
        self._constrained_integration = bool(constrained_integration)

        # per-step data, valid until the next set_data() call
        self._stance_legs: Optional[Tuple[bool, ...]] = None
        self._joint_angles = None
        self._joint_velocities = None

        self._last_evaluation: Optional[DynamicsEvaluation] = None

        logger.debug(
            "CentroidalDynamics created: backend=%s, gravity=%.4f m/s^2",
            self._backend.name, self._gravitational_acceleration
        )

    @classmethod
    def from_config(
        cls,
        kinematics: KinematicsModel,
        com_model: CentroidalModel,
        config: DynamicsConfig,
    ) -> 'CentroidalDynamics':
        return cls(
            kinematics,
            com_model,
            gravitational_acceleration=config.gravity_mps2,
            constrained_integration=config.constrained_integration,
        )

    @property
    def backend(self):
        return self._backend

    @property
    def com_model(self) -> CentroidalModel:
        return self._com_model

    @property
    def gravitational_acceleration(self) -> float:
        return self._gravitational_acceleration

    @property
    def constrained_integration(self) -> bool:
        return self._constrained_integration

    def clone(self) -> 'CentroidalDynamics':
        """Independent copy with the same step data and no cached evaluation."""
        dynamics = CentroidalDynamics(
            self._kinematics,
            self._com_model,
            self._gravitational_acceleration,
            self._constrained_integration,
        )
        if self._stance_legs is not None:
            dynamics.set_data(
                self._stance_legs,
                _copy_value(self._joint_angles),
                _copy_value(self._joint_velocities),
            )
        return dynamics

    def set_data(self, stance_legs, joint_angles, joint_velocities) -> None:
        """Set stance configuration and joint state for the next evaluations.

        Args:
            stance_legs: Four contact flags (LF, RF, LH, RH)
            joint_angles: Joint angles (12,)
            joint_velocities: Joint velocities (12,)

        Raises:
            ValueError: If any argument has the wrong number of entries or
                contains non-finite values
        """
        b = self._backend
        stance_legs = validate_stance_legs(stance_legs)
        validate_vector_size(b.size(joint_velocities), JOINT_DIMENSION, 'joint_velocities')
        if not b.is_symbolic:
            validate_finite(np.asarray(joint_velocities, dtype=float), 'joint_velocities')

        self._com_model.set_joint_configuration(joint_angles)

        self._stance_legs = stance_legs
        self._joint_angles = self._com_model.joint_angles
        self._joint_velocities = b.vector(joint_velocities)

    def compute_derivative(self, t, x, u):
        """Centroidal state derivative for the data given to set_data().

        Euler angle rates are singular at pitch = +/- 90 degrees (gimbal
        lock); the result is then non-finite and is returned as is.

        Args:
            t: Time (unused, the dynamics are time invariant)
            x: Centroidal state (12,)
            u: Contact forces in the CoM frame (12,)

        Returns:
            State derivative (12,)

        Raises:
            RuntimeError: If set_data() has not been called
            ValueError: If x or u has the wrong number of entries
        """
        if self._stance_legs is None:
            raise RuntimeError("set_data() must be called before compute_derivative()")

        b = self._backend
        validate_vector_size(b.size(x), STATE_DIMENSION, 'state')
        validate_vector_size(b.size(u), INPUT_DIMENSION, 'contact_forces')
        if not b.is_symbolic:
            validate_finite(np.asarray(x, dtype=float), 'state')
            validate_finite(np.asarray(u, dtype=float), 'contact_forces')

        x = b.vector(x)
        u = b.vector(u)
        model = self._com_model

        euler_angles = x[ORIENTATION_SLICE]
        com_W_com = x[ANGULAR_VELOCITY_SLICE]
        com_V_com = x[LINEAR_VELOCITY_SLICE]

        # Rotation matrix from Base frame (parallel to the CoM frame) to Origin frame
        o_R_b = rotation_matrix_base_to_origin(euler_angles, b)
        com_base2CoM = model.com_position_base_frame()

        feet_positions = tuple(
            b.vector(self._kinematics.foot_position_base_frame(self._joint_angles, foot_index))
            for foot_index in range(NUM_FEET)
        )

        # Inertia matrix in the CoM frame and its derivative
        M = model.com_inertia()
        MInverse = model.com_inertia_inverse()
        dMdt = model.com_inertia_derivative(self._joint_velocities)

        # Coriolis and centrifugal forces
        rotational_inertia = model.rotational_inertia()
        C = b.vertcat(
            b.cross(com_W_com, b.matmul(rotational_inertia, com_W_com))
            + b.matmul(dMdt[0:3, 0:3], com_W_com),
            b.zeros(3),
        )

        # gravity effect on CoM in CoM coordinates
        G = b.vertcat(
            b.zeros(3),
            -model.total_mass() * b.matmul(o_R_b.T, self._o_gravity_vector),
        )

        # sum of J_i^T lambda_i over stance feet
        contact_wrench = b.zeros(6)
        for foot_index, in_contact in enumerate(self._stance_legs):
            if not in_contact:
                continue
            jacobian = self._contact_jacobian(feet_positions[foot_index] - com_base2CoM)
            contact_wrench = contact_wrench + b.matmul(
                jacobian, u[3 * foot_index:3 * foot_index + 3]
            )

        acceleration = b.matmul(MInverse, contact_wrench - C - G)

        transform_ang_vel_to_euler_rates = angular_velocities_to_euler_angle_derivatives_matrix(
            euler_angles, b
        )
        state_derivative = b.vertcat(
            b.matmul(transform_ang_vel_to_euler_rates, com_W_com),
            b.matmul(o_R_b, com_V_com),
            acceleration,
        )

        self._last_evaluation = DynamicsEvaluation(
            state_derivative=state_derivative,
            inertia_matrix=M,
            inertia_matrix_inverse=MInverse,
            inertia_matrix_derivative=dMdt,
            coriolis_vector=C,
            gravity_vector=G,
            stance_legs=self._stance_legs,
            feet_positions=feet_positions,
        )
        return state_derivative

    def evaluate(self, t, x, u, stance_legs, joint_angles, joint_velocities) -> DynamicsEvaluation:
        """Set the step data and evaluate the dynamics in one call."""
        self.set_data(stance_legs, joint_angles, joint_velocities)
        self.compute_derivative(t, x, u)
        return self._last_evaluation

    def _contact_jacobian(self, com_to_foot):
        """Map from a foot contact force to the CoM wrench [torque; force] (6, 3)."""
        b = self._backend
        return b.vstack(skew_matrix(com_to_foot, b), b.eye(3))

    @property
    def last_evaluation(self) -> DynamicsEvaluation:
        """Most recent evaluation.

        Raises:
            RuntimeError: If compute_derivative() has not been called yet
        """
        if self._last_evaluation is None:
            raise RuntimeError(
                "Dynamics quantities are only available after compute_derivative()"
            )
        return self._last_evaluation

    def stance_legs(self) -> Tuple[bool, ...]:
        return self.last_evaluation.stance_legs

    def feet_positions(self) -> Tuple[Any, ...]:
        return self.last_evaluation.feet_positions

    def inertia_matrix(self):
        """M of the most recent evaluation."""
        return self.last_evaluation.inertia_matrix

    def inertia_matrix_inverse(self):
        """M^-1 of the most recent evaluation."""
        return self.last_evaluation.inertia_matrix_inverse

    def coriolis_vector(self):
        """C of the most recent evaluation."""
        return self.last_evaluation.coriolis_vector

    def gravity_vector(self):
        """G of the most recent evaluation."""
        return self.last_evaluation.gravity_vector


def _copy_value(value):
    # CasADi expressions are immutable; NumPy arrays are not
    if isinstance(value, np.ndarray):
        return value.copy()
    return value
