"""Linearization of the centroidal dynamics for a fixed stance configuration.

Provides A and B matrices for gradient-based trajectory optimization.
The symbolic instantiation of CentroidalDynamics (CASADI_BACKEND) is traced
once into CasADi Functions; CasADi automatic differentiation then gives
exact Jacobians.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import casadi as ca
import numpy as np

from centroidal_dynamics._internal.validation import validate_stance_legs
from centroidal_dynamics.dynamics import CentroidalDynamics
from centroidal_dynamics.parameters import (
    STATE_DIMENSION,
    INPUT_DIMENSION,
    JOINT_DIMENSION,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinearizedDynamics:
    """Linearized centroidal dynamics around a state/input point.

    Represents: dx/dt ≈ f(x0, u0) + A·(x - x0) + B·(u - u0)

    Attributes:
        state_matrix: A matrix (12, 12) - state Jacobian
        input_matrix: B matrix (12, 12) - contact force Jacobian
        state_derivative: f(x0, u0) (12,)
        linearization_state: x0 (12,)
        linearization_input: u0 (12,)
        stance_legs: Contact configuration the matrices belong to
    """
    state_matrix: np.ndarray
    input_matrix: np.ndarray
    state_derivative: np.ndarray
    linearization_state: np.ndarray
    linearization_input: np.ndarray
    stance_legs: tuple

    def __post_init__(self):
        """Validate matrix dimensions."""
        if self.state_matrix.shape != (STATE_DIMENSION, STATE_DIMENSION):
            raise ValueError(
                f"State matrix must be (12, 12), got {self.state_matrix.shape}"
            )
        if self.input_matrix.shape != (STATE_DIMENSION, INPUT_DIMENSION):
            raise ValueError(
                f"Input matrix must be (12, 12), got {self.input_matrix.shape}"
            )


def _require_symbolic(dynamics: CentroidalDynamics) -> None:
    if not dynamics.backend.is_symbolic:
        raise ValueError(
            "Linearization requires dynamics built on CASADI_BACKEND, "
            f"got {dynamics.backend!r}"
        )


def build_dynamics_function(
    dynamics: CentroidalDynamics,
    stance_legs: Sequence[bool],
) -> ca.Function:
    """Build a CasADi Function for the dynamics in one contact mode.

    The function maps (t, x, u, q, dq) to (dxdt, M, M_inverse, C, G).

    Args:
        dynamics: CentroidalDynamics built with CASADI_BACKEND
        stance_legs: Contact configuration, fixed for the function

    Returns:
        CasADi Function 'centroidal_dynamics'

    Raises:
        ValueError: If dynamics is not symbolic or stance_legs is malformed
    """
    _require_symbolic(dynamics)
    stance_legs = validate_stance_legs(stance_legs)

    # Create symbolic variables
    time = ca.SX.sym('t')
    state = ca.SX.sym('state', STATE_DIMENSION)
    contact_forces = ca.SX.sym('contact_forces', INPUT_DIMENSION)
    joint_angles = ca.SX.sym('joint_angles', JOINT_DIMENSION)
    joint_velocities = ca.SX.sym('joint_velocities', JOINT_DIMENSION)

    # Work on a clone so the caller's per-step data is left untouched
    evaluation = dynamics.clone().evaluate(
        time, state, contact_forces, stance_legs, joint_angles, joint_velocities
    )

    logger.debug("Built centroidal dynamics function for stance %s", stance_legs)
    return ca.Function(
        'centroidal_dynamics',
        [time, state, contact_forces, joint_angles, joint_velocities],
        [
            evaluation.state_derivative,
            evaluation.inertia_matrix,
            evaluation.inertia_matrix_inverse,
            evaluation.coriolis_vector,
            evaluation.gravity_vector,
        ],
        ['t', 'state', 'contact_forces', 'joint_angles', 'joint_velocities'],
        ['state_derivative', 'M', 'M_inverse', 'C', 'G'],
    )


def build_jacobian_functions(
    dynamics: CentroidalDynamics,
    stance_legs: Sequence[bool],
    dynamics_function: Optional[ca.Function] = None,
) -> tuple:
    """Build reusable CasADi Functions for the state and input Jacobians.

    Builds the symbolic Jacobians once; evaluating them at different points
    is then purely numerical.

    Args:
        dynamics: CentroidalDynamics built with CASADI_BACKEND
        stance_legs: Contact configuration, fixed for the functions
        dynamics_function: Optional pre-built result of
            build_dynamics_function() for the same stance, traced instead
            of building a new one

    Returns:
        Tuple of (jacobian_state_fn, jacobian_input_fn), each mapping
        (state, contact_forces, joint_angles, joint_velocities) to a 12x12 matrix
    """
    if dynamics_function is None:
        dynamics_function = build_dynamics_function(dynamics, stance_legs)

    state = ca.SX.sym('state', STATE_DIMENSION)
    contact_forces = ca.SX.sym('contact_forces', INPUT_DIMENSION)
    joint_angles = ca.SX.sym('joint_angles', JOINT_DIMENSION)
    joint_velocities = ca.SX.sym('joint_velocities', JOINT_DIMENSION)

    state_derivative = dynamics_function(
        0.0, state, contact_forces, joint_angles, joint_velocities
    )[0]

    arguments = [state, contact_forces, joint_angles, joint_velocities]
    jacobian_state_fn = ca.Function(
        'jacobian_state', arguments, [ca.jacobian(state_derivative, state)]
    )
    jacobian_input_fn = ca.Function(
        'jacobian_input', arguments, [ca.jacobian(state_derivative, contact_forces)]
    )

    return (jacobian_state_fn, jacobian_input_fn)


def linearize_at_state(
    dynamics: CentroidalDynamics,
    stance_legs: Sequence[bool],
    state: np.ndarray,
    contact_forces: np.ndarray,
    joint_angles: np.ndarray,
    joint_velocities: np.ndarray,
    jacobian_functions: Optional[tuple] = None,
    dynamics_function: Optional[ca.Function] = None,
) -> LinearizedDynamics:
    """Compute A, B matrices of the centroidal dynamics around any point.

    Args:
        dynamics: CentroidalDynamics built with CASADI_BACKEND
        stance_legs: Contact configuration
        state: Linearization state (12,)
        contact_forces: Linearization input (12,)
        joint_angles: Joint angles (12,)
        joint_velocities: Joint velocities (12,)
        jacobian_functions: Optional pre-built result of
            build_jacobian_functions() for the same stance
        dynamics_function: Optional pre-built result of
            build_dynamics_function() for the same stance

    Returns:
        LinearizedDynamics object containing A, B matrices
    """
    if dynamics_function is None:
        dynamics_function = build_dynamics_function(dynamics, stance_legs)
    if jacobian_functions is None:
        jacobian_functions = build_jacobian_functions(
            dynamics, stance_legs, dynamics_function=dynamics_function
        )
    jacobian_state_fn, jacobian_input_fn = jacobian_functions

    state = np.array(state, dtype=float).reshape(-1)
    contact_forces = np.array(contact_forces, dtype=float).reshape(-1)
    joint_angles = np.array(joint_angles, dtype=float).reshape(-1)
    joint_velocities = np.array(joint_velocities, dtype=float).reshape(-1)
    arguments = (state, contact_forces, joint_angles, joint_velocities)

    state_matrix = np.array(jacobian_state_fn(*arguments))
    input_matrix = np.array(jacobian_input_fn(*arguments))
    state_derivative = np.array(dynamics_function(0.0, *arguments)[0]).flatten()

    return LinearizedDynamics(
        state_matrix=state_matrix,
        input_matrix=input_matrix,
        state_derivative=state_derivative,
        linearization_state=state,
        linearization_input=contact_forces,
        stance_legs=validate_stance_legs(stance_legs),
    )
