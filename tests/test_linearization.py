"""Tests for linearization module.

Jacobians from CasADi automatic differentiation are checked against
central finite differences of the NumPy dynamics.
"""

import casadi as ca
import numpy as np
import pytest

from centroidal_dynamics import linearization
from centroidal_dynamics import (
    LinearizedDynamics,
    build_dynamics_function,
    build_jacobian_functions,
    linearize_at_state,
)


STANCE = (True, True, False, True)


@pytest.fixture
def operating_point(centroidal_state, joint_state, rng):
    joint_angles, joint_velocities = joint_state
    forces = np.tile([0.0, 0.0, 90.0], 4) + 10.0 * rng.standard_normal(12)
    return centroidal_state, forces, joint_angles, joint_velocities


def _finite_difference_jacobian(function, point, step=1e-6):
    columns = []
    for i in range(point.size):
        offset = np.zeros(point.size)
        offset[i] = step
        columns.append((function(point + offset) - function(point - offset)) / (2 * step))
    return np.column_stack(columns)


def test_matrix_shapes(symbolic_dynamics, operating_point):
    linear_sys = linearize_at_state(symbolic_dynamics, STANCE, *operating_point)

    assert linear_sys.state_matrix.shape == (12, 12)
    assert linear_sys.input_matrix.shape == (12, 12)
    assert linear_sys.stance_legs == STANCE


def test_state_jacobian_matches_finite_differences(dynamics, symbolic_dynamics, operating_point):
    state, forces, joint_angles, joint_velocities = operating_point
    linear_sys = linearize_at_state(symbolic_dynamics, STANCE, *operating_point)

    dynamics.set_data(STANCE, joint_angles, joint_velocities)
    numeric_jacobian = _finite_difference_jacobian(
        lambda x: dynamics.compute_derivative(0.0, x, forces), state
    )

    np.testing.assert_allclose(linear_sys.state_matrix, numeric_jacobian, rtol=1e-5, atol=1e-5)


def test_input_jacobian_matches_finite_differences(dynamics, symbolic_dynamics, operating_point):
    state, forces, joint_angles, joint_velocities = operating_point
    linear_sys = linearize_at_state(symbolic_dynamics, STANCE, *operating_point)

    dynamics.set_data(STANCE, joint_angles, joint_velocities)
    numeric_jacobian = _finite_difference_jacobian(
        lambda u: dynamics.compute_derivative(0.0, state, u), forces
    )

    np.testing.assert_allclose(linear_sys.input_matrix, numeric_jacobian, rtol=1e-6, atol=1e-6)


def test_swing_foot_columns_are_zero(symbolic_dynamics, operating_point):
    """Forces at the swing foot (LH) have no effect."""
    linear_sys = linearize_at_state(symbolic_dynamics, STANCE, *operating_point)

    np.testing.assert_array_equal(linear_sys.input_matrix[:, 6:9], np.zeros((12, 3)))
    assert np.linalg.norm(linear_sys.input_matrix[:, 0:3]) > 0


def test_state_derivative_matches_numeric(dynamics, symbolic_dynamics, operating_point):
    state, forces, joint_angles, joint_velocities = operating_point
    linear_sys = linearize_at_state(symbolic_dynamics, STANCE, *operating_point)
    evaluation = dynamics.evaluate(0.0, state, forces, STANCE, joint_angles, joint_velocities)

    np.testing.assert_allclose(linear_sys.state_derivative, evaluation.state_derivative, rtol=1e-10, atol=1e-10)
    np.testing.assert_array_equal(linear_sys.linearization_state, state)
    np.testing.assert_array_equal(linear_sys.linearization_input, forces)


def test_small_perturbation_linear_approximation(dynamics, symbolic_dynamics, operating_point, rng):
    """Linearization approximates the nonlinear dynamics near the operating point."""
    state, forces, joint_angles, joint_velocities = operating_point
    linear_sys = linearize_at_state(symbolic_dynamics, STANCE, *operating_point)

    delta_state = 1e-4 * rng.standard_normal(12)
    delta_forces = 1e-2 * rng.standard_normal(12)
    dynamics.set_data(STANCE, joint_angles, joint_velocities)
    nonlinear = dynamics.compute_derivative(0.0, state + delta_state, forces + delta_forces)
    linear = (
        linear_sys.state_derivative
        + linear_sys.state_matrix @ delta_state
        + linear_sys.input_matrix @ delta_forces
    )

    np.testing.assert_allclose(nonlinear, linear, atol=1e-6)


def test_prebuilt_functions_are_reused(symbolic_dynamics, operating_point):
    jacobian_functions = build_jacobian_functions(symbolic_dynamics, STANCE)
    dynamics_function = build_dynamics_function(symbolic_dynamics, STANCE)

    reused = linearize_at_state(
        symbolic_dynamics, STANCE, *operating_point,
        jacobian_functions=jacobian_functions,
        dynamics_function=dynamics_function,
    )
    fresh = linearize_at_state(symbolic_dynamics, STANCE, *operating_point)

    np.testing.assert_allclose(reused.state_matrix, fresh.state_matrix, atol=1e-14)
    np.testing.assert_allclose(reused.input_matrix, fresh.input_matrix, atol=1e-14)


def test_linearization_traces_dynamics_once(symbolic_dynamics, operating_point, monkeypatch):
    built = []

    def counting_build(dynamics, stance_legs):
        built.append(stance_legs)
        return build_dynamics_function(dynamics, stance_legs)

    monkeypatch.setattr(linearization, 'build_dynamics_function', counting_build)
    linearize_at_state(symbolic_dynamics, STANCE, *operating_point)

    assert len(built) == 1


def test_jacobians_from_given_dynamics_function(symbolic_dynamics, operating_point):
    dynamics_function = build_dynamics_function(symbolic_dynamics, STANCE)
    shared = build_jacobian_functions(symbolic_dynamics, STANCE, dynamics_function=dynamics_function)
    own = build_jacobian_functions(symbolic_dynamics, STANCE)
    state, forces, joint_angles, joint_velocities = operating_point

    for shared_fn, own_fn in zip(shared, own):
        np.testing.assert_allclose(
            np.array(shared_fn(state, forces, joint_angles, joint_velocities)),
            np.array(own_fn(state, forces, joint_angles, joint_velocities)),
            atol=1e-14,
        )


def test_jacobian_functions_signature(symbolic_dynamics):
    jacobian_state_fn, jacobian_input_fn = build_jacobian_functions(symbolic_dynamics, STANCE)

    assert isinstance(jacobian_state_fn, ca.Function)
    assert jacobian_state_fn.n_in() == 4
    assert jacobian_input_fn.size_out(0) == (12, 12)


def test_dynamics_function_outputs(symbolic_dynamics):
    dynamics_function = build_dynamics_function(symbolic_dynamics, STANCE)

    assert dynamics_function.name() == 'centroidal_dynamics'
    assert dynamics_function.n_in() == 5
    assert dynamics_function.name_out() == ['state_derivative', 'M', 'M_inverse', 'C', 'G']


def test_building_functions_leaves_step_data_untouched(symbolic_dynamics, joint_state):
    joint_angles, joint_velocities = joint_state
    symbolic_dynamics.set_data((False, False, False, False), joint_angles, joint_velocities)

    build_dynamics_function(symbolic_dynamics, STANCE)

    state = ca.SX.sym('x', 12)
    symbolic_dynamics.compute_derivative(0.0, state, np.zeros(12))
    assert symbolic_dynamics.stance_legs() == (False, False, False, False)


def test_numeric_dynamics_rejected(dynamics, operating_point):
    with pytest.raises(ValueError, match='CASADI_BACKEND'):
        build_dynamics_function(dynamics, STANCE)
    with pytest.raises(ValueError, match='CASADI_BACKEND'):
        linearize_at_state(dynamics, STANCE, *operating_point)


def test_invalid_stance_rejected(symbolic_dynamics):
    with pytest.raises(ValueError, match='exactly 4 entries'):
        build_dynamics_function(symbolic_dynamics, (True, True))


def test_linearized_dynamics_validates_shapes():
    with pytest.raises(ValueError, match='State matrix must be'):
        LinearizedDynamics(
            state_matrix=np.zeros((6, 6)),
            input_matrix=np.zeros((12, 12)),
            state_derivative=np.zeros(12),
            linearization_state=np.zeros(12),
            linearization_input=np.zeros(12),
            stance_legs=STANCE,
        )
