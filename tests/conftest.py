"""Shared fixtures for the centroidal dynamics tests.

Provides a small quadruped kinematics model written over the scalar
backends, so the same robot can be instantiated for NumPy and CasADi.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from centroidal_dynamics import (
    CentroidalModelParameters,
    CentroidalModel,
    CentroidalDynamics,
    DynamicsConfig,
    NUMPY_BACKEND,
    CASADI_BACKEND,
)


CONFIG_PATH = Path(__file__).resolve().parent.parent / 'config' / 'quadruped_params.yaml'

# LF, RF, LH, RH hip positions in the base frame
HIP_OFFSETS_M = (
    (0.3, 0.2, 0.0),
    (0.3, -0.2, 0.0),
    (-0.3, 0.2, 0.0),
    (-0.3, -0.2, 0.0),
)


class QuadrupedTestKinematics:
    """Three-joint legs: hip abduction about x, hip and knee flexion about y.

    Foot position of a leg with joints (haa, hfe, kfe):
        sagittal x = l1 sin(hfe) + l2 sin(hfe + kfe)
        sagittal z = -(l1 cos(hfe) + l2 cos(hfe + kfe))
    rotated about the x axis by haa and shifted by the hip offset.
    """

    def __init__(self, backend=NUMPY_BACKEND, thigh_length_m=0.25, shank_length_m=0.25):
        self.backend = backend
        self.thigh_length_m = thigh_length_m
        self.shank_length_m = shank_length_m

    def clone(self):
        return QuadrupedTestKinematics(
            self.backend, self.thigh_length_m, self.shank_length_m
        )

    def _leg_terms(self, joint_angles, foot_index):
        b = self.backend
        haa = joint_angles[3 * foot_index]
        hfe = joint_angles[3 * foot_index + 1]
        kfe = joint_angles[3 * foot_index + 2]
        l1, l2 = self.thigh_length_m, self.shank_length_m

        sagittal_x = l1 * b.sin(hfe) + l2 * b.sin(hfe + kfe)
        sagittal_z = -(l1 * b.cos(hfe) + l2 * b.cos(hfe + kfe))
        return haa, hfe, kfe, sagittal_x, sagittal_z

    def foot_position_base_frame(self, joint_angles, foot_index):
        b = self.backend
        haa, _, _, sagittal_x, sagittal_z = self._leg_terms(joint_angles, foot_index)
        hip = HIP_OFFSETS_M[foot_index]
        return b.vector([
            hip[0] + sagittal_x,
            hip[1] - b.sin(haa) * sagittal_z,
            hip[2] + b.cos(haa) * sagittal_z,
        ])

    def foot_jacobian_base_frame(self, joint_angles, foot_index):
        b = self.backend
        haa, hfe, kfe, _, sagittal_z = self._leg_terms(joint_angles, foot_index)
        l1, l2 = self.thigh_length_m, self.shank_length_m
        c_haa, s_haa = b.cos(haa), b.sin(haa)

        dx_dhfe = l1 * b.cos(hfe) + l2 * b.cos(hfe + kfe)
        dz_dhfe = l1 * b.sin(hfe) + l2 * b.sin(hfe + kfe)
        dx_dkfe = l2 * b.cos(hfe + kfe)
        dz_dkfe = l2 * b.sin(hfe + kfe)

        leg_block = b.from_rows([
            # angular: haa axis, then flexion axis rotated by haa
            [1.0, 0.0, 0.0],
            [0.0, c_haa, c_haa],
            [0.0, s_haa, s_haa],
            # linear
            [0.0, dx_dhfe, dx_dkfe],
            [-c_haa * sagittal_z, -s_haa * dz_dhfe, -s_haa * dz_dkfe],
            [-s_haa * sagittal_z, c_haa * dz_dhfe, c_haa * dz_dkfe],
        ])

        jacobian = b.zeros(6, 12)
        jacobian[:, 3 * foot_index:3 * foot_index + 3] = leg_block
        return jacobian


@pytest.fixture
def config_path():
    return str(CONFIG_PATH)


@pytest.fixture
def params(config_path):
    """Load the centroidal model parameters from YAML."""
    return CentroidalModelParameters.from_yaml(config_path)


@pytest.fixture
def dynamics_config(config_path):
    return DynamicsConfig.from_yaml(config_path)


@pytest.fixture
def kinematics():
    return QuadrupedTestKinematics(NUMPY_BACKEND)


@pytest.fixture
def symbolic_kinematics():
    return QuadrupedTestKinematics(CASADI_BACKEND)


@pytest.fixture
def com_model(params, kinematics):
    return CentroidalModel(params, kinematics, NUMPY_BACKEND)


@pytest.fixture
def symbolic_com_model(params, symbolic_kinematics):
    return CentroidalModel(params, symbolic_kinematics, CASADI_BACKEND)


@pytest.fixture
def dynamics(kinematics, com_model, dynamics_config):
    return CentroidalDynamics.from_config(kinematics, com_model, dynamics_config)


@pytest.fixture
def symbolic_dynamics(symbolic_kinematics, symbolic_com_model, dynamics_config):
    return CentroidalDynamics.from_config(
        symbolic_kinematics, symbolic_com_model, dynamics_config
    )


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def joint_state(params, rng):
    """Joint angles near the default posture and small joint velocities."""
    joint_angles = np.asarray(params.default_joint_angles_rad) + 0.1 * rng.standard_normal(12)
    joint_velocities = 0.5 * rng.standard_normal(12)
    return joint_angles, joint_velocities


@pytest.fixture
def centroidal_state(rng):
    """Generic state away from the Euler singularity."""
    state = np.zeros(12)
    state[0:3] = [0.1, -0.2, 0.3]
    state[3:6] = [0.5, -0.1, 0.45]
    state[6:12] = 0.4 * rng.standard_normal(6)
    return state
