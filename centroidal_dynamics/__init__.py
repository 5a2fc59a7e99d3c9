"""Centroidal rigid-body dynamics of a legged robot trunk.

The same formulas evaluate with NumPy (fast forward simulation) or CasADi SX
(exact Jacobians for gradient-based trajectory optimization).

Public API:
    - CentroidalModelParameters: Lumped mass description dataclass
    - DynamicsConfig, IntegratorConfig: Configuration dataclasses
    - NUMPY_BACKEND, CASADI_BACKEND: Scalar backends
    - KinematicsModel: Interface of the injected forward kinematics
    - CentroidalModel: Mass, inertia, CoM offset and frame conversions
    - CentroidalDynamics: Switched centroidal state derivative
    - DynamicsEvaluation: Derivative bundled with M, M^-1, C, G
    - GenericFlowMapAdapter: Integrable wrapper around (t, x) -> dxdt
    - make_controlled_flow_map: Bind a controlled system and an input policy
    - FlowMapIntegrator, IntegrationResult, rk4_step: Numerical integration
    - build_dynamics_function, build_jacobian_functions, linearize_at_state,
      LinearizedDynamics: CasADi functions and linearization
"""

from centroidal_dynamics.parameters import CentroidalModelParameters
from centroidal_dynamics.config import DynamicsConfig, IntegratorConfig
from centroidal_dynamics.scalar import NUMPY_BACKEND, CASADI_BACKEND
from centroidal_dynamics.kinematics import KinematicsModel
from centroidal_dynamics.centroidal_model import CentroidalModel
from centroidal_dynamics.dynamics import (
    CentroidalDynamics,
    ControlledSystem,
    DynamicsEvaluation,
)
from centroidal_dynamics.flow_map import (
    GenericFlowMapAdapter,
    make_controlled_flow_map,
)
from centroidal_dynamics.integration import (
    FlowMapIntegrator,
    IntegrationResult,
    rk4_step,
)
from centroidal_dynamics.linearization import (
    LinearizedDynamics,
    build_dynamics_function,
    build_jacobian_functions,
    linearize_at_state,
)

__all__ = [
    'CentroidalModelParameters',
    'DynamicsConfig',
    'IntegratorConfig',
    'NUMPY_BACKEND',
    'CASADI_BACKEND',
    'KinematicsModel',
    'CentroidalModel',
    'CentroidalDynamics',
    'ControlledSystem',
    'DynamicsEvaluation',
    'GenericFlowMapAdapter',
    'make_controlled_flow_map',
    'FlowMapIntegrator',
    'IntegrationResult',
    'rk4_step',
    'LinearizedDynamics',
    'build_dynamics_function',
    'build_jacobian_functions',
    'linearize_at_state',
]
