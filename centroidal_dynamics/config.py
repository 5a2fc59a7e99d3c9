"""Dynamics and integrator configuration parameters.

Single source of truth for settings that are not part of the robot
description. See config/quadruped_params.yaml for parameter values.
"""

from dataclasses import dataclass

import numpy as np
import yaml

from centroidal_dynamics._internal.validation import validate_positive


SUPPORTED_INTEGRATION_METHODS = ('RK45', 'RK23', 'DOP853', 'Radau', 'BDF', 'LSODA')


@dataclass(frozen=True)
class DynamicsConfig:
    """Configuration for CentroidalDynamics.

    Attributes:
        gravity_mps2: Magnitude of gravitational acceleration, acting along -z
            of the origin frame
        constrained_integration: Solver interface flag; stored and exposed
            but has no effect on the dynamics
    """

    gravity_mps2: float = 9.81
    constrained_integration: bool = True

    def __post_init__(self) -> None:
        """Validate parameters satisfy constraints."""
        validate_positive(self.gravity_mps2, 'gravity_mps2')

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'DynamicsConfig':
        """Load configuration from the `dynamics` section of a YAML file.

        Raises:
            FileNotFoundError: If YAML file does not exist
            ValueError: If parameters are invalid
        """
        with open(yaml_path, 'r') as file:
            config = yaml.safe_load(file)

        return cls(**config.get('dynamics', {}))


@dataclass(frozen=True)
class IntegratorConfig:
    """Configuration for FlowMapIntegrator.

    Attributes:
        method: scipy.integrate.solve_ivp method name
        relative_tolerance: rtol passed to solve_ivp
        absolute_tolerance: atol passed to solve_ivp
        max_step_s: Largest step the integrator may take
    """

    method: str = 'RK45'
    relative_tolerance: float = 1e-6
    absolute_tolerance: float = 1e-9
    max_step_s: float = np.inf

    def __post_init__(self) -> None:
        """Validate parameters satisfy constraints."""
        if self.method not in SUPPORTED_INTEGRATION_METHODS:
            raise ValueError(
                f"method must be one of {SUPPORTED_INTEGRATION_METHODS}, "
                f"got {self.method!r}"
            )
        validate_positive(self.relative_tolerance, 'relative_tolerance')
        validate_positive(self.absolute_tolerance, 'absolute_tolerance')
        # np.inf means no limit
        if np.isnan(self.max_step_s) or self.max_step_s <= 0:
            raise ValueError(
                f"max_step_s must be positive, got {self.max_step_s}"
            )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'IntegratorConfig':
        """Load configuration from the `integrator` section of a YAML file.

        Raises:
            FileNotFoundError: If YAML file does not exist
            ValueError: If parameters are invalid
        """
        with open(yaml_path, 'r') as file:
            config = yaml.safe_load(file)

        section = dict(config.get('integrator', {}))
        if 'max_step_s' in section:
            section['max_step_s'] = float(section['max_step_s'])
        return cls(**section)
