"""Mass-distribution parameters for the centroidal model of a quadruped.

Single source of truth for the robot description consumed by CentroidalModel.
See config/quadruped_params.yaml for an example parameter file.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
import yaml

from centroidal_dynamics._internal.validation import (
    validate_positive,
    validate_non_negative,
    validate_vector_size,
    validate_finite,
    validate_symmetric_positive_definite,
)


# Module-level constants for state/input dimensions
STATE_DIMENSION = 12  # [euler_xyz, com_position, local_angular_vel, local_linear_vel]
INPUT_DIMENSION = 12  # 3 contact force components per foot, CoM frame
JOINT_DIMENSION = 12  # 3 joints per leg
NUM_FEET = 4  # LF, RF, LH, RH

# State vector segments
ORIENTATION_SLICE = slice(0, 3)
POSITION_SLICE = slice(3, 6)
ANGULAR_VELOCITY_SLICE = slice(6, 9)
LINEAR_VELOCITY_SLICE = slice(9, 12)


@dataclass(frozen=True)
class CentroidalModelParameters:
    """Lumped mass description of a quadruped.

    The trunk is a rigid body; each leg is a point mass located at the foot
    point reported by the kinematics model. All parameters immutable after
    construction (frozen=True). Units encoded in parameter names.

    Attributes:
        trunk_mass_kg: Mass of the trunk
        trunk_inertia_kg_m2: 3x3 rotational inertia of the trunk about its own
            CoM, base-frame axes
        trunk_com_base_frame_m: Trunk CoM position in the base frame
        leg_mass_kg: Mass of one leg, lumped at the foot
        default_joint_angles_rad: Posture used when a model is constructed
    """

    trunk_mass_kg: float
    trunk_inertia_kg_m2: Tuple[Tuple[float, float, float], ...]
    trunk_com_base_frame_m: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    leg_mass_kg: float = 0.0
    default_joint_angles_rad: Tuple[float, ...] = (0.0,) * JOINT_DIMENSION

    def __post_init__(self):
        """Validate parameters satisfy physical constraints."""
        validate_positive(self.trunk_mass_kg, 'trunk_mass_kg')
        validate_non_negative(self.leg_mass_kg, 'leg_mass_kg')

        validate_symmetric_positive_definite(
            np.asarray(self.trunk_inertia_kg_m2, dtype=float),
            'trunk_inertia_kg_m2'
        )

        trunk_com = np.asarray(self.trunk_com_base_frame_m, dtype=float)
        validate_vector_size(trunk_com.size, 3, 'trunk_com_base_frame_m')
        validate_finite(trunk_com, 'trunk_com_base_frame_m')

        default_joints = np.asarray(self.default_joint_angles_rad, dtype=float)
        validate_vector_size(
            default_joints.size, JOINT_DIMENSION, 'default_joint_angles_rad'
        )
        validate_finite(default_joints, 'default_joint_angles_rad')

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'CentroidalModelParameters':
        """Load parameters from the `centroidal_model` section of a YAML file.

        Args:
            yaml_path: Path to YAML file containing the mass description

        Returns:
            CentroidalModelParameters instance

        Raises:
            FileNotFoundError: If YAML file does not exist
            ValueError: If required parameters missing or invalid
        """
        with open(yaml_path, 'r') as file:
            config = dict(yaml.safe_load(file)['centroidal_model'])

        if 'trunk_inertia_kg_m2' in config:
            config['trunk_inertia_kg_m2'] = tuple(
                tuple(float(value) for value in row)
                for row in config['trunk_inertia_kg_m2']
            )
        for key in ('trunk_com_base_frame_m', 'default_joint_angles_rad'):
            if key in config:
                config[key] = tuple(float(value) for value in config[key])

        return cls(**config)

    @property
    def total_mass_kg(self) -> float:
        """Trunk plus all four legs."""
        return self.trunk_mass_kg + NUM_FEET * self.leg_mass_kg
