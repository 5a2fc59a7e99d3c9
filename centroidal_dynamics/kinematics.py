"""Interface of the joint forward-kinematics model consumed by this package.

Forward kinematics is robot specific and lives outside this package. Any
object with the methods below can be handed to CentroidalModel and
CentroidalDynamics. Implementations must compute with the same scalar
backend as the model they are used with (NumPy values for NUMPY_BACKEND,
CasADi SX for CASADI_BACKEND).
"""

from typing import Protocol, Any


class KinematicsModel(Protocol):
    """Foot positions and Jacobians of a four-legged robot."""

    def foot_position_base_frame(self, joint_angles: Any, foot_index: int) -> Any:
        """Position of a foot relative to the base origin, base-frame axes (3,)."""
        ...

    def foot_jacobian_base_frame(self, joint_angles: Any, foot_index: int) -> Any:
        """Spatial Jacobian of a foot w.r.t. all joint velocities (6, 12).

        Rows 0-2 map joint velocities to foot angular velocity, rows 3-5 to
        foot linear velocity relative to the base, base-frame axes.
        """
        ...

    def clone(self) -> 'KinematicsModel':
        """Independent copy, safe to use concurrently with the original."""
        ...
