"""
Rotation helpers shared by the centroidal model and dynamics.

Orientation convention: intrinsic XYZ Euler angles [roll, pitch, yaw], so
that o_R_b = Rx(roll) @ Ry(pitch) @ Rz(yaw) maps base-frame vectors into the
origin (world) frame. The CoM frame is parallel to the base frame.

All functions take a scalar backend and work for NumPy and CasADi values alike.
"""

from __future__ import annotations

from centroidal_dynamics.scalar import ScalarBackend, NUMPY_BACKEND


def skew_matrix(vector, backend: ScalarBackend = NUMPY_BACKEND):
    """Return the 3x3 matrix S(v) with S(v) @ w == v x w."""
    return backend.from_rows(
        [
            [0.0, -vector[2], vector[1]],
            [vector[2], 0.0, -vector[0]],
            [-vector[1], vector[0], 0.0],
        ]
    )


def rotation_matrix_base_to_origin(euler_angles_xyz, backend: ScalarBackend = NUMPY_BACKEND):
    """Rotation matrix from the base frame to the origin frame."""
    c1, s1 = backend.cos(euler_angles_xyz[0]), backend.sin(euler_angles_xyz[0])
    c2, s2 = backend.cos(euler_angles_xyz[1]), backend.sin(euler_angles_xyz[1])
    c3, s3 = backend.cos(euler_angles_xyz[2]), backend.sin(euler_angles_xyz[2])

    return backend.from_rows(
        [
            [c2 * c3, -c2 * s3, s2],
            [c1 * s3 + c3 * s1 * s2, c1 * c3 - s1 * s2 * s3, -c2 * s1],
            [s1 * s3 - c1 * c3 * s2, c3 * s1 + c1 * s2 * s3, c1 * c2],
        ]
    )


def angular_velocities_to_euler_angle_derivatives_matrix(
    euler_angles_xyz,
    backend: ScalarBackend = NUMPY_BACKEND,
):
    """Matrix mapping local (base-frame) angular velocity to XYZ Euler rates.

    WARNING: the matrix is singular when the pitch angle is +/- 90 degrees
    (division by cos(pitch)). Callers get inf/NaN there; no clamping is done.

    Args:
        euler_angles_xyz: [roll, pitch, yaw] in radians
        backend: Scalar backend of the inputs

    Returns:
        3x3 matrix E such that d(euler)/dt = E @ omega_local
    """
    c2 = backend.cos(euler_angles_xyz[1])
    s2 = backend.sin(euler_angles_xyz[1])
    c3 = backend.cos(euler_angles_xyz[2])
    s3 = backend.sin(euler_angles_xyz[2])

    return backend.from_rows(
        [
            [c3 / c2, -s3 / c2, 0.0],
            [s3, c3, 0.0],
            [-c3 * s2 / c2, s2 * s3 / c2, 1.0],
        ]
    )
