"""Runtime contract validation utilities.

Internal module for parameter and input validation.
Every check fails fast with ValueError; nothing is clamped, truncated or padded.
"""

import numpy as np


def validate_positive(value: float, name: str) -> None:
    """Validate that a value is finite and strictly positive.

    Args:
        value: Value to validate
        name: Parameter name for error message

    Raises:
        ValueError: If value <= 0, NaN or infinite
    """
    if not np.isfinite(value) or value <= 0:
        raise ValueError(
            f"{name} must be positive and finite, got {value}"
        )


def validate_non_negative(value: float, name: str) -> None:
    """Validate that a value is finite and non-negative.

    Args:
        value: Value to validate
        name: Parameter name for error message

    Raises:
        ValueError: If value < 0, NaN or infinite
    """
    if not np.isfinite(value) or value < 0:
        raise ValueError(
            f"{name} must be non-negative and finite, got {value}"
        )


def validate_vector_size(size: int, expected_size: int, name: str) -> None:
    """Validate the number of entries of a vector.

    Args:
        size: Number of entries found
        expected_size: Number of entries required
        name: Vector name for error message

    Raises:
        ValueError: If size differs from expected_size
    """
    if size != expected_size:
        raise ValueError(
            f"{name} must have {expected_size} entries, got {size}"
        )


def validate_finite(values: np.ndarray, name: str) -> None:
    """Validate that a numeric array contains only finite values.

    Raises:
        ValueError: If any entry is NaN or infinite
    """
    if not np.all(np.isfinite(values)):
        raise ValueError(
            f"{name} contains non-finite values: {values}"
        )


def validate_stance_legs(stance_legs) -> tuple:
    """Validate a stance configuration and return it as a tuple of bools.

    Args:
        stance_legs: Sequence with one contact flag per foot

    Returns:
        Tuple of four bools

    Raises:
        ValueError: If the sequence does not hold exactly four flags
    """
    flags = tuple(stance_legs)
    if len(flags) != 4:
        raise ValueError(
            f"stance_legs must have exactly 4 entries, got {len(flags)}"
        )
    for flag in flags:
        if not isinstance(flag, (bool, np.bool_)):
            raise ValueError(
                f"stance_legs entries must be booleans, got {flag!r}"
            )
    return tuple(bool(flag) for flag in flags)


def validate_symmetric_positive_definite(matrix: np.ndarray, name: str) -> None:
    """Validate that a square matrix is symmetric positive-definite.

    Raises:
        ValueError: If matrix is not square, not symmetric, or has a
            non-positive eigenvalue
    """
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(
            f"{name} must be a square matrix, got shape {matrix.shape}"
        )
    if not np.allclose(matrix, matrix.T):
        raise ValueError(f"{name} must be symmetric, got {matrix}")
    if np.min(np.linalg.eigvalsh(matrix)) <= 0:
        raise ValueError(f"{name} must be positive-definite, got {matrix}")
