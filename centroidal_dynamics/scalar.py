"""Scalar backends for dual-representation evaluation.

The centroidal formulas are written once against the small set of operations
collected here and instantiated for two numeric types:

    - NUMPY_BACKEND: float64 arrays, the fast path used for simulation
    - CASADI_BACKEND: CasADi SX expressions, used by an outer optimizer to
      obtain exact derivatives through the identical code path

Conventions shared by both backends:
    - vectors are 1-D arrays (NumPy) or column expressions (CasADi)
    - slicing, `+`, `-`, scalar `*` and `.T` are used directly on values
    - everything else (products, trigonometry, constructors) goes through
      the backend so that no formula depends on the concrete type
"""

from typing import Protocol, Sequence, Any, Optional

import casadi as ca
import numpy as np
import scipy.linalg


class ScalarBackend(Protocol):
    """Operations a numeric type must provide to evaluate the dynamics."""

    name: str
    is_symbolic: bool

    def vector(self, value: Any) -> Any: ...

    def matrix(self, value: Any) -> Any: ...

    def from_rows(self, rows: Sequence[Sequence[Any]]) -> Any: ...

    def vertcat(self, *parts: Any) -> Any: ...

    def vstack(self, *blocks: Any) -> Any: ...

    def zeros(self, rows: int, cols: Optional[int] = None) -> Any: ...

    def eye(self, size: int) -> Any: ...

    def sin(self, value: Any) -> Any: ...

    def cos(self, value: Any) -> Any: ...

    def cross(self, a: Any, b: Any) -> Any: ...

    def dot(self, a: Any, b: Any) -> Any: ...

    def outer(self, a: Any, b: Any) -> Any: ...

    def matmul(self, a: Any, b: Any) -> Any: ...

    def inverse(self, matrix: Any) -> Any: ...

    def block_diag(self, *blocks: Any) -> Any: ...

    def size(self, value: Any) -> int: ...


class NumpyBackend:
    """Plain float64 evaluation."""

    name = 'numpy'
    is_symbolic = False

    # copies; cached values must not alias caller buffers
    def vector(self, value):
        return np.array(value, dtype=float).reshape(-1)

    def matrix(self, value):
        return np.array(value, dtype=float)

    def from_rows(self, rows):
        return np.array(rows, dtype=float)

    def vertcat(self, *parts):
        return np.concatenate(
            [np.asarray(part, dtype=float).reshape(-1) for part in parts]
        )

    def vstack(self, *blocks):
        return np.vstack(blocks)

    def zeros(self, rows: int, cols: Optional[int] = None):
        if cols is None:
            return np.zeros(rows)
        return np.zeros((rows, cols))

    def eye(self, size):
        return np.eye(size)

    def sin(self, value):
        return np.sin(value)

    def cos(self, value):
        return np.cos(value)

    def cross(self, a, b):
        return np.cross(a, b)

    def dot(self, a, b):
        return np.dot(a, b)

    def outer(self, a, b):
        return np.outer(a, b)

    def matmul(self, a, b):
        return a @ b

    def inverse(self, matrix):
        return np.linalg.inv(matrix)

    def block_diag(self, *blocks):
        return scipy.linalg.block_diag(*blocks)

    def size(self, value):
        return int(np.size(value))

    def __repr__(self) -> str:
        return 'NumpyBackend()'


class CasadiBackend:
    """Symbolic evaluation with CasADi SX expressions.

    Constants are lifted to SX so that expressions never mix DM, SX and
    NumPy operands.
    """

    name = 'casadi'
    is_symbolic = True

    @staticmethod
    def _as_sx(value):
        if isinstance(value, ca.SX):
            return value
        if isinstance(value, ca.DM):
            return ca.SX(value)
        return ca.SX(ca.DM(np.asarray(value, dtype=float)))

    def vector(self, value):
        if isinstance(value, (list, tuple)):
            value = ca.vertcat(*value)
        return ca.vec(self._as_sx(value))

    def matrix(self, value):
        return self._as_sx(value)

    def from_rows(self, rows):
        return self._as_sx(ca.vertcat(*[ca.horzcat(*row) for row in rows]))

    def vertcat(self, *parts):
        return self._as_sx(ca.vertcat(*parts))

    def vstack(self, *blocks):
        return self._as_sx(ca.vertcat(*blocks))

    def zeros(self, rows: int, cols: Optional[int] = None):
        return ca.SX.zeros(rows, 1 if cols is None else cols)

    def eye(self, size):
        return ca.SX.eye(size)

    def sin(self, value):
        return ca.sin(value)

    def cos(self, value):
        return ca.cos(value)

    def cross(self, a, b):
        return ca.cross(self._as_sx(a), self._as_sx(b))

    def dot(self, a, b):
        return ca.dot(self._as_sx(a), self._as_sx(b))

    def outer(self, a, b):
        return ca.mtimes(self._as_sx(a), self._as_sx(b).T)

    def matmul(self, a, b):
        return ca.mtimes(self._as_sx(a), self._as_sx(b))

    def inverse(self, matrix):
        return ca.inv(self._as_sx(matrix))

    def block_diag(self, *blocks):
        return ca.diagcat(*[self._as_sx(block) for block in blocks])

    def size(self, value):
        if isinstance(value, (ca.SX, ca.DM)):
            return int(value.numel())
        return int(np.size(value))

    def __repr__(self) -> str:
        return 'CasadiBackend()'


NUMPY_BACKEND = NumpyBackend()
CASADI_BACKEND = CasadiBackend()
