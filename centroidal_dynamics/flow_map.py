"""Uniform integrable interface around arbitrary state-derivative functions.

GenericFlowMapAdapter lets any callable (t, x) -> dxdt be handed to a
numerical integrator. The wrapped function can be replaced at any time, for
example when the active contact mode changes, without rebuilding the
integrator that holds the adapter.
"""

from typing import Callable, Any

from centroidal_dynamics.dynamics import ControlledSystem


FlowMap = Callable[[float, Any], Any]


class GenericFlowMapAdapter:
    """Integrable wrapper around a flow map (t, x) -> dxdt.

    Instances are callable with the (t, y) signature expected by
    scipy.integrate.solve_ivp.

    Args:
        flow_map: Function computing the state derivative

    Raises:
        TypeError: If flow_map is not callable
    """

    def __init__(self, flow_map: FlowMap):
        self._flow_map = _validate_flow_map(flow_map)
        self._num_evaluations = 0

    @property
    def num_evaluations(self) -> int:
        """Number of flow map evaluations since construction, across swaps."""
        return self._num_evaluations

    def set_flow_map(self, flow_map: FlowMap) -> None:
        """Replace the wrapped function; the evaluation count is kept."""
        self._flow_map = _validate_flow_map(flow_map)

    def compute_flow_map(self, t: float, x: Any) -> Any:
        self._num_evaluations += 1
        return self._flow_map(t, x)

    def __call__(self, t: float, x: Any) -> Any:
        return self.compute_flow_map(t, x)


def make_controlled_flow_map(
    system: ControlledSystem,
    control_policy: Callable[[float, Any], Any],
) -> FlowMap:
    """Close the loop of a controlled system with a policy (t, x) -> u.

    Args:
        system: Object providing compute_derivative(t, x, u)
        control_policy: Input as a function of time and state

    Returns:
        Flow map (t, x) -> system.compute_derivative(t, x, control_policy(t, x))
    """
    def flow_map(t, x):
        return system.compute_derivative(t, x, control_policy(t, x))

    return flow_map


def _validate_flow_map(flow_map: FlowMap) -> FlowMap:
    if not callable(flow_map):
        raise TypeError(
            f"flow_map must be callable, got {type(flow_map).__name__}"
        )
    return flow_map
