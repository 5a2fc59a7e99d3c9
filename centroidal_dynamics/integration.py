"""Numerical integration of flow maps.

FlowMapIntegrator drives scipy.integrate.solve_ivp with a
GenericFlowMapAdapter for forward simulation. rk4_step is a single
fixed-step explicit Runge-Kutta step that works for any scalar backend, so
applied to the symbolic dynamics it yields a discrete-time map x[k+1] = F(x[k])
for transcription-based optimizers.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from scipy.integrate import solve_ivp

from centroidal_dynamics._internal.validation import (
    validate_positive,
    validate_finite,
)
from centroidal_dynamics.config import IntegratorConfig
from centroidal_dynamics.flow_map import GenericFlowMapAdapter, FlowMap


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntegrationResult:
    """State trajectory returned by FlowMapIntegrator.

    Attributes:
        time_s: Sample times (N,)
        state_trajectory: States at the sample times (N, state_dimension)
        num_flow_map_evaluations: Flow map calls made by this integration
    """
    time_s: np.ndarray
    state_trajectory: np.ndarray
    num_flow_map_evaluations: int

    @property
    def final_state(self) -> np.ndarray:
        return self.state_trajectory[-1]


class FlowMapIntegrator:
    """Adaptive-step integrator around a GenericFlowMapAdapter.

    The adapter's wrapped function may be swapped between calls to
    integrate(); configuration and the adapter itself stay untouched.

    Args:
        system: Adapter wrapping the flow map to integrate
        config: Method and tolerances for solve_ivp
    """

    def __init__(
        self,
        system: GenericFlowMapAdapter,
        config: IntegratorConfig = IntegratorConfig(),
    ):
        self._system = system
        self._config = config

    @property
    def system(self) -> GenericFlowMapAdapter:
        return self._system

    @property
    def config(self) -> IntegratorConfig:
        return self._config

    def integrate(
        self,
        initial_state: np.ndarray,
        start_time_s: float,
        final_time_s: float,
        eval_times_s: Optional[Sequence[float]] = None,
    ) -> IntegrationResult:
        """Integrate the flow map from start_time_s to final_time_s.

        Args:
            initial_state: State at start_time_s
            start_time_s: Initial time
            final_time_s: Final time, must be later than start_time_s
            eval_times_s: Optional output times within the interval; by
                default the integrator's own steps are returned

        Returns:
            IntegrationResult with the sampled trajectory

        Raises:
            ValueError: If the interval is empty or the initial state is not finite
            RuntimeError: If solve_ivp does not reach final_time_s
        """
        initial_state = np.asarray(initial_state, dtype=float).reshape(-1)
        validate_finite(initial_state, 'initial_state')
        validate_positive(final_time_s - start_time_s, 'integration interval')

        evaluations_before = self._system.num_evaluations
        solution = solve_ivp(
            self._system,
            (start_time_s, final_time_s),
            initial_state,
            method=self._config.method,
            t_eval=eval_times_s,
            rtol=self._config.relative_tolerance,
            atol=self._config.absolute_tolerance,
            max_step=self._config.max_step_s,
        )

        if not solution.success:
            logger.warning(
                "Integration from t=%.4f to t=%.4f failed: %s",
                start_time_s, final_time_s, solution.message
            )
            raise RuntimeError(f"Integration failed: {solution.message}")

        return IntegrationResult(
            time_s=solution.t,
            state_trajectory=solution.y.T,
            num_flow_map_evaluations=self._system.num_evaluations - evaluations_before,
        )


def rk4_step(flow_map: FlowMap, t, x, time_step_s: float):
    """Advance x by one classic fourth-order Runge-Kutta step.

    Uses only `+` and scalar `*`, so x may be a NumPy array or a CasADi
    expression.

    Raises:
        ValueError: If time_step_s <= 0
    """
    validate_positive(time_step_s, 'time_step_s')
    half_step = 0.5 * time_step_s

    k1 = flow_map(t, x)
    k2 = flow_map(t + half_step, x + half_step * k1)
    k3 = flow_map(t + half_step, x + half_step * k2)
    k4 = flow_map(t + time_step_s, x + time_step_s * k3)

    return x + (time_step_s / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)
