"""Provider selection: re-selection policy and load-balancing strategies."""

import logging
import random
from collections.abc import Mapping

from switchboard.core.provider.provider_config import LoadBalancingConfig, ProviderConfig

logger = logging.getLogger(__name__)


def select_highest_priority(
    providers: Mapping[str, ProviderConfig], *, exclude: str | None = None
) -> str:
    """Return the name of the highest-priority enabled provider.

    Ties go to the provider inserted first. Returns "" when no provider
    qualifies.
    """
    best_name = ""
    best_priority: int | None = None
    for name, provider in providers.items():
        if name == exclude or not provider.enabled:
            continue
        if best_priority is None or provider.priority > best_priority:
            best_name = name
            best_priority = provider.priority
    return best_name


class LatencyTracker:
    """Exponentially weighted moving average of response times per provider.

    Args:
        alpha: Weight of the newest sample, in (0, 1]
    """

    def __init__(self, alpha: float = 0.3) -> None:
        if not 0 < alpha <= 1:
            raise ValueError("alpha must be in (0, 1]")
        self._alpha = alpha
        self._averages: dict[str, float] = {}

    def record(self, provider_name: str, response_time_ms: float) -> float:
        previous = self._averages.get(provider_name)
        if previous is None:
            average = float(response_time_ms)
        else:
            average = self._alpha * response_time_ms + (1 - self._alpha) * previous
        self._averages[provider_name] = average
        return average

    def get(self, provider_name: str) -> float | None:
        return self._averages.get(provider_name)

    def forget(self, provider_name: str) -> None:
        self._averages.pop(provider_name, None)

    def snapshot(self) -> dict[str, float]:
        return dict(self._averages)


class LoadBalancer:
    """Chooses a provider among the enabled ones according to a strategy.

    Round-robin state is an index into the enabled list, like the API key
    rotation it is modelled on: adding or removing providers shifts the
    rotation but never skips the whole cycle.
    """

    def __init__(
        self,
        latency_tracker: LatencyTracker | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.latency = latency_tracker or LatencyTracker()
        self._rng = rng or random.Random()
        self._rr_index = 0

    def select(
        self,
        providers: Mapping[str, ProviderConfig],
        policy: LoadBalancingConfig,
    ) -> ProviderConfig | None:
        enabled = [(name, p) for name, p in providers.items() if p.enabled]
        if not enabled:
            return None

        if policy.strategy == "round-robin":
            return self._select_round_robin(enabled)
        if policy.strategy == "weighted":
            return self._select_weighted(enabled, policy.weights)
        if policy.strategy == "least-latency":
            return self._select_least_latency(enabled)

        logger.warning("Unknown load balancing strategy %r", policy.strategy)
        return None

    def reset_rotation(self) -> None:
        self._rr_index = 0

    def _select_round_robin(self, enabled: list[tuple[str, ProviderConfig]]) -> ProviderConfig:
        idx = self._rr_index % len(enabled)
        self._rr_index = (idx + 1) % len(enabled)
        return enabled[idx][1]

    def _select_weighted(
        self,
        enabled: list[tuple[str, ProviderConfig]],
        weights: Mapping[str, float],
    ) -> ProviderConfig:
        total_weight = sum(weights.get(name, 1) for name, _ in enabled)
        remaining = self._rng.random() * total_weight
        for name, provider in enabled:
            remaining -= weights.get(name, 1)
            if remaining <= 0:
                return provider
        return enabled[0][1]

    def _select_least_latency(self, enabled: list[tuple[str, ProviderConfig]]) -> ProviderConfig:
        measured = []
        for name, provider in enabled:
            latency = self.latency.get(name)
            if latency is not None:
                measured.append((latency, provider))
        if measured:
            # min() keeps the first of equal latencies
            return min(measured, key=lambda item: item[0])[1]

        best = select_highest_priority(dict(enabled))
        return dict(enabled)[best]
