"""Unit tests for provider selection strategies."""

import pytest

from switchboard.core.provider.provider_config import LoadBalancingConfig, ProviderConfig
from switchboard.core.provider.provider_registry import ProviderConfigManager
from switchboard.core.provider.selector import (
    LatencyTracker,
    LoadBalancer,
    select_highest_priority,
)


class FixedRandom:
    """Stand-in for random.Random returning queued values."""

    def __init__(self, *values: float) -> None:
        self.values = list(values)

    def random(self) -> float:
        return self.values.pop(0)


def make_providers(*specs: tuple[str, int, bool]) -> dict[str, ProviderConfig]:
    return {
        name: ProviderConfig(
            name=name,
            type="custom",
            api_key="key" if enabled else "",
            enabled=enabled,
            priority=priority,
        )
        for name, priority, enabled in specs
    }


@pytest.fixture
def providers():
    return make_providers(("a", 90, True), ("b", 80, True), ("c", 70, True), ("off", 100, False))


@pytest.mark.unit
class TestSelectHighestPriority:
    def test_picks_highest_enabled(self, providers):
        assert select_highest_priority(providers) == "a"

    def test_respects_exclude(self, providers):
        assert select_highest_priority(providers, exclude="a") == "b"

    def test_ties_go_to_first_entry(self):
        providers = make_providers(("x", 50, True), ("y", 50, True))

        assert select_highest_priority(providers) == "x"

    def test_empty_when_nothing_enabled(self):
        providers = make_providers(("x", 50, False))

        assert select_highest_priority(providers) == ""


@pytest.mark.unit
class TestRoundRobin:
    def test_cycles_through_enabled_providers(self, providers):
        balancer = LoadBalancer()
        policy = LoadBalancingConfig(enabled=True, strategy="round-robin")

        picks = [balancer.select(providers, policy).name for _ in range(7)]

        assert picks == ["a", "b", "c", "a", "b", "c", "a"]

    def test_reset_rotation_starts_over(self, providers):
        balancer = LoadBalancer()
        policy = LoadBalancingConfig(enabled=True, strategy="round-robin")
        balancer.select(providers, policy)
        balancer.select(providers, policy)

        balancer.reset_rotation()

        assert balancer.select(providers, policy).name == "a"

    def test_none_when_nothing_enabled(self):
        balancer = LoadBalancer()
        policy = LoadBalancingConfig(enabled=True, strategy="round-robin")

        assert balancer.select(make_providers(("x", 1, False)), policy) is None


@pytest.mark.unit
class TestWeighted:
    @pytest.mark.parametrize(
        "roll,expected",
        [
            (0.1, "a"),  # 10 of 100 lands in a's 50
            (0.5, "a"),  # exactly on the boundary stays with a
            (0.6, "b"),
            (0.95, "c"),
        ],
    )
    def test_walks_cumulative_weights(self, providers, roll, expected):
        balancer = LoadBalancer(rng=FixedRandom(roll))
        policy = LoadBalancingConfig(
            enabled=True, strategy="weighted", weights={"a": 50, "b": 30, "c": 20}
        )

        assert balancer.select(providers, policy).name == expected

    def test_missing_weight_defaults_to_one(self):
        providers = make_providers(("a", 1, True), ("b", 1, True))
        balancer = LoadBalancer(rng=FixedRandom(0.75))
        policy = LoadBalancingConfig(enabled=True, strategy="weighted", weights={})

        # total 2, roll 1.5: a takes 1, b takes the rest
        assert balancer.select(providers, policy).name == "b"

    def test_disabled_providers_are_never_picked(self, providers):
        balancer = LoadBalancer(rng=FixedRandom(*[i / 10 for i in range(10)]))
        policy = LoadBalancingConfig(
            enabled=True, strategy="weighted", weights={"off": 1000, "a": 1, "b": 1, "c": 1}
        )

        picks = {balancer.select(providers, policy).name for _ in range(10)}

        assert "off" not in picks


@pytest.mark.unit
class TestLeastLatency:
    def test_picks_lowest_average(self, providers):
        tracker = LatencyTracker()
        tracker.record("a", 300.0)
        tracker.record("b", 100.0)
        tracker.record("c", 200.0)
        balancer = LoadBalancer(latency_tracker=tracker)
        policy = LoadBalancingConfig(enabled=True, strategy="least-latency")

        assert balancer.select(providers, policy).name == "b"

    def test_falls_back_to_priority_without_samples(self, providers):
        balancer = LoadBalancer()
        policy = LoadBalancingConfig(enabled=True, strategy="least-latency")

        assert balancer.select(providers, policy).name == "a"

    def test_ignores_samples_of_disabled_providers(self, providers):
        balancer = LoadBalancer()
        balancer.latency.record("off", 1.0)
        balancer.latency.record("c", 50.0)
        policy = LoadBalancingConfig(enabled=True, strategy="least-latency")

        assert balancer.select(providers, policy).name == "c"


@pytest.mark.unit
class TestLatencyTracker:
    def test_first_sample_is_taken_as_is(self):
        tracker = LatencyTracker()

        assert tracker.record("a", 100.0) == 100.0

    def test_moving_average(self):
        tracker = LatencyTracker(alpha=0.5)
        tracker.record("a", 100.0)

        assert tracker.record("a", 200.0) == pytest.approx(150.0)

    def test_forget(self):
        tracker = LatencyTracker()
        tracker.record("a", 100.0)

        tracker.forget("a")

        assert tracker.get("a") is None
        assert tracker.snapshot() == {}

    def test_rejects_invalid_alpha(self):
        with pytest.raises(ValueError):
            LatencyTracker(alpha=0)


@pytest.mark.unit
class TestInvalidStrategy:
    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValueError):
            LoadBalancingConfig(strategy="fastest")


@pytest.mark.unit
class TestManagerLoadBalancing:
    def test_get_next_provider_round_robin(self, storage):
        manager = ProviderConfigManager(storage)
        manager.initialize()
        manager.import_configuration(
            {
                "activeProvider": "a",
                "providers": {
                    name: {"name": name.upper(), "type": "custom", "apiKey": "k", "enabled": True}
                    for name in ("a", "b")
                },
                "loadBalancing": {"enabled": True, "strategy": "round-robin"},
            }
        )

        picks = [manager.get_next_provider().name for _ in range(4)]

        assert picks == ["A", "B", "A", "B"]

    def test_get_next_provider_least_latency_uses_recorded_latency(self, storage):
        manager = ProviderConfigManager(storage)
        manager.initialize()
        manager.import_configuration(
            {
                "activeProvider": "a",
                "providers": {
                    "a": {"name": "A", "type": "custom", "apiKey": "k", "enabled": True, "priority": 9},
                    "b": {"name": "B", "type": "custom", "apiKey": "k", "enabled": True, "priority": 1},
                },
                "loadBalancing": {"enabled": True, "strategy": "least-latency"},
            }
        )
        assert manager.get_next_provider().name == "A"

        manager.record_latency("a", 900.0)
        manager.record_latency("b", 120.0)

        assert manager.get_next_provider().name == "B"

    def test_get_next_provider_none_when_nothing_enabled(self, manager):
        manager.import_configuration(
            {"loadBalancing": {"enabled": True, "strategy": "weighted"}, "providers": {}}
        )

        assert manager.get_next_provider() is None
