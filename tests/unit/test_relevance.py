"""Unit tests for the relevance engine and its factors."""

import random
from dataclasses import dataclass

import pytest

from peer_routing.domain.profile import ExpertiseProfile
from peer_routing.domain.semantics import TOPIC_UNIVERSE, SemanticDomain
from peer_routing.interfaces.relevance import RelevanceFactor
from peer_routing.services.relevance import (
    AxisAlignmentFactor,
    DomainTopicFactor,
    RelevanceEngine,
    TopicOwnershipFactor,
    axis_magnitudes,
    router_engine,
)
from tests.mocks.vectors import domain_vector


def make_profile(
    domain: SemanticDomain = SemanticDomain.PERCEPTUAL,
    axes: frozenset[int] = frozenset({0, 1, 2, 3}),
    ownership: frozenset[int] = frozenset(),
) -> ExpertiseProfile:
    return ExpertiseProfile(
        node_id="node",
        semantic_domain=domain,
        semantic_axes=axes,
        topic_ownership=ownership,
    )


@dataclass(frozen=True)
class ConstantFactor:
    """Factor that always scores the same value."""

    value: float | None
    name: str = "constant"
    weight: float = 1.0

    def score(self, topics, vector, subject) -> float | None:
        return self.value


class TestAxisMagnitudes:
    def test_pads_and_truncates(self) -> None:
        assert axis_magnitudes([-1.0, 0.5]) == [1.0, 0.5] + [0.0] * 14
        assert len(axis_magnitudes([1.0] * 20)) == 16


class TestRelevanceEngine:
    """Tests for the weighted factor combination."""

    def test_no_factor_applies(self) -> None:
        engine = RelevanceEngine([ConstantFactor(None)])
        assert engine.score(frozenset(), None, object()) == 0.5

    def test_weights_normalized_over_applied_factors(self) -> None:
        engine = RelevanceEngine(
            [
                ConstantFactor(1.0, name="high", weight=3.0),
                ConstantFactor(0.0, name="low", weight=1.0),
                ConstantFactor(None, name="absent", weight=10.0),
            ]
        )

        assert engine.score(frozenset(), None, object()) == pytest.approx(0.75)
        assert engine.breakdown(frozenset(), None, object()) == {
            "high": 1.0,
            "low": 0.0,
            "absent": None,
        }

    def test_factors_satisfy_protocol(self) -> None:
        for factor in router_engine().factors:
            assert isinstance(factor, RelevanceFactor)


class TestRouterFactors:
    """Tests for the expertise router factors."""

    def test_topic_ownership_needs_both_sides(self) -> None:
        factor = TopicOwnershipFactor()

        assert factor.score(frozenset({2}), None, make_profile()) is None
        assert factor.score(frozenset(), None, make_profile(ownership=frozenset({2}))) is None
        assert factor.score(
            frozenset({2, 3}), None, make_profile(ownership=frozenset({2}))
        ) == pytest.approx(0.5)

    def test_axis_alignment(self) -> None:
        factor = AxisAlignmentFactor()
        profile = make_profile(axes=frozenset({0, 4}))

        assert factor.score(frozenset(), None, profile) is None
        assert factor.score(frozenset(), [0.0] * 16, profile) is None
        assert factor.score(frozenset(), [1.0, 1.0, 0.0, 0.0, -2.0], profile) == pytest.approx(0.75)

    def test_domain_topic_overlap(self) -> None:
        factor = DomainTopicFactor()
        profile = make_profile(domain=SemanticDomain.COGNITIVE)

        assert factor.score(frozenset(), None, profile) is None
        assert factor.score(frozenset(TOPIC_UNIVERSE[25:27]), None, profile) == 1.0
        assert factor.score(frozenset({2, TOPIC_UNIVERSE[25]}), None, profile) == 0.5

    def test_combined_score(self) -> None:
        profile = make_profile(ownership=frozenset({2, 3}))
        vector = domain_vector(SemanticDomain.PERCEPTUAL)

        score = router_engine().score(frozenset({2, 3, 541}), vector, profile)

        # topic 0.4 * 2/3 + axis 0.3 * 1 + domain 0.3 * 2/3
        assert score == pytest.approx(0.4 * 2 / 3 + 0.3 + 0.3 * 2 / 3)

    def test_scores_stay_in_unit_interval(self) -> None:
        rng = random.Random(11)
        engine = router_engine()

        for _ in range(200):
            profile = make_profile(
                domain=rng.choice(list(SemanticDomain)),
                axes=frozenset(rng.sample(range(16), rng.randint(0, 16))),
                ownership=frozenset(rng.sample(TOPIC_UNIVERSE, rng.randint(0, 30))),
            )
            topics = frozenset(rng.sample(TOPIC_UNIVERSE, rng.randint(0, 10)))
            vector = [rng.uniform(-1, 1) for _ in range(rng.randint(0, 20))]

            assert 0.0 <= engine.score(topics, vector, profile) <= 1.0
