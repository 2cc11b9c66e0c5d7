"""Tests for the round plan of a warmup pass."""

import pytest

from aws_lambda_warmer.models import RoundPlan, WarmupTarget
from aws_lambda_warmer.strategies import plan_rounds, normalize_targets


@pytest.mark.unit
class TestPlanRounds:
    """Test cumulative round targets."""

    def test_even_split(self):
        assert plan_rounds(8, 2) == [
            RoundPlan(iteration_no=0, cumulative_target=4, increment=4, is_final=False),
            RoundPlan(iteration_no=1, cumulative_target=8, increment=4, is_final=True),
        ]

    def test_remainder_goes_to_final_round(self):
        plans = plan_rounds(9, 2)

        assert [p.cumulative_target for p in plans] == [4, 9]
        assert [p.increment for p in plans] == [4, 5]

    def test_increments_total_invocation_count(self):
        plans = plan_rounds(8, 2)

        assert [p.increment for p in plans] == [4, 4]
        assert sum(p.increment for p in plans) == 8
        # Each round dispatches its cumulative target, not its increment
        assert [p.cumulative_target for p in plans] == [4, 8]

    def test_three_rounds(self):
        assert [p.cumulative_target for p in plan_rounds(10, 3)] == [3, 6, 10]

    def test_single_round(self):
        assert plan_rounds(5, 1) == [
            RoundPlan(iteration_no=0, cumulative_target=5, increment=5, is_final=True),
        ]

    def test_fewer_invocations_than_rounds(self):
        plans = plan_rounds(1, 2)

        assert [p.cumulative_target for p in plans] == [0, 1]
        assert plans[-1].is_final

    def test_final_round_always_reaches_invocation_count(self):
        for invocation_count in range(1, 30):
            for iteration_count in range(1, 6):
                plans = plan_rounds(invocation_count, iteration_count)
                assert len(plans) == iteration_count
                assert plans[-1].cumulative_target == invocation_count
                targets = [p.cumulative_target for p in plans]
                assert targets == sorted(targets)

    def test_resume_from_later_round(self):
        plans = plan_rounds(10, 3, start_iteration=1)

        assert [p.iteration_no for p in plans] == [1, 2]
        assert [p.cumulative_target for p in plans] == [6, 10]

    def test_resume_from_final_round(self):
        assert plan_rounds(8, 2, start_iteration=1) == [
            RoundPlan(iteration_no=1, cumulative_target=8, increment=4, is_final=True),
        ]

    @pytest.mark.parametrize(
        "invocation_count, iteration_count, start_iteration",
        [(8, 0, 0), (8, 2, 2), (8, 2, -1)],
    )
    def test_invalid_plans(self, invocation_count, iteration_count, start_iteration):
        with pytest.raises(ValueError):
            plan_rounds(invocation_count, iteration_count, start_iteration)


@pytest.mark.unit
class TestNormalizeTargets:
    """Test accepted target forms."""

    def test_targets_are_kept(self, targets):
        assert normalize_targets(targets) == targets

    def test_mapping_of_settings(self):
        assert normalize_targets({"fn-a": None, "fn-b": {"alias": "live"}}) == [
            WarmupTarget(name="fn-a"),
            WarmupTarget(name="fn-b", alias="live"),
        ]
