"""State machine planning, no database involved."""

import pytest

from app.core.errors import ConflictError
from app.services.transitions import (
    LIKED,
    MATCHED,
    REJECTED,
    CounterDelta,
    plan_like,
    plan_match,
    plan_reject,
)


class TestPlanLike:
    def test_first_like_on_human_is_a_plain_like(self):
        plan = plan_like(None, None, target_automated=False)
        assert plan.forward == LIKED
        assert plan.reverse is None
        assert plan.is_match is False
        assert plan.actor_delta == CounterDelta(likes=1)
        assert plan.target_delta == CounterDelta()

    def test_like_on_automated_target_matches_instantly(self):
        plan = plan_like(None, None, target_automated=True)
        assert plan.forward == MATCHED
        assert plan.reverse == MATCHED
        assert plan.is_new_match is True
        assert plan.actor_delta == CounterDelta(likes=1, matches=1)
        assert plan.target_delta == CounterDelta(matches=1)

    def test_reciprocated_like_matches(self):
        plan = plan_like(None, "like", target_automated=False)
        assert plan.is_match and plan.is_new_match
        assert plan.reverse == MATCHED

    def test_reverse_reject_does_not_match(self):
        plan = plan_like(None, "reject", target_automated=False)
        assert plan.forward == LIKED
        assert plan.is_match is False

    def test_like_after_reject_swaps_counters(self):
        plan = plan_like("reject", None, target_automated=False)
        assert plan.actor_delta == CounterDelta(likes=1, rejects=-1)

    def test_like_after_reject_into_match(self):
        plan = plan_like("reject", "like", target_automated=False)
        assert plan.actor_delta == CounterDelta(likes=1, rejects=-1, matches=1)
        assert plan.target_delta == CounterDelta(matches=1)

    @pytest.mark.parametrize("previous", ["like", "match"])
    def test_duplicate_like_conflicts(self, previous):
        with pytest.raises(ConflictError):
            plan_like(previous, None, target_automated=True)


class TestPlanReject:
    def test_reject_twice_is_noop(self):
        plan = plan_reject("reject", None)
        assert plan.is_noop

    def test_first_reject(self):
        plan = plan_reject(None, None)
        assert plan.forward == REJECTED
        assert plan.actor_delta == CounterDelta(rejects=1)
        assert plan.was_match is False

    def test_reject_after_like(self):
        plan = plan_reject("like", None)
        assert plan.actor_delta == CounterDelta(likes=-1, rejects=1)
        assert plan.reverse is None

    def test_reject_a_match_demotes_the_other_side_to_like(self):
        plan = plan_reject("match", "match")
        assert plan.forward == REJECTED
        assert plan.reverse == LIKED
        assert plan.was_match
        assert plan.actor_delta == CounterDelta(likes=-1, rejects=1, matches=-1)
        assert plan.target_delta == CounterDelta(matches=-1)

    def test_one_sided_like_from_the_other_party_is_left_alone(self):
        plan = plan_reject(None, "like")
        assert plan.reverse is None
        assert plan.target_delta.is_zero


class TestPlanMatch:
    def test_existing_mutual_match_is_noop(self):
        plan = plan_match("match", "match")
        assert plan.is_match
        assert plan.is_new_match is False
        assert plan.is_noop

    def test_like_upgraded_to_match_does_not_recount_like(self):
        plan = plan_match("like", "like")
        assert plan.is_new_match
        assert plan.actor_delta == CounterDelta(matches=1)

    def test_match_from_scratch(self):
        plan = plan_match(None, None)
        assert plan.actor_delta == CounterDelta(likes=1, matches=1)
