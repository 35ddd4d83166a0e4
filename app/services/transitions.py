"""
Pure state machine for directed interaction records.

Given what the actor's record and the reciprocal record currently hold
(read under lock), each `plan_*` function decides what both records become
and how the three account counters move. Nothing here touches the database;
the matching engine applies the returned `Transition`.

    (none)  --like, target bot or reverse=like-->  match
    (none)  --like, target human, no reverse like-->  like
    like    --like-->    Conflict
    like    --reject-->  reject            likes-1, rejects+1
    match   --reject-->  reject; reverse match->like, matches-1 both sides
    reject  --like-->    like or match     likes+1, rejects-1
    reject  --reject-->  no-op
"""

from dataclasses import dataclass, field

from app.core.errors import ConflictError
from app.db.models import ACTION_LIKE, ACTION_MATCH, ACTION_REJECT


@dataclass(frozen=True)
class CounterDelta:
    likes: int = 0
    matches: int = 0
    rejects: int = 0

    def __add__(self, other: "CounterDelta") -> "CounterDelta":
        return CounterDelta(
            likes=self.likes + other.likes,
            matches=self.matches + other.matches,
            rejects=self.rejects + other.rejects,
        )

    @property
    def is_zero(self) -> bool:
        return not (self.likes or self.matches or self.rejects)


@dataclass(frozen=True)
class EdgeState:
    action: str
    is_mutual: bool


MATCHED = EdgeState(ACTION_MATCH, True)
LIKED = EdgeState(ACTION_LIKE, False)
REJECTED = EdgeState(ACTION_REJECT, False)


@dataclass(frozen=True)
class Transition:
    # None means "leave the record untouched"
    forward: EdgeState | None = None
    reverse: EdgeState | None = None
    actor_delta: CounterDelta = field(default_factory=CounterDelta)
    target_delta: CounterDelta = field(default_factory=CounterDelta)
    is_match: bool = False
    is_new_match: bool = False
    was_match: bool = False

    @property
    def is_noop(self) -> bool:
        return (
            self.forward is None
            and self.reverse is None
            and self.actor_delta.is_zero
            and self.target_delta.is_zero
        )


def is_new_match(previous: str | None, reverse: str | None) -> bool:
    return previous != ACTION_MATCH or reverse != ACTION_MATCH


def _positive_counters(previous: str | None) -> CounterDelta:
    """Actor counters when its record moves to like or match."""
    if previous == ACTION_REJECT:
        return CounterDelta(likes=1, rejects=-1)
    if previous is None:
        return CounterDelta(likes=1)
    return CounterDelta()


def _matched(previous: str | None, reverse: str | None) -> Transition:
    new = is_new_match(previous, reverse)
    shared = CounterDelta(matches=1) if new else CounterDelta()
    return Transition(
        forward=MATCHED,
        reverse=MATCHED,
        actor_delta=_positive_counters(previous) + shared,
        target_delta=shared,
        is_match=True,
        is_new_match=new,
    )


def plan_like(previous: str | None, reverse: str | None, target_automated: bool) -> Transition:
    if previous in (ACTION_LIKE, ACTION_MATCH):
        raise ConflictError("You have already liked this user.")

    if target_automated or reverse == ACTION_LIKE:
        return _matched(previous, reverse)

    return Transition(forward=LIKED, actor_delta=_positive_counters(previous))


def plan_match(previous: str | None, reverse: str | None) -> Transition:
    """Explicit match with an automated profile. Repeating it is harmless."""
    if not is_new_match(previous, reverse):
        return Transition(is_match=True)
    return _matched(previous, reverse)


def plan_reject(previous: str | None, reverse: str | None) -> Transition:
    if previous == ACTION_REJECT:
        return Transition()

    was_match = ACTION_MATCH in (previous, reverse)
    shared = CounterDelta(matches=-1) if was_match else CounterDelta()

    if previous in (ACTION_LIKE, ACTION_MATCH):
        actor = CounterDelta(likes=-1, rejects=1)
    else:
        actor = CounterDelta(rejects=1)

    return Transition(
        forward=REJECTED,
        # the other side keeps its sentiment, only the match is undone
        reverse=LIKED if reverse == ACTION_MATCH else None,
        actor_delta=actor + shared,
        target_delta=shared,
        was_match=was_match,
    )
