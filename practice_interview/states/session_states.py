from enum import Enum

from practice_interview.exceptions import InvalidTransitionError


class SessionState(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    ASKING = "asking"
    LISTENING = "listening"
    EVALUATING = "evaluating"
    FEEDBACK = "feedback"
    COMPLETING = "completing"
    COMPLETED = "completed"


# Forward transitions; any state may also return to IDLE (stop/reset)
TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.PREPARING}),
    SessionState.PREPARING: frozenset({SessionState.ASKING}),
    SessionState.ASKING: frozenset({SessionState.LISTENING}),
    SessionState.LISTENING: frozenset({SessionState.EVALUATING}),
    SessionState.EVALUATING: frozenset({SessionState.FEEDBACK}),
    SessionState.FEEDBACK: frozenset({SessionState.ASKING, SessionState.COMPLETING}),
    SessionState.COMPLETING: frozenset({SessionState.COMPLETED}),
    SessionState.COMPLETED: frozenset(),
}


def can_transition(current: SessionState, target: SessionState) -> bool:
    return target == SessionState.IDLE or target in TRANSITIONS[current]


def check_transition(current: SessionState, target: SessionState) -> None:
    """Raise InvalidTransitionError unless current -> target is allowed."""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot move from {current.value} to {target.value}"
        )
