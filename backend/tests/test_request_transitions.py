import pytest

from app.models import RequestAction, RequestStatus, TERMINAL_STATUSES
from app.services.request_workflow import TRANSITIONS, Actor, actor_for, resolve_transition
from app.utils.errors import TransitionError


@pytest.mark.parametrize(
    "current, action, expected",
    [
        (RequestStatus.PENDING, RequestAction.ACCEPT, RequestStatus.ACCEPTED),
        (RequestStatus.PENDING, RequestAction.DECLINE, RequestStatus.DECLINED),
        (RequestStatus.PENDING, RequestAction.COUNTER, RequestStatus.COUNTERED),
        (RequestStatus.ACCEPTED, RequestAction.CONFIRM_PAYMENT, RequestStatus.CONFIRMED),
        (RequestStatus.COUNTERED, RequestAction.ACCEPT_COUNTER, RequestStatus.ACCEPTED),
        (RequestStatus.ACCEPTED, RequestAction.SETTLE_OFFLINE, RequestStatus.SETTLED_OFFLINE),
        (RequestStatus.COUNTERED, RequestAction.SETTLE_OFFLINE, RequestStatus.SETTLED_OFFLINE),
        (RequestStatus.SETTLED_OFFLINE, RequestAction.CONFIRM_SETTLEMENT, RequestStatus.CONFIRMED),
        (RequestStatus.PENDING, RequestAction.CANCEL, RequestStatus.CANCELLED),
        (RequestStatus.COUNTERED, RequestAction.EXPIRE, RequestStatus.EXPIRED),
    ],
)
def test_allowed_transitions(current, action, expected):
    assert resolve_transition(current, action) == expected


@pytest.mark.parametrize("action", list(RequestAction))
def test_action_on_target_status_is_noop(action):
    target = TRANSITIONS[action].target
    assert resolve_transition(target, action) is None


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
def test_terminal_states_reject_other_actions(terminal):
    for action in RequestAction:
        if TRANSITIONS[action].target == terminal:
            continue
        with pytest.raises(TransitionError):
            resolve_transition(terminal, action)


def test_decline_twice_is_noop_not_error():
    assert resolve_transition(RequestStatus.PENDING, RequestAction.DECLINE) == RequestStatus.DECLINED
    assert resolve_transition(RequestStatus.DECLINED, RequestAction.DECLINE) is None


def test_confirm_payment_requires_accepted():
    with pytest.raises(TransitionError) as exc:
        resolve_transition(RequestStatus.PENDING, RequestAction.CONFIRM_PAYMENT)
    assert exc.value.code == "invalid_transition"
    assert exc.value.field_errors == {"status": "pending"}


def test_accept_from_countered_is_rejected():
    with pytest.raises(TransitionError):
        resolve_transition(RequestStatus.COUNTERED, RequestAction.ACCEPT)


def test_string_inputs_are_accepted():
    assert resolve_transition("pending", "counter") == RequestStatus.COUNTERED


def test_every_action_has_one_actor():
    assert actor_for(RequestAction.ACCEPT) == Actor.VENDOR
    assert actor_for(RequestAction.SETTLE_OFFLINE) == Actor.VIEWER
    assert actor_for(RequestAction.EXPIRE) == Actor.ADMIN
    assert set(TRANSITIONS) == set(RequestAction)
