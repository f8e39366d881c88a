"""Unit tests for the dead man's switch decision

evaluate() is pure, so these build switches in memory and walk the clock
through the reminder schedule.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from legacy_diary.legacy.models import DeadMansSwitch, SwitchAction, SwitchStatus
from legacy_diary.legacy.switch import evaluate

DUE = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)


def make_switch(
    notifications_sent: int = 0,
    status: SwitchStatus = SwitchStatus.ACTIVE,
    last_notified_at: datetime | None = None,
) -> DeadMansSwitch:
    return DeadMansSwitch(
        id="switch-1",
        user_id="user-1",
        status=status,
        check_in_interval_days=30,
        last_check_in=DUE - timedelta(days=30),
        next_check_in_due=DUE,
        notifications_sent=notifications_sent,
        last_notified_at=last_notified_at,
        trusted_contact_ids=["contact-1"],
    )


def test_not_due_yet():
    assert evaluate(make_switch(), DUE - timedelta(seconds=1)) == SwitchAction.NONE


def test_first_reminder_when_due():
    assert evaluate(make_switch(), DUE) == SwitchAction.NOTIFY


def test_one_reminder_per_overdue_day():
    """Day 0 sends reminder 1; a second sweep the same day sends nothing"""
    assert evaluate(make_switch(1), DUE + timedelta(hours=20)) == SwitchAction.NONE
    assert evaluate(make_switch(1), DUE + timedelta(days=1)) == SwitchAction.NOTIFY
    assert evaluate(make_switch(2), DUE + timedelta(days=1, hours=5)) == SwitchAction.NONE
    assert evaluate(make_switch(2), DUE + timedelta(days=2)) == SwitchAction.NOTIFY


def test_missed_sweeps_catch_up_one_reminder_at_a_time():
    assert evaluate(make_switch(0), DUE + timedelta(days=10)) == SwitchAction.NOTIFY
    assert evaluate(make_switch(2), DUE + timedelta(days=10)) == SwitchAction.NOTIFY


def test_three_reminders_then_wait_for_grace_period():
    assert evaluate(make_switch(3), DUE + timedelta(days=2, hours=23)) == SwitchAction.NONE


def test_trigger_after_grace_period():
    assert evaluate(make_switch(3), DUE + timedelta(days=3)) == SwitchAction.TRIGGER
    assert evaluate(make_switch(3), DUE + timedelta(days=40)) == SwitchAction.TRIGGER


@pytest.mark.parametrize("status", [SwitchStatus.PAUSED, SwitchStatus.TRIGGERED])
def test_inactive_switch_never_acts(status):
    switch = make_switch(3, status=status)

    assert evaluate(switch, DUE + timedelta(days=100)) == SwitchAction.NONE


def test_naive_now_treated_as_utc():
    naive = datetime(2024, 3, 4, 9, 0)

    assert evaluate(make_switch(3), naive) == SwitchAction.TRIGGER


def test_full_schedule():
    """Walk one sweep per day from the due date until the trigger"""
    switch = make_switch()
    actions = []
    for day in range(5):
        action = evaluate(switch, DUE + timedelta(days=day))
        actions.append(action)
        if action == SwitchAction.NOTIFY:
            switch.notifications_sent += 1
            switch.last_notified_at = DUE + timedelta(days=day)

    assert actions == [
        SwitchAction.NOTIFY,
        SwitchAction.NOTIFY,
        SwitchAction.NOTIFY,
        SwitchAction.TRIGGER,
        SwitchAction.TRIGGER,
    ]


def test_no_second_reminder_on_the_same_overdue_day():
    late = DUE + timedelta(days=5)
    switch = make_switch(1, last_notified_at=late)

    assert evaluate(switch, late + timedelta(minutes=1)) == SwitchAction.NONE
    assert evaluate(switch, late + timedelta(hours=14, minutes=59)) == SwitchAction.NONE
    assert evaluate(switch, DUE + timedelta(days=6)) == SwitchAction.NOTIFY


def test_reminder_from_before_a_new_due_date_is_ignored():
    switch = make_switch(0, last_notified_at=DUE - timedelta(days=40))

    assert evaluate(switch, DUE) == SwitchAction.NOTIFY


def test_trigger_waits_a_day_after_the_third_reminder():
    third = DUE + timedelta(days=7)
    switch = make_switch(3, last_notified_at=third)

    assert evaluate(switch, third + timedelta(minutes=5)) == SwitchAction.NONE
    assert evaluate(switch, third + timedelta(hours=23)) == SwitchAction.NONE
    assert evaluate(switch, third + timedelta(days=1)) == SwitchAction.TRIGGER


def test_same_day_sweeps_after_a_late_start():
    """Four sweeps within minutes of each other send one reminder and never trigger"""
    switch = make_switch()
    start = DUE + timedelta(days=5)
    actions = []
    for minute in range(4):
        now = start + timedelta(minutes=minute)
        action = evaluate(switch, now)
        actions.append(action)
        if action == SwitchAction.NOTIFY:
            switch.notifications_sent += 1
            switch.last_notified_at = now

    assert actions == [SwitchAction.NOTIFY] + [SwitchAction.NONE] * 3
