"""Service-level tests for the switch sweep and its console script"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

from legacy_diary.contacts import ContactService, TrustedContactCreate
from legacy_diary.legacy import access, switch
from legacy_diary.legacy.models import SwitchConfig, SwitchStatus
from legacy_diary.observability.telemetry import get_counter

START = datetime(2024, 1, 1, 8, 0, tzinfo=UTC)


def configure(user, contact_ids, days=7):
    return switch.configure(
        user.id, SwitchConfig(check_in_interval_days=days, trusted_contact_ids=contact_ids), START
    )


def test_sweep_walks_to_trigger(make_user):
    user = make_user()
    contact = ContactService.add_contact(
        user, TrustedContactCreate(name="Sam", email="sam@example.com", relationship="Son")
    )
    configured = configure(user, [contact.id])
    due = configured.next_check_in_due

    assert due == START + timedelta(days=7)

    for day in range(3):
        report = switch.sweep(due + timedelta(days=day))
        assert report.notified == [user.id]

    report = switch.sweep(due + timedelta(days=3))
    assert report.triggered == [user.id]
    assert report.codes_issued == 1
    assert get_counter("switch.reminders") == 3
    assert get_counter("switch.triggers") == 1

    current = switch.get_switch(user.id)
    assert current.status == SwitchStatus.TRIGGERED.value
    assert current.notifications_sent == 3

    codes = access.list_access_codes(user.id)
    assert [c.contact_id for c in codes] == [contact.id]


def test_two_users_swept_independently(make_user):
    early = make_user()
    late = make_user()
    configure(early, [], days=7)
    configure(late, [], days=30)

    report = switch.sweep(START + timedelta(days=8))

    assert report.evaluated == 1
    assert report.notified == [early.id]


def test_trigger_without_contacts_issues_nothing(make_user):
    user = make_user()
    configured = configure(user, [])
    due = configured.next_check_in_due
    for day in range(3):
        switch.sweep(due + timedelta(days=day))

    report = switch.sweep(due + timedelta(days=3))

    assert report.triggered == [user.id]
    assert report.codes_issued == 0


def test_console_script(make_user, capsys):
    user = make_user()
    configure(user, [])

    exit_code = switch.main(["--now", (START + timedelta(days=7)).isoformat()])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["evaluated"] == 1
    assert output["notified"] == [user.id]


def test_repeated_sweeps_on_one_day_send_one_reminder(make_user):
    """A late cron run followed by manual reruns must not burn through reminders"""
    user = make_user()
    configured = configure(user, [])
    late = configured.next_check_in_due + timedelta(days=5)

    reports = [switch.sweep(late + timedelta(minutes=m)) for m in range(4)]

    assert [len(r.notified) for r in reports] == [1, 0, 0, 0]
    assert all(r.triggered == [] for r in reports)
    current = switch.get_switch(user.id)
    assert current.status == SwitchStatus.ACTIVE.value
    assert current.notifications_sent == 1
    assert current.last_notified_at == late


def test_late_sweeps_still_give_a_day_between_reminders(make_user):
    user = make_user()
    configured = configure(user, [])
    late = configured.next_check_in_due + timedelta(days=5)

    for day in range(3):
        assert switch.sweep(late + timedelta(days=day)).notified == [user.id]

    assert switch.sweep(late + timedelta(days=2, hours=12)).triggered == []
    assert switch.sweep(late + timedelta(days=3)).triggered == [user.id]


def test_check_in_clears_last_reminder(make_user):
    user = make_user()
    configured = configure(user, [])
    switch.sweep(configured.next_check_in_due)

    checked_in = switch.check_in(user.id, configured.next_check_in_due + timedelta(hours=1))

    assert checked_in.notifications_sent == 0
    assert checked_in.last_notified_at is None


def test_failed_code_issue_leaves_switch_active(make_user, monkeypatch):
    user = make_user()
    contacts = [
        ContactService.add_contact(
            user,
            TrustedContactCreate(
                name=name, email=f"{name.lower()}@example.com", relationship="Friend"
            ),
        )
        for name in ("Ada", "Ben")
    ]
    configured = configure(user, [c.id for c in contacts])
    due = configured.next_check_in_due
    for day in range(3):
        switch.sweep(due + timedelta(days=day))

    real_issue = access.issue_access_code
    calls = []

    def flaky_issue(user_id, contact_id=None):
        calls.append(contact_id)
        if len(calls) > 1:
            raise RuntimeError("Could not generate a unique access code")
        return real_issue(user_id, contact_id)

    monkeypatch.setattr(access, "issue_access_code", flaky_issue)
    report = switch.sweep(due + timedelta(days=3))

    assert report.triggered == []
    assert report.failed == [user.id]
    assert report.codes_issued == 0
    assert get_counter("switch.trigger_failures") == 1
    assert switch.get_switch(user.id).status == SwitchStatus.ACTIVE.value
    assert [c.is_active for c in access.list_access_codes(user.id)] == [False]

    monkeypatch.setattr(access, "issue_access_code", real_issue)
    report = switch.sweep(due + timedelta(days=4))

    assert report.triggered == [user.id]
    assert report.codes_issued == 2
    assert switch.get_switch(user.id).status == SwitchStatus.TRIGGERED.value
    active = [c.contact_id for c in access.list_access_codes(user.id) if c.is_active]
    assert sorted(active) == sorted(c.id for c in contacts)


def test_console_script_exit_code_on_failure(make_user, monkeypatch, capsys):
    user = make_user()
    contact = ContactService.add_contact(
        user, TrustedContactCreate(name="Sam", email="sam@example.com", relationship="Son")
    )
    configured = configure(user, [contact.id])
    due = configured.next_check_in_due
    for day in range(3):
        switch.sweep(due + timedelta(days=day))

    def broken_issue(user_id, contact_id=None):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(access, "issue_access_code", broken_issue)
    capsys.readouterr()

    exit_code = switch.main(["--now", (due + timedelta(days=3)).isoformat()])

    assert exit_code == 1
    assert json.loads(capsys.readouterr().out)["failed"] == [user.id]
