"""
Tests for chat input parsing (quick add, /edit, clear marker, /newtemplate,
/newproject, /newdomain, /newfield).
"""
import pytest

from personal_os.domain.common.errors import ValidationError
from personal_os.ui.telegram.utils.navigation import command_args
from personal_os.ui.telegram.utils.parsing import (
    clear_marker,
    field_key_for,
    parse_domain_command,
    parse_edit_command,
    parse_field_command,
    parse_project_command,
    parse_quick_add,
    parse_template_command,
)


def test_quick_add_title_only():
    assert parse_quick_add("  Call the bank  ") == ("Call the bank", {})
    assert parse_quick_add("Call the bank |  ") == ("Call the bank", {})


def test_quick_add_with_ratings():
    title, ratings = parse_quick_add("Write report | 4 3 2")
    assert title == "Write report"
    assert ratings == {"leverage": 4, "urgency": 3, "effort": 2}


@pytest.mark.parametrize("text", ["X | 4 3", "X | 4 3 2 1", "X | 4 3 9", "X | a b c", "X | 0 3 3"])
def test_quick_add_rejects_bad_ratings(text):
    with pytest.raises(ValidationError):
        parse_quick_add(text)


def test_parse_edit_command():
    assert parse_edit_command("abcd1234 Title New title here") == ("abcd1234", "title", "New title here")
    assert parse_edit_command("abcd1234 due_date") == ("abcd1234", "due_date", None)
    with pytest.raises(ValidationError):
        parse_edit_command("abcd1234")
    with pytest.raises(ValidationError):
        parse_edit_command("")


def test_clear_marker():
    assert clear_marker(" - ") == ""
    assert clear_marker(" text ") == "text"
    assert clear_marker(None) == ""


def test_command_args():
    assert command_args("/client Acme Corp") == "Acme Corp"
    assert command_args("/client") == ""
    assert command_args(None) == ""


def test_template_command_with_optional_ratings():
    name, steps = parse_template_command("Onboarding | Kickoff call (4 3 1); Send contract ;; Set up access (2 2 2)")
    assert name == "Onboarding"
    assert steps == [
        ("Kickoff call", {"leverage": 4, "urgency": 3, "effort": 1}),
        ("Send contract", {}),
        ("Set up access", {"leverage": 2, "urgency": 2, "effort": 2}),
    ]


def test_template_command_keeps_plain_parentheses_in_titles():
    _, steps = parse_template_command("T | Review (draft)")
    assert steps == [("Review (draft)", {})]


@pytest.mark.parametrize("text", ["Onboarding", "Onboarding |  ; ", " | Step", "T | Step (9 3 3)"])
def test_template_command_rejects_bad_input(text):
    with pytest.raises(ValidationError):
        parse_template_command(text)


def test_project_command():
    assert parse_project_command("Website redesign | New landing pages ") == ("Website redesign", "New landing pages")
    assert parse_project_command("Website redesign") == ("Website redesign", None)
    with pytest.raises(ValidationError):
        parse_project_command(" | only a description")


def test_domain_command():
    assert parse_domain_command("Work") == ("Work", None, None)
    assert parse_domain_command("Work / Clients #3b82f6") == ("Clients", "Work", "#3B82F6")
    assert parse_domain_command("Deep work #10B981") == ("Deep work", None, "#10B981")


@pytest.mark.parametrize("text", ["#3B82F6", "/ Child", "Work /", "A / B / C"])
def test_domain_command_rejects_bad_input(text):
    with pytest.raises(ValidationError):
        parse_domain_command(text)


def test_field_command():
    assert parse_field_command("Channel | select | email, slack,") == ("Channel", "channel", "select", ("email", "slack"))
    assert parse_field_command("Lead source") == ("Lead source", "lead_source", "text", ())
    # options only apply to select fields
    assert parse_field_command("Budget | NUMBER | 1, 2") == ("Budget", "budget", "number", ())


@pytest.mark.parametrize(
    "text",
    [
        "Channel | dropdown",
        "Channel | select",
        "Priority score | number",
        "Status",
        "2024 budget",
        " | text",
    ],
)
def test_field_command_rejects_bad_input(text):
    with pytest.raises(ValidationError):
        parse_field_command(text)


def test_field_key_for():
    assert field_key_for("  Lead  Source! ") == "lead_source"
    assert field_key_for("NPS (score)") == "nps_score"
