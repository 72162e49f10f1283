from tracking import t
from datetime import date

import pytest

from automation.shared.booking_contracts import BookingAction, Sport
from botapp.commands.parser import (
    USAGE,
    CommandParseError,
    parse_action_command,
    resolve_date,
    split_time,
)

# A Tuesday.
TODAY = date(2026, 2, 10)


@pytest.mark.parametrize(
    "phrase, expected",
    [
        ("today", date(2026, 2, 10)),
        ("tonight", date(2026, 2, 10)),
        ("tomorrow", date(2026, 2, 11)),
        ("wednesday", date(2026, 2, 11)),
        ("Tue", date(2026, 2, 10)),
        ("monday", date(2026, 2, 16)),
        ("next friday", date(2026, 2, 20)),
        ("next tuesday", date(2026, 2, 24)),
        ("2026-03-01", date(2026, 3, 1)),
        ("Feb 14", date(2026, 2, 14)),
        ("February 14, 2027", date(2027, 2, 14)),
        ("Jan 5", date(2027, 1, 5)),
    ],
)
def test_resolve_date(phrase, expected):
    t('tests.unit.test_command_parser.test_resolve_date')
    assert resolve_date(phrase, TODAY) == expected


@pytest.mark.parametrize("phrase", ["", "someday", "next week", "Feb 30"])
def test_resolve_date_rejects_unknown_phrases(phrase):
    t('tests.unit.test_command_parser.test_resolve_date_rejects_unknown_phrases')
    assert resolve_date(phrase, TODAY) is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("tomorrow 2:30 PM", ("tomorrow", "2:30 PM")),
        ("tomorrow at 2 pm", ("tomorrow", "2:00 PM")),
        ("Feb 10 2pm", ("Feb 10", "2:00 PM")),
        ("2026-02-12 14:00", ("2026-02-12", "14:00")),
        ("Feb 10", ("Feb 10", None)),
        ("next friday", ("next friday", None)),
    ],
)
def test_split_time(text, expected):
    t('tests.unit.test_command_parser.test_split_time')
    assert split_time(text) == expected


@pytest.mark.parametrize("text", ["tomorrow 25:00", "tomorrow 13 pm", "tomorrow 2:75"])
def test_split_time_rejects_impossible_times(text):
    t('tests.unit.test_command_parser.test_split_time_rejects_impossible_times')
    with pytest.raises(CommandParseError):
        split_time(text)


def test_parse_booking_command():
    t('tests.unit.test_command_parser.test_parse_booking_command')
    request = parse_action_command(BookingAction.BOOK, ["Tennis", "next", "fri", "2:30", "PM"], TODAY)

    assert request.action is BookingAction.BOOK
    assert request.sport is Sport.TENNIS
    assert request.target_date == date(2026, 2, 20)
    assert request.time == "2:30 PM"
    assert request.target_date.weekday() == 4


def test_booking_without_time_is_left_for_dispatcher():
    t('tests.unit.test_command_parser.test_booking_without_time_is_left_for_dispatcher')
    request = parse_action_command(BookingAction.BOOK, ["pickleball", "tomorrow"], TODAY)

    assert request.time is None
    assert request.missing_fields() == ("time",)


def test_query_command_without_time():
    t('tests.unit.test_command_parser.test_query_command_without_time')
    request = parse_action_command(BookingAction.QUERY_TIMES, ["pickleball", "Feb", "14"], TODAY)

    assert request.sport is Sport.PICKLEBALL
    assert request.target_date == date(2026, 2, 14)
    assert request.missing_fields() == ()


@pytest.mark.parametrize(
    "args, fragment",
    [
        ([], "Usage"),
        (["golf", "tomorrow"], "Unknown sport"),
        (["tennis"], "which date"),
        (["tennis", "someday"], "couldn't understand the date"),
        (["tennis", "2026-01-01"], "in the past"),
    ],
)
def test_parse_errors_explain_the_problem(args, fragment):
    t('tests.unit.test_command_parser.test_parse_errors_explain_the_problem')
    with pytest.raises(CommandParseError) as excinfo:
        parse_action_command(BookingAction.QUERY_TIMES, args, TODAY)
    assert fragment in str(excinfo.value)


def test_usage_lists_both_commands():
    t('tests.unit.test_command_parser.test_usage_lists_both_commands')
    assert "/times" in USAGE and "/book" in USAGE
