"""Plain-text replies for availability and booking results."""

from __future__ import annotations
from tracking import t

from datetime import date
from typing import Iterable

from automation.shared.booking_contracts import Sport

TIME_REQUIRED_MESSAGE = "Error: Time is required for booking. Please specify a time slot."
CALENDAR_ADDED_MESSAGE = "📅 Added to your Google Calendar!"
GENERIC_ERROR_MESSAGE = "❌ Sorry, something went wrong while handling your request. Please try again."
CONFIGURATION_ERROR_MESSAGE = "❌ The booking service is not configured yet. Please contact the administrator."


def format_date(target_date: date) -> str:
    """``date(2025, 2, 10)`` → ``"Monday, February 10, 2025"``."""

    t('botapp.messages.formatting.format_date')
    return f"{target_date:%A}, {target_date:%B} {target_date.day}, {target_date.year}"


def format_availability(sport: Sport, target_date: date, times: Iterable[str]) -> str:
    t('botapp.messages.formatting.format_availability')
    labels = list(times)
    when = format_date(target_date)
    if not labels:
        return f"No available {sport.value} courts on {when}."
    lines = [f"Available {sport.value} courts on {when}:"]
    lines.extend(f"- {label}" for label in labels)
    return "\n".join(lines)


def format_booking_success(sport: Sport, target_date: date, time: str, companion: str) -> str:
    t('botapp.messages.formatting.format_booking_success')
    return f"Successfully booked {sport.value} court on {format_date(target_date)} at {time} with {companion}!"


def format_booking_failure(sport: Sport, target_date: date, time: str) -> str:
    t('botapp.messages.formatting.format_booking_failure')
    return (
        f"Failed to book {sport.value} court on {format_date(target_date)} at {time}. "
        "The slot may no longer be available."
    )


def format_invalid_request(reason: str) -> str:
    t('botapp.messages.formatting.format_invalid_request')
    return f"Error: {reason}"


__all__ = [
    "CALENDAR_ADDED_MESSAGE",
    "CONFIGURATION_ERROR_MESSAGE",
    "GENERIC_ERROR_MESSAGE",
    "TIME_REQUIRED_MESSAGE",
    "format_availability",
    "format_booking_failure",
    "format_booking_success",
    "format_date",
    "format_invalid_request",
]
