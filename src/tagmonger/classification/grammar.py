"""Date grammar for daily and weekly tag names."""

from __future__ import annotations

import re
from datetime import date

from tagmonger.errors import TagParseError

DAILY_TAG = re.compile(r"d_(?P<year>[0-9]{4})_(?P<month>[0-9]{2})_(?P<day>[0-9]{2})")
WEEKLY_TAG = re.compile(r"[Ww]_(?P<year>[0-9]{4})_(?P<week>[0-9]{2})")


def iso_weeks_in_year(year: int) -> int:
    """Return the number of ISO-8601 weeks (52 or 53) in ``year``.

    Dec 28 always falls in the last ISO week of its year.
    """

    return date(year, 12, 28).isocalendar()[1]


def parse_daily_tag(tag_name: str) -> date:
    """Parse a ``d_YYYY_MM_DD`` tag into its calendar date.

    Args:
        tag_name: Tag name with the manifest suffix already removed.

    Returns:
        date: The exact day encoded in the tag.

    Raises:
        TagParseError: If the tag is malformed or names an impossible date.
    """

    match = DAILY_TAG.fullmatch(tag_name)
    if match is None:
        raise TagParseError(tag_name, "expected d_YYYY_MM_DD")
    try:
        return date(int(match["year"]), int(match["month"]), int(match["day"]))
    except ValueError as exc:
        raise TagParseError(tag_name, str(exc)) from exc


def parse_weekly_tag(tag_name: str) -> date:
    """Parse a ``W_YYYY_WW`` tag into the Monday of that ISO week.

    Args:
        tag_name: Tag name with the manifest suffix already removed.

    Returns:
        date: Monday of the ISO-8601 week, which may fall in the previous
        December for week 1.

    Raises:
        TagParseError: If the tag is malformed or the week does not exist in
        that ISO year.
    """

    match = WEEKLY_TAG.fullmatch(tag_name)
    if match is None:
        raise TagParseError(tag_name, "expected W_YYYY_WW")
    year = int(match["year"])
    week = int(match["week"])
    if year < 1:
        raise TagParseError(tag_name, f"year {year} is out of range")
    weeks = iso_weeks_in_year(year)
    if not 1 <= week <= weeks:
        raise TagParseError(tag_name, f"ISO year {year} has weeks 01-{weeks}, got {week:02d}")
    try:
        return date.fromisocalendar(year, week, 1)
    except ValueError as exc:
        raise TagParseError(tag_name, str(exc)) from exc


def parse_tag_date(tag_name: str) -> date:
    """Decode the date embedded in a daily or weekly tag name.

    Args:
        tag_name: Tag name with the manifest suffix already removed.

    Returns:
        date: Decoded calendar date.

    Raises:
        TagParseError: If the name matches neither grammar.
    """

    if tag_name.startswith("d_"):
        return parse_daily_tag(tag_name)
    if tag_name[:2] in ("W_", "w_"):
        return parse_weekly_tag(tag_name)
    raise TagParseError(tag_name, "unrecognized tag format")


__all__ = [
    "DAILY_TAG",
    "WEEKLY_TAG",
    "iso_weeks_in_year",
    "parse_daily_tag",
    "parse_weekly_tag",
    "parse_tag_date",
]
