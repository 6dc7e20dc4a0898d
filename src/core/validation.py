"""
Local validation of recipient lists and form dates/times.

Everything here runs before a command is scheduled; failures raise
``ValidationError`` tagged with the offending field.
"""

import re
from datetime import date, datetime, time

from core.config import DATE_FORMAT, TIME_FORMAT
from models.errors import ValidationError
from models.mail import EmailParticipant

# "Name <email>" ("Name" may be double-quoted) or a bare address without
# spaces, commas or angle brackets
RECIPIENT_PATTERN = re.compile(r'^("(?:[^"\\]|\\.)*"\s*|[^<>]+)<([^<>]+)>$|^([^<>,\s]+)$')


def split_recipients(value: str) -> list[str]:
    """Split a recipient list on commas outside double quotes and angle brackets."""
    entries = []
    current = []
    quoted = False
    bracketed = False
    for char in value:
        if char == '"' and not bracketed and not (current and current[-1] == "\\"):
            quoted = not quoted
        elif char == "<" and not quoted:
            bracketed = True
        elif char == ">" and not quoted:
            bracketed = False
        elif char == "," and not quoted and not bracketed:
            entries.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    entries.append("".join(current).strip())
    return [e for e in entries if e]


def parse_recipients(value: str) -> list[EmailParticipant]:
    """
    Parse a comma-separated recipient list.

    Display names may be double-quoted (``"Doe, Jane" <jane@x.com>``). Entries
    that match neither ``Name <email>`` nor a bare address are dropped.
    """
    recipients = []
    for part in split_recipients(value):
        match = RECIPIENT_PATTERN.match(part)
        if not match:
            continue

        if match.group(1) and match.group(2):
            email = match.group(2).strip()
            name = match.group(1).strip()
            if len(name) >= 2 and name[0] == name[-1] == '"':
                name = name[1:-1].replace('\\"', '"')
        else:
            email = match.group(3).strip()
            name = ""

        if "@" not in email:
            continue
        recipients.append(EmailParticipant(name=name, email=email))

    return recipients


def validate_recipients(field: str, value: str, required: bool = False) -> list[EmailParticipant]:
    """
    Parse a recipient field, rejecting empty required fields and unparseable entries.

    Raises:
        ValidationError: if the field is required and empty, or any entry is invalid
    """
    value = value.strip()
    if not value:
        if required:
            raise ValidationError(field, "At least one recipient is required")
        return []

    entries = split_recipients(value)
    recipients = parse_recipients(value)
    if not recipients:
        raise ValidationError(field, "Invalid email address format")
    if len(recipients) != len(entries):
        raise ValidationError(field, f"{len(entries) - len(recipients)} invalid address(es)")
    return recipients


def parse_date(field: str, value: str) -> date:
    """Parse a ``YYYY-MM-DD`` field."""
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(field, "Invalid date format (use YYYY-MM-DD)")


def parse_time(field: str, value: str) -> time:
    """Parse an ``HH:MM`` field."""
    try:
        return datetime.strptime(value.strip(), TIME_FORMAT).time()
    except ValueError:
        raise ValidationError(field, "Invalid time format (use HH:MM)")


def parse_participants(field: str, value: str) -> list[str]:
    """Parse a comma-separated list of participant addresses."""
    emails = [e.strip() for e in value.split(",") if e.strip()]
    if not emails:
        raise ValidationError(field, "At least one participant email is required")
    invalid = [e for e in emails if "@" not in e]
    if invalid:
        raise ValidationError(field, f"Invalid participant email '{invalid[0]}'")
    return emails


def parse_positive_int(field: str, value: str) -> int:
    """Parse a positive whole number."""
    try:
        number = int(value.strip())
    except ValueError:
        raise ValidationError(field, "Must be a positive number")
    if number <= 0:
        raise ValidationError(field, "Must be a positive number")
    return number
