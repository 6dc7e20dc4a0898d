"""
Reply and forward body generation.

The pipeline is order-dependent: block tags become newlines before the generic
tag stripper runs, and entities are decoded only after tags are gone so that a
decoded ``&lt;`` is never mistaken for markup.
"""

import re
from datetime import datetime

from models.mail import EmailMessage

LEADING_BLANK_LINES = "\n\n\n"
FORWARD_HEADER = "---------- Forwarded message ---------"
QUOTE_PREFIX = "> "

BREAK_TAG = re.compile(r"<br\s*/?>", re.IGNORECASE)
PARAGRAPH_CLOSE_TAG = re.compile(r"</p\s*>", re.IGNORECASE)
DIV_CLOSE_TAG = re.compile(r"</div\s*>", re.IGNORECASE)
EXCESS_NEWLINES = re.compile(r"\n{3,}")
ATTRIBUTION_LINE = re.compile(r"^On .+ wrote:$")

ENTITIES = (
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
    # Last, so "&amp;lt;" decodes to the literal "&lt;"
    ("&amp;", "&"),
)


def strip_html(html: str) -> str:
    """Convert an HTML (or plain) body to plain text."""
    text = BREAK_TAG.sub("\n", html)
    text = PARAGRAPH_CLOSE_TAG.sub("\n\n", text)
    text = DIV_CLOSE_TAG.sub("\n", text)

    in_tag = False
    chars = []
    for ch in text:
        if ch == "<":
            in_tag = True
            continue
        if ch == ">":
            in_tag = False
            continue
        if not in_tag:
            chars.append(ch)
    text = "".join(chars)

    for entity, replacement in ENTITIES:
        text = text.replace(entity, replacement)

    text = EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def strip_signature(body: str) -> str:
    """Drop everything from the first ``--`` / ``-- `` delimiter line onward."""
    lines = body.split("\n")
    for i, line in enumerate(lines):
        if line == "-- " or line.strip() == "--":
            return "\n".join(lines[:i])
    return body


def strip_existing_quotes(body: str) -> str:
    """Remove quoted lines and attribution lines left by earlier replies."""
    kept = []
    for line in body.split("\n"):
        if line.startswith(">"):
            continue
        if ATTRIBUTION_LINE.match(line.strip()):
            continue
        kept.append(line)
    return "\n".join(kept).strip()


def format_quote_date(value: datetime | None) -> str:
    """Format like ``Mon, Jan 2, 2006 at 3:04 PM``."""
    if value is None:
        return "an unknown date"
    hour = value.hour % 12 or 12
    return f"{value:%a, %b} {value.day}, {value.year} at {hour}:{value:%M %p}"


def source_text(message: EmailMessage) -> str:
    """Plain text of the message body, falling back to the snippet."""
    return strip_html(message.body or message.snippet)


def build_quoted_body(message: EmailMessage) -> str:
    """
    Build a reply body: blank lines for the cursor, one attribution line, and the
    source text with signature and earlier quotes removed, each line prefixed.
    """
    sender = "Unknown"
    if message.from_:
        sender = message.from_[0].name or message.from_[0].email

    body = source_text(message)
    body = strip_signature(body)
    body = strip_existing_quotes(body)

    lines = [LEADING_BLANK_LINES + f"On {format_quote_date(message.date)}, {sender} wrote:"]
    lines.extend(QUOTE_PREFIX + line for line in body.split("\n"))
    return "\n".join(lines) + "\n"


def build_forwarded_body(message: EmailMessage) -> str:
    """Build a forward body: blank lines, a header block, then the source text."""
    header = [FORWARD_HEADER]
    if message.from_:
        header.append(f"From: {message.from_[0].formatted()}")
    header.append(f"Date: {format_quote_date(message.date)}")
    header.append(f"Subject: {message.subject}")
    if message.to:
        header.append("To: " + ", ".join(p.formatted() for p in message.to))

    return LEADING_BLANK_LINES + "\n".join(header) + "\n\n" + source_text(message)


def reply_subject(subject: str) -> str:
    if subject.lower().startswith("re:"):
        return subject
    return "Re: " + subject


def forward_subject(subject: str) -> str:
    if subject.lower().startswith("fwd:"):
        return subject
    return "Fwd: " + subject
