"""
Tests for reply/forward body generation.
"""

from datetime import datetime, timezone

from models.mail import EmailMessage, EmailParticipant
from services.quoting import (
    build_forwarded_body,
    build_quoted_body,
    forward_subject,
    reply_subject,
    strip_existing_quotes,
    strip_html,
    strip_signature,
)


def make_message(body: str, **kwargs) -> EmailMessage:
    defaults = dict(
        id="m1",
        subject="Hello",
        from_=[EmailParticipant(email="john@example.com", name="John Doe")],
        to=[EmailParticipant(email="me@example.com")],
        date=datetime(2006, 1, 2, 15, 4, tzinfo=timezone.utc),
        body=body,
    )
    defaults.update(kwargs)
    return EmailMessage(**defaults)


# =============================================================================
# HTML STRIPPING
# =============================================================================


class TestStripHtml:
    def test_block_tags_become_newlines(self):
        assert strip_html("one<br>two<br/>three<br />four") == "one\ntwo\nthree\nfour"
        assert strip_html("<p>first</p><p>second</p>") == "first\n\nsecond"
        assert strip_html("<div>a</div><div>b</div>") == "a\nb"

    def test_strips_remaining_tags(self):
        assert strip_html('<span style="x">Hi <b>there</b></span>') == "Hi there"

    def test_decodes_entities_after_tags(self):
        assert strip_html("a&nbsp;b &amp; c &lt;tag&gt; &quot;q&quot; &#39;s") == "a b & c <tag> \"q\" 's"

    def test_double_encoded_ampersand_stays_literal(self):
        assert strip_html("&amp;lt;") == "&lt;"

    def test_collapses_blank_runs_and_trims(self):
        assert strip_html("\n\na\n\n\n\n\nb\n\n") == "a\n\nb"


# =============================================================================
# SIGNATURES AND QUOTES
# =============================================================================


class TestStripSignature:
    def test_drops_from_delimiter(self):
        assert strip_signature("Hi\n--\nJohn Doe\nAcme Inc") == "Hi"

    def test_delimiter_with_trailing_space(self):
        assert strip_signature("Hi\n-- \nJohn") == "Hi"

    def test_dashes_inside_text_are_kept(self):
        body = "Price -- 10 EUR\n---\nEnd"
        assert strip_signature(body) == body


class TestStripExistingQuotes:
    def test_removes_quoted_and_attribution_lines(self):
        body = "New text\n\nOn Mon, Jan 2, 2006 at 3:04 PM, Ann wrote:\n> old\n>> older"
        assert strip_existing_quotes(body) == "New text"


# =============================================================================
# REPLY / FORWARD BODIES
# =============================================================================


class TestBuildQuotedBody:
    def test_signature_is_excluded(self):
        """Should quote the text and drop the signature lines."""
        body = build_quoted_body(make_message("Hi\n--\nJohn Doe\nAcme Inc"))

        assert "> Hi" in body
        assert "John Doe\n" not in body.split("wrote:", 1)[1]
        assert "Acme Inc" not in body

    def test_layout(self):
        body = build_quoted_body(make_message("Line one\nLine two"))
        assert body == (
            "\n\n\nOn Mon, Jan 2, 2006 at 3:04 PM, John Doe wrote:\n"
            "> Line one\n"
            "> Line two\n"
        )

    def test_falls_back_to_snippet_and_email(self):
        message = make_message(
            "",
            snippet="Short preview",
            from_=[EmailParticipant(email="anon@example.com")],
        )
        body = build_quoted_body(message)
        assert "anon@example.com wrote:" in body
        assert "> Short preview" in body

    def test_requoting_keeps_one_level(self):
        """Should produce one attribution line and no nested prefixes."""
        first = build_quoted_body(make_message("Original text"))
        second = build_quoted_body(make_message(first, from_=[EmailParticipant(email="b@example.com", name="Bea")]))

        assert second.count("wrote:") == 1
        assert "> >" not in second
        assert all(line.startswith("> ") for line in second.strip("\n").split("\n")[1:])


class TestBuildForwardedBody:
    def test_header_block(self):
        body = build_forwarded_body(make_message("<p>Body text</p>"))

        assert body.startswith("\n\n\n---------- Forwarded message ---------\n")
        assert "From: John Doe <john@example.com>\n" in body
        assert "Date: Mon, Jan 2, 2006 at 3:04 PM\n" in body
        assert "Subject: Hello\n" in body
        assert "To: me@example.com\n" in body
        assert body.endswith("\n\nBody text")

    def test_keeps_signature(self):
        body = build_forwarded_body(make_message("Hi\n--\nJohn"))
        assert body.endswith("Hi\n--\nJohn")


class TestSubjects:
    def test_reply_prefix_added_once(self):
        assert reply_subject("Lunch") == "Re: Lunch"
        assert reply_subject("RE: Lunch") == "RE: Lunch"

    def test_forward_prefix_added_once(self):
        assert forward_subject("Lunch") == "Fwd: Lunch"
        assert forward_subject("fwd: Lunch") == "fwd: Lunch"
