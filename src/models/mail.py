"""
Data models for messages, drafts and contacts.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class EmailParticipant(BaseModel):
    """Sender or recipient of a message."""

    model_config = ConfigDict(frozen=True)

    email: str
    name: str = ""

    def formatted(self) -> str:
        """Render as ``Name <email>`` or the bare address; awkward names are double-quoted."""
        if not self.name:
            return self.email
        if any(c in self.name for c in ',<>"'):
            escaped = self.name.replace('"', '\\"')
            return f'"{escaped}" <{self.email}>'
        return f"{self.name} <{self.email}>"


class EmailMessage(BaseModel):
    """Message read from the mailbox (the source of a reply or forward)."""

    model_config = ConfigDict(frozen=True)

    id: str
    subject: str = ""
    from_: list[EmailParticipant] = []
    to: list[EmailParticipant] = []
    cc: list[EmailParticipant] = []
    date: datetime | None = None
    body: str = ""
    snippet: str = ""


class Draft(BaseModel):
    """Saved draft."""

    model_config = ConfigDict(frozen=True)

    id: str
    subject: str = ""
    to: list[EmailParticipant] = []
    cc: list[EmailParticipant] = []
    bcc: list[EmailParticipant] = []
    body: str = ""


class Contact(BaseModel):
    """Address book entry used for recipient suggestions."""

    model_config = ConfigDict(frozen=True)

    email: str
    name: str = ""

    def matches(self, prefix: str) -> bool:
        prefix = prefix.lower()
        return self.email.lower().startswith(prefix) or any(
            part.lower().startswith(prefix) for part in self.name.split()
        )


class SendMessageRequest(BaseModel):
    """Outgoing message payload."""

    to: list[EmailParticipant]
    cc: list[EmailParticipant] = []
    bcc: list[EmailParticipant] = []
    subject: str = ""
    body: str = ""
    reply_to_message_id: str | None = None


class DraftRequest(BaseModel):
    """Create/update draft payload. Drafts never carry a reply-to id."""

    to: list[EmailParticipant] = []
    cc: list[EmailParticipant] = []
    bcc: list[EmailParticipant] = []
    subject: str = ""
    body: str = ""
