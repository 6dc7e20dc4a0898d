"""
Compose screen controller.

One structural mode with a focus index over the five fields. ``sending`` and
``saving_draft`` gate re-entrant send/save triggers. Dirty state is the content
hash of the fields compared with the hash recorded at the last successful save.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from core.config import BACK_AFTER_SEND_SECONDS, CONTACT_SUGGESTION_LIMIT
from core.hashing import compute_content_hash
from core.validation import parse_recipients, validate_recipients
from models.errors import ValidationError, truncate_error
from models.mail import Contact, Draft, DraftRequest, EmailMessage, EmailParticipant, SendMessageRequest
from models.messages import (
    AutosaveTick,
    CommandFailed,
    CommandNames,
    ContactsLoaded,
    DraftDeleted,
    DraftSaved,
    FieldEdited,
    KeyPressed,
    MessageSent,
    NavigateBack,
    Quit,
    WindowResized,
)
from screens.autosave import AutosaveDebouncer
from screens.commands import Command
from screens.context import ScreenContext, Severity
from screens.forms import cycle_focus
from screens.router import ModeRouter
from services.quoting import build_forwarded_body, build_quoted_body, forward_subject, reply_subject

logger = logging.getLogger(__name__)


class ComposeMode(Enum):
    NEW = "new"
    REPLY = "reply"
    REPLY_ALL = "reply_all"
    FORWARD = "forward"
    DRAFT = "draft"


class SaveStatus(Enum):
    NONE = "none"
    UNSAVED = "unsaved"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


@dataclass(frozen=True)
class ComposeData:
    """What the compose screen is opened with."""

    mode: ComposeMode = ComposeMode.NEW
    message: EmailMessage | None = None
    draft: Draft | None = None


COMPOSE_FIELDS = ["to", "cc", "bcc", "subject", "body"]
RECIPIENT_FIELDS = {"to", "cc", "bcc"}

TITLES = {
    ComposeMode.NEW: "New Message",
    ComposeMode.REPLY: "Reply",
    ComposeMode.REPLY_ALL: "Reply All",
    ComposeMode.FORWARD: "Forward",
    ComposeMode.DRAFT: "Edit Draft",
}

HELP_TEXT = "Tab: next field  Ctrl+A: send  Ctrl+S: save draft  Ctrl+T: Cc  Ctrl+B: Bcc  Ctrl+N: accept suggestion  Ctrl+Q: discard  Esc: back"


def join_participants(participants: list[EmailParticipant]) -> str:
    return ", ".join(p.formatted() for p in participants)


@dataclass
class ComposeForm:
    """Field values plus the bookkeeping for focus and dirty tracking."""

    to: str = ""
    cc: str = ""
    bcc: str = ""
    subject: str = ""
    body: str = ""
    show_cc: bool = False
    show_bcc: bool = False
    focus_index: int = 0
    draft_id: str = ""
    is_dirty: bool = False
    save_status: SaveStatus = SaveStatus.NONE
    last_saved_hash: str = ""
    saved_at: datetime | None = None
    validation_errors: dict[str, str] = field(default_factory=dict)

    def content_hash(self) -> str:
        return compute_content_hash(self.to, self.cc, self.bcc, self.subject, self.body)

    def mark_clean(self) -> None:
        self.last_saved_hash = self.content_hash()
        self.is_dirty = False

    def refresh_dirty(self) -> None:
        self.is_dirty = self.content_hash() != self.last_saved_hash
        if self.save_status == SaveStatus.SAVING:
            return
        if self.is_dirty:
            self.save_status = SaveStatus.UNSAVED
        else:
            # edited back to the saved content
            self.save_status = SaveStatus.SAVED if self.saved_at else SaveStatus.NONE

    @property
    def focused_field(self) -> str:
        return COMPOSE_FIELDS[self.focus_index]

    def is_hidden(self, index: int) -> bool:
        name = COMPOSE_FIELDS[index]
        return (name == "cc" and not self.show_cc) or (name == "bcc" and not self.show_bcc)

    def focus_next(self) -> None:
        self.focus_index = cycle_focus(self.focus_index, len(COMPOSE_FIELDS), 1, self.is_hidden)

    def focus_previous(self) -> None:
        self.focus_index = cycle_focus(self.focus_index, len(COMPOSE_FIELDS), -1, self.is_hidden)

    def draft_request(self) -> DraftRequest:
        """Drafts keep whatever recipients parse; nothing is rejected."""
        return DraftRequest(
            to=parse_recipients(self.to),
            cc=parse_recipients(self.cc),
            bcc=parse_recipients(self.bcc),
            subject=self.subject,
            body=self.body,
        )


class ComposeScreen:
    """Message composition with autosaved drafts."""

    def __init__(self, context: ScreenContext, data: ComposeData | None = None):
        self.context = context
        self.commands = context.commands
        self.status = context.status
        self.data = data or ComposeData()
        self.mode = self.data.mode

        self.form = ComposeForm()
        self.autosave = AutosaveDebouncer(self.commands)
        self.contacts: tuple[Contact, ...] = ()
        self.sending = False
        self.saving_draft = False
        self.sent = False
        self.confirm_discard = False
        self.width = 0
        self.height = 0

        self._prefill(self.data)

        self.router: ModeRouter[str] = ModeRouter("editing", name="compose")
        self.router.on_any(KeyPressed, self._on_key)
        self.router.on_any(FieldEdited, self._on_field_edited)
        self.router.on_any(WindowResized, self._on_resize)
        self.router.on_any(AutosaveTick, self._on_autosave_tick)
        self.router.on_any(DraftSaved, self._on_draft_saved)
        self.router.on_any(MessageSent, self._on_message_sent)
        self.router.on_any(DraftDeleted, self._on_draft_deleted)
        self.router.on_any(ContactsLoaded, self._on_contacts_loaded)
        self.router.on_any(CommandFailed, self._on_command_failed)

    def _prefill(self, data: ComposeData) -> None:
        form = self.form
        message = data.message

        if self.mode in (ComposeMode.REPLY, ComposeMode.REPLY_ALL) and message:
            form.subject = reply_subject(message.subject)
            if message.from_:
                form.to = message.from_[0].formatted()
            if self.mode == ComposeMode.REPLY_ALL:
                own = self.context.user_email.lower()
                others = [p for p in message.to + message.cc if p.email.lower() != own]
                if others:
                    form.cc = join_participants(others)
                    form.show_cc = True
            form.body = build_quoted_body(message)

        elif self.mode == ComposeMode.FORWARD and message:
            form.subject = forward_subject(message.subject)
            form.body = build_forwarded_body(message)

        elif self.mode == ComposeMode.DRAFT and data.draft:
            draft = data.draft
            form.draft_id = draft.id
            form.to = join_participants(draft.to)
            form.cc = join_participants(draft.cc)
            form.bcc = join_participants(draft.bcc)
            form.show_cc = bool(draft.cc)
            form.show_bcc = bool(draft.bcc)
            form.subject = draft.subject
            form.body = draft.body

        # Prefilled content counts as saved
        form.mark_clean()

    # =========================================================================
    # PUBLIC CONTRACT
    # =========================================================================

    def init(self) -> list[Command]:
        return [self.commands.fetch_contacts(), *self.autosave.arm()]

    def update(self, message) -> list[Command]:
        return self.router.dispatch(message)

    def view(self) -> str:
        form = self.form
        lines = [TITLES[self.mode], ""]
        for i, name in enumerate(COMPOSE_FIELDS):
            if form.is_hidden(i):
                continue
            marker = ">" if i == form.focus_index else " "
            value = getattr(form, name)
            if name == "body":
                lines.append(f"{marker} Body:")
                lines.extend("    " + line for line in value.split("\n"))
            else:
                lines.append(f"{marker} {name.capitalize() + ':':<9}{value}")
            if name in form.validation_errors:
                lines.append(f"    ! {form.validation_errors[name]}")
            if i == form.focus_index and name in RECIPIENT_FIELDS:
                for contact in self.suggestions():
                    lines.append(f"    ~ {contact.name} <{contact.email}>" if contact.name else f"    ~ {contact.email}")

        lines.append("")
        state = self.save_status_text()
        if self.sending:
            state = "Sending..."
        if state:
            lines.append(state)
        lines.append(HELP_TEXT)
        return "\n".join(lines)

    def save_status_text(self) -> str:
        status = self.form.save_status
        if status == SaveStatus.SAVING:
            return "Saving draft..."
        if status == SaveStatus.UNSAVED:
            return "Unsaved changes"
        if status == SaveStatus.ERROR:
            return "Save failed (Ctrl+S to retry)"
        if status == SaveStatus.SAVED and self.form.saved_at:
            elapsed = (self.context.now() - self.form.saved_at).total_seconds()
            if elapsed < 60:
                return "Draft saved just now"
            return f"Draft saved {int(elapsed // 60)} min ago"
        return ""

    # =========================================================================
    # CONTACT SUGGESTIONS
    # =========================================================================

    def suggestions(self) -> list[Contact]:
        """Contacts matching the last entry of the focused recipient field."""
        name = self.form.focused_field
        if name not in RECIPIENT_FIELDS:
            return []
        value = getattr(self.form, name)
        token = value.rsplit(",", 1)[-1].strip()
        if not token:
            return []
        present = {p.email.lower() for p in parse_recipients(value)}
        matches = [c for c in self.contacts if c.matches(token) and c.email.lower() not in present]
        return matches[:CONTACT_SUGGESTION_LIMIT]

    def _accept_suggestion(self) -> None:
        suggestions = self.suggestions()
        if not suggestions:
            return
        name = self.form.focused_field
        head = getattr(self.form, name).rsplit(",", 1)
        prefix = head[0] + ", " if len(head) > 1 else ""
        contact = suggestions[0]
        entry = EmailParticipant(email=contact.email, name=contact.name).formatted()
        self._set_field(name, prefix + entry + ", ")

    # =========================================================================
    # INPUT
    # =========================================================================

    def _on_key(self, msg: KeyPressed) -> list[Command]:
        key = msg.key
        form = self.form

        if key in ("ctrl+q", "ctrl+c"):
            if form.is_dirty and not self.confirm_discard and not self.sent:
                self.confirm_discard = True
                self.status.set_status("Unsaved changes - press again to discard", Severity.WARNING)
                return []
            return [self.commands.emit(Quit() if key == "ctrl+c" else NavigateBack())]
        self.confirm_discard = False

        if key == "esc":
            if form.is_dirty and not self.sent:
                self.status.set_status(
                    "Unsaved changes - save with Ctrl+S or discard with Ctrl+Q", Severity.WARNING
                )
                return []
            return [self.commands.emit(NavigateBack())]

        if key == "tab":
            form.focus_next()
        elif key == "shift+tab":
            form.focus_previous()
        elif key == "ctrl+a":
            return self._send()
        elif key == "ctrl+s":
            if self.saving_draft or self.sending or self.sent:
                return []
            self.status.set_status("Saving draft...")
            return [self._save()]
        elif key == "ctrl+t":
            form.show_cc = not form.show_cc
            if form.is_hidden(form.focus_index):
                form.focus_next()
        elif key == "ctrl+b":
            form.show_bcc = not form.show_bcc
            if form.is_hidden(form.focus_index):
                form.focus_next()
        elif key == "ctrl+n":
            self._accept_suggestion()
        return []

    def _on_field_edited(self, msg: FieldEdited) -> list[Command]:
        if msg.field not in COMPOSE_FIELDS:
            logger.debug("compose has no field %r", msg.field)
            return []
        self.confirm_discard = False
        self._set_field(msg.field, msg.value)
        return []

    def _set_field(self, name: str, value: str) -> None:
        setattr(self.form, name, value)
        self.form.validation_errors.pop(name, None)
        self.form.refresh_dirty()

    def _on_resize(self, msg: WindowResized) -> list[Command]:
        self.width = msg.width
        self.height = msg.height
        return []

    # =========================================================================
    # SEND
    # =========================================================================

    def _validate(self) -> SendMessageRequest:
        """
        Build the outgoing message.

        Raises:
            ValidationError: for the first invalid recipient field
        """
        form = self.form
        form.validation_errors = {}
        try:
            to = validate_recipients("to", form.to, required=True)
            cc = validate_recipients("cc", form.cc)
            bcc = validate_recipients("bcc", form.bcc)
        except ValidationError as e:
            form.validation_errors[e.field] = e.message
            raise

        if not form.subject.strip():
            # Advisory only
            form.validation_errors["subject"] = "Subject is empty (optional)"

        reply_to = None
        if self.mode in (ComposeMode.REPLY, ComposeMode.REPLY_ALL) and self.data.message:
            reply_to = self.data.message.id

        return SendMessageRequest(
            to=to,
            cc=cc,
            bcc=bcc,
            subject=form.subject,
            body=form.body,
            reply_to_message_id=reply_to,
        )

    def _send(self) -> list[Command]:
        if self.sending or self.sent:
            return []
        try:
            request = self._validate()
        except ValidationError as e:
            self.status.set_status(f"Cannot send: {e.message}", Severity.WARNING)
            return []

        self.sending = True
        self.form.save_status = SaveStatus.NONE
        self.status.set_status("Sending message...")
        return [self.commands.send_message(request)]

    def _on_message_sent(self, msg: MessageSent) -> list[Command]:
        self.sending = False
        self.sent = True
        self.form.mark_clean()
        self.status.set_status("Message sent successfully!")

        commands = []
        if self.form.draft_id:
            commands.append(self.commands.delete_draft(self.form.draft_id))
        commands.append(
            self.commands.after(BACK_AFTER_SEND_SECONDS, lambda at: NavigateBack(), name="back_after_send")
        )
        return commands

    # =========================================================================
    # DRAFTS
    # =========================================================================

    def _save(self) -> Command:
        """Schedule a draft save of the current fields."""
        self.saving_draft = True
        self.form.save_status = SaveStatus.SAVING
        return self.commands.save_draft(
            self.form.draft_id, self.form.draft_request(), self.form.content_hash()
        )

    def _on_autosave_tick(self, msg: AutosaveTick) -> list[Command]:
        return self.autosave.on_tick(
            is_dirty=self.form.is_dirty and not self.sent,
            saving=self.saving_draft or self.sending,
            save=self._save,
        )

    def _on_draft_saved(self, msg: DraftSaved) -> list[Command]:
        form = self.form
        self.saving_draft = False

        if not msg.draft_id:
            form.save_status = SaveStatus.ERROR
            self.status.set_status("Draft save failed: no draft ID returned", Severity.WARNING)
            return []

        new_draft = not form.draft_id
        if new_draft:
            form.draft_id = msg.draft_id
        elif form.draft_id != msg.draft_id:
            logger.warning("draft id changed from %s to %s, keeping the first", form.draft_id, msg.draft_id)

        # Edits made while the save was in flight keep the form dirty
        form.last_saved_hash = msg.content_hash
        form.saved_at = self.context.now()
        form.is_dirty = form.content_hash() != form.last_saved_hash
        form.save_status = SaveStatus.UNSAVED if form.is_dirty else SaveStatus.SAVED

        if self.sent and new_draft:
            # The message went out before this draft existed
            return [self.commands.delete_draft(form.draft_id)]
        if not self.sent:
            self.status.set_status("")
        return []

    def _on_draft_deleted(self, msg: DraftDeleted) -> list[Command]:
        logger.info("deleted draft %s after send", msg.draft_id)
        return []

    def _on_contacts_loaded(self, msg: ContactsLoaded) -> list[Command]:
        self.contacts = msg.contacts
        return []

    # =========================================================================
    # FAILURES
    # =========================================================================

    def _on_command_failed(self, msg: CommandFailed) -> list[Command]:
        error_text = truncate_error(str(msg.error))

        if msg.command == CommandNames.SEND_MESSAGE:
            self.sending = False
            self.form.save_status = SaveStatus.UNSAVED if self.form.is_dirty else SaveStatus.NONE
            self.status.set_status(f"Send failed: {error_text}", Severity.WARNING)
        elif msg.command == CommandNames.SAVE_DRAFT:
            self.saving_draft = False
            self.form.save_status = SaveStatus.ERROR
            self.status.set_status(f"Draft save failed: {error_text}", Severity.WARNING)
        elif msg.command == CommandNames.DELETE_DRAFT:
            # The message already went out
            logger.warning("could not delete draft after send: %s", msg.error)
        elif msg.command == CommandNames.FETCH_CONTACTS:
            logger.warning("contact suggestions unavailable: %s", msg.error)
        else:
            logger.warning("unexpected failure of %s: %r", msg.command, msg.error)
        return []
