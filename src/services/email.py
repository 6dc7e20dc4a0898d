"""
Message sending, draft and contact calls against MS Graph.
"""

import html

from msgraph import GraphServiceClient
from msgraph.generated.models.body_type import BodyType
from msgraph.generated.models.email_address import EmailAddress
from msgraph.generated.models.item_body import ItemBody
from msgraph.generated.models.message import Message
from msgraph.generated.models.recipient import Recipient
from msgraph.generated.users.item.messages.item.create_reply.create_reply_post_request_body import (
    CreateReplyPostRequestBody,
)
from msgraph.generated.users.item.send_mail.send_mail_post_request_body import (
    SendMailPostRequestBody,
)

from models.mail import Contact, Draft, DraftRequest, EmailParticipant, SendMessageRequest
from services.graph_errors import remote_call


def convert_to_html(text: str) -> str:
    """Convert a plain text body to HTML so line breaks survive in mail clients."""
    escaped = html.escape(text, quote=False).replace("\n", "<br>\n")
    return f'<div style="font-family: Arial, sans-serif; font-size: 14px;">{escaped}</div>'


def to_recipients(participants: list[EmailParticipant]) -> list[Recipient]:
    return [
        Recipient(email_address=EmailAddress(address=p.email, name=p.name or None))
        for p in participants
    ]


def from_recipients(recipients) -> list[EmailParticipant]:
    participants = []
    for recipient in recipients or []:
        address = recipient.email_address
        if address and address.address:
            participants.append(EmailParticipant(email=address.address, name=address.name or ""))
    return participants


def build_message(request: SendMessageRequest | DraftRequest) -> Message:
    """Build a Graph Message from a send or draft request."""
    return Message(
        subject=request.subject,
        body=ItemBody(content_type=BodyType.Html, content=convert_to_html(request.body)),
        to_recipients=to_recipients(request.to),
        cc_recipients=to_recipients(request.cc),
        bcc_recipients=to_recipients(request.bcc),
    )


def parse_draft(message: Message) -> Draft:
    """Parse a Graph draft message into our format."""
    return Draft(
        id=message.id or "",
        subject=message.subject or "",
        to=from_recipients(message.to_recipients),
        cc=from_recipients(message.cc_recipients),
        bcc=from_recipients(message.bcc_recipients),
        body=message.body.content if message.body and message.body.content else "",
    )


@remote_call
async def send_message(
    graph: GraphServiceClient, user_id: str, request: SendMessageRequest
) -> None:
    """
    Send a message.

    Replies are created with createReply so they stay in the source thread, then
    their body is replaced with ours (which already quotes the original) before
    sending.
    """
    user = graph.users.by_user_id(user_id)

    if request.reply_to_message_id:
        source = user.messages.by_message_id(request.reply_to_message_id)
        reply = await source.create_reply.post(CreateReplyPostRequestBody())
        reply_item = user.messages.by_message_id(reply.id)
        await reply_item.patch(build_message(request))
        await reply_item.send.post()
        return

    request_body = SendMailPostRequestBody(message=build_message(request), save_to_sent_items=True)
    await user.send_mail.post(request_body)


@remote_call
async def create_draft(graph: GraphServiceClient, user_id: str, request: DraftRequest) -> Draft:
    """Create a draft in the mailbox's Drafts folder."""
    created = await graph.users.by_user_id(user_id).messages.post(build_message(request))
    return parse_draft(created)


@remote_call
async def update_draft(
    graph: GraphServiceClient, user_id: str, draft_id: str, request: DraftRequest
) -> Draft:
    updated = await graph.users.by_user_id(user_id).messages.by_message_id(draft_id).patch(
        build_message(request)
    )
    if updated is None:
        return Draft(id=draft_id, subject=request.subject, body=request.body)
    return parse_draft(updated)


@remote_call
async def delete_draft(graph: GraphServiceClient, user_id: str, draft_id: str) -> None:
    await graph.users.by_user_id(user_id).messages.by_message_id(draft_id).delete()


@remote_call
async def fetch_contacts(graph: GraphServiceClient, user_id: str) -> list[Contact]:
    """List the mailbox's contacts, one entry per email address."""
    contacts_response = await graph.users.by_user_id(user_id).contacts.get()
    raw_contacts = (
        contacts_response.value if contacts_response and contacts_response.value else []
    )

    contacts = []
    for contact in raw_contacts:
        for address in contact.email_addresses or []:
            if address.address:
                contacts.append(
                    Contact(email=address.address, name=contact.display_name or address.name or "")
                )
    return contacts
