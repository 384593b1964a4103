from fastapi import APIRouter, Depends, Response

from admin_console.schemas import MailMoveIn, MailReplyIn, MailSendIn
from admin_console.security.rbac import require_permission
from admin_console.services.mailbox import MailboxClient

router = APIRouter(prefix="/outlook", tags=["outlook"])

can_view = require_permission("outlook.view")
can_send = require_permission("outlook.send")
can_delete = require_permission("outlook.delete")

def get_mailbox_client() -> MailboxClient:
    return MailboxClient()

@router.get("/mailboxes")
def list_mailboxes(client: MailboxClient = Depends(get_mailbox_client), _=Depends(can_view)):
    return {"mailboxes": client.mailboxes}

@router.get("/folders")
def list_folders(
    mailbox: str | None = None,
    client: MailboxClient = Depends(get_mailbox_client),
    _=Depends(can_view),
):
    """``mailbox=all`` merges every shared mailbox."""
    return {"success": True, "folders": client.list_folders(mailbox)}

@router.get("/messages")
def list_messages(
    folder_id: str = "inbox",
    mailbox: str | None = None,
    client: MailboxClient = Depends(get_mailbox_client),
    _=Depends(can_view),
):
    return {"success": True, "emails": client.list_messages(folder_id, mailbox)}

@router.get("/search")
def search_messages(
    q: str,
    mailbox: str | None = None,
    top: int = 20,
    client: MailboxClient = Depends(get_mailbox_client),
    _=Depends(can_view),
):
    return {"success": True, "emails": client.search(q, mailbox, top)}

@router.get("/stats")
def mailbox_stats(
    mailbox: str | None = None,
    client: MailboxClient = Depends(get_mailbox_client),
    _=Depends(can_view),
):
    return {"success": True, "stats": client.stats(mailbox)}

@router.get("/messages/{message_id}")
def get_message(
    message_id: str,
    mailbox: str | None = None,
    client: MailboxClient = Depends(get_mailbox_client),
    _=Depends(can_view),
):
    return {"success": True, "email": client.get_message(message_id, mailbox)}

@router.get("/messages/{message_id}/attachments")
def list_attachments(
    message_id: str,
    mailbox: str | None = None,
    client: MailboxClient = Depends(get_mailbox_client),
    _=Depends(can_view),
):
    return {"success": True, "attachments": client.list_attachments(message_id, mailbox)}

@router.get("/messages/{message_id}/attachments/{attachment_id}")
def download_attachment(
    message_id: str,
    attachment_id: str,
    filename: str = "attachment",
    content_type: str = "application/octet-stream",
    mailbox: str | None = None,
    client: MailboxClient = Depends(get_mailbox_client),
    _=Depends(can_view),
):
    content = client.download_attachment(message_id, attachment_id, mailbox)
    return Response(
        content=content,
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.post("/send")
def send_message(
    payload: MailSendIn,
    client: MailboxClient = Depends(get_mailbox_client),
    _=Depends(can_send),
):
    client.send(
        payload.to,
        payload.subject,
        payload.body,
        cc=payload.cc,
        attachments=[a.dict() for a in payload.attachments],
        mailbox=payload.mailbox,
    )
    return {"success": True}

@router.post("/messages/{message_id}/reply")
def reply_message(
    message_id: str,
    payload: MailReplyIn,
    mailbox: str | None = None,
    client: MailboxClient = Depends(get_mailbox_client),
    _=Depends(can_send),
):
    client.reply(message_id, payload.comment, mailbox)
    return {"success": True}

@router.post("/messages/{message_id}/move")
def move_message(
    message_id: str,
    payload: MailMoveIn,
    mailbox: str | None = None,
    client: MailboxClient = Depends(get_mailbox_client),
    _=Depends(can_view),
):
    client.move(message_id, payload.destinationId, mailbox)
    return {"success": True}

@router.patch("/messages/{message_id}/read")
def mark_read(
    message_id: str,
    read: bool = True,
    mailbox: str | None = None,
    client: MailboxClient = Depends(get_mailbox_client),
    _=Depends(can_view),
):
    client.mark_read(message_id, read, mailbox)
    return {"success": True}

@router.delete("/messages/{message_id}")
def delete_message(
    message_id: str,
    mailbox: str | None = None,
    client: MailboxClient = Depends(get_mailbox_client),
    _=Depends(can_delete),
):
    client.delete(message_id, mailbox)
    return {"success": True}
