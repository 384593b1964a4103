import base64
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any

import requests

from admin_console.config import settings
from admin_console.errors import NetworkFailure, RemoteOperationFailure, ValidationFailure
from admin_console.logging_setup import log_event
from admin_console.services.documents import coerce_timestamp

ALL_MAILBOXES = "all"

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)

class MailboxClient:
    """Client for the shared-mailbox REST gateway.

    Every response is a ``{"success": bool, ...}`` envelope. ``success: false``
    raises RemoteOperationFailure; a request that never gets an answer
    (connection error or timeout) raises NetworkFailure. Nothing is retried.
    """

    def __init__(self, base_url: str | None = None, token: str | None = None,
                 mailboxes: list[str] | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.mail_api_base_url).rstrip("/")
        self.token = token if token is not None else settings.mail_api_token
        self.mailboxes = list(mailboxes or settings.shared_mailboxes)
        self.timeout = timeout or settings.request_timeout_seconds

    def _mailbox(self, mailbox: str | None) -> str:
        mailbox = mailbox or self.mailboxes[0]
        if mailbox == ALL_MAILBOXES:
            raise ValidationFailure("This action needs a single mailbox")
        if mailbox not in self.mailboxes:
            raise ValidationFailure(f"Unknown mailbox '{mailbox}'")
        return mailbox

    def _call(self, method: str, path: str, params: dict | None = None, body: dict | None = None) -> dict:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            r = requests.request(
                method,
                f"{self.base_url}/{path}",
                params=params,
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            log_event("mail_request_failed", level="error", method=method, path=path, error=str(e))
            raise NetworkFailure(f"Mail service did not answer: {e}") from e

        try:
            data = r.json()
        except ValueError:
            log_event("mail_bad_response", level="error", path=path, status=r.status_code)
            raise RemoteOperationFailure(f"Mail service returned HTTP {r.status_code}")

        if not isinstance(data, dict) or not data.get("success") or r.status_code >= 400:
            error = data.get("error") if isinstance(data, dict) else None
            log_event("mail_operation_failed", level="warning", path=path, status=r.status_code, error=error)
            raise RemoteOperationFailure(error or f"Mail service returned HTTP {r.status_code}")
        return data

    def _fan_out(self, fn):
        with ThreadPoolExecutor(max_workers=len(self.mailboxes)) as pool:
            futures = {mailbox: pool.submit(fn, mailbox) for mailbox in self.mailboxes}
        results = {}
        for mailbox, future in futures.items():
            try:
                results[mailbox] = future.result()
            except RemoteOperationFailure as e:
                # One refusing mailbox must not hide the others
                log_event("mailbox_skipped", level="warning", mailbox=mailbox, error=e.message)
        return results

    def list_folders(self, mailbox: str | None = None) -> list[dict[str, Any]]:
        if mailbox != ALL_MAILBOXES:
            return self._call("GET", "folders", {"userId": self._mailbox(mailbox)}).get("folders") or []

        per_mailbox = self._fan_out(lambda m: self._call("GET", "folders", {"userId": m}).get("folders") or [])
        ordered = [per_mailbox[m] for m in self.mailboxes if m in per_mailbox]
        if not ordered:
            return []
        # First mailbox gives the folder layout; counts are summed by display name
        combined = []
        for folder in ordered[0]:
            name = (folder.get("displayName") or "").lower()
            unread = folder.get("unreadItemCount") or 0
            total = folder.get("totalItemCount") or 0
            for others in ordered[1:]:
                match = next((f for f in others if (f.get("displayName") or "").lower() == name), None)
                if match:
                    unread += match.get("unreadItemCount") or 0
                    total += match.get("totalItemCount") or 0
            combined.append({**folder, "unreadItemCount": unread, "totalItemCount": total})
        return combined

    def _messages(self, folder_id: str, mailbox: str) -> list[dict[str, Any]]:
        data = self._call("GET", "emails", {"folderId": folder_id, "userId": mailbox})
        return data.get("emails") or []

    def list_messages(self, folder_id: str = "inbox", mailbox: str | None = None) -> list[dict[str, Any]]:
        if mailbox != ALL_MAILBOXES:
            return self._messages(folder_id, self._mailbox(mailbox))

        per_mailbox = self._fan_out(lambda m: self._messages(folder_id, m))
        merged = [
            {**message, "_mailbox": m}
            for m in self.mailboxes
            for message in per_mailbox.get(m, [])
        ]
        merged.sort(key=lambda msg: coerce_timestamp(msg.get("receivedDateTime")) or _OLDEST, reverse=True)
        return merged

    def get_message(self, message_id: str, mailbox: str | None = None) -> dict[str, Any]:
        data = self._call("GET", f"emails/{message_id}", {"userId": self._mailbox(mailbox)})
        return data.get("email") or {}

    def list_attachments(self, message_id: str, mailbox: str | None = None) -> list[dict[str, Any]]:
        data = self._call("GET", f"emails/{message_id}/attachments", {"userId": self._mailbox(mailbox)})
        return data.get("attachments") or []

    def download_attachment(self, message_id: str, attachment_id: str, mailbox: str | None = None) -> bytes:
        data = self._call(
            "GET",
            f"emails/{message_id}/attachments",
            {"userId": self._mailbox(mailbox), "attachmentId": attachment_id},
        )
        content = (data.get("attachment") or {}).get("contentBytes")
        if not content:
            raise RemoteOperationFailure("Attachment has no content")
        return base64.b64decode(content)

    def send(self, to: list[str], subject: str, body: str, cc: list[str] | None = None,
             attachments: list[dict[str, Any]] | None = None, mailbox: str | None = None) -> dict:
        if not to:
            raise ValidationFailure("At least one recipient is required")
        payload = {
            "to": list(to),
            "cc": list(cc or []),
            "subject": subject,
            "body": body,
            "userId": self._mailbox(mailbox),
            "attachments": [_encode_attachment(a) for a in attachments or []],
        }
        data = self._call("POST", "send", body=payload)
        log_event("mail_sent", mailbox=payload["userId"], recipients=len(payload["to"]))
        return data

    def reply(self, message_id: str, comment: str, mailbox: str | None = None) -> dict:
        mailbox = self._mailbox(mailbox)
        data = self._call("POST", f"emails/{message_id}/reply", {"userId": mailbox}, {"comment": comment})
        log_event("mail_replied", mailbox=mailbox, message_id=message_id)
        return data

    def move(self, message_id: str, destination_id: str, mailbox: str | None = None) -> dict:
        mailbox = self._mailbox(mailbox)
        data = self._call("POST", f"emails/{message_id}/move", {"userId": mailbox}, {"destinationId": destination_id})
        log_event("mail_moved", mailbox=mailbox, message_id=message_id, destination_id=destination_id)
        return data

    def delete(self, message_id: str, mailbox: str | None = None) -> dict:
        mailbox = self._mailbox(mailbox)
        data = self._call("DELETE", f"emails/{message_id}", {"userId": mailbox})
        log_event("mail_deleted", mailbox=mailbox, message_id=message_id)
        return data

    def mark_read(self, message_id: str, read: bool = True, mailbox: str | None = None) -> dict:
        params = {"userId": self._mailbox(mailbox), "isRead": "true" if read else "false"}
        return self._call("PATCH", f"emails/{message_id}/read", params)

    def stats(self, mailbox: str | None = None) -> dict[str, Any]:
        return self._call("GET", "stats", {"userId": self._mailbox(mailbox)}).get("stats") or {}

    def search(self, query: str, mailbox: str | None = None, top: int = 20) -> list[dict[str, Any]]:
        data = self._call("GET", "search", {"q": query, "userId": self._mailbox(mailbox), "top": top})
        return data.get("emails") or []

def _encode_attachment(attachment: dict[str, Any]) -> dict[str, Any]:
    """Raw ``content`` becomes base64 ``contentBytes``; text content is taken as already base64."""
    if "content" not in attachment:
        return dict(attachment)
    content = attachment["content"]
    encoded = {k: v for k, v in attachment.items() if k != "content"}
    if isinstance(content, (bytes, bytearray)):
        encoded["contentBytes"] = base64.b64encode(content).decode("ascii")
    else:
        encoded["contentBytes"] = content
    return encoded
