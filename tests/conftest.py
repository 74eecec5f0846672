"""
Shared test fixtures for mailcal tests
"""

import base64
from typing import Dict, List, Optional, Set

import pytest
from googleapiclient.errors import HttpError


def b64url(text) -> str:
    """Encode text/bytes the way Gmail does (base64url, no padding)"""
    if isinstance(text, str):
        text = text.encode("utf-8")
    return base64.urlsafe_b64encode(text).decode("ascii").rstrip("=")


def make_part(
    mime_type: str,
    data: Optional[str] = None,
    *,
    filename: str = "",
    headers: Optional[List[Dict]] = None,
    attachment_id: Optional[str] = None,
    size: int = 0,
    parts: Optional[List[Dict]] = None,
) -> dict:
    """Helper to create a payload part matching Gmail API structure"""
    body = {"size": size}
    if data is not None:
        body["data"] = data
    if attachment_id:
        body["attachmentId"] = attachment_id
    part = {
        "mimeType": mime_type,
        "filename": filename,
        "headers": headers or [],
        "body": body,
    }
    if parts is not None:
        part["parts"] = parts
    return part


def make_message(
    message_id: str,
    payload: Optional[dict],
    *,
    subject: Optional[str] = "Hello",
    sender: Optional[str] = "Alice <alice@example.com>",
    labels: Optional[List[str]] = None,
) -> dict:
    """Helper to create a full-format message, adding headers to the payload"""
    msg = {
        "id": message_id,
        "threadId": f"thread_{message_id}",
        "labelIds": labels if labels is not None else ["INBOX"],
        "snippet": f"snippet of {message_id}",
    }
    if payload is not None:
        headers = list(payload.get("headers") or [])
        if subject is not None:
            headers.append({"name": "Subject", "value": subject})
        if sender is not None:
            headers.append({"name": "From", "value": sender})
        msg["payload"] = dict(payload, headers=headers)
    return msg


# === Mock Gmail API Service ===

class MockExecute:
    """Mock for the .execute() call that returns stored data"""
    def __init__(self, data=None, error: Optional[Exception] = None):
        self._data = data
        self._error = error

    def execute(self):
        if self._error is not None:
            raise self._error
        return self._data


class MockHttpResponse:
    """Mock HTTP response for HttpError"""
    def __init__(self, status: int, reason: str):
        self.status = status
        self.reason = reason


def http_error(status: int, reason: str) -> HttpError:
    return HttpError(resp=MockHttpResponse(status, reason), content=reason.encode())


class MockAttachments:
    """Mock for users().messages().attachments()"""
    def __init__(self, service: "MockGmailService"):
        self._service = service

    def get(self, userId: str, messageId: str, id: str):
        self._service.attachment_requests.append((messageId, id))
        if id in self._service.failing_attachments:
            return MockExecute(error=http_error(500, "Backend Error"))
        data = self._service.attachments.get(id)
        if data is None:
            return MockExecute(error=http_error(404, "Not Found"))
        return MockExecute({"attachmentId": id, "size": len(data), "data": data})


class MockMessages:
    """Mock for users().messages()"""
    def __init__(self, service: "MockGmailService"):
        self._service = service

    def list(self, userId: str, maxResults: int = 100, q: Optional[str] = None, pageToken: Optional[str] = None):
        self._service.list_queries.append(q)
        if self._service.fail_list:
            return MockExecute(error=http_error(403, "Forbidden"))
        ids = list(self._service.messages)[:maxResults]
        result = {"resultSizeEstimate": len(self._service.messages)}
        if ids:
            result["messages"] = [{"id": i, "threadId": self._service.messages[i].get("threadId")} for i in ids]
        return MockExecute(result)

    def get(self, userId: str, id: str, format: Optional[str] = None):
        if id in self._service.failing_gets:
            return MockExecute(error=http_error(500, "Backend Error"))
        if id not in self._service.messages or id in self._service.vanished:
            return MockExecute(error=http_error(404, "Not Found"))
        return MockExecute(self._service.messages[id])

    def modify(self, userId: str, id: str, body: dict):
        if id not in self._service.messages:
            return MockExecute(error=http_error(404, "Not Found"))
        self._service.modified.append((id, body))
        return MockExecute({"id": id})

    def trash(self, userId: str, id: str):
        if id not in self._service.messages:
            return MockExecute(error=http_error(404, "Not Found"))
        self._service.trashed.add(id)
        return MockExecute({"id": id, "labelIds": ["TRASH"]})

    def attachments(self):
        return MockAttachments(self._service)


class MockThreads:
    """Mock for users().threads()"""
    def __init__(self, service: "MockGmailService"):
        self._service = service

    def get(self, userId: str, id: str, format: Optional[str] = None):
        messages = [m for m in self._service.messages.values() if m.get("threadId") == id]
        if not messages:
            return MockExecute(error=http_error(404, "Not Found"))
        return MockExecute({"id": id, "messages": messages})


class MockUsers:
    """Mock for service.users()"""
    def __init__(self, service: "MockGmailService"):
        self._service = service

    def messages(self):
        return MockMessages(self._service)

    def threads(self):
        return MockThreads(self._service)


class MockGmailService:
    """Mock Gmail API service backed by in-memory messages and attachments"""

    def __init__(
        self,
        messages: Optional[List[dict]] = None,
        attachments: Optional[Dict[str, str]] = None,
        failing_attachments: Optional[Set[str]] = None,
        fail_list: bool = False,
        vanished: Optional[Set[str]] = None,
        failing_gets: Optional[Set[str]] = None,
    ):
        self.messages: Dict[str, dict] = {m["id"]: m for m in messages or []}
        self.attachments: Dict[str, str] = attachments or {}
        self.failing_attachments: Set[str] = failing_attachments or set()
        self.fail_list = fail_list
        # listed, but gone or failing by the time they are fetched
        self.vanished: Set[str] = vanished or set()
        self.failing_gets: Set[str] = failing_gets or set()

        # request log
        self.attachment_requests: List[tuple] = []
        self.list_queries: List[Optional[str]] = []
        self.modified: List[tuple] = []
        self.trashed: Set[str] = set()

    def users(self):
        return MockUsers(self)


# === Fixtures ===

@pytest.fixture
def empty_service() -> MockGmailService:
    """Returns a MockGmailService with nothing in it"""
    return MockGmailService()


@pytest.fixture
def alternative_message() -> dict:
    """multipart/alternative with plain first and html second"""
    return make_message(
        "m_alt",
        make_part(
            "multipart/alternative",
            parts=[
                make_part("text/plain", b64url("Hello plain")),
                make_part("text/html", b64url("<p>Hello <b>HTML</b></p>")),
            ],
        ),
        labels=["INBOX", "UNREAD"],
    )


@pytest.fixture
def inline_image_message() -> dict:
    """multipart/related html body with one inline and one stored image"""
    html = (
        '<p>Logo: <img src="cid:logo@example.com"></p>'
        "<p>Chart: <img src='cid:chart'></p>"
    )
    return make_message(
        "m_img",
        make_part(
            "multipart/mixed",
            parts=[
                make_part(
                    "multipart/related",
                    parts=[
                        make_part("text/html", b64url(html)),
                        make_part(
                            "image/png",
                            "iVBORw0KGgo-_A",
                            headers=[{"name": "Content-ID", "value": "<logo@example.com>"}],
                        ),
                        make_part(
                            "image/gif",
                            filename="chart.gif",
                            headers=[{"name": "content-id", "value": "<chart>"}],
                            attachment_id="ATT_CHART",
                            size=42,
                        ),
                    ],
                ),
                make_part(
                    "application/pdf",
                    filename="report.pdf",
                    attachment_id="ATT_PDF",
                    size=1234,
                ),
            ],
        ),
    )
