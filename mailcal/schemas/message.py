from dataclasses import dataclass, field
from textwrap import indent
from typing import List, Optional


@dataclass
class EmailAttachment:
    attachment_id: str
    filename: str
    mime_type: str
    size: int  # bytes

    def __str__(self) -> str:
        """Format output string."""
        return f"{self.filename} ({self.mime_type}, {self.size} bytes)"


@dataclass
class InlineImageCandidate:
    """An image part referenced from the body by Content-ID.

    Exactly one of `data` (standard base64) or `attachment_id` is set.
    """

    content_id: str
    mime_type: str
    data: Optional[str] = None
    attachment_id: Optional[str] = None


@dataclass
class InlineImage:
    content_id: str
    mime_type: str
    data: str  # standard base64

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass
class BodyCandidates:
    """Encoded body data found while walking a payload.

    Each kind is set once; later parts of the same kind never overwrite it.
    """

    html: Optional[str] = None
    text: Optional[str] = None

    def offer(self, mime_type: str, data: Optional[str]) -> None:
        if not data:
            return
        if mime_type == "text/html" and self.html is None:
            self.html = data
        elif mime_type == "text/plain" and self.text is None:
            self.text = data


@dataclass
class MessageHeaders:
    subject: str
    from_: str
    to: str
    date: str


@dataclass
class NormalizedMessage:
    message_id: str
    thread_id: str
    snippet: str
    headers: MessageHeaders

    # decoded html (plain text is promoted to html)
    body: str = ""

    label_ids: List[str] = field(default_factory=list)
    attachments: List[EmailAttachment] = field(default_factory=list)
    inline_images: List[InlineImage] = field(default_factory=list)

    @property
    def is_unread(self) -> bool:
        return "UNREAD" in self.label_ids

    def __str__(self) -> str:
        """Format output string."""
        header = (
            f"Message ID: {self.message_id}\n"
            f"Thread ID: {self.thread_id}\n"
            f"Date: {self.headers.date}\n"
            f"From: {self.headers.from_}\n"
            f"To: {self.headers.to}\n"
            f"Subject: {self.headers.subject}\n"
            f"Labels: {', '.join(self.label_ids) if self.label_ids else '(none)'}\n"
        )

        body = "Body:\n" + indent(self.body.strip()[:200] + "...", "  ") if self.body else "Body: (empty)"

        attachments = (
            "Attachments:\n" + indent("\n".join(str(a) for a in self.attachments), "  ")
            if self.attachments else "Attachments: (none)"
        )

        return "\n".join([header, body, attachments])


@dataclass
class MessageListing:
    count: int  # resultSizeEstimate reported by the list call
    messages: List[NormalizedMessage]
    unread_count: Optional[int] = None
