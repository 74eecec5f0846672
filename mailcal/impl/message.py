import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from mailcal.impl.body import (
    convert_text_to_html,
    decode_b64url_to_bytes,
    decode_b64url_to_text,
    to_standard_b64,
)
from mailcal.impl.inline_images import embed_inline_images, fetch_attachment_data
from mailcal.schemas.message import (
    BodyCandidates,
    EmailAttachment,
    InlineImageCandidate,
    MessageHeaders,
    MessageListing,
    NormalizedMessage,
)

logger = logging.getLogger(__name__)

NO_SUBJECT = "(No Subject)"
UNKNOWN_SENDER = "(Unknown Sender)"
UNKNOWN_RECIPIENT = "(Unknown Recipient)"


def build_headers_dict(payload_headers: List[Dict]) -> Dict[str, str]:
    """Normalize headers into a dict keyed by lowercased name.

    The first occurrence of a repeated header wins.
    """
    out: Dict[str, str] = {}
    for h in payload_headers or []:
        name = (h.get("name") or "").strip().lower()
        if name and name not in out:
            out[name] = h.get("value") or ""
    return out


def strip_content_id(value: str) -> str:
    """Remove one pair of wrapping angle brackets from a Content-ID."""
    value = value.strip()
    if value.startswith("<") and value.endswith(">"):
        return value[1:-1]
    return value


def extract_message_content(
    part: Dict,
    found: BodyCandidates,
    attachments: List[EmailAttachment],
    inline_images: List[InlineImageCandidate],
) -> None:
    """
    Depth-first, pre-order traversal of a Gmail MIME tree.

    This function mutates the provided accumulators in place. It does not
    return a value, and it never modifies `part`.

    Parameters
    ----------
    part : Dict
        A Gmail API message payload or sub-part, containing headers, body,
        and optional nested `parts`.

    found : BodyCandidates
        Encoded html/plain bodies. The first part of each kind wins.

    attachments : List[EmailAttachment]
        Parts with both a filename and an attachmentId, in traversal order.

    inline_images : List[InlineImageCandidate]
        Image parts carrying a Content-ID header, in traversal order.

    """
    if not isinstance(part, dict):
        return

    mime_type = part.get("mimeType") or ""
    body = part.get("body")
    if not isinstance(body, dict):
        body = {}
    filename = part.get("filename") or ""
    data = body.get("data")
    attachment_id = body.get("attachmentId")

    # capture body text/html
    found.offer(mime_type, data)

    if attachment_id and filename:
        attachments.append(
            EmailAttachment(
                attachment_id=attachment_id,
                filename=filename,
                mime_type=mime_type,
                size=int(body.get("size") or 0),
            )
        )

    if mime_type.startswith("image/"):
        headers_map = build_headers_dict(part.get("headers") or [])
        if "content-id" in headers_map:
            content_id = strip_content_id(headers_map["content-id"])
            if data:
                inline_images.append(
                    InlineImageCandidate(content_id, mime_type, data=to_standard_b64(data))
                )
            elif attachment_id:
                inline_images.append(
                    InlineImageCandidate(content_id, mime_type, attachment_id=attachment_id)
                )

    # recurse into subparts
    for child in part.get("parts") or []:
        extract_message_content(child, found, attachments, inline_images)


def decode_body(found: BodyCandidates) -> str:
    """Decoded html body; plain text is promoted only when no html exists."""
    if found.html:
        return decode_b64url_to_text(found.html)
    if found.text:
        return convert_text_to_html(decode_b64url_to_text(found.text))
    return ""


def normalize_message(service: Resource, raw: Dict[str, Any]) -> Optional[NormalizedMessage]:
    """Build a renderable message from a Gmail API `format="full"` message.

    Parameters
    ----------
    service : Resource
        googleapiclient resource object, used to fetch inline images that
        are stored as attachments.

    raw : Dict[str, Any]
        Message resource as returned by users.messages.get.

    Returns
    -------
    Optional[NormalizedMessage]
        None if the message has no payload or no header list.

    """
    raw = raw if isinstance(raw, dict) else {}
    payload = raw.get("payload")
    if not isinstance(payload, dict) or not isinstance(payload.get("headers"), list):
        logger.warning(f'Skipping incomplete message "{raw.get("id")}"')
        return None

    headers_map = build_headers_dict(payload["headers"])

    found = BodyCandidates()
    attachments: List[EmailAttachment] = []
    candidates: List[InlineImageCandidate] = []
    extract_message_content(payload, found, attachments, candidates)

    message_id = raw.get("id", "")
    inline_images, body = embed_inline_images(service, message_id, decode_body(found), candidates)

    return NormalizedMessage(
        message_id=message_id,
        thread_id=raw.get("threadId", ""),
        snippet=raw.get("snippet", ""),
        headers=MessageHeaders(
            subject=headers_map.get("subject") or NO_SUBJECT,
            from_=headers_map.get("from") or UNKNOWN_SENDER,
            to=headers_map.get("to") or UNKNOWN_RECIPIENT,
            date=headers_map.get("date") or "",
        ),
        body=body,
        label_ids=list(raw.get("labelIds") or []),
        attachments=attachments,
        inline_images=inline_images,
    )


def normalize_messages(service: Resource, raws: Iterable[Dict[str, Any]]) -> List[NormalizedMessage]:
    """Normalize a batch, dropping incomplete messages."""
    out = []
    for raw in raws:
        msg = normalize_message(service, raw)
        if msg is not None:
            out.append(msg)
    return out


def fetch_message_ids(
    service: Resource, query: Optional[str], max_results: int
) -> Tuple[List[str], int]:
    """Retrieve message ids matching `query`.

    Parameters
    ----------
    service : Resource
        googleapiclient resource object.

    query : Optional[str]
        Gmail search query, e.g. "in:inbox". None lists every message.

    max_results : int
        Maximum number of ids to return (a single page).

    Raises
    ------
    RuntimeError
        If the list request fails.

    Returns
    -------
    Tuple[List[str], int]
        Message ids and the "resultSizeEstimate" of the query.

    """
    kwargs: Dict[str, Union[str, int]] = {"userId": "me", "maxResults": max_results}
    if query:
        kwargs["q"] = query

    try:
        resp = service.users().messages().list(**kwargs).execute()
    except HttpError as e:
        raise RuntimeError(f"Gmail list failed for query {query!r}: {e}") from e

    ids = [m["id"] for m in resp.get("messages", [])]
    return ids, int(resp.get("resultSizeEstimate") or 0)


def fetch_raw_message(service: Resource, id: str) -> Dict[str, Any]:
    """Query the service client for a full message resource.

    Raises
    ------
    KeyError
        If `id` is not found in the mailbox.

    """
    try:
        return service.users().messages().get(userId="me", id=id, format="full").execute()
    except HttpError as e:
        # re-raise as KeyError on 404
        if getattr(e, "status_code", None) == 404 or "Not Found" in str(e):
            raise KeyError(id) from e
        raise


def list_normalized_messages(
    service: Resource,
    query: Optional[str],
    max_results: int,
    *,
    count_unread: bool = False,
) -> MessageListing:
    """List, fetch and normalize the messages matching `query`.

    When `count_unread` is set, the listing also reports how many of the
    fetched messages carry the UNREAD label (incomplete ones included).
    """
    ids, estimate = fetch_message_ids(service, query, max_results)
    if not ids:
        return MessageListing(count=estimate, messages=[], unread_count=0 if count_unread else None)

    raws = []
    for msg_id in ids:
        try:
            raws.append(fetch_raw_message(service, msg_id))
        except KeyError:
            # removed between the list and get calls
            logger.warning(f'Listed message "{msg_id}" is gone, skipping')
        except HttpError as e:
            raise RuntimeError(f"Gmail message fetch failed: {e}") from e
    messages = normalize_messages(service, raws)

    unread_count = None
    if count_unread:
        unread_count = sum(1 for raw in raws if "UNREAD" in (raw.get("labelIds") or []))

    return MessageListing(count=estimate, messages=messages, unread_count=unread_count)


def fetch_thread_messages(service: Resource, thread_id: str) -> List[NormalizedMessage]:
    """Fetch and normalize every message of a thread.

    Raises
    ------
    RuntimeError
        If the thread cannot be retrieved.

    """
    try:
        thread = service.users().threads().get(userId="me", id=thread_id).execute()
    except HttpError as e:
        raise RuntimeError(f"Gmail thread fetch failed: {e}") from e

    return normalize_messages(service, thread.get("messages") or [])


def modify_labels(
    service: Resource,
    id: str,
    *,
    add: Optional[List[str]] = None,
    remove: Optional[List[str]] = None,
) -> None:
    """Add or remove label ids on a message.

    Raises
    ------
    RuntimeError
        On unsuccessful modification.

    """
    body = {"addLabelIds": add or [], "removeLabelIds": remove or []}
    try:
        service.users().messages().modify(userId="me", id=id, body=body).execute()
    except HttpError as e:
        raise RuntimeError(f"Gmail modify failed: {e}") from e


def trash_message(service: Resource, id: str) -> None:
    """Move a message to the trash.

    Raises
    ------
    RuntimeError
        On unsuccessful request.

    """
    try:
        service.users().messages().trash(userId="me", id=id).execute()
    except HttpError as e:
        raise RuntimeError(f"Gmail trash failed: {e}") from e


def download_attachment_bytes(service: Resource, message_id: str, attachment_id: str) -> bytes:
    """Download and decode an attachment.

    Raises
    ------
    RuntimeError
        If the attachment cannot be retrieved.

    """
    try:
        data = fetch_attachment_data(service, message_id, attachment_id)
    except (HttpError, KeyError) as e:
        raise RuntimeError(f"Gmail attachment fetch failed: {e}") from e

    # Gmail returns `data` in base64url
    return decode_b64url_to_bytes(data)
