import logging
import re
from typing import List, Pattern, Sequence, Tuple
from urllib.parse import quote

from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from mailcal.impl.body import to_standard_b64
from mailcal.schemas.message import InlineImage, InlineImageCandidate

logger = logging.getLogger(__name__)

# characters encodeURIComponent leaves untouched, beyond quote()'s defaults
URI_COMPONENT_SAFE = "!*'()"


def fetch_attachment_data(service: Resource, message_id: str, attachment_id: str) -> str:
    """Retrieve the base64url `data` of an attachment.

    Raises
    ------
    HttpError
        If the Gmail API request fails.

    KeyError
        If the response carries no data.

    """
    resp = (
        service.users()
        .messages()
        .attachments()
        .get(userId="me", messageId=message_id, id=attachment_id)
        .execute()
    )
    return resp["data"]


def resolve_inline_images(
    service: Resource,
    message_id: str,
    candidates: Sequence[InlineImageCandidate],
) -> List[InlineImage]:
    """Turn inline image candidates into images carrying embedded data.

    Candidates that only reference an attachment are fetched one by one; a
    failed fetch drops that image and the rest are still resolved. The
    result keeps candidate order.
    """
    images: List[InlineImage] = []
    for candidate in candidates:
        if candidate.data:
            images.append(InlineImage(candidate.content_id, candidate.mime_type, candidate.data))
            continue
        if not candidate.attachment_id:
            continue

        try:
            data = fetch_attachment_data(service, message_id, candidate.attachment_id)
        except (HttpError, OSError, KeyError) as e:
            # don't break the whole message if one image fails
            logger.warning(
                f'Failed to fetch inline image "{candidate.content_id}" '
                f'of message "{message_id}": {e}'
            )
            continue

        images.append(InlineImage(candidate.content_id, candidate.mime_type, to_standard_b64(data)))

    return images


def cid_pattern(content_id: str) -> Pattern:
    """Match src="cid:ID" or src='cid:ID', case-insensitively."""
    return re.compile(
        r"(src=)([\"'])cid:" + re.escape(content_id) + r"\2",
        flags=re.IGNORECASE,
    )


def replace_cid_with_data_uri(body: str, images: Sequence[InlineImage]) -> str:
    """Point every cid: image source in `body` at the image's data URI.

    Both the raw Content-ID and its encodeURIComponent-style percent-encoded
    form are matched. Other encodings of the identifier (e.g. "." written
    as %2E) are not.
    """
    if not body or not images:
        return body

    result = body
    for image in images:
        data_uri = image.data_uri

        def _substitute(match: "re.Match") -> str:
            return f"{match.group(1)}{match.group(2)}{data_uri}{match.group(2)}"

        result = cid_pattern(image.content_id).sub(_substitute, result)

        encoded_id = quote(image.content_id, safe=URI_COMPONENT_SAFE)
        if encoded_id != image.content_id:
            result = cid_pattern(encoded_id).sub(_substitute, result)

    return result


def embed_inline_images(
    service: Resource,
    message_id: str,
    body: str,
    candidates: Sequence[InlineImageCandidate],
) -> Tuple[List[InlineImage], str]:
    """Resolve `candidates` and rewrite `body` to use the embedded data."""
    if not candidates:
        return [], body

    images = resolve_inline_images(service, message_id, candidates)
    return images, replace_cid_with_data_uri(body, images)
