import logging
from typing import Any, Dict, List, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import Resource, build

from mailcal.impl.message import (
    download_attachment_bytes,
    fetch_raw_message,
    fetch_thread_messages,
    list_normalized_messages,
    modify_labels,
    normalize_message,
    trash_message,
)
from mailcal.schemas.message import MessageListing, NormalizedMessage

logger = logging.getLogger(__name__)


class GmailServiceClient:
    """Gmail resource wrapper returning normalized, renderable messages.

    Attributes
    ----------
    service : Resource
        Discovery-built Gmail service (build("gmail","v1",credentials=...)).

    """

    service: Resource

    def __init__(self, service: Resource) -> None:
        self.service = service

    @classmethod
    def from_credentials(cls, creds: Credentials) -> "GmailServiceClient":
        """Build a GmailServiceClient instance from a Credentials object."""
        service = build("gmail", "v1", credentials=creds)
        return cls(service)

    def normalize(self, raw: Dict[str, Any]) -> Optional[NormalizedMessage]:
        """Normalize an already fetched message resource."""
        return normalize_message(self.service, raw)

    def fetch_message(self, id: str) -> Optional[NormalizedMessage]:
        """Fetch a specific message from the mailbox."""
        try:
            raw = fetch_raw_message(self.service, id)
            logger.info(f'Successfully retrieved message with ID: "{id}"')
        except KeyError:
            logger.warning(f'Message with ID "{id}" was not found')
            return None
        return self.normalize(raw)

    def fetch_inbox_messages(self, max_results: int = 20) -> MessageListing:
        """Fetch inbox messages, with the number of unread ones among them."""
        listing = list_normalized_messages(
            self.service, "in:inbox", max_results, count_unread=True
        )
        logger.info(
            f"Fetched {len(listing.messages)} inbox messages "
            f"({listing.unread_count} unread, ~{listing.count} total)."
        )
        return listing

    def fetch_unread_messages(self, max_results: int = 10) -> MessageListing:
        """Fetch unread messages; `count` estimates all unread messages."""
        return list_normalized_messages(self.service, "is:unread", max_results)

    def fetch_starred_messages(self, max_results: int = 50) -> MessageListing:
        return list_normalized_messages(self.service, "is:starred", max_results)

    def fetch_all_messages(self, max_results: int = 50) -> MessageListing:
        """Fetch messages from every label except spam and trash."""
        return list_normalized_messages(self.service, None, max_results)

    def fetch_thread(self, thread_id: str) -> List[NormalizedMessage]:
        return fetch_thread_messages(self.service, thread_id)

    def mark_as_read(self, id: str) -> None:
        modify_labels(self.service, id, remove=["UNREAD"])

    def archive(self, id: str) -> None:
        modify_labels(self.service, id, remove=["INBOX"])

    def trash(self, id: str) -> None:
        trash_message(self.service, id)

    def download_attachment(self, message_id: str, attachment_id: str) -> bytes:
        return download_attachment_bytes(self.service, message_id, attachment_id)
