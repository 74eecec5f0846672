import logging
import sys

from mailcal.client import GmailServiceClient
from mailcal.impl.describe import describe_recurrence
from mailcal.utils import load_settings, retrieve_credentials

# configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(levelname)s: %(message)s'
)
logger = logging.getLogger(__name__)

settings = load_settings()

# describe any RRULE strings given on the command line, then exit
if len(sys.argv) > 1:
    for rrule in sys.argv[1:]:
        description = describe_recurrence(rrule, settings.locale)
        print(f"{rrule}\n  {description.short_label}\n  {description.full_description}")
    sys.exit(0)

# build the service client
creds = retrieve_credentials(settings)
service_client = GmailServiceClient.from_credentials(creds)

listing = service_client.fetch_inbox_messages(settings.max_results)
logger.info(f"Detected {listing.unread_count} unread messages.")

for msg_obj in listing.messages:
    print(msg_obj)
    print()
