import os.path
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from mailcal.schemas.recurrence import Locale

DEFAULT_SCOPES = ["https://www.googleapis.com/auth/gmail.modify"]


@dataclass
class Settings:
    credentials_path: str = "credentials.json"
    token_path: str = "token.json"
    scopes: List[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    locale: Locale = Locale.EN
    max_results: int = 20


def load_settings() -> Settings:
    """Read settings from the environment (and a .env file, if present)."""
    load_dotenv()

    scopes = [s.strip() for s in os.getenv("GMAIL_SCOPES", "").split(",") if s.strip()]
    return Settings(
        credentials_path=os.getenv("GMAIL_CREDENTIALS_PATH", "credentials.json"),
        token_path=os.getenv("GMAIL_TOKEN_PATH", "token.json"),
        scopes=scopes or list(DEFAULT_SCOPES),
        locale=Locale(os.getenv("MAILCAL_LOCALE", Locale.EN.value)),
        max_results=int(os.getenv("MAILCAL_MAX_RESULTS", "20")),
    )


def retrieve_credentials(settings: Settings) -> Credentials:
    """Retrieve credenentials by authorizing the application based on permission scopes.

    Parameters
    ----------
    settings : Settings
        Paths of the OAuth client secrets and token cache, and the scopes.

    Returns
    -------
    creds : Credentials
        Google auth credentials.

    """
    creds = None
    # The token file stores the user's access and refresh tokens, and is
    # created automatically when the authorization flow completes for the first
    # time.
    if os.path.exists(settings.token_path):
        creds = Credentials.from_authorized_user_file(settings.token_path, settings.scopes)
    # If there are no (valid) credentials available, let the user log in.
    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            flow = InstalledAppFlow.from_client_secrets_file(
                settings.credentials_path, settings.scopes
            )
            creds = flow.run_local_server(port=0)
        # Save the credentials for the next run
        with open(settings.token_path, "w") as token:
            token.write(creds.to_json())
    return creds
