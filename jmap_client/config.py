"""Environment-driven settings for the JMAP client.

Settings are read from the process environment after loading a ``.env``
file, if one exists:

    JMAP_TOKEN          Bearer token (falls back to FASTMAIL_API_TOKEN)
    JMAP_SESSION_URL    Session endpoint (defaults to Fastmail's)
    JMAP_TIMEOUT        Request timeout in seconds (defaults to 30)

Example:
    settings = ClientSettings.from_env()
    async with await AsyncJMAPClient.from_settings(settings) as client:
        ...
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from jmap_client._http import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from jmap_client._session import FASTMAIL_SESSION_URL
from jmap_client.exceptions import ConfigError

TOKEN_ENV = "JMAP_TOKEN"
FALLBACK_TOKEN_ENV = "FASTMAIL_API_TOKEN"
SESSION_URL_ENV = "JMAP_SESSION_URL"
TIMEOUT_ENV = "JMAP_TIMEOUT"


class ClientSettings(BaseModel):
    """Connection settings for AsyncJMAPClient.

    Attributes:
        token: Bearer token for the server.
        session_url: URL of the Session document.
        timeout: Request timeout in seconds.
        user_agent: Value of the User-Agent header.
    """

    token: str = Field(min_length=1, repr=False)
    session_url: str = FASTMAIL_SESSION_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "ClientSettings":
        """Build settings from the environment.

        Args:
            env_file: Path of a ``.env`` file to load; the nearest ``.env``
                is searched for when omitted. Variables already set in the
                environment take precedence over the file.

        Returns:
            The settings.

        Raises:
            ConfigError: If no token is set or a value is invalid.
        """
        load_dotenv(env_file)

        token = os.environ.get(TOKEN_ENV) or os.environ.get(FALLBACK_TOKEN_ENV)
        if not token:
            raise ConfigError(f"No API token: set {TOKEN_ENV} or {FALLBACK_TOKEN_ENV}")

        values: dict[str, object] = {"token": token}
        session_url = os.environ.get(SESSION_URL_ENV)
        if session_url:
            values["session_url"] = session_url
        timeout = os.environ.get(TIMEOUT_ENV)
        if timeout:
            values["timeout"] = timeout

        try:
            return cls.model_validate(values)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid client settings: {e}") from e
