"""Relay client for the SMS Gateway third-party API."""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from services.response_formatter import format_reply

logger = logging.getLogger(__name__)


@dataclass
class RelayResult:
    """What the gateway answered to a send request."""
    status_code: int
    body: str


class RelayError(Exception):
    """The gateway could not be reached (connect, TLS or timeout failure)."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class SMSGatewayClient:
    """Sends text messages through the SMS gateway using basic auth."""

    def __init__(
        self,
        api_url: str,
        username: Optional[str],
        password: Optional[str],
        timeout: float = 15.0,
        http_client: Optional[httpx.Client] = None
    ):
        """
        Initialize the relay client.

        Args:
            api_url: Gateway message endpoint
            username: Basic-auth user
            password: Basic-auth password
            timeout: Per-call timeout in seconds
            http_client: Pre-built httpx client, mainly for tests

        Raises:
            ValueError: If credentials are missing
        """
        if not username or not password:
            raise ValueError("SMS_GATE_USERNAME and SMS_GATE_PASSWORD must be set in environment variables")

        self.api_url = api_url
        self._auth = httpx.BasicAuth(username, password)
        self.http = http_client or httpx.Client(timeout=timeout)
        logger.info(f"SMSGatewayClient initialized for {api_url}")

    def send(self, text: str, destination: str) -> RelayResult:
        """
        Format and send one message to one phone number.

        Any HTTP response is returned, whatever its status.

        Args:
            text: Unformatted reply text
            destination: Recipient phone number

        Returns:
            RelayResult with the gateway's status code and body

        Raises:
            RelayError: If no response was received
        """
        body = {
            "textMessage": {"text": format_reply(text)},
            "phoneNumbers": [destination]
        }

        try:
            response = self.http.post(self.api_url, auth=self._auth, json=body)
        except httpx.HTTPError as e:
            logger.error(f"SMS gateway send error for {destination}: {e}")
            raise RelayError(f"SMS Gate send error: {e}")

        if response.is_success:
            logger.info(f"SMS accepted by gateway for {destination}: status={response.status_code}")
        else:
            logger.warning(f"SMS rejected by gateway for {destination}: status={response.status_code}")
        return RelayResult(status_code=response.status_code, body=response.text)

    def close(self) -> None:
        self.http.close()
