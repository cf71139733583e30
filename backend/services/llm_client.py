"""Completion clients for OpenAI-compatible chat endpoints and Groq."""
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx
from groq import Groq
from groq import APIConnectionError, APIStatusError, APITimeoutError

from models.conversation import Role, Turn

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I couldn't generate a reply."

ROLE_MAP = {
    Role.HUMAN: "user",
    Role.ASSISTANT: "assistant",
}


@dataclass
class CompletionError:
    """Structured error response from completion operations."""
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


class CompletionClientError(Exception):
    """Custom exception for completion errors with structured error information."""

    def __init__(self, error: CompletionError):
        self.error = error
        super().__init__(error.message)


class CompletionClient(ABC):
    """Turns a sender's history plus a new message into one assistant reply."""

    def __init__(
        self,
        model: str,
        system_prompt: str,
        max_tokens: int = 512,
        temperature: float = 0.7,
        disable_thinking: bool = False
    ):
        self.model = model
        self.system_prompt = system_prompt
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.disable_thinking = disable_thinking

    def complete(self, new_input: str, history: Sequence[Turn]) -> str:
        """
        Generate the assistant reply for a new message.

        A malformed success body does not raise; it yields FALLBACK_REPLY so
        the conversation still gets a turn.

        Args:
            new_input: The sender's latest message
            history: Prior turns in position order (may be empty)

        Returns:
            Reply text

        Raises:
            CompletionClientError: On a non-2xx status, timeout or transport failure
        """
        messages = self.build_messages(self.system_prompt, history, new_input)
        start_time = time.time()

        body_text = self._send(messages, start_time)
        reply = self.extract_reply(body_text)

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Generated reply: model={self.model}, history_turns={len(history)}, "
            f"latency={latency_ms}ms"
        )
        return reply

    @abstractmethod
    def _send(self, messages: List[Dict[str, str]], start_time: float) -> str:
        """Call the provider once and return the raw body of a 2xx response."""

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""

    @staticmethod
    def build_messages(
        system_prompt: str,
        history: Sequence[Turn],
        new_input: str
    ) -> List[Dict[str, str]]:
        """
        Build the chat message list.

        Args:
            system_prompt: Persona instruction placed first
            history: Prior turns; unknown roles are sent as "user"
            new_input: Latest message, always the final "user" entry

        Returns:
            List of {"role", "content"} dicts
        """
        messages = [{"role": "system", "content": system_prompt}]
        for turn in history:
            messages.append({
                "role": ROLE_MAP.get(turn.role, "user"),
                "content": turn.content
            })
        messages.append({"role": "user", "content": new_input})
        return messages

    @staticmethod
    def extract_reply(body_text: str) -> str:
        """Pull choices[0].message.content out of a response body, or fall back."""
        try:
            data = json.loads(body_text)
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning(f"Unusable completion response, using fallback reply: {e}")
            return FALLBACK_REPLY

        if not isinstance(content, str):
            logger.warning("Completion response content is not text, using fallback reply")
            return FALLBACK_REPLY
        return content

    def _fail(self, code: str, message: str, start_time: float, **details) -> CompletionClientError:
        latency_ms = int((time.time() - start_time) * 1000)
        error = CompletionError(
            code=code,
            message=message,
            details={"model": self.model, "latency_ms": latency_ms, **details}
        )
        logger.error(
            f"Completion failed: code={code}, model={self.model}, latency={latency_ms}ms",
            extra={"error_code": error.code, "error_details": error.details}
        )
        return CompletionClientError(error)


class ChatCompletionsClient(CompletionClient):
    """Client for any OpenAI-compatible /chat/completions endpoint (z.ai GLM by default)."""

    def __init__(
        self,
        api_url: str,
        api_key: Optional[str],
        model: str,
        system_prompt: str,
        max_tokens: int = 512,
        temperature: float = 0.7,
        disable_thinking: bool = True,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None
    ):
        """
        Initialize the client.

        Args:
            api_url: Full chat completions URL
            api_key: Bearer credential
            model: Model identifier sent with each request
            system_prompt: Persona instruction
            max_tokens: Output bound
            temperature: Sampling temperature
            disable_thinking: Send {"thinking": {"type": "disabled"}}
            timeout: Per-call timeout in seconds
            http_client: Pre-built httpx client, mainly for tests
        """
        if not api_key:
            raise ValueError("COMPLETION_API_KEY must be provided or set in environment")

        super().__init__(model, system_prompt, max_tokens, temperature, disable_thinking)
        self.api_url = api_url
        self._api_key = api_key
        self.http = http_client or httpx.Client(timeout=timeout)
        logger.info(f"ChatCompletionsClient initialized: model={model}")

    def build_payload(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if self.disable_thinking:
            payload["thinking"] = {"type": "disabled"}
        return payload

    def _send(self, messages: List[Dict[str, str]], start_time: float) -> str:
        try:
            response = self.http.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                json=self.build_payload(messages)
            )
        except httpx.TimeoutException as e:
            raise self._fail(
                "TIMEOUT_ERROR", "Completion request timed out.", start_time,
                original_error=str(e)
            )
        except httpx.HTTPError as e:
            raise self._fail(
                "TRANSPORT_ERROR", f"Completion request error: {e}", start_time,
                original_error=str(e)
            )

        if not response.is_success:
            raise self._fail(
                "BAD_STATUS",
                f"Completion API bad status {response.status_code}: {response.text}",
                start_time,
                status_code=response.status_code,
                body=response.text
            )
        return response.text

    def close(self) -> None:
        self.http.close()


class GroqCompletionClient(CompletionClient):
    """Client for Groq chat completions through the Groq SDK."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        system_prompt: str,
        max_tokens: int = 512,
        temperature: float = 0.7,
        timeout: float = 30.0
    ):
        """
        Initialize the client with a Groq API key.

        Groq has no reasoning toggle, so no thinking flag is sent. The SDK's
        own retries are disabled; each call is attempted once.
        """
        if not api_key:
            raise ValueError("GROQ_API_KEY must be provided or set in environment")

        super().__init__(model, system_prompt, max_tokens, temperature)
        self.client = Groq(api_key=api_key, timeout=timeout, max_retries=0)
        logger.info(f"GroqCompletionClient initialized: model={model}")

    def _send(self, messages: List[Dict[str, str]], start_time: float) -> str:
        try:
            raw = self.client.chat.completions.with_raw_response.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature
            )
        except APITimeoutError as e:
            raise self._fail(
                "TIMEOUT_ERROR", "Completion request timed out.", start_time,
                original_error=str(e)
            )
        except APIConnectionError as e:
            raise self._fail(
                "TRANSPORT_ERROR", f"Groq request error: {e}", start_time,
                original_error=str(e)
            )
        except APIStatusError as e:
            body = e.response.text
            raise self._fail(
                "BAD_STATUS",
                f"Groq API bad status {e.status_code}: {body}",
                start_time,
                status_code=e.status_code,
                body=body
            )
        return raw.http_response.text

    def close(self) -> None:
        self.client.close()


def create_completion_client(provider: str, **options) -> CompletionClient:
    """
    Build the configured completion client.

    Args:
        provider: "zai" for the OpenAI-compatible HTTP endpoint, or "groq"
        **options: Passed to the provider constructor

    Raises:
        ValueError: If the provider name is unknown
    """
    provider = provider.strip().lower()
    if provider in ("zai", "http"):
        return ChatCompletionsClient(**options)
    if provider == "groq":
        return GroqCompletionClient(**options)
    raise ValueError(f"Unknown completion provider: {provider}")
