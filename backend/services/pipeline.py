"""
Per-message pipeline for the SMS relay assistant.

Each inbound SMS runs through the same strictly sequential steps:

1. Normalize the sender and text
2. Persist the human turn
3. Load the sender's history (including that turn)
4. Ask the completion client for a reply
5. Persist the assistant turn
6. Relay the reply by SMS

A failure in steps 2-5 stops the pipeline. Nothing already stored is
rolled back. Relay problems never stop it; they are reported in the result.
"""
import logging
import threading
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from models.api import InboundEvent
from models.conversation import Role
from services.conversation_store import ConversationStore, StoreError
from services.llm_client import CompletionClient, CompletionClientError
from services.sms_gateway import RelayError, RelayResult, SMSGatewayClient

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """HTTP status and JSON body for one processed event."""
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    @classmethod
    def failure(cls, status_code: int, detail: str) -> "PipelineResult":
        return cls(status_code=status_code, body={"error": detail})


class SenderLocks:
    """Keyed locks so turns from one phone number are processed one at a time."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, list] = {}  # sender -> [lock, holders]

    @contextmanager
    def hold(self, sender: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(sender, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[sender]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class ConversationPipeline:
    """Sequences store, completion and relay for each inbound SMS."""

    def __init__(
        self,
        store: ConversationStore,
        completion_client: CompletionClient,
        sms_client: SMSGatewayClient,
        sender_locks: Optional[SenderLocks] = None
    ):
        """
        Initialize the pipeline.

        Args:
            store: Conversation store for turns
            completion_client: Provider of assistant replies
            sms_client: Relay client for outbound SMS
            sender_locks: When given, steps 2-5 are serialized per sender
        """
        self.store = store
        self.completion_client = completion_client
        self.sms_client = sms_client
        self.sender_locks = sender_locks

    def handle(self, event: InboundEvent) -> PipelineResult:
        """
        Process one inbound SMS event.

        Args:
            event: Parsed webhook body

        Returns:
            PipelineResult with 200 on completion, 500 on a store failure or
            502 on a completion failure
        """
        phone = event.payload.phone_number.strip()
        human_text = event.payload.message.strip()
        logger.info(f"Processing message {event.payload.message_id} from {phone}")

        guard = self.sender_locks.hold(phone) if self.sender_locks else nullcontext()
        with guard:
            try:
                self.store.append(phone, Role.HUMAN, human_text)
            except StoreError as e:
                logger.error(f"DB insert error for {phone}: {e}", extra={"error_code": e.code})
                return PipelineResult.failure(500, f"DB insert error: {e}")

            try:
                history = self.store.load(phone)
            except StoreError as e:
                logger.error(f"DB load error for {phone}: {e}", extra={"error_code": e.code})
                return PipelineResult.failure(500, f"DB load error: {e}")

            try:
                ai_reply = self.completion_client.complete(human_text, history)
            except CompletionClientError as e:
                logger.error(f"Completion error for {phone}: {e.error.message}")
                return PipelineResult.failure(502, e.error.message)

            try:
                self.store.append(phone, Role.ASSISTANT, ai_reply)
            except StoreError as e:
                logger.error(f"DB insert AI error for {phone}: {e}", extra={"error_code": e.code})
                return PipelineResult.failure(500, f"DB insert AI error: {e}")

        relay = self._relay(ai_reply, phone)

        logger.info(f"Message from {phone} answered, sms_status={relay.status_code}")
        return PipelineResult(
            status_code=200,
            body={
                "to": phone,
                "human": human_text,
                "ai": ai_reply,
                "smsStatus": relay.status_code,
                "smsResponse": relay.body
            }
        )

    def _relay(self, text: str, phone: str) -> RelayResult:
        try:
            return self.sms_client.send(text, phone)
        except RelayError as e:
            return RelayResult(status_code=502, body=e.detail)
