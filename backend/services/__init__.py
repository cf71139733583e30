"""Services for the SMS relay assistant."""
from .response_formatter import format_reply
from .conversation_store import (
    ConversationStore,
    StoreError,
    StoreUnavailableError,
    StoreWriteError,
    StoreReadError,
    create_store,
)
from .llm_client import (
    CompletionClient,
    ChatCompletionsClient,
    GroqCompletionClient,
    CompletionError,
    CompletionClientError,
    create_completion_client,
)
from .sms_gateway import SMSGatewayClient, RelayResult, RelayError
from .pipeline import ConversationPipeline, PipelineResult, SenderLocks

__all__ = ['format_reply', 'ConversationStore', 'StoreError', 'StoreUnavailableError', 'StoreWriteError', 'StoreReadError', 'create_store', 'CompletionClient', 'ChatCompletionsClient', 'GroqCompletionClient', 'CompletionError', 'CompletionClientError', 'create_completion_client', 'SMSGatewayClient', 'RelayResult', 'RelayError', 'ConversationPipeline', 'PipelineResult', 'SenderLocks']
