"""Main entry point for the SMS relay assistant API."""
import logging
from fastapi import FastAPI
from fastapi.responses import JSONResponse

import config
from logger import setup_logging
from models.api import InboundEvent, MessageReceivedResponse, ErrorResponse
from services.conversation_store import ConversationStore, create_store
from services.llm_client import CompletionClient, create_completion_client
from services.pipeline import ConversationPipeline, SenderLocks
from services.sms_gateway import SMSGatewayClient

# Initialize logging
logger = logging.getLogger(__name__)

SERVICE_NAME = "sms-relay-assistant"
VERSION = "1.0.0"

# Initialize FastAPI app
app = FastAPI(
    title="SMS Relay Assistant",
    description="Answers inbound SMS with a conversational AI reply",
    version=VERSION
)

# Initialize services (will be done on startup)
store: ConversationStore = None
completion_client: CompletionClient = None
sms_client: SMSGatewayClient = None
pipeline: ConversationPipeline = None


def build_store() -> ConversationStore:
    if config.STORE_BACKEND.strip().lower() == "supabase":
        return create_store(
            "supabase",
            supabase_url=config.SUPABASE_URL,
            supabase_key=config.SUPABASE_KEY,
            table_name=config.CONVERSATIONS_TABLE
        )
    return create_store(
        config.STORE_BACKEND,
        database_path=config.DATABASE_PATH,
        table_name=config.CONVERSATIONS_TABLE
    )


def build_completion_client() -> CompletionClient:
    if config.COMPLETION_PROVIDER.strip().lower() == "groq":
        return create_completion_client(
            "groq",
            api_key=config.GROQ_API_KEY,
            model=config.GROQ_MODEL,
            system_prompt=config.SYSTEM_PROMPT,
            max_tokens=config.COMPLETION_MAX_TOKENS,
            temperature=config.COMPLETION_TEMPERATURE,
            timeout=config.COMPLETION_TIMEOUT_SECONDS
        )
    return create_completion_client(
        config.COMPLETION_PROVIDER,
        api_url=config.COMPLETION_API_URL,
        api_key=config.COMPLETION_API_KEY,
        model=config.COMPLETION_MODEL,
        system_prompt=config.SYSTEM_PROMPT,
        max_tokens=config.COMPLETION_MAX_TOKENS,
        temperature=config.COMPLETION_TEMPERATURE,
        disable_thinking=config.COMPLETION_DISABLE_THINKING,
        timeout=config.COMPLETION_TIMEOUT_SECONDS
    )


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global store, completion_client, sms_client, pipeline

    setup_logging(config.LOG_LEVEL, config.LOG_FORMAT)
    logger.info("Initializing SMS relay assistant services...")

    try:
        store = build_store()
        logger.info(f"Initialized {config.STORE_BACKEND} conversation store")

        completion_client = build_completion_client()
        logger.info(f"Initialized {config.COMPLETION_PROVIDER} completion client")

        sms_client = SMSGatewayClient(
            api_url=config.SMS_GATE_URL,
            username=config.SMS_GATE_USERNAME,
            password=config.SMS_GATE_PASSWORD,
            timeout=config.SMS_TIMEOUT_SECONDS
        )
        logger.info("Initialized SMSGatewayClient")

        pipeline = ConversationPipeline(
            store=store,
            completion_client=completion_client,
            sms_client=sms_client,
            sender_locks=SenderLocks() if config.SERIALIZE_PER_SENDER else None
        )
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Release connections held by the services."""
    for service in (sms_client, completion_client, store):
        if service is not None:
            service.close()
    logger.info("Services shut down")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "SMS Relay Assistant API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "store": config.STORE_BACKEND,
        "completion_provider": config.COMPLETION_PROVIDER
    }


@app.post(
    "/message-received",
    responses={
        200: {"model": MessageReceivedResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    }
)
def message_received(event: InboundEvent) -> JSONResponse:
    """
    Webhook for SMS received events.

    Stores the message, asks the completion service for a reply, stores the
    reply and relays it back to the sender by SMS.

    Args:
        event: Webhook body from the SMS gateway

    Returns:
        200 with {to, human, ai, smsStatus, smsResponse}; 500 {"error"} on a
        store failure; 502 {"error"} when the completion service fails
    """
    try:
        result = pipeline.handle(event)
    except Exception as e:
        logger.error(f"Unexpected error processing message: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": f"Internal server error: {e}"})

    return JSONResponse(status_code=result.status_code, content=result.body)


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting SMS Relay Assistant API on {config.HOST}:{config.PORT}")
    uvicorn.run(app, host=config.HOST, port=config.PORT)
