"""Request and response schemas for the webhook API."""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Thinking(BaseModel):
    """Optional reasoning hint attached to an inbound payload."""
    model_config = ConfigDict(populate_by_name=True)

    kind: str = Field(..., alias="type")


class Payload(BaseModel):
    """The SMS itself as reported by the gateway."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    received_at: str = Field(..., alias="receivedAt")
    message_id: str = Field(..., alias="messageId")
    phone_number: str = Field(..., alias="phoneNumber")
    sim_number: int = Field(..., alias="simNumber", ge=0)
    thinking: Optional[Thinking] = None


class InboundEvent(BaseModel):
    """Webhook body sent by the SMS gateway on message receipt."""
    model_config = ConfigDict(populate_by_name=True)

    device_id: str = Field(..., alias="deviceId")
    event: str
    id: str
    payload: Payload
    webhook_id: str = Field(..., alias="webhookId")


class MessageReceivedResponse(BaseModel):
    """Consolidated result of a fully processed inbound message."""
    model_config = ConfigDict(populate_by_name=True)

    to: str
    human: str
    ai: str
    sms_status: int = Field(..., alias="smsStatus")
    sms_response: str = Field(..., alias="smsResponse")


class ErrorResponse(BaseModel):
    """Body returned when the pipeline stops early."""
    error: str
