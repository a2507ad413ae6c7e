from typing import List

from fastapi import APIRouter, Depends

from ..schemas.messages import ErrorResponse, Message, SendMessageRequest
from ...services.messaging import MessagingService
from ...services.store_factory import get_messaging_service


router = APIRouter(tags=["Messages"])

_ERRORS = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


@router.post("/messages", response_model=Message, responses=_ERRORS, summary="Send message")
async def send_message(
    request: SendMessageRequest,
    service: MessagingService = Depends(get_messaging_service),
):
    """Send a message, creating the sender/receiver conversation on first contact."""
    return await service.send_message(request.sender_id, request.receiver_id, request.text)


@router.get(
    "/messages/{conversation_id}",
    response_model=List[Message],
    responses={500: {"model": ErrorResponse}},
    summary="Get messages",
)
async def list_messages(
    conversation_id: str,
    service: MessagingService = Depends(get_messaging_service),
):
    """List a conversation's messages, oldest first."""
    return await service.list_messages(conversation_id)
