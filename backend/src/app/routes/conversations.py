from typing import List

from fastapi import APIRouter, Depends

from ..schemas.messages import Conversation, ErrorResponse
from ...services.messaging import MessagingService
from ...services.store_factory import get_messaging_service


router = APIRouter(tags=["Conversations"])


@router.get(
    "/conversations/{user_id}",
    response_model=List[Conversation],
    responses={500: {"model": ErrorResponse}},
    summary="Get conversations",
)
async def list_conversations(
    user_id: str,
    service: MessagingService = Depends(get_messaging_service),
):
    """List the conversations a user takes part in, newest first."""
    return await service.list_conversations(user_id)
