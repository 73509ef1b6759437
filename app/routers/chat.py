"""
Chat endpoint.

Routes
------
POST /api/chat/message  - run the chat pipeline on one reader message → ChatResponse
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies.services import get_chat_service
from app.models.schemas import ChatRequest, ChatResponse
from app.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/message", response_model=ChatResponse, status_code=status.HTTP_200_OK)
async def send_message(
    request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Answer a reader message.  Greetings and small talk get a canned reply;
    everything else goes through context lookup, tone classification, query
    structuring and answer generation.
    """
    try:
        reply = await chat_service.process_message(request.message, request.conversation_history)
    except Exception as exc:
        logger.error("send_message error: %s", exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to process message", "message": str(exc)},
        )
    return reply.to_dict()
