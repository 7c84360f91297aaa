"""Conversational assistant endpoint."""

from fastapi import APIRouter, Depends

from .....core.domain import ChatMessage, ReplyType
from .....core.services import ConversationService
from ..deps import get_conversation
from ..models import ConversationRequest, ConversationResponse, CriteriaModel

router = APIRouter(prefix="/api/v1", tags=["conversation"])


@router.post(
    "/conversation",
    response_model=ConversationResponse,
    response_model_exclude_none=True,
)
def conversation(
    request: ConversationRequest,
    service: ConversationService = Depends(get_conversation),
) -> ConversationResponse:
    """Next assistant turn.

    Returns ``type: "search"`` with the gathered criteria once the assistant
    has enough to run a search; the client then calls ``/recommend`` with
    them. Otherwise returns ``type: "conversation"`` with the reply text.
    """
    history = [
        ChatMessage(role=message.role, content=message.content)
        for message in request.conversation_history
    ]
    reply = service.reply(history)

    criteria = None
    if reply.type is ReplyType.SEARCH and reply.summary is not None:
        criteria = CriteriaModel.from_summary(reply.summary)

    return ConversationResponse(
        type=reply.type.value,
        message=reply.message,
        criteria=criteria,
    )
