"""Conversational assistant that gathers buyer criteria before a search."""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ...common.retry import call_with_retry
from ..domain import ChatMessage, ConversationReply, CriteriaSummary, ReplyType
from ..domain.exceptions import EmptyConversationError, LLMResponseParseError
from ..ports.llm_port import LLMPort
from .criteria_converter import CriteriaConverter
from .prompts import CONVERSATION_SYSTEM_PROMPT
from .response_parsing import extract_json_object

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_MESSAGE = "Great, let me find some vehicles that fit."
ALLOWED_ROLES = {"user", "assistant"}


def _as_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return value


class CriteriaBlock(BaseModel):
    """Criteria object inside the assistant's ready-to-search JSON."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    budget: str | None = None
    use_case: list[str] = Field(default_factory=list, alias="useCase")
    body_type: list[str] = Field(default_factory=list, alias="bodyType")
    fuel_type: list[str] = Field(default_factory=list, alias="fuelType")
    vector_requirements: list[str] = Field(default_factory=list, alias="vectorRequirements")

    @field_validator("use_case", "body_type", "fuel_type", "vector_requirements", mode="before")
    @classmethod
    def wrap_single_values(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("budget", mode="before")
    @classmethod
    def stringify_budget(cls, value: Any) -> Any:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return f"under {int(value)}"
        return value

    def to_summary(self) -> CriteriaSummary:
        return CriteriaSummary(
            budget=self.budget,
            use_cases=self.use_case,
            body_types=self.body_type,
            fuel_types=self.fuel_type,
            requirements=self.vector_requirements,
        )


class ReadyBlock(BaseModel):
    ready: bool = False
    message: str | None = None
    criteria: CriteriaBlock | None = None


class ConversationService:
    """Decides whether to keep chatting or hand structured criteria to the pipeline."""

    def __init__(
        self,
        llm: LLMPort,
        converter: CriteriaConverter,
        max_retries: int = 3,
    ) -> None:
        self.llm = llm
        self.converter = converter
        self.max_retries = max_retries

    def reply(self, history: list[ChatMessage]) -> ConversationReply:
        """Produce the assistant's next turn.

        Raises:
            EmptyConversationError: ``history`` has no usable messages.
            LLMError: The completion call failed after retries.
        """
        messages = [
            {"role": message.role, "content": message.content.strip()}
            for message in history
            if message.role in ALLOWED_ROLES and message.content and message.content.strip()
        ]
        if not messages:
            raise EmptyConversationError("Conversation history is empty")

        completion = call_with_retry(
            lambda: self.llm.chat(messages, system_prompt=CONVERSATION_SYSTEM_PROMPT),
            max_retries=self.max_retries,
        )

        ready = self._parse_ready_block(completion)
        if ready is None or not ready.ready or ready.criteria is None:
            return ConversationReply(type=ReplyType.CONVERSATION, message=completion.strip())

        summary = ready.criteria.to_summary()
        criteria = self.converter.from_summary(summary)
        logger.info("Conversation ready to search: %s", summary)
        return ConversationReply(
            type=ReplyType.SEARCH,
            message=(ready.message or DEFAULT_SEARCH_MESSAGE).strip(),
            summary=summary,
            criteria=criteria,
        )

    @staticmethod
    def _parse_ready_block(completion: str) -> ReadyBlock | None:
        try:
            data = extract_json_object(completion)
            return ReadyBlock.model_validate(data)
        except (LLMResponseParseError, PydanticValidationError):
            return None
