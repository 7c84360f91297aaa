"""Conversation assistant models."""

from dataclasses import dataclass, field
from enum import Enum

from .search import SearchCriteria


@dataclass
class ChatMessage:
    """A single message in the chat history."""

    role: str
    content: str


@dataclass
class CriteriaSummary:
    """Natural-language criteria gathered by the assistant.

    Values are still free text ("under 50k", "family 6+ seats"); the
    criteria converter maps them onto catalog labels.
    """

    budget: str | None = None
    use_cases: list[str] = field(default_factory=list)
    body_types: list[str] = field(default_factory=list)
    fuel_types: list[str] = field(default_factory=list)
    requirements: list[str] = field(default_factory=list)


class ReplyType(Enum):
    CONVERSATION = "conversation"
    SEARCH = "search"


@dataclass
class ConversationReply:
    """Assistant turn: either keep talking or hand over search criteria."""

    type: ReplyType
    message: str
    summary: CriteriaSummary | None = None
    criteria: SearchCriteria | None = None
