"""State definitions for the agent loop."""

from enum import StrEnum
from typing import Annotated

from langchain_core.messages import AnyMessage
from langgraph.graph import add_messages
from pydantic import BaseModel, ConfigDict, Field


class AgentPhase(StrEnum):
    """Where the agent loop is within a turn.

    Values double as graph node names.
    """

    AWAIT_MODEL = "agent"
    AWAIT_TOOL = "tools"
    DONE = "done"


class ConversationState(BaseModel):
    """State carried through the graph and checkpointed per thread.

    ``messages`` is append-only: the ``add_messages`` reducer merges each node's
    output onto the stored history.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    messages: Annotated[list[AnyMessage], add_messages] = Field(default_factory=list)
    phase: AgentPhase = AgentPhase.AWAIT_MODEL
