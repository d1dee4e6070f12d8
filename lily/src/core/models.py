"""
Lily - Data Model
==================
Pydantic models for the chat pipeline.  Everything here lives for the
duration of one request only.

``ChatTurn``
    One prior conversation turn.  Accepts ``text`` or ``content`` as the
    input key because chat clients send history as ``{role, content}``.
``RetrievedPassage``
    One search hit, in the order the vector store returned it.
``ChatReply`` / ``ChatError``
    The two payload shapes handed back to the transport layer.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from lily.config.prompt_templates import UNKNOWN_SOURCE_LABEL

USER_ROLE = "user"
MODEL_ROLE = "model"


class ChatTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str
    text: str = Field(validation_alias=AliasChoices("text", "content"))


class RetrievedPassage(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    source_label: str = UNKNOWN_SOURCE_LABEL
    score: float


class ChatReply(BaseModel):
    reply: str


class ChatError(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str
    status_hint: int = Field(alias="statusHint")
