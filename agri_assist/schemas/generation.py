from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple, Type

from pydantic import BaseModel


ModelRole = Literal["chat", "vision", "rewrite"]


@dataclass(frozen=True)
class GenerationRequest:
    """
    Provider-agnostic description of one structured generation call.

    `media_refs` are data URIs sent alongside the instructions; `tools` are
    names from the tool registry the model may call before answering.
    """

    instructions: str
    response_schema: Type[BaseModel]
    language: str
    media_refs: Tuple[str, ...] = ()
    tools: Tuple[str, ...] = ()
    system_prompt: str = ""
    role: ModelRole = "chat"
    metadata: dict = field(default_factory=dict)

    @property
    def tool_names(self) -> List[str]:
        return list(self.tools)


@dataclass(frozen=True)
class VoiceProfile:
    """Voice used for speech synthesis; `instructions` steer tone on models that accept them."""

    voice: str
    language: str = ""
    instructions: Optional[str] = None
