"""
Tool-augmented structured generation over any LangChain chat model.

The answer schema is bound as one more tool; the model either calls a data
lookup tool (we run it and feed the result back) or calls the answer tool,
which ends the loop. Rounds are capped so a model that keeps asking for
tools cannot loop forever.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, Type

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, ToolMessage
from langchain_core.tools import BaseTool
from pydantic import BaseModel, ValidationError

from ..domain.errors import GenerationError
from ..observability.logging_utils import log_event, summarize_text
from .output_parsing import extract_llm_text, load_json_payload
from .tools import format_tool_output


DEFAULT_MAX_TOOL_ROUNDS = 5


def answer_tool_name(schema: Type[BaseModel]) -> str:
    return schema.__name__


def validate_answer(schema: Type[BaseModel], payload: Any) -> BaseModel:
    if not isinstance(payload, dict):
        raise GenerationError(f"{schema.__name__}: expected an object, got {type(payload).__name__}")
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise GenerationError(f"{schema.__name__} failed validation: {exc}") from exc


def _run_tool_call(call: Dict[str, Any], tool_index: Dict[str, BaseTool]) -> ToolMessage:
    name = call.get("name")
    tool = tool_index.get(name)
    if tool is None:
        raise GenerationError(f"model requested unknown tool {name!r}")
    args = call.get("args") or {}
    log_event("tool_call", tool=name, args=args)
    try:
        output = tool.invoke(args)
    except Exception as exc:
        raise GenerationError(f"tool {name!r} failed: {exc}") from exc
    return ToolMessage(
        content=format_tool_output(output),
        tool_call_id=call.get("id") or name,
        name=name,
    )


def run_structured_generation(
    llm: BaseChatModel,
    messages: Sequence[BaseMessage],
    schema: Type[BaseModel],
    tools: Sequence[BaseTool] = (),
    *,
    max_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
) -> BaseModel:
    """
    Drive the model until it returns an answer matching `schema`.

    Raises:
        GenerationError: no valid answer within `max_rounds` model calls, an
            unknown tool was requested, or the answer failed validation.
    """
    final_name = answer_tool_name(schema)
    tool_index = {tool.name: tool for tool in tools}
    tool_choice = "any" if tool_index else final_name
    bound = llm.bind_tools([*tools, schema], tool_choice=tool_choice)
    conversation: List[BaseMessage] = list(messages)

    for round_no in range(1, max_rounds + 1):
        reply = bound.invoke(conversation)
        if not isinstance(reply, AIMessage):
            raise GenerationError(f"unexpected model reply type {type(reply).__name__}")
        conversation.append(reply)
        calls = list(reply.tool_calls or [])
        log_event(
            "generation_round",
            schema=final_name,
            round=round_no,
            tool_calls=[call.get("name") for call in calls],
        )

        if not calls:
            text = extract_llm_text(reply)
            payload = load_json_payload(text)
            if payload is None:
                raise GenerationError(
                    f"model returned no structured output: {summarize_text(text, 200)!r}"
                )
            return validate_answer(schema, payload)

        for call in calls:
            if call.get("name") == final_name:
                return validate_answer(schema, call.get("args"))

        for call in calls:
            conversation.append(_run_tool_call(call, tool_index))

    raise GenerationError(
        f"no {final_name} after {max_rounds} tool-call rounds"
    )
