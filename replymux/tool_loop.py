"""
Bounded tool-calling loop for chat-completions providers with a builtin search tool.

The provider runs the search itself but still expects the client to echo a
tool-result turn for every tool call before it continues. Each round's
request depends on the previous round's tool-call ids, so rounds run strictly
one after another.
"""
import logging
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from .errors import ToolLoopExceededError
from .normalize import chat_completion_usage, first_choice, to_chat_completions
from .types import ConversationMessage, GenerationResult

logger = logging.getLogger(__name__)

MAX_TOOL_ROUNDS = 5

WEB_SEARCH_TOOLS: List[Dict[str, Any]] = [
    {"type": "builtin_function", "function": {"name": "$web_search"}},
]

# Sends one request built from the running message list, returns the raw body
Sender = Callable[[List[Dict[str, Any]]], Awaitable[Dict[str, Any]]]


@dataclass(frozen=True)
class ToolLoopState:
    """
    Accumulator threaded through the loop, one value per round.

    Attributes:
        messages: Request message list, system prompt first.
        rounds: Requests made so far.
        input_tokens: Sum of prompt tokens over all rounds that reported usage.
        output_tokens: Sum of completion tokens likewise.
        queries: Raw argument strings of every tool call seen.
    """
    messages: Tuple[Dict[str, Any], ...]
    rounds: int = 0
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    queries: Tuple[str, ...] = ()


def _add(total: Optional[int], value: Optional[int]) -> Optional[int]:
    if value is None:
        return total
    return value if total is None else total + value


def start(system_prompt: str, messages: Sequence[ConversationMessage]) -> ToolLoopState:
    """Build the initial state from the system prompt and conversation."""
    return ToolLoopState(messages=tuple(to_chat_completions(system_prompt, messages)))


def _result(state: ToolLoopState, text: Optional[str]) -> GenerationResult:
    result: GenerationResult = {"text": text or ""}
    if state.input_tokens is not None:
        result["input_tokens"] = state.input_tokens
    if state.output_tokens is not None:
        result["output_tokens"] = state.output_tokens
    if state.queries:
        result["web_search_queries"] = list(state.queries)
    return result


def _echo_tool_calls(content: Optional[str], tool_calls: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    history: List[Dict[str, Any]] = [
        {"role": "assistant", "content": content or "", "tool_calls": tool_calls},
    ]
    for call in tool_calls:
        function = call.get("function") or {}
        history.append({
            "role": "tool",
            "tool_call_id": call.get("id"),
            "name": function.get("name"),
            "content": function.get("arguments", ""),
        })
    return history


def advance(
    state: ToolLoopState,
    response: Dict[str, Any],
) -> Tuple[ToolLoopState, Optional[GenerationResult]]:
    """
    Fold one upstream response into the state.

    Returns:
        ``(next_state, result)``. ``result`` is set when the loop is finished:
        on ``stop``, and on any finish reason other than ``tool_calls`` (an
        unexpected but non-fatal answer). ``None`` means another round is due.
    """
    choice = first_choice(response)
    message = choice.get("message") or {}
    prompt_tokens, completion_tokens = chat_completion_usage(response)
    state = replace(
        state,
        rounds=state.rounds + 1,
        input_tokens=_add(state.input_tokens, prompt_tokens),
        output_tokens=_add(state.output_tokens, completion_tokens),
    )

    finish_reason = choice.get("finish_reason")
    if finish_reason == "stop":
        return state, _result(state, message.get("content"))

    tool_calls = message.get("tool_calls") or []
    if finish_reason == "tool_calls" and tool_calls:
        queries = tuple((call.get("function") or {}).get("arguments", "") for call in tool_calls)
        logger.debug("Round %d requested %d tool call(s)", state.rounds, len(tool_calls))
        return replace(
            state,
            messages=state.messages + tuple(_echo_tool_calls(message.get("content"), tool_calls)),
            queries=state.queries + queries,
        ), None

    logger.warning("Unexpected finish_reason %r in round %d, returning text as is", finish_reason, state.rounds)
    return state, _result(state, message.get("content"))


async def run_tool_loop(
    send: Sender,
    system_prompt: str,
    messages: Sequence[ConversationMessage],
    max_rounds: int = MAX_TOOL_ROUNDS,
) -> GenerationResult:
    """
    Drive rounds until the provider stops or the round cap is hit.

    Args:
        send: Coroutine function issuing one request for a message list.
        system_prompt: Instructions for the model.
        messages: Conversation, oldest first. Never mutated.
        max_rounds: Hard cap on requests.

    Returns:
        GenerationResult with token counts summed across rounds.

    Raises:
        ToolLoopExceededError: ``max_rounds`` requests were made without a
            final answer.
    """
    state = start(system_prompt, messages)
    while state.rounds < max_rounds:
        logger.debug("Tool loop round %d", state.rounds + 1)
        response = await send(list(state.messages))
        state, result = advance(state, response)
        if result is not None:
            return result
    raise ToolLoopExceededError(max_rounds)
