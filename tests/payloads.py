"""
Canned upstream bodies and an ``httpx.MockTransport`` handler for tests.
"""
import json
from typing import Any, Dict, List, Optional

import httpx


class UpstreamStub:
    """
    Canned upstream for ``httpx.MockTransport``.

    Requests are matched by URL substring, first route wins. A route given
    several responses answers them in order and then repeats the last one.
    Exceptions in the list are raised instead of answered.
    """

    def __init__(self):
        self.routes: List[tuple] = []
        self.requests: List[httpx.Request] = []

    def add(self, fragment: str, *responses: Any) -> "UpstreamStub":
        self.routes.append((fragment, list(responses)))
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for fragment, responses in self.routes:
            if fragment in str(request.url):
                spec = responses.pop(0) if len(responses) > 1 else responses[0]
                if isinstance(spec, Exception):
                    raise spec
                return httpx.Response(**spec)
        return httpx.Response(404, text="Not found")

    def calls(self, fragment: str = "") -> List[httpx.Request]:
        return [r for r in self.requests if fragment in str(r.url)]

    def bodies(self, fragment: str = "") -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.calls(fragment)]


def ok(body: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    return {"status_code": 200, "json": body, "headers": headers or {}}


def raw(content: bytes, content_type: Optional[str] = None) -> Dict[str, Any]:
    headers = {"content-type": content_type} if content_type else {}
    return {"status_code": 200, "content": content, "headers": headers}


def error(status: int, text: str) -> Dict[str, Any]:
    return {"status_code": status, "text": text}


def chat_completion(
    content: Optional[str],
    finish_reason: str = "stop",
    tool_calls: Optional[List[Dict[str, Any]]] = None,
    prompt_tokens: Optional[int] = 5,
    completion_tokens: Optional[int] = 3,
) -> Dict[str, Any]:
    message: Dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls
    body: Dict[str, Any] = {"choices": [{"index": 0, "finish_reason": finish_reason, "message": message}]}
    if prompt_tokens is not None:
        body["usage"] = {"prompt_tokens": prompt_tokens, "completion_tokens": completion_tokens}
    return body


def web_search_call(call_id: str = "call_1", arguments: str = '{"query": "weather"}') -> Dict[str, Any]:
    return {
        "index": 0,
        "id": call_id,
        "type": "builtin_function",
        "function": {"name": "$web_search", "arguments": arguments},
    }


def messages_body(text: str, input_tokens: int = 10, output_tokens: int = 20) -> Dict[str, Any]:
    return {
        "id": "msg_test",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
        "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
    }


def responses_body(text: str, searches: int = 0) -> Dict[str, Any]:
    output: List[Dict[str, Any]] = [
        {"type": "web_search_call", "id": f"ws_{i}", "status": "completed"} for i in range(searches)
    ]
    output.append({
        "type": "message",
        "role": "assistant",
        "content": [{"type": "output_text", "text": text, "annotations": []}],
    })
    return {"id": "resp_test", "output": output, "usage": {"input_tokens": 12, "output_tokens": 7}}
