"""Upstream error formatting shared by the text and image invokers."""

import json

from bedrock_chef.models.models import HttpResponse


MAX_ERROR_DETAIL_CHARS = 500


def _first_truthy(envelope: dict, *keys: str):
    for key in keys:
        value = envelope.get(key)
        if value:
            return value
    return ""


def extract_error_detail(body: str) -> str:
    """Pull a readable detail out of a Bedrock error body.

    JSON envelopes give "<code>: <message>" where code is the first of
    __type/code/error and message the first of message/Message (falling back to
    the whole envelope). Anything that is not JSON is returned unchanged.
    An empty body is treated as "{}".
    """
    try:
        envelope = json.loads(body or "{}")
    except (json.JSONDecodeError, ValueError):
        return body or ""

    compact = json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)
    if not isinstance(envelope, dict):
        return compact

    code = _first_truthy(envelope, "__type", "code", "error")
    message = _first_truthy(envelope, "message", "Message") or compact
    return f"{code}: {message}" if code else str(message)


def format_status_error(label: str, response: HttpResponse) -> str:
    """Format a non-2xx response, e.g. "Bedrock text error: status 403 - AccessDenied: ...".

    The detail is truncated to MAX_ERROR_DETAIL_CHARS and omitted when empty.
    """
    snippet = extract_error_detail(response.body)[:MAX_ERROR_DETAIL_CHARS]
    message = f"Bedrock {label} error: status {response.status_code}"
    return f"{message} - {snippet}" if snippet else message
