"""Recipe generation through the Bedrock text model (Anthropic messages API).

Flow:
1. Build the messages payload from the ingredient list
2. Sign it and POST it to /model/<TEXT_MODEL_ID>/invoke
3. Validate the response envelope and pull out content[0].text
4. Recover the model's JSON object (fenced or bare) and map it to a result

Every failure except missing credentials and transport errors comes back as a
TextInvocationResult with `error` set; the orchestrator decides what to do with it.
"""

import json
import re
from datetime import datetime
from typing import Any, Optional

from bedrock_chef.invokers.errors import format_status_error
from bedrock_chef.models.models import AwsCredentials, ModelRecipeOutput, TextInvocationResult
from bedrock_chef.prompts.prompts import get_recipe_prompt
from bedrock_chef.signing.sigv4 import sign
from bedrock_chef.transport.http import HttpTransport
from bedrock_chef.utils.config import Config, config
from bedrock_chef.utils.logger import logger


# First fenced block, optional "json" tag, non-greedy so trailing fences are ignored
FENCE_PATTERN = re.compile(r"```(?:json)?([\s\S]*?)```", re.IGNORECASE)

MISSING_FIELDS_ERROR = "Text model did not return expected recipe/image_prompt fields"


def build_text_payload(ingredients: list[str], settings: Config = config) -> dict:
    """Messages API request body for one user turn."""
    return {
        "anthropic_version": settings.ANTHROPIC_VERSION,
        "max_tokens": settings.TEXT_MAX_TOKENS,
        "messages": [
            {
                "role": "user",
                "content": [{"type": "text", "text": get_recipe_prompt(ingredients)}],
            }
        ],
    }


def extract_output_text(envelope) -> str:
    """Return content[0].text from a messages API response, or "" if absent."""
    if not isinstance(envelope, dict):
        return ""
    content = envelope.get("content")
    if not isinstance(content, list) or not content:
        return ""
    first = content[0]
    if isinstance(first, dict) and isinstance(first.get("text"), str):
        return first["text"]
    return ""


def extract_json(text: str) -> Any:
    """Recover the JSON value the model was asked to emit.

    If the text contains a fenced block, only the fenced content is parsed;
    otherwise the whole trimmed text is. Returns None when parsing fails. Any
    parsed value is returned as-is, object or not; interpret_model_output()
    decides whether it carries a recipe.
    """
    trimmed = (text or "").strip()
    match = FENCE_PATTERN.search(trimmed)
    candidate = match.group(1).strip() if match else trimmed

    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, ValueError) as e:
        logger.debug(f"Model output is not JSON: {e}")
        return None
    return parsed


def _describe_model_error(value) -> str:
    return value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)


def is_empty_json(value: Any) -> bool:
    """True for null, false, 0 and "": parsed output that carries nothing at all.

    Empty objects and arrays are not empty here; they reach the field checks.
    """
    return value is None or (not isinstance(value, (dict, list)) and not value)


def interpret_model_output(model_json: Any) -> TextInvocationResult:
    """Map the model's own JSON verdict to a TextInvocationResult.

    Values that are not JSON objects have no recipe fields to read.
    """
    if not isinstance(model_json, dict):
        logger.debug(f"Model output is JSON but not an object: {type(model_json).__name__}")
        return TextInvocationResult.failure(MISSING_FIELDS_ERROR)

    output = ModelRecipeOutput.model_validate(model_json)

    if output.error:
        logger.info(f"Text model rejected the ingredients: {output.error}")
        return TextInvocationResult.failure(f"Model error: {_describe_model_error(output.error)}")

    if isinstance(output.recipe, str) and isinstance(output.image_prompt, str) and output.recipe.strip():
        return TextInvocationResult(recipe_markdown=output.recipe, image_prompt=output.image_prompt)

    return TextInvocationResult.failure(MISSING_FIELDS_ERROR)


async def invoke_text_model(
    ingredients: list[str],
    credentials: AwsCredentials,
    *,
    settings: Config = config,
    transport: Optional[HttpTransport] = None,
    now: Optional[datetime] = None,
) -> TextInvocationResult:
    """Ask the text model for a recipe and an image prompt.

    Args:
        ingredients: Sanitized ingredient list (may be empty).
        credentials: Credentials for this invocation.
        settings: Endpoint and model configuration.
        transport: HTTP transport. Defaults to HttpTransport(settings.BEDROCK_SCHEME).
        now: Signing instant override.

    Returns:
        TextInvocationResult with recipe_markdown and image_prompt, or error.

    Raises:
        MissingCredentialsError: Before any request if credentials are incomplete.
        TransportError: On network-level failure.
    """
    transport = transport or HttpTransport(scheme=settings.BEDROCK_SCHEME)
    body = json.dumps(build_text_payload(ingredients, settings))
    path = settings.text_model_path

    signed = sign(
        path,
        body,
        credentials,
        region=settings.AWS_REGION,
        service=settings.BEDROCK_SERVICE,
        host=settings.BEDROCK_HOST,
        now=now,
    )

    logger.info(f"Invoking text model {settings.TEXT_MODEL_ID} with {len(ingredients)} ingredients")
    response = await transport.post(settings.BEDROCK_HOST, path, signed.headers, body)

    if not response.ok:
        error = format_status_error("text", response)
        logger.warning(error)
        return TextInvocationResult.failure(error)

    try:
        envelope = json.loads(response.body or "{}")
    except (json.JSONDecodeError, ValueError):
        logger.warning("Text model response body is not JSON")
        return TextInvocationResult.failure("Failed to parse Bedrock text response JSON")

    output_text = extract_output_text(envelope)
    if not output_text:
        logger.warning("Text model response has no content[0].text")
        return TextInvocationResult.failure("Unexpected Bedrock text response format")

    model_json = extract_json(output_text)
    if is_empty_json(model_json):
        logger.warning("Text model output did not contain a JSON object")
        return TextInvocationResult.failure("Text model did not return valid JSON")

    return interpret_model_output(model_json)
