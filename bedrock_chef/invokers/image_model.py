"""Dish photo generation through the Bedrock image model (Stability SDXL).

All synthesis parameters are fixed; only the prompt varies per call.
"""

import json
from datetime import datetime
from typing import Optional

from bedrock_chef.invokers.errors import format_status_error
from bedrock_chef.models.models import AwsCredentials, ImageInvocationResult
from bedrock_chef.prompts.prompts import NEGATIVE_PROMPT, NEGATIVE_PROMPT_WEIGHT, get_image_prompt
from bedrock_chef.signing.sigv4 import sign
from bedrock_chef.transport.http import HttpTransport
from bedrock_chef.utils.config import Config, config
from bedrock_chef.utils.logger import logger


IMAGE_MIME_TYPE = "image/png"

# Fixed SDXL parameters
CFG_SCALE = 7
STEPS = 40
SAMPLES = 1
IMAGE_SIZE = 512
CLIP_GUIDANCE_PRESET = "FAST_BLUE"


def build_image_payload(prompt: str) -> dict:
    """SDXL request body: styled prompt, weighted negative prompt, fixed parameters."""
    return {
        "text_prompts": [
            {"text": get_image_prompt(prompt)},
            {"text": NEGATIVE_PROMPT, "weight": NEGATIVE_PROMPT_WEIGHT},
        ],
        "cfg_scale": CFG_SCALE,
        "steps": STEPS,
        "samples": SAMPLES,
        "width": IMAGE_SIZE,
        "height": IMAGE_SIZE,
        "clip_guidance_preset": CLIP_GUIDANCE_PRESET,
    }


def extract_first_artifact(envelope) -> str:
    """Return artifacts[0].base64, or "" if the response does not have one."""
    if not isinstance(envelope, dict):
        return ""
    artifacts = envelope.get("artifacts")
    if not isinstance(artifacts, list) or not artifacts:
        return ""
    first = artifacts[0]
    if isinstance(first, dict) and isinstance(first.get("base64"), str):
        return first["base64"]
    return ""


async def invoke_image_model(
    prompt: str,
    credentials: AwsCredentials,
    *,
    settings: Config = config,
    transport: Optional[HttpTransport] = None,
    now: Optional[datetime] = None,
) -> ImageInvocationResult:
    """Generate one square PNG for the dish description.

    Args:
        prompt: Dish description from the text model (may be empty).
        credentials: Credentials for this invocation.
        settings: Endpoint and model configuration.
        transport: HTTP transport. Defaults to HttpTransport(settings.BEDROCK_SCHEME).
        now: Signing instant override.

    Returns:
        ImageInvocationResult with base64 PNG, or error.

    Raises:
        MissingCredentialsError: Before any request if credentials are incomplete.
        TransportError: On network-level failure.
    """
    transport = transport or HttpTransport(scheme=settings.BEDROCK_SCHEME)
    body = json.dumps(build_image_payload(prompt))
    path = settings.image_model_path

    signed = sign(
        path,
        body,
        credentials,
        region=settings.AWS_REGION,
        service=settings.BEDROCK_SERVICE,
        host=settings.BEDROCK_HOST,
        now=now,
    )

    logger.info(f"Invoking image model {settings.IMAGE_MODEL_ID}")
    response = await transport.post(settings.BEDROCK_HOST, path, signed.headers, body)

    if not response.ok:
        error = format_status_error("image", response)
        logger.warning(error)
        return ImageInvocationResult.failure(error)

    try:
        envelope = json.loads(response.body or "{}")
    except (json.JSONDecodeError, ValueError):
        logger.warning("Image model response body is not JSON")
        return ImageInvocationResult.failure("Failed to parse Bedrock image response JSON")

    image_base64 = extract_first_artifact(envelope)
    if not image_base64:
        logger.warning("Image model response has no artifacts[0].base64")
        return ImageInvocationResult.failure("Unexpected Bedrock image response format")

    logger.debug(f"Image model returned {len(image_base64)} base64 chars")
    return ImageInvocationResult(image_base64=image_base64, mime_type=IMAGE_MIME_TYPE)
