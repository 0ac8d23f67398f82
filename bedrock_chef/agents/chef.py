"""Recipe pipeline orchestration and the resolver entry point.

generate_recipe() runs the two model calls strictly in order: the image prompt
comes out of the text step, so the image step never starts before the text step
has finished, and never starts at all if the text step failed. An image failure
keeps the recipe and reports "Image: <reason>" in the error field.

handler() is the synchronous entry point the GraphQL resolver invokes. It always
returns the response dict, never raises.
"""

import asyncio
from typing import Any, Optional

from bedrock_chef.hooks.normalize_input import normalize_event
from bedrock_chef.invokers.image_model import invoke_image_model
from bedrock_chef.invokers.text_model import invoke_text_model
from bedrock_chef.models.models import AwsCredentials, FinalResult, GenerateRecipeRequest
from bedrock_chef.transport.http import HttpTransport
from bedrock_chef.utils.config import Config, config, load_credentials
from bedrock_chef.utils.logger import logger, request_context


async def generate_recipe(
    raw_ingredients: Any,
    *,
    credentials: Optional[AwsCredentials] = None,
    settings: Config = config,
    transport: Optional[HttpTransport] = None,
) -> FinalResult:
    """Turn raw ingredient input into a recipe and, when possible, a dish photo.

    Args:
        raw_ingredients: Caller-supplied sequence, possibly with blanks or non-strings.
        credentials: Credentials for this invocation. Read from the environment
            when omitted, on every call.
        settings: Endpoint and model configuration.
        transport: Shared by both model calls. Defaults to HttpTransport.

    Returns:
        FinalResult. Any unexpected fault is reported as "Handler error: <message>"
        with an empty body.
    """
    try:
        request = GenerateRecipeRequest(ingredients=raw_ingredients)
        logger.info(f"Generating recipe from {len(request.ingredients)} ingredients")

        if credentials is None:
            credentials = load_credentials()
        transport = transport or HttpTransport(scheme=settings.BEDROCK_SCHEME)

        # 1) Recipe text and a matching image prompt
        text_result = await invoke_text_model(
            request.ingredients, credentials, settings=settings, transport=transport
        )
        if text_result.error:
            logger.info(f"Text step failed, skipping image step: {text_result.error}")
            return FinalResult(error=text_result.error)

        if not settings.ENABLE_IMAGE:
            logger.info("Image step disabled (ENABLE_IMAGE=false)")
            return FinalResult(body=text_result.recipe_markdown)

        # 2) Dish photo from the model-written prompt
        image_result = await invoke_image_model(
            text_result.image_prompt or "", credentials, settings=settings, transport=transport
        )
        error = f"Image: {image_result.error}" if image_result.error else ""
        if error:
            logger.warning(f"Returning recipe without image: {error}")
        else:
            logger.info("Recipe and image generated")

        return FinalResult(
            body=text_result.recipe_markdown,
            image_base64=image_result.image_base64,
            image_mime_type=image_result.mime_type,
            error=error,
        )

    except Exception as e:
        logger.error(f"Recipe generation failed: {e}", exc_info=True)
        return FinalResult(error=f"Handler error: {str(e) or type(e).__name__}")


def handler(event: Any, context: Any = None) -> dict[str, str]:
    """Resolver entry point for the askBedrock query.

    Args:
        event: Resolver event ({"arguments": {"ingredients": [...]}}), a JSON
            string of one, or a bare list.
        context: Lambda context. Its aws_request_id tags every log record of
            this invocation.

    Returns:
        {"body", "error", "imageBase64", "imageMimeType"}, all strings.
    """
    request_id = getattr(context, "aws_request_id", None)

    with request_context(request_id):
        logger.info("Handling askBedrock request")
        try:
            raw_ingredients = normalize_event(event)
            result = asyncio.run(generate_recipe(raw_ingredients))
        except Exception as e:
            logger.error(f"Handler failed: {e}", exc_info=True)
            result = FinalResult(error=f"Handler error: {str(e) or type(e).__name__}")

    return result.to_response()
