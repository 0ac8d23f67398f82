"""Unit tests for the image model invoker."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from bedrock_chef.invokers.image_model import build_image_payload, extract_first_artifact, invoke_image_model
from bedrock_chef.models.models import AwsCredentials, HttpResponse, MissingCredentialsError
from bedrock_chef.prompts.prompts import IMAGE_STYLE_SUFFIX, NEGATIVE_PROMPT
from bedrock_chef.utils.config import config


CREDS = AwsCredentials(access_key_id="AKIDEXAMPLE", secret_access_key="SECRET", session_token="TOKEN")
NOW = datetime(2024, 6, 20, 12, 34, 56, tzinfo=timezone.utc)
PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="


def _transport(status: int = 200, body: str = "") -> AsyncMock:
    transport = AsyncMock()
    transport.post.return_value = HttpResponse(status_code=status, body=body)
    return transport


class TestBuildImagePayload:
    """Test the fixed SDXL request body."""

    def test_prompt_gets_style_suffix(self):
        """The dish description is followed by the photography style."""
        payload = build_image_payload("A bowl of tomato soup.")
        assert payload["text_prompts"][0] == {"text": f"A bowl of tomato soup. {IMAGE_STYLE_SUFFIX}"}

    def test_negative_prompt_weighted(self):
        """The negative prompt has weight -1."""
        payload = build_image_payload("x")
        assert payload["text_prompts"][1] == {"text": NEGATIVE_PROMPT, "weight": -1}

    def test_fixed_parameters(self):
        """Guidance, steps, samples and size are constants."""
        payload = build_image_payload("x")
        assert payload["cfg_scale"] == 7
        assert payload["steps"] == 40
        assert payload["samples"] == 1
        assert payload["width"] == payload["height"] == 512
        assert payload["clip_guidance_preset"] == "FAST_BLUE"

    def test_empty_prompt_still_styled(self):
        """An empty description still yields a usable prompt."""
        assert build_image_payload("")["text_prompts"][0]["text"] == f" {IMAGE_STYLE_SUFFIX}"


class TestExtractFirstArtifact:
    """Test artifacts[0].base64 extraction."""

    def test_first_artifact(self):
        """Only the first artifact is used."""
        assert extract_first_artifact({"artifacts": [{"base64": "A"}, {"base64": "B"}]}) == "A"

    @pytest.mark.parametrize(
        "envelope",
        [{}, {"artifacts": []}, {"artifacts": "x"}, {"artifacts": [{"seed": 1}]}, {"artifacts": [{"base64": None}]}, None],
    )
    def test_missing_payload(self, envelope):
        """Any other shape yields an empty string."""
        assert extract_first_artifact(envelope) == ""


class TestInvokeImageModel:
    """Test the full image invocation with a mocked transport."""

    @pytest.mark.asyncio
    async def test_success(self):
        """The first artifact is returned as PNG."""
        body = json.dumps({"result": "success", "artifacts": [{"seed": 1, "base64": PNG_B64, "finishReason": "SUCCESS"}]})
        transport = _transport(body=body)

        result = await invoke_image_model("A salad", CREDS, transport=transport, now=NOW)

        assert result.image_base64 == PNG_B64
        assert result.mime_type == "image/png"
        assert result.error == ""

    @pytest.mark.asyncio
    async def test_request_targets_image_path_with_token(self):
        """The image path is used and the session token is forwarded."""
        transport = _transport(body=json.dumps({"artifacts": [{"base64": PNG_B64}]}))

        await invoke_image_model("A salad", CREDS, transport=transport, now=NOW)

        host, path, headers, body = transport.post.call_args.args
        assert path == f"/model/{config.IMAGE_MODEL_ID}/invoke"
        assert headers["X-Amz-Security-Token"] == "TOKEN"
        assert json.loads(body)["text_prompts"][0]["text"].startswith("A salad ")

    @pytest.mark.asyncio
    async def test_non_2xx(self):
        """Error statuses use the image prefix."""
        transport = _transport(status=429, body='{"message": "Too many requests, please wait before trying again."}')

        result = await invoke_image_model("A salad", CREDS, transport=transport, now=NOW)

        assert result.error == "Bedrock image error: status 429 - Too many requests, please wait before trying again."
        assert result.image_base64 == ""
        assert result.mime_type == ""

    @pytest.mark.asyncio
    async def test_non_2xx_raw_body(self):
        """Non-JSON error bodies are reported raw."""
        result = await invoke_image_model("x", CREDS, transport=_transport(status=502, body="Bad Gateway"), now=NOW)
        assert result.error == "Bedrock image error: status 502 - Bad Gateway"

    @pytest.mark.asyncio
    async def test_unparseable_body(self):
        """2xx with a non-JSON body is a parse failure."""
        result = await invoke_image_model("x", CREDS, transport=_transport(body="\x89PNG..."), now=NOW)
        assert result.error == "Failed to parse Bedrock image response JSON"

    @pytest.mark.asyncio
    async def test_missing_artifacts(self):
        """2xx JSON without artifacts is an unexpected format."""
        result = await invoke_image_model("x", CREDS, transport=_transport(body='{"artifacts": []}'), now=NOW)
        assert result.error == "Unexpected Bedrock image response format"

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        """Incomplete credentials fail before the transport is used."""
        transport = _transport()

        with pytest.raises(MissingCredentialsError):
            await invoke_image_model("x", AwsCredentials(access_key_id="AKID"), transport=transport)

        transport.post.assert_not_called()
