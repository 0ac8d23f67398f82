"""Configuration management for Bedrock Chef.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults

AWS credentials are deliberately NOT stored on the module-level config: they are
read fresh for every invocation via load_credentials() and passed explicitly to
the signer.
"""

import os
from typing import Optional

from dotenv import load_dotenv

from bedrock_chef.models.models import AwsCredentials


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Region used both for the credential scope and the default host
        self.AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")
        # Service name in the credential scope (bedrock, not bedrock-runtime)
        self.BEDROCK_SERVICE: str = os.getenv("BEDROCK_SERVICE", "bedrock")
        # Runtime endpoint host. Default is derived from AWS_REGION
        self.BEDROCK_HOST: str = os.getenv("BEDROCK_HOST", f"bedrock-runtime.{self.AWS_REGION}.amazonaws.com")
        # Text Model: writes the recipe and the image prompt
        self.TEXT_MODEL_ID: str = os.getenv("TEXT_MODEL_ID", "anthropic.claude-3-5-sonnet-20240620-v1:0")
        # Image Model: Stability SDXL payload shape is assumed
        self.IMAGE_MODEL_ID: str = os.getenv("IMAGE_MODEL_ID", "stability.stable-diffusion-xl-v1")
        # Messages API version tag sent in the text request body
        self.ANTHROPIC_VERSION: str = os.getenv("ANTHROPIC_VERSION", "bedrock-2023-05-31")
        # Max Output Tokens for the text model. 1000 fits a full recipe plus prompt
        self.TEXT_MAX_TOKENS: int = int(os.getenv("TEXT_MAX_TOKENS", "1000"))
        # Image step: disable to run text-only
        self.ENABLE_IMAGE: bool = _env_flag("ENABLE_IMAGE", "true")
        # Optional scheme override, only useful against a local stub endpoint
        self.BEDROCK_SCHEME: str = os.getenv("BEDROCK_SCHEME", "https")

    @property
    def text_model_path(self) -> str:
        return f"/model/{self.TEXT_MODEL_ID}/invoke"

    @property
    def image_model_path(self) -> str:
        return f"/model/{self.IMAGE_MODEL_ID}/invoke"

    def validate(self) -> None:
        """Validate configuration.

        Raises:
            ValueError: If a required value is empty or out of range.
        """
        for name in ("AWS_REGION", "BEDROCK_SERVICE", "BEDROCK_HOST", "TEXT_MODEL_ID", "IMAGE_MODEL_ID"):
            if not getattr(self, name):
                raise ValueError(f"{name} must not be empty")
        if self.TEXT_MAX_TOKENS < 1:
            raise ValueError(
                f"TEXT_MAX_TOKENS must be at least 1, got: {self.TEXT_MAX_TOKENS}"
            )
        if self.BEDROCK_SCHEME not in ("https", "http"):
            raise ValueError(
                f"BEDROCK_SCHEME must be 'https' or 'http', got: {self.BEDROCK_SCHEME}"
            )


def load_credentials(environ: Optional[dict] = None) -> AwsCredentials:
    """Read AWS credentials from the environment.

    Called once per invocation, never cached: rotated session credentials must be
    picked up by the next request.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        AwsCredentials with empty strings for any missing value.
    """
    env = os.environ if environ is None else environ
    return AwsCredentials(
        access_key_id=env.get("AWS_ACCESS_KEY_ID", ""),
        secret_access_key=env.get("AWS_SECRET_ACCESS_KEY", ""),
        session_token=env.get("AWS_SESSION_TOKEN", ""),
    )


# Create module-level config instance and validate immediately
config = Config()
config.validate()
