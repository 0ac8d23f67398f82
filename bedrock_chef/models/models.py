"""Data models and schemas for the Bedrock recipe pipeline.

Defines Pydantic models for every request-scoped entity: the sanitized ingredient
request, credentials and signing context, the signed request, raw HTTP responses,
per-model invocation results and the final result returned to the resolver.
All models use Pydantic v2. Nothing here is persisted or shared across requests.
"""

from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class MissingCredentialsError(ValueError):
    """Access key id or secret access key is absent. Fatal, raised before any network call."""


class TransportError(ConnectionError):
    """Network-level failure (DNS, connection reset, TLS) as opposed to an HTTP error status."""


def sanitize_ingredients(raw: Any) -> list[str]:
    """Keep string entries that are non-empty after trimming, in their original order.

    Duplicates are preserved. Non-list input yields an empty list.
    """
    if not isinstance(raw, (list, tuple)):
        return []
    return [item.strip() for item in raw if isinstance(item, str) and item.strip()]


class GenerateRecipeRequest(BaseModel):
    """Input schema: `{ingredients: [...]}` from the resolver layer.

    Raw input may contain non-strings, blanks and padding; the validator reduces it
    to the ordered ingredient list the text model sees. An empty list is valid here,
    the text model decides what to do with it.
    """

    ingredients: Annotated[
        List[str],
        Field(default_factory=list, description="Trimmed, non-empty ingredient names in caller order"),
    ]

    @field_validator("ingredients", mode="before")
    @classmethod
    def sanitize(cls, v: Any) -> list[str]:
        return sanitize_ingredients(v)


class AwsCredentials(BaseModel):
    """Credentials for one invocation. Empty strings stand for absent values."""

    model_config = ConfigDict(frozen=True)

    access_key_id: Annotated[str, Field(description="AWS access key id")] = ""
    secret_access_key: Annotated[str, Field(repr=False, description="AWS secret access key")] = ""
    session_token: Annotated[str, Field(repr=False, description="Optional STS session token")] = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)


class SigningContext(BaseModel):
    """Everything one signature depends on, captured at a single instant.

    amz_date and date_stamp come from the same timestamp.
    """

    model_config = ConfigDict(frozen=True)

    access_key_id: str
    secret_access_key: Annotated[str, Field(repr=False)]
    session_token: Annotated[str, Field(repr=False)] = ""
    region: str
    service: str
    host: str
    amz_date: Annotated[str, Field(description="UTC timestamp, YYYYMMDDTHHMMSSZ")]
    date_stamp: Annotated[str, Field(description="First 8 characters of amz_date")]

    @property
    def credential_scope(self) -> str:
        return f"{self.date_stamp}/{self.region}/{self.service}/aws4_request"


class SignedRequest(BaseModel):
    """Signer output: headers to send plus the intermediate strings for debugging."""

    headers: Annotated[dict[str, str], Field(description="Request headers including Authorization")]
    canonical_path: Annotated[str, Field(description="Path as encoded in the canonical request")]
    canonical_request: str
    string_to_sign: str
    signature: Annotated[str, Field(description="Lowercase hex HMAC-SHA256 signature")]


class HttpResponse(BaseModel):
    """Fully buffered HTTP response."""

    status_code: Annotated[int, Field(ge=0, description="HTTP status code")]
    body: Annotated[str, Field(description="Response body decoded as UTF-8")] = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class ModelRecipeOutput(BaseModel):
    """The JSON object the text model is instructed to emit.

    Field types are left open: the model is not trusted to respect them, and the
    invoker inspects the actual types before accepting a recipe.
    """

    model_config = ConfigDict(extra="ignore")

    recipe: Optional[Any] = None
    image_prompt: Optional[Any] = None
    error: Optional[Any] = None


class TextInvocationResult(BaseModel):
    """Outcome of the text model call: either a recipe with its image prompt, or an error."""

    recipe_markdown: Annotated[str, Field(description="Markdown recipe")] = ""
    image_prompt: Annotated[str, Field(description="Photorealistic description of the dish")] = ""
    error: Annotated[str, Field(description="Diagnostic, empty on success")] = ""

    @model_validator(mode="after")
    def check_exclusive(self) -> "TextInvocationResult":
        """Error and payload are mutually exclusive."""
        if self.error and (self.recipe_markdown or self.image_prompt):
            raise ValueError("TextInvocationResult cannot carry both a recipe and an error")
        if not self.error and not self.recipe_markdown:
            raise ValueError("TextInvocationResult without error must carry a recipe")
        return self

    @classmethod
    def failure(cls, error: str) -> "TextInvocationResult":
        return cls(error=error)


class ImageInvocationResult(BaseModel):
    """Outcome of the image model call: either a base64 image, or an error."""

    image_base64: Annotated[str, Field(description="Base64 image payload")] = ""
    mime_type: Annotated[str, Field(description="Image MIME type")] = ""
    error: Annotated[str, Field(description="Diagnostic, empty on success")] = ""

    @model_validator(mode="after")
    def check_exclusive(self) -> "ImageInvocationResult":
        """Error and payload are mutually exclusive."""
        if self.error and (self.image_base64 or self.mime_type):
            raise ValueError("ImageInvocationResult cannot carry both an image and an error")
        if not self.error and not (self.image_base64 and self.mime_type):
            raise ValueError("ImageInvocationResult without error must carry an image and its MIME type")
        return self

    @classmethod
    def failure(cls, error: str) -> "ImageInvocationResult":
        return cls(error=error)


class FinalResult(BaseModel):
    """Result handed back to the resolver layer.

    error may be non-empty while body is populated: an image failure never
    discards the recipe, it is reported as "Image: <reason>".
    """

    body: Annotated[str, Field(description="Markdown recipe, empty if the text step failed")] = ""
    image_base64: Annotated[str, Field(description="Base64 image, empty if unavailable")] = ""
    image_mime_type: Annotated[str, Field(description="MIME type of image_base64")] = ""
    error: Annotated[str, Field(description="Human-readable diagnostic, possibly prefixed")] = ""

    def to_response(self) -> dict[str, str]:
        """Wire shape expected by the GraphQL `BedrockResponse` type."""
        return {
            "body": self.body,
            "error": self.error,
            "imageBase64": self.image_base64,
            "imageMimeType": self.image_mime_type,
        }
