"""AWS Signature Version 4 signing for Bedrock runtime requests.

Pure functions only: credentials, region, service, host and the clock are all
passed in, nothing is read from the environment. Given the same inputs and the
same `now`, sign() returns byte-identical headers.

Signing steps:
1. Timestamp: amz_date (YYYYMMDDTHHMMSSZ) and its 8-character date_stamp, taken once
2. Canonical URI: each path segment RFC 3986 encoded on its own, "/" kept
3. Canonical headers: content-type, host, x-amz-date (+ x-amz-security-token),
   sorted by lowercase name
4. Canonical request: method, URI, empty query, headers, signed headers, body hash
5. String to sign: algorithm, amz_date, credential scope, hash of canonical request
6. Signing key: HMAC chain over date_stamp, region, service, "aws4_request"
7. Signature: hex HMAC of the string to sign, emitted in the Authorization header
"""

import hashlib
import hmac
from datetime import datetime, timezone
from typing import Optional, Union
from urllib.parse import quote

from bedrock_chef.models.models import AwsCredentials, MissingCredentialsError, SignedRequest, SigningContext
from bedrock_chef.utils.logger import logger


ALGORITHM = "AWS4-HMAC-SHA256"
TERMINATOR = "aws4_request"
CONTENT_TYPE = "application/json"


def _hmac(key: bytes, data: str) -> bytes:
    return hmac.new(key, data.encode("utf-8"), hashlib.sha256).digest()


def sha256_hex(data: Union[str, bytes]) -> str:
    """Lowercase hex SHA-256 of a str (UTF-8 encoded) or bytes."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def format_amz_date(now: datetime) -> str:
    """Format a timestamp as YYYYMMDDTHHMMSSZ in UTC. Naive datetimes are taken as UTC."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def encode_rfc3986(segment: str) -> str:
    """Percent-encode everything outside the RFC 3986 unreserved set.

    Stricter than quote()'s defaults: "!", "*", "'", "(", ")" and ":" are all encoded.
    """
    return quote(segment, safe="-_.~")


def canonicalize_path(path: str) -> str:
    """Encode each "/"-separated segment independently.

    The leading empty segment keeps the leading slash, so "/model/a.b:0/invoke"
    becomes "/model/a.b%3A0/invoke".
    """
    return "/".join(encode_rfc3986(segment) for segment in path.split("/"))


def get_signing_key(secret_access_key: str, date_stamp: str, region: str, service: str) -> bytes:
    """Derive the day-scoped signing key through four chained HMAC-SHA256 steps."""
    k_date = _hmac(f"AWS4{secret_access_key}".encode("utf-8"), date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, TERMINATOR)


def build_canonical_headers(headers: dict[str, str]) -> tuple[str, str]:
    """Return (canonical header block, signed header list).

    Names are lowercased and sorted; values are trimmed. Every line of the block,
    including the last, ends in a newline.
    """
    normalized = {name.lower(): str(value).strip() for name, value in headers.items()}
    names = sorted(normalized)
    canonical = "".join(f"{name}:{normalized[name]}\n" for name in names)
    return canonical, ";".join(names)


def build_canonical_request(
    method: str,
    canonical_path: str,
    canonical_headers: str,
    signed_headers: str,
    payload_hash: str,
    canonical_query: str = "",
) -> str:
    return "\n".join(
        [method, canonical_path, canonical_query, canonical_headers, signed_headers, payload_hash]
    )


def build_string_to_sign(ctx: SigningContext, canonical_request: str) -> str:
    return "\n".join([ALGORITHM, ctx.amz_date, ctx.credential_scope, sha256_hex(canonical_request)])


def sign(
    path: str,
    body: Union[str, bytes],
    credentials: AwsCredentials,
    *,
    region: str,
    service: str,
    host: str,
    now: Optional[datetime] = None,
    method: str = "POST",
) -> SignedRequest:
    """Sign one JSON request to the Bedrock runtime.

    Args:
        path: Raw request path, e.g. "/model/<model-id>/invoke".
        body: Exact request body that will be sent.
        credentials: Credentials for this invocation.
        region: Signing region.
        service: Signing service name.
        host: Host header value.
        now: Signing instant. Defaults to the current UTC time; pin it for
            reproducible signatures.
        method: HTTP method.

    Returns:
        SignedRequest with the headers to send (Host, Content-Type, X-Amz-Date,
        Authorization and, with a session token, X-Amz-Security-Token).

    Raises:
        MissingCredentialsError: If access key id or secret is empty.
    """
    if not credentials.is_complete:
        raise MissingCredentialsError("Missing AWS credentials in environment")

    amz_date = format_amz_date(now or datetime.now(timezone.utc))
    ctx = SigningContext(
        access_key_id=credentials.access_key_id,
        secret_access_key=credentials.secret_access_key,
        session_token=credentials.session_token,
        region=region,
        service=service,
        host=host,
        amz_date=amz_date,
        date_stamp=amz_date[:8],
    )

    canonical_path = canonicalize_path(path)

    headers_to_sign = {
        "content-type": CONTENT_TYPE,
        "host": ctx.host,
        "x-amz-date": ctx.amz_date,
    }
    if ctx.session_token:
        headers_to_sign["x-amz-security-token"] = ctx.session_token

    canonical_headers, signed_headers = build_canonical_headers(headers_to_sign)
    canonical_request = build_canonical_request(
        method.upper(), canonical_path, canonical_headers, signed_headers, sha256_hex(body)
    )
    string_to_sign = build_string_to_sign(ctx, canonical_request)

    signing_key = get_signing_key(ctx.secret_access_key, ctx.date_stamp, ctx.region, ctx.service)
    signature = hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

    authorization = (
        f"{ALGORITHM} Credential={ctx.access_key_id}/{ctx.credential_scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )
    request_headers = {
        "Host": ctx.host,
        "Content-Type": CONTENT_TYPE,
        "X-Amz-Date": ctx.amz_date,
        "Authorization": authorization,
    }
    if ctx.session_token:
        request_headers["X-Amz-Security-Token"] = ctx.session_token

    logger.debug(f"Signed {method.upper()} {canonical_path} (scope={ctx.credential_scope}, headers={signed_headers})")

    return SignedRequest(
        headers=request_headers,
        canonical_path=canonical_path,
        canonical_request=canonical_request,
        string_to_sign=string_to_sign,
        signature=signature,
    )
