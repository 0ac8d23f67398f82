"""Single-shot HTTP POST transport built on aiohttp.

The whole response body is buffered before returning; payloads are small JSON
documents or one base64 image. HTTP error statuses come back as ordinary
HttpResponse values. Only network-level failures raise, as TransportError.
No retries and no internal timeout: the hosting runtime bounds the call.
"""

import asyncio
from typing import Optional, Union

import aiohttp

from bedrock_chef.models.models import HttpResponse, TransportError
from bedrock_chef.utils.logger import logger


class HttpTransport:
    """Issue one POST per call and collect status code and body."""

    def __init__(self, scheme: str = "https", timeout_seconds: Optional[float] = None) -> None:
        """Initialize the transport.

        Args:
            scheme: "https" for Bedrock. "http" is only meant for local stub servers.
            timeout_seconds: Total timeout per request. None leaves the call unbounded.
        """
        self.scheme = scheme
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def post(
        self,
        host: str,
        path: str,
        headers: dict[str, str],
        body: Union[str, bytes],
    ) -> HttpResponse:
        """POST `body` to `host` + `path` and buffer the response.

        Args:
            host: Host, optionally with ":port".
            path: Raw path, sent as given.
            headers: Request headers (already signed).
            body: Request body; str is sent UTF-8 encoded.

        Returns:
            HttpResponse with status code and UTF-8 decoded body.

        Raises:
            TransportError: DNS, connection, TLS or read failure.
        """
        data = body.encode("utf-8") if isinstance(body, str) else body
        url = f"{self.scheme}://{host}{path}"
        logger.debug(f"POST {url} ({len(data)} bytes)")

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, data=data, headers=headers) as response:
                    raw = await response.read()
                    status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.warning(f"Transport failure for POST {host}{path}: {e!r}")
            raise TransportError(f"Request to {host}{path} failed: {e}") from e

        logger.debug(f"POST {host}{path} -> {status} ({len(raw)} bytes)")
        return HttpResponse(status_code=status, body=raw.decode("utf-8", errors="replace"))
