# verimail/handler.py
"""Request boundary: raw request body in, status + JSON body + headers out."""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from verimail.pipeline import VerificationPipeline, get_pipeline

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Credentials": "true",
}


class ClientInputError(ValueError):
    """The request body is missing, malformed, or lacks an email."""


@dataclass
class Response:
    status_code: int
    body: dict
    headers: dict = field(default_factory=lambda: dict(CORS_HEADERS))

    def json(self) -> str:
        return json.dumps(self.body)


def parse_request(body: Union[str, bytes, dict, None]) -> str:
    """Pull the email out of a request body or raise ClientInputError."""
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8", errors="replace")

    if isinstance(body, str):
        if not body.strip():
            raise ClientInputError("Empty request body")
        try:
            body = json.loads(body)
        except json.JSONDecodeError as e:
            raise ClientInputError(f"Request body is not valid JSON: {e}") from e

    if not isinstance(body, dict):
        raise ClientInputError("Request body must be a JSON object")

    email: Any = body.get("email")
    if not email or not isinstance(email, str):
        raise ClientInputError("Email is required")
    return email


async def verify_email(
    body: Union[str, bytes, dict, None],
    pipeline: Optional[VerificationPipeline] = None,
) -> Response:
    """Verify the address in ``body`` and build the response."""
    try:
        email = parse_request(body)
    except ClientInputError as e:
        logger.info("Rejected verification request: %s", e)
        return Response(400, {"error": "Email is required"})

    try:
        pipeline = pipeline or get_pipeline()
        outcome = await pipeline.verify(email)
    except Exception:
        logger.exception("Verification failed for %s", email)
        return Response(500, {"error": "Internal server error"})

    return Response(200, outcome.to_body())
