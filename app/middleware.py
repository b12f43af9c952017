import json
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.utils.responses import is_enveloped, standardize

logger = logging.getLogger(__name__)


class ApiResponseMiddleware(BaseHTTPMiddleware):
    """
    Wrap every JSON response under the API prefix in the standard envelope.

    Responses whose body is already `{status_code, message, result}` are
    re-emitted byte for byte. Empty bodies, non-JSON responses and paths
    outside the prefix are left alone.
    """

    def __init__(self, app, prefix: str = "/api"):
        super().__init__(app)
        self.prefix = prefix.rstrip("/")

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        path = request.url.path
        if path != self.prefix and not path.startswith(self.prefix + "/"):
            return response
        if not response.headers.get("content-type", "").startswith("application/json"):
            return response

        body = b"".join([chunk async for chunk in response.body_iterator])
        if body:
            body = self._envelope_body(body, response.status_code, request.url.path)

        wrapped = Response(
            content=body,
            status_code=response.status_code,
            background=response.background,
        )
        wrapped.raw_headers = [
            (key, value) for key, value in response.raw_headers
            if key.lower() != b"content-length"
        ] + [(b"content-length", str(len(body)).encode("latin-1"))]
        return wrapped

    @staticmethod
    def _envelope_body(body: bytes, status_code: int, path: str) -> bytes:
        try:
            data = json.loads(body)
        except ValueError:
            logger.warning(f"Could not decode JSON body for {path}, passing it through")
            return body

        if is_enveloped(data):
            return body

        envelope = standardize(data, status_code)
        return json.dumps(envelope, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
