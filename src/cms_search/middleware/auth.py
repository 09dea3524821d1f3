"""API key authentication middleware."""

import secrets
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from cms_search.middleware import PUBLIC_PATHS

API_KEY_HEADER = "X-API-Key"


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Require a shared API key on everything but the health probes.

    The CMS webhook and the index administration endpoints mutate the
    index, so they sit behind the same key as search.
    """

    def __init__(self, app: Callable[..., Awaitable[Response]], api_key: str) -> None:
        """Initialize middleware.

        Args:
            app: ASGI application.
            api_key: Expected API key value.
        """
        super().__init__(app)  # type: ignore[arg-type]
        self._api_key = api_key

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        provided = request.headers.get(API_KEY_HEADER, "")
        if not provided or not secrets.compare_digest(provided, self._api_key):
            return JSONResponse(
                status_code=401,
                content={"error": "Unauthorized", "detail": f"Missing or invalid {API_KEY_HEADER} header"},
            )

        return await call_next(request)
