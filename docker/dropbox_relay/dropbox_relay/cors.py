"""Fixed-origin CORS policy for the relay."""

from starlette.datastructures import MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

ALLOWED_ORIGIN = "http://localhost:4200"
ALLOWED_METHODS = ("POST", "GET", "OPTIONS", "PUT", "DELETE")
ALLOWED_HEADERS = ("Content-Type", "Authorization")


class CORSPolicyMiddleware:
    """Middleware that stamps the CORS headers on every response.

    Unlike starlette's CORSMiddleware the headers are added unconditionally,
    whether or not the request carries an Origin header, and every OPTIONS
    request is answered with 204 before reaching the router.
    """

    def __init__(
        self,
        app: ASGIApp,
        allow_origin: str = ALLOWED_ORIGIN,
        allow_methods: tuple[str, ...] = ALLOWED_METHODS,
        allow_headers: tuple[str, ...] = ALLOWED_HEADERS,
    ) -> None:
        self.app = app
        self.policy_headers = {
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Methods": ", ".join(allow_methods),
            "Access-Control-Allow-Headers": ", ".join(allow_headers),
        }

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            response = Response(status_code=204, headers=self.policy_headers)
            await response(scope, receive, send)
            return

        async def send_with_policy(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in self.policy_headers.items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_policy)
