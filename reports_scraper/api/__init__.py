"""Read API (aiohttp) with per-client rate limiting."""

from .server import create_app, rate_limit_middleware, start_web_server

__all__ = ["create_app", "rate_limit_middleware", "start_web_server"]
