"""
RequestContext Middleware - Adds request tracking to all requests.

Every request gets, on request.state:
- request_id: UUID for tracing this request (echoed as X-Request-ID)
- ip_address: client address, used as the anonymous visitor identity when
  recording plan interactions
- user_agent: client user agent string
"""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from plandropper.config import settings
from plandropper.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.ip_address = extract_client_ip(request)
        request.state.user_agent = request.headers.get("user-agent")

        logger.debug(
            "Request started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            ip_address=request.state.ip_address,
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def extract_client_ip(request: Request) -> str | None:
    """
    Client address with proxy spoofing protection.

    X-Forwarded-For / X-Real-IP are honored only when TRUST_X_FORWARDED_FOR is
    enabled and the direct peer is one of TRUSTED_PROXY_IPS.
    """
    direct_ip = request.client.host if request.client else None

    if not settings.TRUST_X_FORWARDED_FOR or direct_ip not in settings.TRUSTED_PROXY_IPS:
        return direct_ip

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        # "client, proxy1, proxy2": first entry is the original client
        client_ip = forwarded_for.split(",")[0].strip()
        if client_ip:
            logger.debug(
                "Using X-Forwarded-For from trusted proxy",
                proxy_ip=direct_ip,
                client_ip=client_ip,
            )
            return client_ip

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return direct_ip
