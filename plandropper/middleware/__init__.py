"""
Middleware components for request processing.
"""

from plandropper.middleware.request_context import RequestContextMiddleware, extract_client_ip

__all__ = ["RequestContextMiddleware", "extract_client_ip"]
