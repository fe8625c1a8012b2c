from typing import Optional
from fastapi import Request

from src.core.config import settings


def get_client_ip(request: Request, trust_proxy_headers: Optional[bool] = None) -> Optional[str]:
    """
    Resolve the originating client address of a request.

    Proxy headers are consulted first (X-Forwarded-For, then X-Real-IP)
    unless proxy trust is disabled, then the socket peer.

    Args:
        request: The FastAPI request object
        trust_proxy_headers: Override for the TRUST_PROXY_HEADERS setting

    Returns:
        Address text, or None when nothing is available
    """
    if trust_proxy_headers is None:
        trust_proxy_headers = settings.trust_proxy_headers

    if trust_proxy_headers:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            first_hop = forwarded_for.split(",")[0].strip()
            if first_hop:
                return first_hop

        real_ip = request.headers.get("x-real-ip")
        if real_ip and real_ip.strip():
            return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return None
