"""Request-scoped dependencies: services, caller identity and client details"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from ..models import User
from ..storage import RequestMeta, Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    services: Services = Depends(get_services),
) -> User:
    """Resolve the caller from the X-User-Id header"""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user id")

    user = services.users.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


def request_meta(request: Request) -> RequestMeta:
    """Client address and user agent for the audit trail"""
    return RequestMeta(
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
