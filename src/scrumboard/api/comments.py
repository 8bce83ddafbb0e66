"""Comments API endpoints"""

from typing import List

from fastapi import APIRouter, Depends

from ..models import User
from ..storage import RequestMeta, Services
from .deps import get_current_user, get_services, request_meta
from .schemas import CommentCreate, CommentResponse, CommentUpdate, SuccessResponse

router = APIRouter()


@router.get("/issue/{issue_id}", response_model=List[CommentResponse])
def list_comments(
    issue_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Comments of an issue, oldest first"""
    return services.comments.list_comments(user, issue_id)


@router.post("/issue/{issue_id}", response_model=CommentResponse, status_code=201)
def create_comment(
    issue_id: int,
    comment_data: CommentCreate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    return services.comments.create_comment(user, issue_id, comment_data.content, request=meta)


@router.put("/{comment_id}", response_model=CommentResponse)
def update_comment(
    comment_id: int,
    comment_data: CommentUpdate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    return services.comments.update_comment(user, comment_id, comment_data.content, request=meta)


@router.delete("/{comment_id}", response_model=SuccessResponse)
def delete_comment(
    comment_id: int,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
    meta: RequestMeta = Depends(request_meta),
):
    services.comments.delete_comment(user, comment_id, request=meta)
    return SuccessResponse(message="Comment deleted successfully", id=comment_id)
