"""Post composer endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query

from linkhub.api.dependencies import get_current_user_id
from linkhub.api.models import PostCreateRequest, PostUpdateRequest
from linkhub.config.constants import MAX_LIST_POSTS
from linkhub.exceptions import PostNotFoundError, PostStateError, PostValidationError
from linkhub.services.core.post_service import PostService
from linkhub.utils.logger import logger

router = APIRouter(tags=["posts"])


def _http_error(error: Exception) -> HTTPException:
    if isinstance(error, PostNotFoundError):
        return HTTPException(status_code=404, detail="Post not found")
    if isinstance(error, PostValidationError):
        detail = {"error": error.args[0], "field": error.field}
        if error.invalid_values:
            detail["invalid"] = error.invalid_values
        return HTTPException(status_code=400, detail=detail)
    return HTTPException(status_code=400, detail={"error": str(error)})


@router.post("", status_code=201)
async def create_post(request: PostCreateRequest, user_id=Depends(get_current_user_id)):
    """Create a draft, or a scheduled post when scheduled_at is given."""
    service = PostService()
    try:
        post = service.create_post(user_id, request.model_dump())
        return {"post": post.to_dict()}
    except PostValidationError as e:
        raise _http_error(e)
    finally:
        service.close()


@router.get("")
async def list_posts(
    limit: int = Query(default=MAX_LIST_POSTS, ge=1, le=MAX_LIST_POSTS),
    user_id=Depends(get_current_user_id),
):
    """The caller's posts, newest first."""
    service = PostService()
    try:
        posts = service.list_posts(user_id, limit=limit)
        return {"posts": [post.to_dict() for post in posts]}
    finally:
        service.close()


@router.get("/{post_id}")
async def get_post(post_id: str, user_id=Depends(get_current_user_id)):
    service = PostService()
    try:
        return {"post": service.get_post(user_id, post_id).to_dict()}
    except PostNotFoundError as e:
        raise _http_error(e)
    finally:
        service.close()


@router.put("/{post_id}")
async def update_post(post_id: str, request: PostUpdateRequest, user_id=Depends(get_current_user_id)):
    """Edit a post. Content, media and platforms are frozen once queued."""
    service = PostService()
    try:
        post = service.update_post(user_id, post_id, request.model_dump(exclude_unset=True))
        return {"post": post.to_dict()}
    except (PostNotFoundError, PostValidationError, PostStateError) as e:
        raise _http_error(e)
    finally:
        service.close()


@router.post("/{post_id}/publish")
async def publish_post(post_id: str, user_id=Depends(get_current_user_id)):
    """Queue the post for the next publisher tick."""
    service = PostService()
    try:
        post = service.publish_now(user_id, post_id)
        return {"post": post.to_dict()}
    except (PostNotFoundError, PostStateError) as e:
        raise _http_error(e)
    finally:
        service.close()


@router.delete("/{post_id}")
async def cancel_post(post_id: str, user_id=Depends(get_current_user_id)):
    """Soft-cancel the post."""
    service = PostService()
    try:
        post = service.cancel_post(user_id, post_id)
        logger.info(f"User {user_id} cancelled post {post_id}")
        return {"post": post.to_dict()}
    except (PostNotFoundError, PostStateError) as e:
        raise _http_error(e)
    finally:
        service.close()
