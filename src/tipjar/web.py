"""Starlette JSON API over the tip pipeline.

Handlers resolve the caller's identity, then run the synchronous core in the
threadpool so model and crawl calls never block the event loop.
"""

import json
import logging
from datetime import date
from typing import Callable, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .assembler import validate_submission
from .exceptions import CrawlFailed, StorageUnavailable, ValidationError
from .models import Tip
from .review import due_notifications, sort_for_review
from .services import Services

logger = logging.getLogger(__name__)


def _services(request: Request) -> Services:
    return request.app.state.services


def _identity(request: Request) -> str:
    return _services(request).identity.resolve(request.headers)


def _today(request: Request) -> date:
    return request.app.state.today()


async def _json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Request body must be valid JSON") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _optional_str(body: dict, *keys: str) -> Optional[str]:
    for key in keys:
        value = body.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ValidationError(f"{key} must be a string")
        return value
    return None


def _flag(body: dict, key: str, default: bool) -> bool:
    value = body.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be true or false")
    return value


# JSON types accepted for client-editable tip fields, by attribute name.
_TIP_STRINGS = frozenset({
    "content", "url", "title", "priority", "summary", "urgency_level", "user_context",
})
_TIP_NULLABLE_STRINGS = frozenset({
    "folder", "relevance_date", "relevance_event", "estimated_time", "ai_error",
})
_TIP_FLAGS = frozenset({"action_required", "is_processed", "ai_processed", "needs_more_info"})


def _check_tip_fields(body: dict) -> None:
    """Reject PATCH values whose JSON type does not fit the tip field.

    Unknown keys and immutable fields are left for the store to drop.
    """
    for key, value in body.items():
        name = Tip.field_for(key)
        if name in _TIP_STRINGS:
            if not isinstance(value, str):
                raise ValidationError(f"{key} must be a string")
        elif name in _TIP_NULLABLE_STRINGS:
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{key} must be a string or null")
        elif name in _TIP_FLAGS:
            if not isinstance(value, bool):
                raise ValidationError(f"{key} must be true or false")
        elif name == "tags":
            if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
                raise ValidationError(f"{key} must be a list of strings")


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def list_tips(request: Request) -> JSONResponse:
    """List tips in review order; ``?view=active|processed`` filters."""
    identity = _identity(request)
    tips = await run_in_threadpool(_services(request).tips.list, identity)
    view = request.query_params.get("view", "all")
    if view == "active":
        tips = [t for t in tips if not t.is_processed]
    elif view == "processed":
        tips = [t for t in tips if t.is_processed]
    elif view != "all":
        raise ValidationError("view must be one of: all, active, processed")
    ordered = sort_for_review(tips, _today(request))
    return JSONResponse([t.to_dict() for t in ordered])


async def create_tips(request: Request) -> JSONResponse:
    body = await _json_body(request)
    content = body.get("content")
    url = _optional_str(body, "url")
    validate_submission(content, url)
    folder = _optional_str(body, "folder", "selectedFolder")
    split = _flag(body, "split", True)

    result = await run_in_threadpool(
        _services(request).assembler.submit,
        _identity(request),
        content or "",
        folder=folder,
        url=url,
        split=split,
    )
    return JSONResponse(result.to_dict(), status_code=201)


async def preview_tips(request: Request) -> JSONResponse:
    """Classify and split a submission without storing anything."""
    body = await _json_body(request)
    content = body.get("content")
    url = _optional_str(body, "url")
    validate_submission(content, url)
    tips = await run_in_threadpool(
        _services(request).assembler.build,
        _identity(request),
        content or "",
        folder=_optional_str(body, "folder", "selectedFolder"),
        url=url,
        split=_flag(body, "split", True),
    )
    return JSONResponse({"tips": [t.to_dict() for t in tips]})


async def update_tip(request: Request) -> JSONResponse:
    tip_id = request.path_params["tip_id"]
    body = await _json_body(request)
    if not body:
        raise ValidationError("No fields to update")
    _check_tip_fields(body)
    tip = await run_in_threadpool(
        _services(request).tips.update, _identity(request), tip_id, body
    )
    if tip is None:
        return JSONResponse({"error": "Tip not found"}, status_code=404)
    return JSONResponse({"message": "Tip updated successfully", "tip": tip.to_dict()})


async def delete_tip(request: Request) -> JSONResponse:
    tip_id = request.path_params["tip_id"]
    deleted = await run_in_threadpool(
        _services(request).tips.delete, _identity(request), tip_id
    )
    if not deleted:
        return JSONResponse({"error": "Tip not found"}, status_code=404)
    return JSONResponse({"message": "Tip deleted successfully"})


async def add_tip_context(request: Request) -> JSONResponse:
    """Attach clarifying text to a tip and classify it again."""
    tip_id = request.path_params["tip_id"]
    body = await _json_body(request)
    user_context = _optional_str(body, "userContext", "context")
    if not user_context or not user_context.strip():
        raise ValidationError("userContext is required")
    tip = await run_in_threadpool(
        _services(request).assembler.reanalyze, _identity(request), tip_id, user_context
    )
    if tip is None:
        return JSONResponse({"error": "Tip not found"}, status_code=404)
    return JSONResponse({"tip": tip.to_dict()})


async def list_folders(request: Request) -> JSONResponse:
    folders = await run_in_threadpool(
        _services(request).registry.list_folders, _identity(request)
    )
    return JSONResponse([f.to_dict() for f in folders])


async def create_folder(request: Request) -> JSONResponse:
    body = await _json_body(request)
    folder = await run_in_threadpool(
        _services(request).registry.create,
        _identity(request),
        _optional_str(body, "name") or "",
        description=_optional_str(body, "description"),
        color=_optional_str(body, "color"),
    )
    return JSONResponse(folder.to_dict(), status_code=201)


async def update_folder(request: Request) -> JSONResponse:
    body = await _json_body(request)
    folder_id = _optional_str(body, "id")
    if not folder_id:
        raise ValidationError("Folder ID is required")
    name = _optional_str(body, "name")
    if name is None or not name.strip():
        raise ValidationError("Folder name is required")
    folder = await run_in_threadpool(
        _services(request).registry.update,
        _identity(request),
        folder_id,
        name=name,
        description=_optional_str(body, "description"),
        color=_optional_str(body, "color"),
    )
    if folder is None:
        return JSONResponse({"error": "Folder not found"}, status_code=404)
    return JSONResponse(folder.to_dict())


async def delete_folder(request: Request) -> JSONResponse:
    folder_id = request.query_params.get("id")
    if not folder_id:
        raise ValidationError("Folder ID is required")
    deleted = await run_in_threadpool(
        _services(request).registry.delete, _identity(request), folder_id
    )
    if not deleted:
        return JSONResponse({"error": "Folder not found"}, status_code=404)
    return JSONResponse({"success": True})


async def available_folders(request: Request) -> JSONResponse:
    available = await run_in_threadpool(
        _services(request).registry.available, _identity(request)
    )
    return JSONResponse(available.to_dict())


async def notifications(request: Request) -> JSONResponse:
    """Unprocessed tips whose relevance date falls within the next week."""
    tips = await run_in_threadpool(_services(request).tips.list, _identity(request))
    items = due_notifications(tips, _today(request))
    return JSONResponse({"notifications": items, "count": len(items)})


async def url_metadata(request: Request) -> JSONResponse:
    body = await _json_body(request)
    url = _optional_str(body, "url")
    if not url or not url.strip():
        raise ValidationError("URL is required")
    crawler = _services(request).crawler
    if crawler is None:
        return JSONResponse({"error": "URL metadata is not configured"}, status_code=503)
    try:
        metadata = await run_in_threadpool(crawler.metadata, url)
    except CrawlFailed as e:
        logger.warning("URL metadata failed: %s", e)
        return JSONResponse({"error": "Failed to fetch metadata"}, status_code=502)
    return JSONResponse({"metadata": metadata})


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=400)


async def _storage_error(request: Request, exc: StorageUnavailable) -> JSONResponse:
    logger.error("Storage unavailable: %s", exc)
    return JSONResponse({"error": "Storage unavailable"}, status_code=503)


def create_app(services: Services, today: Optional[Callable[[], date]] = None) -> Starlette:
    """Create the Starlette application.

    Args:
        services: The wired stores, registry and assembler.
        today: Date source for review ordering and notifications.

    Returns:
        Configured Starlette application.
    """
    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/tips", list_tips, methods=["GET"]),
        Route("/api/tips", create_tips, methods=["POST"]),
        Route("/api/tips/preview", preview_tips, methods=["POST"]),
        Route("/api/tips/{tip_id}", update_tip, methods=["PATCH"]),
        Route("/api/tips/{tip_id}", delete_tip, methods=["DELETE"]),
        Route("/api/tips/{tip_id}/context", add_tip_context, methods=["POST"]),
        Route("/api/folders", list_folders, methods=["GET"]),
        Route("/api/folders", create_folder, methods=["POST"]),
        Route("/api/folders", update_folder, methods=["PUT"]),
        Route("/api/folders", delete_folder, methods=["DELETE"]),
        Route("/api/folders/available", available_folders, methods=["GET"]),
        Route("/api/notifications", notifications, methods=["GET"]),
        Route("/api/url-metadata", url_metadata, methods=["POST"]),
    ]

    app = Starlette(
        routes=routes,
        exception_handlers={
            ValidationError: _validation_error,
            StorageUnavailable: _storage_error,
        },
    )
    app.state.services = services
    app.state.today = today or date.today
    return app
