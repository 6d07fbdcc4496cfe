"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the study diary backend.
Controllers are intentionally thin: they accept requests, delegate to
`StudyLogService`, and wrap results in the `ApiResponse` envelope.

`create_app` is the composition root: it builds the store selected by
settings, owns it on `app.state` and closes it on shutdown. Nothing is
shared through module globals except the default `app` instance.

Endpoints implemented (under /api/v1/logs):
- POST / , GET / , DELETE /
- GET /count , GET /active , GET /page , GET /search
- GET /date/{date} , GET /category/{category} , GET /category/{category}/page
- GET /{id} , PUT /{id} , DELETE /{id}
- POST /{id}/soft-delete , POST /{id}/restore
plus GET /health.
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from . import models, repositories, services
from .config import Settings, settings as default_settings
from .errors import NotFoundError, StudyLogError
from .schemas import ApiResponse, StudyLogCreate, StudyLogOut, StudyLogUpdate

logger = logging.getLogger("study_diary.api")

router = APIRouter(prefix="/api/v1/logs")


def get_service(request: Request) -> services.StudyLogService:
    """FastAPI dependency returning the app-owned service."""
    return request.app.state.service


def _out(logs):
    return [StudyLogOut.from_model(log) for log in logs]


def _error_body(code: str, message: str) -> dict:
    return ApiResponse.fail(code, message).model_dump(mode="json", by_alias=True)


# create

@router.post("")
def create_study_log(payload: StudyLogCreate, service: services.StudyLogService = Depends(get_service)):
    """Create a study log and return it with its assigned id."""
    log = service.create_study_log(payload)
    return ApiResponse.ok(StudyLogOut.from_model(log))


# read

@router.get("")
def list_study_logs(include_deleted: bool = Query(False, alias="includeDeleted"), service: services.StudyLogService = Depends(get_service)):
    """List study logs, newest first."""
    return ApiResponse.ok(_out(service.list_study_logs(include_deleted=include_deleted)))


@router.get("/count")
def count_study_logs(service: services.StudyLogService = Depends(get_service)):
    return ApiResponse.ok({"count": service.count_study_logs()})


@router.get("/active")
def list_active_study_logs(service: services.StudyLogService = Depends(get_service)):
    """List study logs that are not soft-deleted."""
    return ApiResponse.ok(_out(service.list_study_logs(include_deleted=False)))


@router.get("/page")
def get_study_log_page(
    page: Optional[int] = None,
    size: Optional[int] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_direction: Optional[str] = Query(None, alias="sortDirection"),
    service: services.StudyLogService = Depends(get_service),
):
    """Return one page of study logs.

    Example: GET /api/v1/logs/page?page=0&size=10&sortBy=createdAt&sortDirection=DESC
    """
    page_request = service.page_request(page, size, sort_by, sort_direction)
    return ApiResponse.ok(service.get_page(page_request).map(StudyLogOut.from_model))


@router.get("/search")
def search_study_logs(
    title_keyword: Optional[str] = Query(None, alias="titleKeyword"),
    category: Optional[str] = None,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    page: Optional[int] = None,
    size: Optional[int] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_direction: Optional[str] = Query(None, alias="sortDirection"),
    service: services.StudyLogService = Depends(get_service),
):
    """Search by title keyword, category and inclusive date range, paged."""
    page_request = service.page_request(page, size, sort_by, sort_direction)
    result = service.search_page(
        page_request,
        title_keyword=title_keyword,
        category_token=category,
        start_date=start_date,
        end_date=end_date,
    )
    return ApiResponse.ok(result.map(StudyLogOut.from_model))


@router.get("/date/{study_date}")
def get_study_logs_by_date(study_date: date, service: services.StudyLogService = Depends(get_service)):
    """List study logs for one study date, e.g. /date/2025-01-15."""
    return ApiResponse.ok(_out(service.get_study_logs_by_date(study_date)))


@router.get("/category/{category}")
def get_study_logs_by_category(category: str, service: services.StudyLogService = Depends(get_service)):
    """List study logs in a category; the token is case-insensitive."""
    return ApiResponse.ok(_out(service.get_study_logs_by_category(category)))


@router.get("/category/{category}/page")
def get_category_page(
    category: str,
    page: Optional[int] = None,
    size: Optional[int] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_direction: Optional[str] = Query(None, alias="sortDirection"),
    service: services.StudyLogService = Depends(get_service),
):
    page_request = service.page_request(page, size, sort_by, sort_direction)
    return ApiResponse.ok(service.get_category_page(category, page_request).map(StudyLogOut.from_model))


@router.get("/{log_id}")
def get_study_log(log_id: int, service: services.StudyLogService = Depends(get_service)):
    return ApiResponse.ok(StudyLogOut.from_model(service.get_study_log(log_id)))


# update

@router.put("/{log_id}")
def update_study_log(log_id: int, payload: StudyLogUpdate, service: services.StudyLogService = Depends(get_service)):
    """Partially update a study log; omitted fields keep their values."""
    return ApiResponse.ok(StudyLogOut.from_model(service.update_study_log(log_id, payload)))


# delete

@router.delete("")
def delete_all_study_logs(service: services.StudyLogService = Depends(get_service)):
    deleted = service.delete_all_study_logs()
    return ApiResponse.ok({"message": "all study logs deleted", "deletedCount": deleted})


@router.delete("/{log_id}")
def delete_study_log(log_id: int, service: services.StudyLogService = Depends(get_service)):
    """Hard-delete a study log; 404 when it does not exist."""
    service.delete_study_log(log_id)
    return ApiResponse.ok({"id": log_id, "message": "study log deleted"})


@router.post("/{log_id}/soft-delete")
def soft_delete_study_log(log_id: int, service: services.StudyLogService = Depends(get_service)):
    changed = service.soft_delete_study_log(log_id)
    return ApiResponse.ok({"id": log_id, "deleted": True, "changed": changed})


@router.post("/{log_id}/restore")
def restore_study_log(log_id: int, service: services.StudyLogService = Depends(get_service)):
    changed = service.restore_study_log(log_id)
    return ApiResponse.ok({"id": log_id, "deleted": False, "changed": changed})


def create_app(app_settings: Optional[Settings] = None, store: Optional[repositories.StudyLogStore] = None, clock=models.utcnow) -> FastAPI:
    """Build the application and the store it owns.

    Pass `store` to reuse an existing store (tests do this); otherwise one
    is created from `app_settings.STORE_BACKEND`.
    """
    cfg = app_settings or default_settings
    if not logging.getLogger().handlers:
        logging.basicConfig(level=cfg.LOG_LEVEL)
    owned_store = store if store is not None else repositories.build_store(cfg, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.service.store.close()

    app = FastAPI(title="Study Diary API", lifespan=lifespan)
    app.state.settings = cfg
    app.state.service = services.StudyLogService(
        owned_store,
        clock=clock,
        default_page_size=cfg.DEFAULT_PAGE_SIZE,
        max_page_size=cfg.MAX_PAGE_SIZE,
    )

    # Wide-open CORS keeps local HTML testers working without extra config in dev.
    if cfg.ALLOW_DEV_CORS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
        request.state.request_id = req_id
        started = time.perf_counter()
        response: Response
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
            logger.exception(
                "request_failed %s",
                json.dumps(
                    {
                        "request_id": req_id,
                        "path": request.url.path,
                        "method": request.method,
                        "duration_ms": elapsed_ms,
                    },
                    ensure_ascii=True,
                ),
            )
            raise
        response.headers["X-Request-ID"] = req_id
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        return response

    @app.exception_handler(StudyLogError)
    async def study_log_error_handler(request: Request, exc: StudyLogError):
        status_code = 404 if isinstance(exc, NotFoundError) else 400
        logger.info("study_log_error %s", json.dumps({"code": exc.code, "message": str(exc)}, ensure_ascii=True))
        return JSONResponse(status_code=status_code, content=_error_body(exc.code, str(exc)))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        # runs outside the request middleware, so the id header is set here
        req_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID", uuid.uuid4().hex)
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_SERVER_ERROR", "internal server error"),
            headers={"X-Request-ID": req_id},
        )

    @app.get("/health")
    def health():
        """Lightweight health check for uptime monitoring."""
        return {"status": "ok"}

    app.include_router(router)
    return app


app = create_app()
