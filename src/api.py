"""FastAPI REST API for tasks (list, get, create, delete) plus the HTML task page.

Usage:
    python src/api.py

Env vars: TASKS_DB_PATH, TASKS_SERIALIZE_WRITES, TASKS_HOST, TASKS_PORT, LOG_LEVEL.
"""

import locale
import logging
import os
import sys
from pathlib import Path
from typing import Any

# Ensure src is on path so models and api_schemas resolve when run as src/api.py from repo root
_src = Path(__file__).resolve().parent
if str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

import task_service
import task_view
from models import SortMode, Task
from task_store import StoreError
from visualization.api_schemas import DeleteResult, TaskCreate

logger = logging.getLogger(__name__)

TASK_NOT_FOUND = "Task not found"
CREATE_FIELDS_REQUIRED = "Title and content required"

app = FastAPI(title="Tasks API")

templates = Jinja2Templates(env=task_view.env)


@app.exception_handler(StarletteHTTPException)
def http_error_as_json(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
def request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Only POST /api/task carries a body; an unparseable one counts as missing fields."""
    logger.info("Rejected request body for %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse({"error": CREATE_FIELDS_REQUIRED}, status_code=400)


@app.exception_handler(StoreError)
def store_error(request: Request, exc: StoreError) -> JSONResponse:
    logger.exception("Task store failure for %s %s", request.method, request.url.path)
    return JSONResponse({"error": str(exc)}, status_code=500)


@app.exception_handler(Exception)
def log_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    """Log every unhandled exception so 500s show up in the terminal."""
    logger.exception("Unhandled exception for %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"error": f"{type(exc).__name__}: {exc}"}, status_code=500)


@app.get("/api/tasks", response_model=list[Task])
def list_tasks() -> list[Task]:
    """All tasks in stored order, unfiltered and unsorted."""
    return task_service.list_tasks()


@app.get("/api/task/{task_id}", response_model=Task)
def get_task(task_id: str) -> Task:
    task = task_service.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=TASK_NOT_FOUND)
    return task


@app.post("/api/task", response_model=Task, status_code=201)
def create_task(payload: Any = Body(None)) -> Task:
    """Create a task from {title, content}; id and date are assigned here."""
    try:
        body = TaskCreate.model_validate(payload)
    except ValidationError:
        raise HTTPException(status_code=400, detail=CREATE_FIELDS_REQUIRED)
    return task_service.create_task(title=body.title, content=body.content)


@app.delete("/api/task/{task_id}", response_model=DeleteResult)
def delete_task(task_id: str) -> DeleteResult:
    if not task_service.delete_task(task_id):
        raise HTTPException(status_code=404, detail=TASK_NOT_FOUND)
    return DeleteResult(success=True)


@app.get("/", response_class=HTMLResponse)
def task_page(
    request: Request,
    q: str = Query("", description="Case-insensitive substring of title or content"),
    sort: str | None = Query(None, description="newest, oldest, az or za; anything else is ignored"),
) -> HTMLResponse:
    """Render the task page with the filtered, sorted view of the stored tasks."""
    sort_mode = task_view.parse_sort_mode(sort)
    view = task_view.compute_view(task_service.list_tasks(), q, sort_mode)
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "tasks": view,
            "q": q,
            "sort": sort_mode,
            "sort_modes": list(SortMode),
            "status": "",
            "status_kind": "info",
        },
    )


def main() -> None:
    import uvicorn

    locale.setlocale(locale.LC_COLLATE, "")
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    host = os.environ.get("TASKS_HOST", "127.0.0.1")
    port = int(os.environ.get("TASKS_PORT", "5000"))
    logger.info("Server running on http://%s:%s", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
