"""FastAPI app for the room plan workspace service."""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


_load_env_file(ROOT / "app" / ".env")

import time
import logging

import anyio

from app.diagnostics import build_diagnostics
from app.plan_summary import summarize_applied_plan, top_warnings
from app.workspaces import WorkspaceRegistry, workspace_snapshot
from plan_apply import apply_plan
from plan_settings import settings_from_env
from roomplan.coerce import id_list


app = FastAPI(title="Room Plan Workspace")
logger = logging.getLogger("roomplan.api")
LOG_LEVEL = os.getenv("ROOMPLAN_LOG_LEVEL", "").strip().upper() or "INFO"
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
_LOCAL_CORS_ORIGINS = {
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
}
_LOCAL_CORS_REGEX = re.compile(r"^http://(localhost|127\.0\.0\.1):\d+$")
_EXTRA_CORS_ORIGINS = {
    origin.strip().rstrip("/")
    for origin in os.getenv("ROOMPLAN_CORS_ORIGINS", "").split(",")
    if origin.strip()
}
_CORS_ORIGINS = _LOCAL_CORS_ORIGINS | _EXTRA_CORS_ORIGINS

settings = settings_from_env()
workspaces = WorkspaceRegistry()


@app.middleware("http")
async def local_cors_fallback_middleware(request: Request, call_next):
    origin = request.headers.get("origin")
    if request.method == "OPTIONS":
        response = JSONResponse({}, status_code=200)
    else:
        response = await call_next(request)
    normalized_origin = origin.rstrip("/") if isinstance(origin, str) else origin
    if normalized_origin and (normalized_origin in _CORS_ORIGINS or _LOCAL_CORS_REGEX.match(normalized_origin)):
        response.headers.setdefault("Access-Control-Allow-Origin", origin)
        response.headers.setdefault("Access-Control-Allow-Credentials", "true")
        response.headers.setdefault("Access-Control-Allow-Headers", "*")
        response.headers.setdefault("Access-Control-Allow-Methods", "*")
        response.headers.setdefault("Vary", "Origin")
    return response


@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    total_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s %s total_ms=%.1f", request.method, request.url.path, response.status_code, total_ms)
    response.headers["X-Req-MS"] = f"{total_ms:.1f}"
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=sorted(_CORS_ORIGINS),
    allow_origin_regex=r"http://localhost:\d+|http://127\.0\.0\.1:\d+",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error path=%s", request.url.path)
    return _error_response("INTERNAL_ERROR", "Unexpected server error", detail={"error": str(exc)}, status=500)


def _error_response(code: str, message: str, path: str | None = None, detail: dict | None = None, status: int = 400) -> JSONResponse:
    body = {
        "ok": False,
        "errors": [{"code": code, "message": message, "path": path, "detail": detail}],
        "warnings": [],
    }
    return JSONResponse(jsonable_encoder(body), status_code=status)


def _ok_response(payload: dict, warnings: list | None = None, status: int = 200) -> JSONResponse:
    body = {"ok": True, **payload, "errors": [], "warnings": warnings or []}
    return JSONResponse(jsonable_encoder(body), status_code=status)


async def _safe_json(request: Request):
    try:
        return await request.json()
    except Exception:
        return None


@app.get("/health")
async def health() -> dict:
    return {"ok": True}


@app.get("/workspaces/{workspace_id}")
async def get_workspace(workspace_id: str):
    ctx = workspaces.get(workspace_id)
    if ctx is None:
        return _error_response("WORKSPACE_NOT_FOUND", "Workspace not found", "workspace_id", status=404)
    return _ok_response({"workspace": workspace_snapshot(workspace_id, ctx)})


@app.post("/workspaces/{workspace_id}/plans")
async def post_plan(workspace_id: str, request: Request):
    body = await _safe_json(request)
    if not isinstance(body, dict) or not isinstance(body.get("plan"), dict):
        return _error_response("PLAN_INVALID", "Body must be an object with a plan object", "plan", status=400)
    ctx = workspaces.get_or_create(workspace_id)
    result = await anyio.to_thread.run_sync(apply_plan, ctx, body["plan"], settings)
    summary = summarize_applied_plan(result["plan"], result["effects"])
    logger.info(
        "plan_request workspace=%s hash=%s warnings=%s",
        workspace_id,
        result["plan_hash"],
        [w.get("code") for w in top_warnings(result["warnings"])],
    )
    return _ok_response(
        {
            "workspace_id": workspace_id,
            "plan_hash": result["plan_hash"],
            "effects": result["effects"],
            "summary": summary,
            "selection": ctx.selection.current_selection(),
        },
        warnings=result["warnings"],
    )


@app.put("/workspaces/{workspace_id}/selection")
async def put_selection(workspace_id: str, request: Request):
    body = await _safe_json(request)
    if not isinstance(body, dict) or not isinstance(body.get("ids"), list):
        return _error_response("SELECTION_INVALID", "Body must be an object with an ids list", "ids", status=400)
    ctx = workspaces.get_or_create(workspace_id)
    warnings = []
    with ctx.lock:
        ids = []
        for entity_id in id_list(body["ids"]):
            if ctx.store.resolve(entity_id) is None:
                warnings.append({"code": "ENTITY_NOT_FOUND", "message": "Unknown id dropped from selection", "path": "ids", "detail": {"id": entity_id}})
                continue
            ids.append(entity_id)
        ctx.selection.set_selection(ids)
        selection = ctx.selection.current_selection()
    return _ok_response({"workspace_id": workspace_id, "selection": selection}, warnings=warnings)


@app.get("/workspaces/{workspace_id}/diagnostics")
async def get_diagnostics(workspace_id: str):
    ctx = workspaces.get(workspace_id)
    if ctx is None:
        return _error_response("WORKSPACE_NOT_FOUND", "Workspace not found", "workspace_id", status=404)
    return _ok_response({"diagnostics": build_diagnostics(workspace_id, ctx)})
