from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Literal

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel, Field

from chat_relay import ChatRelay, RelaySettings

_ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _load_local_env_file(path: Path) -> None:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not _ENV_KEY_RE.fullmatch(key):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def _bootstrap_local_env() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    candidates = [
        repo_root / ".env",
        repo_root / "backend/.env",
    ]
    for candidate in candidates:
        if candidate.exists():
            _load_local_env_file(candidate)


_bootstrap_local_env()


def _log_level() -> str:
    level = (os.getenv("HEALTH_CHAT_LOG_LEVEL") or "INFO").strip().upper()
    return level if isinstance(logging.getLevelName(level), int) else "INFO"


logging.basicConfig(
    level=_log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}
CHAT_PATHS = ("/health-ai-chat", "/functions/v1/health-ai-chat")


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)


class Health(BaseModel):
    status: str
    gemini_configured: bool
    model: str


relay = ChatRelay()
app = FastAPI(title="Health Chat Relay")


def _validation_summary(exc: RequestValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = str(error.get("msg") or "invalid value")
        problems.append(f"{location}: {message}" if location else message)
    return "; ".join(problems) or "Invalid request body"


@app.exception_handler(RequestValidationError)
async def invalid_chat_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = _validation_summary(exc)
    logger.warning("Rejected chat request: %s", details)
    return JSONResponse(
        {"error": "Invalid chat request", "details": details},
        status_code=500,
        headers=CORS_HEADERS,
    )


@app.get("/health", response_model=Health)
def health() -> Health:
    settings = RelaySettings.from_env()
    return Health(status="ok", gemini_configured=bool(settings.api_key), model=settings.model)


def chat_options() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


async def health_ai_chat(payload: ChatRequest) -> Response:
    try:
        reply = await relay.relay([message.model_dump() for message in payload.messages])
    except Exception as exc:
        logger.exception("Chat error")
        return JSONResponse({"error": str(exc) or "Unknown error"}, status_code=500, headers=CORS_HEADERS)

    if reply.frames is not None:
        return StreamingResponse(reply.frames, media_type="text/event-stream", headers=CORS_HEADERS)
    return JSONResponse(reply.body or {}, status_code=reply.status_code, headers=CORS_HEADERS)


for _path in CHAT_PATHS:
    app.add_api_route(_path, chat_options, methods=["OPTIONS"])
    app.add_api_route(_path, health_ai_chat, methods=["POST"])
