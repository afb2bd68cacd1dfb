"""
Thin HTTP/JSON surface so a browser can drive the table.

All game logic lives in ``GameController``; handlers only translate requests
into controller calls and exceptions into status codes.
"""

from __future__ import annotations

import json
import logging
import pathlib
from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse
from starlette.routing import Route

from .controller import DealerBusyError, GameController
from .engine import IllegalActionError
from .images import SPLASH_PROMPTS, ImageProvider
from .schemas import Action, ActionKind

logger = logging.getLogger(__name__)

INDEX_PAGE = pathlib.Path(__file__).parent / "static" / "index.html"


class ActionPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: ActionKind
    amount: Optional[int] = None

    def to_action(self) -> Action:
        return Action(self.action, self.amount)


def _error(status_code: int, reason: str) -> JSONResponse:
    return JSONResponse({"error": reason}, status_code=status_code)


async def _busy(request: Request, exc: DealerBusyError) -> JSONResponse:
    return _error(409, str(exc))


async def _illegal(request: Request, exc: IllegalActionError) -> JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
    return _error(400, str(exc))


async def _invalid(request: Request, exc: ValidationError) -> JSONResponse:
    details = exc.errors(include_url=False, include_context=False, include_input=False)
    return JSONResponse({"error": "invalid request body", "details": details}, status_code=422)


def create_app(controller: GameController, images: Optional[ImageProvider] = None) -> Starlette:
    images = images or ImageProvider(enabled=False)

    async def index(request: Request) -> HTMLResponse:
        return HTMLResponse(INDEX_PAGE.read_text(encoding="utf-8"))

    async def status(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "state": controller.engine.state.value,
                "busy": controller.busy,
                "round_id": controller.engine.round.round_id if controller.engine.round else None,
            }
        )

    async def state(request: Request) -> JSONResponse:
        return JSONResponse(controller.snapshot())

    async def new_round(request: Request) -> JSONResponse:
        return JSONResponse(await controller.start_round())

    async def action(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return _error(422, "request body must be JSON")
        payload = ActionPayload.model_validate(body)
        return JSONResponse(await controller.player_action(payload.to_action()))

    async def reset(request: Request) -> JSONResponse:
        return JSONResponse(await controller.reset())

    async def backgrounds(request: Request) -> JSONResponse:
        return JSONResponse({"images": await images.table_backgrounds()})

    async def splash(request: Request) -> JSONResponse:
        kind = request.path_params["kind"]
        if kind not in SPLASH_PROMPTS:
            return _error(404, f"unknown splash {kind!r}")
        return JSONResponse({"image": await images.splash(kind)})

    routes = [
        Route("/", index),
        Route("/status", status),
        Route("/api/state", state),
        Route("/api/round", new_round, methods=["POST"]),
        Route("/api/action", action, methods=["POST"]),
        Route("/api/reset", reset, methods=["POST"]),
        Route("/api/images/backgrounds", backgrounds),
        Route("/api/images/splash/{kind}", splash),
    ]
    app = Starlette(
        routes=routes,
        exception_handlers={
            DealerBusyError: _busy,
            IllegalActionError: _illegal,
            ValidationError: _invalid,
        },
    )
    app.state.controller = controller
    app.state.images = images
    return app
