import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from emotutor.config import Config, load_config
from emotutor.errors import UnknownSubject, UserPrecondition
from emotutor.factory import build_controller
from emotutor.loop.controller import TeachingLoopController
from emotutor.loop.presenter import SessionView

logger = logging.getLogger(__name__)

CFG_PATH = os.environ.get("EMOTUTOR_CONFIG", "configs/default.yaml")


class SubjectRequest(BaseModel):
    subject: str  # one of GET /subjects


class StateResponse(BaseModel):
    state: str
    subject: Optional[str] = None
    lesson_index: int = 0
    status: str
    lesson_text: str
    emotion: Optional[str] = None
    face_box: Optional[List[int]] = None
    speaking: bool = False


def _state(controller: TeachingLoopController, view: SessionView) -> StateResponse:
    return StateResponse(
        state=controller.state.value,
        subject=controller.subject,
        lesson_index=controller.lesson_index,
        emotion=controller.last_emotion,
        speaking=controller.narrator.busy,
        **view.snapshot(),
    )


def create_app(
    cfg: Optional[Config] = None,
    controller: Optional[TeachingLoopController] = None,
    view: Optional[SessionView] = None,
) -> FastAPI:
    """
    Build the API around one teaching loop.

    With no arguments the config is read from $EMOTUTOR_CONFIG
    (default configs/default.yaml); pass ``controller`` and ``view`` to
    serve a pre-built loop.
    """
    if controller is None:
        cfg = cfg or load_config(CFG_PATH)
        view = view or SessionView()
        controller = build_controller(cfg, presenter=view)
    elif view is None:
        raise ValueError("A pre-built controller needs the SessionView it renders to")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        controller.stop()
        controller.narrator.engine.close()

    app = FastAPI(title="emotutor API", version="1.0", lifespan=lifespan)
    app.state.controller = controller
    app.state.view = view

    @app.get("/")
    def root():
        return {
            "name": "emotutor API",
            "status": "ok",
            "endpoints": ["/subjects", "/subject (POST)", "/start (POST)", "/stop (POST)",
                          "/back (POST)", "/state"],
            "affect_source": controller.source.get_name(),
        }

    @app.get("/subjects")
    def subjects() -> List[str]:
        return controller.store.subjects()

    @app.post("/subject", response_model=StateResponse)
    async def select_subject(req: SubjectRequest):
        try:
            controller.select_subject(req.subject)
        except UnknownSubject as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except UserPrecondition as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        return _state(controller, view)

    @app.post("/start", response_model=StateResponse)
    async def start():
        """Start the lesson; 503 means setup failed and the status says why."""
        try:
            started = await controller.start()
        except UserPrecondition as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        if not started:
            raise HTTPException(status_code=503, detail=view.snapshot()["status"])
        return _state(controller, view)

    @app.post("/stop", response_model=StateResponse)
    async def stop():
        controller.stop()
        return _state(controller, view)

    @app.post("/back", response_model=StateResponse)
    async def back():
        controller.back()
        return _state(controller, view)

    @app.get("/state", response_model=StateResponse)
    async def state():
        return _state(controller, view)

    return app
