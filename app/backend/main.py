from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import List, Literal

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from splitflow_core import __version__
from splitflow_core.inputs import FlowInput
from viz.utils import scene_to_svg

from .session import InMemoryFlowSession


session = InMemoryFlowSession()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    # Cancel the particle scheduler before the loop goes away
    session.close()


app = FastAPI(title="Split Flow API", version=__version__, lifespan=lifespan)

# Allow local dev frontends
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RouteInput(BaseModel):
    rootIdentifier: str = ""
    flowTargets: List[str] = Field(default_factory=list)
    allocations: List[float] = Field(default_factory=list)
    totalBalance: str = "0"


class PointerRequest(BaseModel):
    event: Literal["enter", "leave"]
    index: int = Field(ge=0)


@app.get("/flow/scene")
async def get_scene():
    return JSONResponse(jsonable_encoder(session.scene()))


@app.get("/flow/svg")
async def get_svg():
    cfg = session.config
    svg = scene_to_svg(session.viz.surface.elements, cfg.width, cfg.height, session.viz.particle_frames())
    return Response(content=svg, media_type="image/svg+xml")


@app.put("/flow/input")
async def put_input(body: RouteInput):
    flow_input = FlowInput.create(body.flowTargets, body.allocations, body.rootIdentifier, body.totalBalance)
    rebuilt = session.update(flow_input)
    err = session.viz.last_error
    return {"ok": err is None, "rebuilt": rebuilt, "flows": len(session.viz.records), "error": str(err) if err else None}


@app.post("/flow/pointer")
async def post_pointer(body: PointerRequest):
    if body.index >= len(session.viz.records):
        raise HTTPException(status_code=404, detail=f"No flow with index {body.index}")
    hovered = session.pointer(body.event, body.index)
    return {"ok": True, "hoveredIndex": hovered}


@app.websocket("/flow/stream")
async def ws_stream(ws: WebSocket):
    await ws.accept()

    q = session.subscribe()
    try:
        # Immediately push current scene to client
        await ws.send_json({"type": "init", "scene": jsonable_encoder(session.scene())})

        while True:
            try:
                msg = await q.get()
            except asyncio.CancelledError:
                break
            await ws.send_json(jsonable_encoder(msg.to_json()))
    except WebSocketDisconnect:
        pass
    finally:
        session.unsubscribe(q)


@app.get("/")
async def root():
    return {"service": "splitflow", "status": "ok"}
