import json
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from camera import BrowserCamera, decode_frame, encode_frame
from config import (
    CAMERA_READY_TIMEOUT_SECONDS,
    HOST,
    LOG_LEVEL,
    MODEL_PATH,
    PORT,
    SAMPLE_INTERVAL_SECONDS,
)
from database import db_manager
from sampler import SamplerLoop
from session_manager import SessionNotFoundError, session_manager

logging.basicConfig(level=LOG_LEVEL, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def create_classifier():
    # torch is only imported once the server actually starts
    from model_infer import ISLModel
    return ISLModel(MODEL_PATH)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.classifier is None:
        classifier = create_classifier()
        await classifier.load()
        app.state.classifier = classifier
    db_manager.connect()
    yield
    await session_manager.close_all()


app = FastAPI(lifespan=lifespan)
app.state.classifier = None
app.state.sample_interval = SAMPLE_INTERVAL_SECONDS
app.state.ready_timeout = CAMERA_READY_TIMEOUT_SECONDS
app.state.send_processed_video = True

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_session_or_404(session_id: str):
    try:
        return session_manager.get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


async def publish_state(session):
    await session_manager.broadcast(session.session_id, json.dumps(session.snapshot()))


async def publish_error(session_id: str, message: str, fatal: bool):
    await session_manager.broadcast(session_id, json.dumps({
        "type": "error",
        "message": message,
        "fatal": fatal,
    }))


def build_sampler(session, camera):
    async def on_tick(tick):
        session.fps = tick.fps
        session.processed_image = tick.image
        session.observe(tick.label)
        if app.state.send_processed_video:
            await session_manager.broadcast(session.session_id, json.dumps({
                "type": "processed_video",
                "image": encode_frame(tick.image),
            }))
        await publish_state(session)

    async def on_error(error):
        await publish_error(session.session_id, f"Recognition failed for one frame: {error}", fatal=False)

    async def on_unavailable(error):
        await publish_error(
            session.session_id,
            f"Camera unavailable: {error}",
            fatal=True,
        )

    return SamplerLoop(
        camera,
        app.state.classifier,
        on_tick=on_tick,
        interval=app.state.sample_interval,
        ready_timeout=app.state.ready_timeout,
        on_error=on_error,
        on_unavailable=on_unavailable,
    )


@app.get("/")
async def read_root():
    return {"message": "SignBridge Letter Recognition API"}


@app.websocket("/ws/{session_id}")
async def websocket_endpoint(websocket: WebSocket, session_id: str):
    await websocket.accept()

    session = session_manager.create_session(session_id)
    if session.sampler is not None:
        await session.sampler.stop()
    session.restart()
    camera = BrowserCamera()
    session.camera = camera
    sampler = build_sampler(session, camera)
    session.sampler = sampler
    session_manager.add_websocket(session_id, websocket)
    sampler.start()

    try:
        while True:
            data_json = json.loads(await websocket.receive_text())
            msg_type = data_json.get("type")

            if msg_type == "frame":
                try:
                    camera.push(decode_frame(data_json["image"]))
                except (KeyError, ValueError) as e:
                    await websocket.send_text(json.dumps({
                        "type": "error",
                        "message": f"Bad frame: {e}",
                        "fatal": False,
                    }))

            elif msg_type == "camera_error":
                camera.fail(data_json.get("message", "Camera unavailable"))

            elif msg_type == "confirm":
                session.confirm()
                await publish_state(session)

            elif msg_type == "reject":
                session.reject()
                await publish_state(session)

            elif msg_type == "reset_word":
                session.reset_word()
                await publish_state(session)

            else:
                await websocket.send_text(json.dumps({
                    "type": "error",
                    "message": f"Unknown message type: {msg_type}",
                    "fatal": False,
                }))

    except WebSocketDisconnect:
        logger.info("Client left session %s", session_id)
    finally:
        session_manager.remove_websocket(session_id, websocket)
        # A newer connection on the same id owns the session now
        if session.sampler is sampler:
            await sampler.stop()
        if session_manager.sessions.get(session_id) is session and not session_manager.session_websockets.get(session_id):
            await session_manager.close_session(session_id)


@app.post("/sessions")
async def create_session():
    session = session_manager.create_session()
    return {"session_id": session.session_id}


@app.get("/sessions/{session_id}")
async def get_session(session_id: str):
    return get_session_or_404(session_id).snapshot()


@app.post("/sessions/{session_id}/confirm")
async def confirm_letter(session_id: str):
    session = get_session_or_404(session_id)
    session.confirm()
    await publish_state(session)
    return session.snapshot()


@app.post("/sessions/{session_id}/reject")
async def reject_letter(session_id: str):
    session = get_session_or_404(session_id)
    session.reject()
    await publish_state(session)
    return session.snapshot()


@app.post("/sessions/{session_id}/reset-word")
async def reset_word(session_id: str):
    session = get_session_or_404(session_id)
    session.reset_word()
    await publish_state(session)
    return session.snapshot()


@app.post("/sessions/{session_id}/restart")
async def restart_session(session_id: str):
    session = get_session_or_404(session_id)
    session.restart()
    await publish_state(session)
    return session.snapshot()


@app.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    get_session_or_404(session_id)
    await session_manager.close_session(session_id)
    return {"message": f"Session {session_id} closed"}


@app.post("/sessions/{session_id}/save-word")
async def save_word(session_id: str):
    session = get_session_or_404(session_id)
    if not db_manager.is_connected():
        raise HTTPException(status_code=500, detail="Database not connected")
    if not session.word.text:
        raise HTTPException(status_code=400, detail="Word is empty")
    try:
        record_id = db_manager.save_word(session_id, session.word.text)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to save word: {str(e)}")
    return {"status": "success", "record_id": str(record_id), "word": session.word.text}


@app.get("/records")
async def get_records(limit: int = 50):
    if not db_manager.is_connected():
        raise HTTPException(status_code=500, detail="Database not connected")
    try:
        records = db_manager.get_records(limit)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error retrieving records: {str(e)}")
    for record in records:
        record["_id"] = str(record["_id"])
        record["timestamp"] = str(record.get("timestamp"))
    return {"records": records}


@app.get("/records/{session_id}")
async def get_records_by_session(session_id: str):
    if not db_manager.is_connected():
        raise HTTPException(status_code=500, detail="Database not connected")
    try:
        records = db_manager.get_records_by_session(session_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching records: {str(e)}")
    for record in records:
        record["_id"] = str(record["_id"])
        record["timestamp"] = str(record.get("timestamp"))
    return {"records": records}


if __name__ == "__main__":
    uvicorn.run(app, host=HOST, port=PORT)
