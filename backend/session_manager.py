# session_manager.py
import asyncio
import logging
import uuid
from typing import Dict, Optional, Set

from config import DEFAULT_THRESHOLD
from gestures import ConfirmationGate, LetterStabilizer, WordBuffer, char_for_label

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    pass


class Session:
    """All recognition state of one camera session."""

    def __init__(self, session_id: str, thresholds=None, default_threshold: int = DEFAULT_THRESHOLD):
        self.session_id = session_id
        self._thresholds = thresholds
        self._default_threshold = default_threshold
        self.sampler = None
        self.camera = None
        self.restart()

    def restart(self):
        self.stabilizer = LetterStabilizer(self._thresholds, self._default_threshold)
        self.gate = ConfirmationGate()
        self.word = WordBuffer()
        self.letter: Optional[str] = None
        self.fps = 0.0
        self.processed_image = None

    def observe(self, label: str) -> Optional[str]:
        """Feed one tick's label; returns the candidate if one was raised."""
        self.letter = label
        promoted = self.stabilizer.update(label)
        if promoted is None:
            return None
        if not self.gate.offer(promoted):
            return None
        logger.info("Session %s: candidate %s awaiting confirmation", self.session_id, promoted)
        return promoted

    def confirm(self) -> Optional[str]:
        """Commit the currently displayed letter; no hand commits nothing."""
        if not self.gate.confirm() or self.letter is None:
            return None
        char = char_for_label(self.letter)
        if char is not None:
            self.word.append(char)
            logger.info("Session %s: committed %r -> %r", self.session_id, char, self.word.text)
        return char

    def reject(self):
        self.gate.reject()

    def reset_word(self):
        self.word.reset()

    def snapshot(self) -> dict:
        return {
            "type": "state",
            "session_id": self.session_id,
            "letter": self.letter,
            "word": self.word.text,
            "fps": round(self.fps, 3),
            "confirming": self.gate.is_pending,
            "pending_letter": self.gate.pending_letter,
        }


class SessionManager:
    def __init__(self):
        self.sessions: Dict[str, Session] = {}
        self.session_websockets: Dict[str, Set] = {}

    def create_session(self, session_id: Optional[str] = None, **kwargs) -> Session:
        session_id = session_id or str(uuid.uuid4())[:8]
        if session_id in self.sessions:
            return self.sessions[session_id]
        session = Session(session_id, **kwargs)
        self.sessions[session_id] = session
        self.session_websockets[session_id] = set()
        logger.info("✅ Session created: %s", session_id)
        return session

    def get_session(self, session_id: str) -> Session:
        try:
            return self.sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def session_exists(self, session_id: str) -> bool:
        return session_id in self.sessions

    async def close_session(self, session_id: str):
        session = self.sessions.pop(session_id, None)
        self.session_websockets.pop(session_id, None)
        if session is None:
            return
        if session.sampler is not None:
            await session.sampler.stop()
        logger.info("Session closed: %s", session_id)

    async def close_all(self):
        for session_id in list(self.sessions):
            await self.close_session(session_id)

    def add_websocket(self, session_id: str, websocket):
        self.session_websockets.setdefault(session_id, set()).add(websocket)

    def remove_websocket(self, session_id: str, websocket):
        if session_id in self.session_websockets:
            self.session_websockets[session_id].discard(websocket)

    async def broadcast(self, session_id: str, message: str):
        websockets = list(self.session_websockets.get(session_id, ()))
        if not websockets:
            return
        results = await asyncio.gather(
            *(ws.send_text(message) for ws in websockets), return_exceptions=True
        )
        for ws, result in zip(websockets, results):
            if isinstance(result, Exception):
                logger.warning("⚠️ Dropping websocket for session %s: %s", session_id, result)
                self.remove_websocket(session_id, ws)


session_manager = SessionManager()
