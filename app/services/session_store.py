import uuid

from cachetools import TTLCache

from ..models.base import CompletionClient
from .estimator_service import EstimatorFormController

class SessionStore:
    """
    One form controller per browser session, held in process memory.
    Sessions idle longer than `ttl` start over from an empty form.
    Not thread-safe: use it from the event loop only.
    """
    def __init__(self, client: CompletionClient, maxsize: int = 1024, ttl: int = 1800):
        self.client = client
        self._sessions: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)

    def get(self, session_id: str | None) -> tuple[str, EstimatorFormController]:
        if session_id and session_id in self._sessions:
            controller = self._sessions[session_id]
        else:
            session_id = session_id or uuid.uuid4().hex
            controller = EstimatorFormController(self.client)
        # Re-insert so the TTL counts from the latest access
        self._sessions[session_id] = controller
        return session_id, controller

    def __len__(self) -> int:
        return len(self._sessions)
