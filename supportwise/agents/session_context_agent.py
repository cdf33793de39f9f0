from .base_agent import BaseAgent
from collections import deque
import logging
from typing import Deque, Dict, List, Optional

from supportwise.data_models import ConversationTurn

# Configure basic logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

class SessionContextAgent(BaseAgent):
    """
    Bounded conversation history per session id.

    Each session holds at most max_history_len turns; appending beyond the
    cap drops the oldest turns first. Sessions live for the process lifetime
    unless cleared.
    """

    def __init__(self, agent_id: str = "session_context_agent", max_history_len: int = 20):
        self.agent_id = agent_id
        # Store history per session_id
        self.session_histories: Dict[str, Deque[ConversationTurn]] = {}
        self.max_history_len = max_history_len
        logger.info(f"{self.agent_id} initialized with max history length {self.max_history_len}.")

    def _history(self, session_id: str) -> Deque[ConversationTurn]:
        history = self.session_histories.get(session_id)
        if history is None:
            history = deque(maxlen=self.max_history_len)
            self.session_histories[session_id] = history
            logger.info(f"Initialized new history for session_id: {session_id}")
        return history

    def append(self, session_id: str, turn: ConversationTurn) -> int:
        """Append a turn, evicting the oldest ones past the cap. Returns the new length."""
        history = self._history(session_id)
        history.append(turn)
        return len(history)

    def get(self, session_id: str) -> List[ConversationTurn]:
        history = self.session_histories.get(session_id)
        return list(history) if history else []

    def recent(self, session_id: str, count: int) -> List[ConversationTurn]:
        history = self.get(session_id)
        return history[-count:] if count > 0 else []

    def exists(self, session_id: str) -> bool:
        return bool(self.session_histories.get(session_id))

    def clear(self, session_id: Optional[str] = None) -> None:
        if session_id:
            self.session_histories.pop(session_id, None)
            logger.info(f"Cleared history for session: {session_id}")
        else:
            self.session_histories.clear()
            logger.info("Cleared all conversation history")

    def active_sessions(self) -> int:
        return len(self.session_histories)

    async def process(self, data: dict) -> dict:
        """
        Agent-style access to the store.

        Args:
            data (dict): 'session_id' (str, required except for 'clear'),
                         'action' ('append_turn' | 'get_history' | 'clear'),
                         'role' and 'content' for 'append_turn'.

        Returns:
            dict: status plus the history or the new length.
        """
        session_id = data.get("session_id")
        action = data.get("action", "get_history")

        if action == "clear":
            self.clear(session_id)
            return {"status": "success", "session_id": session_id, "message": "History cleared."}

        if not session_id:
            logger.error("No session_id provided to SessionContextAgent.")
            return {"error": "Missing session_id", "status": "failure"}

        if action == "append_turn":
            try:
                turn = ConversationTurn(role=data.get("role", ""), content=data.get("content") or "")
            except ValueError as e:
                logger.warning(f"Rejected turn for session {session_id}: {e}")
                return {"status": "failure", "session_id": session_id, "error": str(e)}
            length = self.append(session_id, turn)
            logger.info(f"Updated history for session {session_id}. New history size: {length}")
            return {"status": "success", "session_id": session_id, "length": length}

        elif action == "get_history":
            history = [turn.to_message() for turn in self.get(session_id)]
            return {"status": "success", "session_id": session_id, "history": history}

        else:
            logger.warning(f"Unknown action '{action}' for session {session_id}.")
            return {"status": "failure", "session_id": session_id, "error": f"Unknown action: {action}"}
