"""In-memory registry of live puzzle boards."""

import logging
import threading
import uuid
from collections import OrderedDict
from typing import Optional

from jigsaw_engine import AssemblyStore

from app.config import settings

logger = logging.getLogger(__name__)


class BoardRegistry:
    """Keeps one AssemblyStore per board id, evicting the oldest past a limit."""

    def __init__(self, max_boards: int = 100) -> None:
        """Initialize the registry.

        Args:
            max_boards: Maximum number of boards held at once.
        """
        self.max_boards = max_boards
        self._boards: "OrderedDict[str, AssemblyStore]" = OrderedDict()
        self._lock = threading.Lock()

    def add(self, store: AssemblyStore) -> str:
        """Register an initialized board and return its new id."""
        board_id = str(uuid.uuid4())
        with self._lock:
            self._boards[board_id] = store
            while len(self._boards) > self.max_boards:
                evicted, _ = self._boards.popitem(last=False)
                logger.info("Evicted board %s", evicted)
        return board_id

    def get(self, board_id: str) -> Optional[AssemblyStore]:
        with self._lock:
            return self._boards.get(board_id)

    def remove(self, board_id: str) -> bool:
        with self._lock:
            return self._boards.pop(board_id, None) is not None

    def __len__(self) -> int:
        return len(self._boards)


# Singleton instance
_board_registry: Optional[BoardRegistry] = None


def get_board_registry() -> BoardRegistry:
    """Get the singleton BoardRegistry instance."""
    global _board_registry
    if _board_registry is None:
        _board_registry = BoardRegistry(max_boards=settings.MAX_BOARDS)
    return _board_registry
