"""Per-conversation turn guard - at most one model call in flight per conversation."""

import logging

logger = logging.getLogger(__name__)


class TurnInProgressError(Exception):
    pass


class ConversationLocks:
    """Claims are checked and taken without awaiting, so they are atomic on the event loop."""

    def __init__(self):
        self._active: set[int] = set()

    def acquire(self, conversation_id: int) -> None:
        if conversation_id in self._active:
            raise TurnInProgressError(
                f"A reply is already being generated for conversation {conversation_id}"
            )
        self._active.add(conversation_id)
        logger.debug(f"Turn started for conversation {conversation_id}")

    def release(self, conversation_id: int) -> None:
        self._active.discard(conversation_id)
        logger.debug(f"Turn finished for conversation {conversation_id}")

    def is_locked(self, conversation_id: int) -> bool:
        return conversation_id in self._active


conversation_locks = ConversationLocks()
