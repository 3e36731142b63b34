"""
Async helpers for Docker progress streams.

docker-py returns pull/push progress as a blocking generator of decoded
JSON messages. Draining one on the event loop would block every other
request, so the iteration runs in a worker thread.
"""
import asyncio
import logging
from typing import Any, Dict, Iterable, List

from ..services.errors import BackendFailureError

logger = logging.getLogger(__name__)


def _drain_blocking(stream: Iterable[Dict[str, Any]], description: str) -> List[Dict[str, Any]]:
    messages = []
    for message in stream:
        messages.append(message)
        if isinstance(message, dict) and message.get("error"):
            raise BackendFailureError(f"{description}: {message['error']}")
        logger.debug(f"[STREAM] {description}: {message}")
    return messages


async def drain_stream(stream: Iterable[Dict[str, Any]], description: str = "stream") -> List[Dict[str, Any]]:
    """
    Consume a progress stream to the end.

    Args:
        stream: Blocking iterable of decoded progress messages
        description: Label used in logs and error messages

    Returns:
        All messages read from the stream

    Raises:
        BackendFailureError: If a message reports an error
    """
    return await asyncio.to_thread(_drain_blocking, stream, description)
