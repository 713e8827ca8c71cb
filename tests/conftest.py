import asyncio
import logging
import sys
from pathlib import Path

import pytest
from langchain_core.messages import AIMessage

# Ensure the project root is importable for test modules
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class RecordingChatModel:
    """Stand-in chat model that records the messages it receives.

    ``reply`` is either a string, an ``AIMessage``, an exception to raise, or a
    callable taking the messages and returning one of those.
    """

    def __init__(self, reply="", delay: float = 0.0):
        self.reply = reply
        self.delay = delay
        self.calls = []

    async def ainvoke(self, messages):
        self.calls.append(list(messages))
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.reply(messages) if callable(self.reply) else self.reply
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, str):
            return AIMessage(content=reply)
        return reply


@pytest.fixture(autouse=True)
def drop_installed_log_handlers():
    root = logging.getLogger()
    before = list(root.handlers)
    yield
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()


@pytest.fixture
def fake_model():
    return RecordingChatModel()
