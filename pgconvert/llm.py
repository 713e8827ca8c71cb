"""Binding to the hosted Gemini chat model used for conversions."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Optional

from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

MODEL_NAME = "gemini-3-pro-preview"
DIAGNOSTIC_MODEL_NAME = "gemini-3-flash-preview"

DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"
FALLBACK_API_KEY_ENV = "GOOGLE_API_KEY"

# Low temperature keeps translations literal.
TEMPERATURE = 0.1
THINKING_BUDGET = 4000

DIAGNOSTIC_PROMPT = "Connection test. Reply with 'OK'."
DIAGNOSTIC_MAX_TOKENS = 10

ChatModelFactory = Callable[[], Any]


class CredentialError(RuntimeError):
    pass


def resolve_api_key(config: Optional[dict] = None) -> str:
    """Read the API key from the environment; called on every model build."""
    env_name = ((config or {}).get("llm") or {}).get("api_key_env") or DEFAULT_API_KEY_ENV
    api_key = os.environ.get(env_name) or os.environ.get(FALLBACK_API_KEY_ENV)
    if not api_key:
        raise CredentialError(
            f"{env_name} not set. Set the environment variable to use Gemini."
        )
    return api_key


def build_chat_model(config: Optional[dict] = None, *, model: str = MODEL_NAME, **overrides):
    kwargs: dict[str, Any] = {
        "model": model,
        "google_api_key": resolve_api_key(config),
        "temperature": TEMPERATURE,
        "thinking_budget": THINKING_BUDGET,
        # single attempt, failures go straight back to the caller
        "max_retries": 1,
    }
    kwargs.update(overrides)
    logger.debug("Building chat model %s (temperature=%s)", model, kwargs["temperature"])
    return ChatGoogleGenerativeAI(**kwargs)


def model_factory_from_config(config: Optional[dict] = None) -> ChatModelFactory:
    return lambda: build_chat_model(config)


def message_text(message: Any) -> str:
    """Plain text of a chat response; ``None`` content reads as empty."""
    content = getattr(message, "content", None)
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    raise TypeError(f"Unsupported response content type: {type(content).__name__}")


@dataclass
class ConnectionStatus:
    ok: bool
    message: str = ""


async def check_connection(
    config: Optional[dict] = None,
    model_factory: Optional[ChatModelFactory] = None,
) -> ConnectionStatus:
    """Send a tiny prompt to the diagnostic model and report whether it answered."""
    if model_factory is None:
        def model_factory():
            return build_chat_model(
                config,
                model=DIAGNOSTIC_MODEL_NAME,
                max_output_tokens=DIAGNOSTIC_MAX_TOKENS,
                thinking_budget=None,
            )

    try:
        llm = model_factory()
        response = await llm.ainvoke([HumanMessage(content=DIAGNOSTIC_PROMPT)])
        reply = message_text(response)
    except Exception as exc:
        logger.error("Connection test failed: %s", exc)
        return ConnectionStatus(ok=False, message=str(exc) or exc.__class__.__name__)

    if "OK" in reply:
        logger.info("Connection test passed")
        return ConnectionStatus(ok=True, message="OK")
    logger.warning("Connection test returned unexpected reply (%d chars)", len(reply))
    return ConnectionStatus(ok=False, message="Unexpected response from API.")
