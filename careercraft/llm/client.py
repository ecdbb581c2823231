"""LLM client factory for the supervisor and agent nodes."""
import os
import logging
from typing import Optional

from langchain_core.language_models import BaseChatModel

from careercraft.config import Settings

logger = logging.getLogger(__name__)


# Moonshot/Kimi API is OpenAI-compatible; use global endpoint (not China) for privacy
MOONSHOT_BASE_URL = "https://api.moonshot.ai/v1"

SUPERVISOR_MODEL = "supervisor"
AGENT_MODEL = "agent"


def _temperature(kind: str, settings: Settings) -> float:
    if kind == SUPERVISOR_MODEL:
        return settings.supervisor_temperature
    return settings.agent_temperature


def get_chat_model(kind: str, settings: Settings) -> Optional[BaseChatModel]:
    """
    Get a chat model for a node.

    The supervisor routes deterministically (temperature 0); agents get the
    agent temperature. Order: MOONSHOT_API_KEY -> OPENAI_API_KEY -> ANTHROPIC_API_KEY.

    Args:
        kind: "supervisor" or "agent"
        settings: Runtime settings (model name, retries, timeout)

    Returns:
        Configured model, or None if no provider key is set
    """
    temperature = _temperature(kind, settings)

    moonshot_key = os.getenv("MOONSHOT_API_KEY") or os.getenv("KIMI_API_KEY")
    if moonshot_key:
        try:
            from langchain_openai import ChatOpenAI
            model = os.getenv("MOONSHOT_MODEL", "moonshot-v1-8k")
            logger.info("%s LLM: Kimi/Moonshot (global endpoint)", kind)
            return ChatOpenAI(
                model=model,
                temperature=temperature,
                api_key=moonshot_key,
                base_url=MOONSHOT_BASE_URL,
                max_retries=settings.model_max_retries,
                timeout=settings.llm_timeout,
            )
        except ImportError:
            logger.warning("langchain-openai not installed, cannot use Moonshot")
        except Exception as e:
            logger.warning("Moonshot/Kimi init failed: %s", e)

    openai_key = os.getenv("OPENAI_API_KEY")
    if openai_key:
        try:
            from langchain_openai import ChatOpenAI
            logger.info("%s LLM: OpenAI (%s)", kind, settings.model)
            return ChatOpenAI(
                model=settings.model,
                temperature=temperature,
                api_key=openai_key,
                max_retries=settings.model_max_retries,
                timeout=settings.llm_timeout,
            )
        except ImportError:
            logger.warning("langchain-openai not installed, skipping OpenAI")

    anthropic_key = os.getenv("ANTHROPIC_API_KEY")
    if anthropic_key:
        try:
            from langchain_anthropic import ChatAnthropic
            logger.info("%s LLM: Anthropic", kind)
            return ChatAnthropic(
                model=os.getenv("ANTHROPIC_MODEL", "claude-3-haiku-20240307"),
                temperature=temperature,
                api_key=anthropic_key,
                max_retries=settings.model_max_retries,
                default_request_timeout=settings.llm_timeout,
            )
        except ImportError:
            logger.warning("langchain-anthropic not installed, skipping Anthropic")

    logger.warning(
        "No LLM: set MOONSHOT_API_KEY, OPENAI_API_KEY, or ANTHROPIC_API_KEY"
    )
    return None
