"""
Runtime settings for the agent graph.
Loaded once per process and passed into the nodes that need them, so tests can
substitute deterministic ceilings.
"""
import logging
import os
from dataclasses import dataclass, field, replace
from typing import Dict, Optional

from careercraft.graph.state import AGENT_MEMBERS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoopLimits:
    """Turn-scoped ceilings enforced by the loop governor."""
    max_agent_switches: int = 10
    max_tool_calls_per_agent: int = 5
    max_clarification_rounds: int = 3
    max_duplicate_checks: int = 100


@dataclass(frozen=True)
class Settings:
    model: str = "gpt-4o-mini"
    supervisor_temperature: float = 0.0
    agent_temperature: float = 0.2
    model_max_retries: int = 2
    # Seconds
    llm_timeout: float = 30.0
    tool_timeout: float = 15.0
    duplicate_window: float = 300.0
    loop_limits: LoopLimits = field(default_factory=LoopLimits)
    # Stored prefix of a tool result, and preview shown when a call is skipped
    result_preview_chars: int = 500
    skip_preview_chars: int = 200
    # None: derived from the loop ceilings, see graph_recursion_limit
    recursion_limit: Optional[int] = None
    # tool name -> argument holding the free-text payload that gets hashed
    content_hashed_tools: Dict[str, str] = field(default_factory=lambda: {
        "parse_and_store_resume": "content",
        "parse_and_store_job_posting": "content",
    })

    def graph_recursion_limit(self) -> int:
        """Graph step limit; never below what the loop ceilings allow."""
        if self.recursion_limit is not None:
            return self.recursion_limit
        return governed_step_bound(self.loop_limits)


def governed_step_bound(limits: LoopLimits, agent_count: int = len(AGENT_MEMBERS)) -> int:
    """
    Most graph steps a turn can take before a loop ceiling stops it.

    After the first supervisor step every agent run costs two steps (agent,
    supervisor). Runs with tool calls are capped per agent, runs that change
    agent are capped by the switch ceiling, plus the run the governor blocks.
    """
    runs = agent_count * limits.max_tool_calls_per_agent + limits.max_agent_switches + 1
    return 1 + 2 * runs


def _environment_overrides(settings: Settings, env: str) -> Settings:
    """Apply the named environment profile."""
    if env == "development":
        return replace(settings, llm_timeout=60.0, tool_timeout=30.0)
    if env == "test":
        return replace(settings, agent_temperature=0.0, llm_timeout=10.0, tool_timeout=5.0)
    if env == "production":
        return replace(settings, loop_limits=LoopLimits(
            max_agent_switches=8,
            max_tool_calls_per_agent=4,
            max_clarification_rounds=2,
            max_duplicate_checks=50,
        ))
    return settings


def _env_number(name: str, cast, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning(f"Invalid {name}: {raw}")
        return default


def load_settings(env: Optional[str] = None) -> Settings:
    """
    Build settings from defaults, the environment profile and env variables.

    Args:
        env: Profile name (development, test, production). Defaults to APP_ENV.

    Returns:
        Validated Settings
    """
    env = env if env is not None else os.getenv("APP_ENV", "")
    settings = _environment_overrides(Settings(), env.strip().lower())

    limits = settings.loop_limits
    limits = replace(
        limits,
        max_agent_switches=_env_number("MAX_AGENT_SWITCHES", int, limits.max_agent_switches),
        max_tool_calls_per_agent=_env_number("MAX_TOOL_CALLS_PER_AGENT", int, limits.max_tool_calls_per_agent),
        max_clarification_rounds=_env_number("MAX_CLARIFICATION_ROUNDS", int, limits.max_clarification_rounds),
    )
    settings = replace(
        settings,
        model=os.getenv("OPENAI_MODEL", settings.model),
        llm_timeout=_env_number("LLM_TIMEOUT_SECONDS", float, settings.llm_timeout),
        tool_timeout=_env_number("TOOL_TIMEOUT_SECONDS", float, settings.tool_timeout),
        duplicate_window=_env_number("DUPLICATE_WINDOW_SECONDS", float, settings.duplicate_window),
        recursion_limit=_env_number("GRAPH_RECURSION_LIMIT", int, settings.recursion_limit),
        loop_limits=limits,
    )
    validate_settings(settings)
    logger.info(
        "Settings loaded (env=%s): switches=%s tool_calls=%s clarifications=%s",
        env or "default",
        limits.max_agent_switches,
        limits.max_tool_calls_per_agent,
        limits.max_clarification_rounds,
    )
    return settings


def validate_settings(settings: Settings) -> None:
    """Raise ValueError if any setting is out of range."""
    if not 0 <= settings.supervisor_temperature <= 1:
        raise ValueError("Supervisor temperature must be between 0 and 1")
    if not 0 <= settings.agent_temperature <= 1:
        raise ValueError("Agent temperature must be between 0 and 1")
    if settings.llm_timeout <= 0:
        raise ValueError("LLM invoke timeout must be positive")
    if settings.tool_timeout <= 0:
        raise ValueError("Tool execution timeout must be positive")
    if settings.duplicate_window < 0:
        raise ValueError("Duplicate window must not be negative")
    limits = settings.loop_limits
    if limits.max_agent_switches <= 0:
        raise ValueError("Max agent switches must be positive")
    if limits.max_tool_calls_per_agent <= 0:
        raise ValueError("Max tool calls per agent must be positive")
    if limits.max_clarification_rounds <= 0:
        raise ValueError("Max clarification rounds must be positive")
    if settings.recursion_limit is not None:
        bound = governed_step_bound(limits)
        if settings.recursion_limit < bound:
            raise ValueError(
                f"Recursion limit {settings.recursion_limit} is below the {bound} steps the loop limits allow"
            )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or load the process-wide settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop cached settings (for testing)."""
    global _settings
    _settings = None
