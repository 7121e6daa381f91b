"""
Structured Logging & Observability
Production-grade logging that's both human-readable and machine-parseable.
"""
import sys
from loguru import logger
from typing import Any, Dict
from marketlens.config import get_settings


def configure_logging():
    """
    Configure loguru for production observability.

    In development: Human-readable colorized output
    In production: Structured JSON logs for ingestion (ELK, Datadog, etc.)
    """
    settings = get_settings()

    # Remove default handler
    logger.remove()

    if not settings.enable_structured_logging:
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{message}"
            ),
            level=settings.log_level,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level=settings.log_level,
            serialize=True,  # Output as JSON
        )

    logger.info(f"Logging configured: level={settings.log_level}, structured={settings.enable_structured_logging}")


def log_llm_call(
    provider: str,
    model: str,
    duration_ms: float,
    prompt_chars: int,
    completion_chars: int = 0,
    used_fallback: bool = False,
    success: bool = True,
    error: str | None = None
):
    """
    Structured logging for LLM API calls.

    Enables latency monitoring, fallback-rate analysis and error tracking.

    Args:
        provider: Vendor that served (or failed) the call
        model: Normalized model name sent to the vendor
        duration_ms: API latency in milliseconds
        prompt_chars: Size of system + user prompt
        completion_chars: Size of the returned completion
        used_fallback: Whether this attempt was the cross-vendor fallback
        success: Whether the call succeeded
        error: Error message if failed
    """
    log_data = {
        "event_type": "llm_call",
        "provider": provider,
        "model": model,
        "chars": {
            "prompt": prompt_chars,
            "completion": completion_chars,
        },
        "duration_ms": round(duration_ms, 2),
        "used_fallback": used_fallback,
        "success": success
    }

    if error:
        log_data["error"] = error

    level = "info" if success else "error"
    logger.bind(**log_data).log(
        level.upper(),
        f"LLM Call: {provider}/{model} | {completion_chars} chars | {duration_ms:.0f}ms"
    )


def log_pipeline_event(
    event_type: str,
    project_id: str,
    duration_ms: float | None = None,
    **details: Dict[str, Any]
):
    """
    Log pipeline milestones for analytics.

    Examples:
        - Segmentation generated
        - Focus group generated
        - Generation failed

    Args:
        event_type: Type of event (e.g., "segmentation_generated")
        project_id: The project involved
        duration_ms: End-to-end time in milliseconds
        **details: Event-specific data
    """
    log_data = {
        "event_type": event_type,
        "project_id": project_id,
        **details
    }

    if duration_ms is not None:
        log_data["duration_ms"] = round(duration_ms, 2)

    logger.bind(**log_data).success(f"Pipeline Event: {event_type}")
