"""
Centralized logging configuration for quantlab.

This module provides standardized logging configuration using structlog
for all components. All logging throughout the package goes through this
configuration so simulator and study output share one structured format.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                       structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_simulation_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for backtest simulator events.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structlog logger with simulator context bound
    """
    return get_logger(name).bind(subsystem="simulator")


def get_study_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for study engine events.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structlog logger with study context bound
    """
    return get_logger(name).bind(subsystem="studies")


def log_study_run(
    logger: FilteringBoundLogger,
    ticker: str,
    study_type: str,
    bars: int,
    passed: bool,
    reason: Optional[str] = None,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log the outcome of a study request with standardized format.

    Args:
        logger: Structlog logger instance
        ticker: Instrument the study ran against
        study_type: Study identifier
        bars: Number of bars supplied
        passed: Whether the study produced a result
        reason: Failure reason when the study was rejected
        context: Additional context data
    """
    bound_logger = logger.bind(
        ticker=ticker,
        study_type=study_type,
        bars=bars,
        study_result="OK" if passed else "REJECTED",
    )

    if reason:
        bound_logger = bound_logger.bind(reason=reason)

    if context:
        bound_logger = bound_logger.bind(context=context)

    if passed:
        bound_logger.info("Study completed")
    else:
        bound_logger.warning("Study rejected")


def log_state_transition(
    logger: FilteringBoundLogger,
    run_id: str,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a simulator state transition with standardized format.

    Args:
        logger: Structlog logger instance
        run_id: Identifier of the simulation run
        from_state: Current state
        to_state: Target state
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        run_id=run_id,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("State transition")
