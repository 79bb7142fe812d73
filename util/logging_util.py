import logging
import sys

# Configure logging format
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name: str, level=logging.INFO) -> logging.Logger:
    """
    Sets up a logger with consistent formatting.

    Args:
        name: Name of the logger (typically __name__ from the calling module)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding handlers multiple times
    if not logger.handlers:
        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)

        # Formatter
        formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
        console_handler.setFormatter(formatter)

        logger.addHandler(console_handler)

    return logger


def log_llm_interaction(logger: logging.Logger, system_prompt: str, user_prompt: str,
                        response: str, model_name: str, duration_ms: float = None):
    """
    Logs an LLM interaction with all relevant details.

    Args:
        logger: Logger instance to use
        system_prompt: The system prompt sent to the model
        user_prompt: The rendered user prompt
        response: Response from the LLM
        model_name: Name of the model used
        duration_ms: Optional duration of the call in milliseconds
    """
    duration_str = f" ({duration_ms:.2f}ms)" if duration_ms else ""
    logger.info(f"LLM Request{duration_str} - Model: {model_name}")
    logger.debug(f"  System: {system_prompt}")
    logger.debug(f"  Prompt: {user_prompt[:500]}{'...' if len(user_prompt) > 500 else ''}")
    logger.info(f"  Response: {response[:200]}{'...' if len(response) > 200 else ''}")


def log_probe(logger: logging.Logger, source_id: int, kind: str, found: int,
              error: str = None, duration_ms: float = None):
    """
    Logs the outcome of a source probe.

    Args:
        logger: Logger instance to use
        source_id: The probed source
        kind: Source kind value
        found: Number of new items found
        error: Error message if the probe failed
        duration_ms: Optional duration of the probe in milliseconds
    """
    duration_str = f" ({duration_ms:.2f}ms)" if duration_ms else ""
    if error:
        logger.error(f"Probe failed{duration_str} - Source: {source_id} ({kind}): {error}")
    else:
        logger.info(f"Probe complete{duration_str} - Source: {source_id} ({kind}), {found} new items")
