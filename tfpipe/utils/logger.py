import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from tfpipe.utils.security import redact_sensitive_info


def use_emoji_logs() -> bool:
    """
    Check if emoji prefixes should be used in log messages.

    Returns True unless USE_EMOJI_LOGS environment variable is set to "0" or "false".
    CI environments can disable emojis by setting USE_EMOJI_LOGS=0.
    """
    value = os.environ.get("USE_EMOJI_LOGS", "1").lower()
    return value not in ("0", "false", "no", "off")


# Mapping of emoji prefixes to ASCII alternatives
_EMOJI_TO_ASCII = {
    "▶️": "[START]",
    "⏭️": "[SKIP]",
    "⚠️": "[WARN]",
    "⏱️": "[TIMEOUT]",
    "✅": "[OK]",
    "❌": "[ERROR]",
    "🛑": "[CANCEL]",
    "📦": "[ARTIFACT]",
    "💬": "[COMMENT]",
    "🧹": "[CLEANUP]",
}


def log_prefix(emoji: str) -> str:
    """
    Return the appropriate log prefix based on USE_EMOJI_LOGS setting.

    Args:
        emoji: The emoji to use when emoji logs are enabled.

    Returns:
        The emoji if USE_EMOJI_LOGS is enabled, otherwise the ASCII equivalent
        (or empty string if no mapping exists).
    """
    if use_emoji_logs():
        return emoji
    return _EMOJI_TO_ASCII.get(emoji, "")


def _redact_value(value):
    if isinstance(value, str):
        return redact_sensitive_info(value)
    if isinstance(value, dict):
        return {k: _redact_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_redact_value(item) for item in value)
    return value


def redaction_filter(record) -> None:
    """Redact sensitive info from every log record."""
    try:
        record["message"] = redact_sensitive_info(record["message"])
    except Exception:
        # Never leak the original text if redaction fails
        record["message"] = "[REDACTED]"

    for key in list(record["extra"].keys()):
        try:
            record["extra"][key] = _redact_value(record["extra"][key])
        except Exception:
            record["extra"][key] = "[REDACTED]"


def setup_logger(
    verbose: bool = False,
    session_id: Optional[str] = None,
    log_file: Optional[str] = None,
    rotation: str = "10 MB",
    retention: str = "1 week",
) -> None:
    """
    Configure the logger for a pipeline session.

    Rules:
    1. FILE: Always log DEBUG+ to tfpipe.log (rotated) with session_id prefix.
    2. CONSOLE: Log DEBUG+ to stderr only when verbose; otherwise the rich
       display owns the terminal.

    Args:
        verbose: Enable console logging
        session_id: Optional session ID added to the file log format
        log_file: Override the log file path (defaults to TFPIPE_LOG_FILE or tfpipe.log)
        rotation: loguru rotation policy for the file sink
        retention: loguru retention policy for the file sink
    """
    logger.remove()

    def format_record(record):
        sid = record["extra"].get("session_id", session_id or "")
        if sid:
            return "{time:YYYY-MM-DD HH:mm:ss} | " + str(sid) + " | {level: <8} | {name}:{function}:{line} - {message}\n"
        return "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}\n"

    log_path = Path(log_file or os.environ.get("TFPIPE_LOG_FILE", "tfpipe.log"))
    logger.add(
        log_path,
        rotation=rotation,
        retention=retention,
        level="DEBUG",
        format=format_record,
        enqueue=True,
    )

    if verbose:
        logger.add(
            sys.stderr,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
            level="DEBUG",
        )

    logger.configure(patcher=redaction_filter)


def get_session_logger(session_id: str):
    """
    Get a logger bound to a specific pipeline run.

    Example:
        >>> run_logger = get_session_logger("1234567890")
        >>> run_logger.info("Stage started")
    """
    return logger.bind(session_id=session_id)
