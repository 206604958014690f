import base64
import logging
import re
from typing import Any, Iterable

from infrastructure.observability.context import get_cycle_id


_TOKEN_PATTERNS = (
    re.compile(r"(https?://[^:/\s]+:)[^@\s]+(?=@)", re.IGNORECASE),
    re.compile(r"(Authorization:\s*(?:Basic|Bearer)\s+)[A-Za-z0-9_\-.=+/]+", re.IGNORECASE),
    re.compile(r"(Bearer\s+)[A-Za-z0-9_\-.]+", re.IGNORECASE),
    re.compile(r"\bgh[pousr]_[A-Za-z0-9_]+\b"),
    re.compile(r"\bgithub_pat_[A-Za-z0-9_]+\b"),
)
_REGISTERED_SENSITIVE_VALUES: set[str] = set()


def register_sensitive_values(*values: str) -> None:
    for value in values:
        if value:
            _REGISTERED_SENSITIVE_VALUES.add(value)


def register_basic_auth(username: str, token: str) -> None:
    if not token:
        return
    encoded = base64.b64encode(f"{username}:{token}".encode("utf-8")).decode("ascii")
    register_sensitive_values(token, encoded)


def _sensitive_values() -> Iterable[str]:
    return _REGISTERED_SENSITIVE_VALUES


def redact_secrets(text: str) -> str:
    redacted = text
    for value in _sensitive_values():
        redacted = redacted.replace(value, "[REDACTED]")
    for pattern in _TOKEN_PATTERNS:
        if pattern.groups > 0:
            redacted = pattern.sub(r"\1[REDACTED]", redacted)
        else:
            redacted = pattern.sub("[REDACTED]", redacted)
    return redacted


class CycleIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.cycle_id = get_cycle_id()
        return True


def configure_logging(level: int = logging.INFO) -> None:
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [cycle_id=%(cycle_id)s] %(name)s - %(message)s",
        )

    current_factory = logging.getLogRecordFactory()
    if not getattr(current_factory, "_cycle_id_factory", False):
        def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = current_factory(*args, **kwargs)
            record.cycle_id = get_cycle_id()
            return record

        setattr(record_factory, "_cycle_id_factory", True)
        logging.setLogRecordFactory(record_factory)

    for handler in logging.getLogger().handlers:
        has_cycle_id_filter = any(isinstance(f, CycleIdFilter) for f in handler.filters)
        if not has_cycle_id_filter:
            handler.addFilter(CycleIdFilter())


def safe_message(message: str) -> str:
    return redact_secrets(message)


def _format_field_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return safe_message(value)
    return safe_message(repr(value))


def structured_message(event: str, **fields: Any) -> str:
    parts = [f"event={safe_message(event)}"]
    for key, value in fields.items():
        if value is None:
            continue
        formatted_value = _format_field_value(value).replace('"', '\\"')
        parts.append(f'{key}="{formatted_value}"')
    return " ".join(parts)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    logger.log(level, structured_message(event, **fields))
