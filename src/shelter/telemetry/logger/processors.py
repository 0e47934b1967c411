# src/shelter/telemetry/logger/processors.py

"""
Custom structlog processors used by the shelter logging setup.
"""

from typing import Any

from structlog.typing import EventDict, WrappedLogger

LEVEL_EMOJIS = {
    "debug": "🐛",
    "info": "ℹ️",
    "warning": "⚠️",
    "error": "❌",
    "critical": "💥",
}

# Keys that can be passed as an "emoji hint" instead of relying on the level.
EMOJI_HINTS = {
    "case": "🧪",
    "suite": "📦",
    "suites": "🗂️",
    "format": "📝",
    "patch": "🩹",
    "config": "📄",
}


def add_emoji_processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Prefixes the event message with an emoji based on a hint or the level."""
    hint = event_dict.get("emoji_key")
    emoji = EMOJI_HINTS.get(hint) if hint else None
    if emoji is None:
        emoji = LEVEL_EMOJIS.get(method_name, "➡️")
    event: Any = event_dict.get("event")
    if isinstance(event, str):
        event_dict["event"] = f"{emoji} {event}"
    return event_dict


def remove_extra_keys_processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Drops bookkeeping keys that only matter to the processors."""
    event_dict.pop("emoji_key", None)
    return event_dict


# 🔼⚙️
