"""Console logging for Inxperiments runs.

Every line carries a marker saying who did the work: the engine itself
(lifecycle, merges, removals) or an LLM collaborator (Director, scene
generator). Tick-rate work is never logged.

Environment switches:
- INXPERIMENTS_NO_COLOR / NO_COLOR: plain text, no ANSI codes
- DEBUG_DIRECTOR: dump Director requests and responses (see log_debug)
"""

import os
from enum import Enum

_TRUTHY = ("1", "true", "yes")

# Markers for operation types (color-blind accessible)
LOG_TAG_ENGINE = "[•]"
LOG_TAG_LLM = "[LLM]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"
LOG_TAG_INFO = "[i]"


class Color(Enum):
    """ANSI codes, one per marker."""

    BLUE = "\033[94m"      # engine
    YELLOW = "\033[93m"    # Director / scene generator
    RED = "\033[91m"       # failures and fallback narration
    GREEN = "\033[92m"     # merged decisions, run end
    CYAN = "\033[96m"      # info and debug dumps

    BOLD = "\033[1m"
    RESET = "\033[0m"


def env_flag(name: str) -> bool:
    """Return True when env var ``name`` is set to 1/true/yes (any case)."""
    return os.getenv(name, "").strip().lower() in _TRUTHY


def colors_enabled() -> bool:
    # NO_COLOR is honored when merely present, per no-color.org.
    return not (env_flag("INXPERIMENTS_NO_COLOR") or "NO_COLOR" in os.environ)


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI codes unless colors are disabled."""
    if not colors_enabled():
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix
    return f"{prefix}{text}{Color.RESET.value}"


def _emit(tag: str, message: str, color: Color) -> None:
    print(colored(f"{tag} {message}", color))


def log_engine(message: str) -> None:
    _emit(LOG_TAG_ENGINE, message, Color.BLUE)


def log_llm(message: str) -> None:
    _emit(LOG_TAG_LLM, message, Color.YELLOW)


def log_error(message: str) -> None:
    _emit(LOG_TAG_ERROR, message, Color.RED)


def log_success(message: str) -> None:
    _emit(LOG_TAG_SUCCESS, message, Color.GREEN)


def log_info(message: str) -> None:
    _emit(LOG_TAG_INFO, message, Color.CYAN)


def log_debug(flag: str, title: str, body: str) -> None:
    """Print a titled debug dump when env flag ``flag`` is on.

    Example: ``log_debug("DEBUG_DIRECTOR", "Request", prompt)`` prints
    ``[DEBUG_DIRECTOR] Request`` followed by the prompt.
    """
    if not env_flag(flag):
        return
    print(colored(f"\n[{flag}] {title}\n{body}", Color.CYAN))
