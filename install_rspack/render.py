"""
Terminal text styling for progress messages.
"""

import os
import sys


USE_COLOR = os.environ.get("INSTALL_RSPACK_COLOR", "1") == "1" and not os.environ.get("NO_COLOR")

# ANSI color codes
RED = "\033[31m"
YELLOW = "\033[33m"
MAGENTA = "\033[35m"
BOLD = "\033[1m"
RESET = "\033[0m"


def colorize(text: str, color: str) -> str:
    """Apply color to text.

    Args:
        text: Text to colorize
        color: ANSI color code

    Returns:
        Colored text or plain text if colors disabled
    """
    if not USE_COLOR or not text or not sys.stdout.isatty():
        return text
    return f"{color}{text}{RESET}"


def magenta(text: str) -> str:
    return colorize(text, MAGENTA)


def yellow(text: str) -> str:
    return colorize(text, YELLOW)


def red(text: str) -> str:
    return colorize(text, RED)


def banner(title: str) -> str:
    """Intro/outro line printed around an interactive run."""
    return f"┌  {colorize(title, BOLD)}"


def outro(message: str) -> str:
    return f"└  {message}"
