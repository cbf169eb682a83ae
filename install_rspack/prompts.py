"""
Interactive prompts.

Only used outside unattended mode. Ctrl-C or end of input while a prompt is
waiting raises PromptCancelled, which the CLI treats as a clean abort.
"""

from __future__ import annotations

from typing import Callable, Sequence, TypeVar

from .common import InstallRspackError


T = TypeVar("T")


class PromptCancelled(InstallRspackError):
    """The user cancelled an interactive prompt."""

    def __init__(self, message: str = "Operation cancelled."):
        super().__init__(message)


def _ask(question: str, read: Callable[[str], str] | None) -> str:
    read = read or input
    try:
        return read(question).strip()
    except (EOFError, KeyboardInterrupt):
        raise PromptCancelled()


def confirm(
    message: str,
    default: bool = False,
    read: Callable[[str], str] | None = None,
) -> bool:
    """
    Ask a yes/no question.

    Args:
        message: Question to display
        default: Answer used when the user just presses enter
        read: Line reader (default: input)

    Returns:
        True if the user confirms
    """
    hint = "[Y/n]" if default else "[y/N]"
    while True:
        response = _ask(f"◆  {message} {hint}: ", read).lower()
        if not response:
            return default
        if response in ("y", "yes"):
            return True
        if response in ("n", "no"):
            return False


def select(
    message: str,
    options: Sequence[T],
    read: Callable[[str], str] | None = None,
    label: Callable[[T], str] = str,
) -> T:
    """
    Ask the user to pick one option by number or by name.

    Args:
        message: Question to display
        options: Choices, shown in the given order
        read: Line reader (default: input)
        label: Display text for an option

    Returns:
        The chosen option
    """
    if not options:
        raise ValueError("select() needs at least one option")

    print(f"◆  {message}")
    for index, option in enumerate(options, start=1):
        print(f"│  {index}) {label(option)}")

    labels = [label(option) for option in options]
    while True:
        response = _ask(f"│  Choice [1-{len(options)}]: ", read)
        if response.isdigit() and 1 <= int(response) <= len(options):
            return options[int(response) - 1]
        if response in labels:
            return options[labels.index(response)]
