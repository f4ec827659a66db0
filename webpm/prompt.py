"""Yes/no confirmation prompts."""

import sys


class Prompt:
    """Asks the user to confirm an action."""

    def confirm(self, question: str) -> bool:
        raise NotImplementedError


class ConsolePrompt(Prompt):
    """Reads the answer from stdin. Anything but y/yes declines."""

    def __init__(self, input_func=input):
        self.input_func = input_func

    def confirm(self, question: str) -> bool:
        try:
            reply = self.input_func(f"{question} [y/N] ")
        except EOFError:
            return False
        return reply.strip().lower() in ("y", "yes")


class AssumeNo(Prompt):
    """Declines every question, for scripted runs."""

    def confirm(self, question: str) -> bool:
        return False


class AssumeYes(Prompt):
    """Accepts every question (``--yes``)."""

    def confirm(self, question: str) -> bool:
        return True


def default_prompt(assume_yes: bool = False) -> Prompt:
    """Interactive prompt on a terminal, otherwise assume no."""
    if assume_yes:
        return AssumeYes()
    if sys.stdin is not None and sys.stdin.isatty():
        return ConsolePrompt()
    return AssumeNo()
