from __future__ import annotations

from typing import Any, Callable, List, Optional, Tuple


def _coerce_text(value: Any, *, limit: int) -> str:
    text = str(value or "").strip()
    if not text:
        return ""
    return text[:limit]


def parse_answer(raw: Optional[str], *, default: bool) -> Optional[bool]:
    """
    Map a typed answer onto yes/no. Empty input takes the default;
    anything unrecognised returns None so the caller can ask again.
    """
    text = _coerce_text(raw, limit=16).lower()
    if not text:
        return bool(default)
    if text in {"y", "yes", "true", "1"}:
        return True
    if text in {"n", "no", "false", "0"}:
        return False
    return None


class ConsolePrompt:
    """
    Interactive confirm(question, default) on a terminal.
    EOF / Ctrl-C fall back to the default answer.
    """

    def __init__(self, *, input_fn: Callable[[str], str] = input, output_fn: Callable[[str], None] = print, max_attempts: int = 3):
        self._input = input_fn
        self._output = output_fn
        self.max_attempts = max(1, int(max_attempts))

    def confirm(self, question: str, default: bool = False) -> bool:
        suffix = " [Y/n] " if default else " [y/N] "
        for _ in range(self.max_attempts):
            try:
                raw = self._input(_coerce_text(question, limit=500) + suffix)
            except (EOFError, KeyboardInterrupt):
                return bool(default)
            answer = parse_answer(raw, default=default)
            if answer is not None:
                return answer
            self._output("Please answer yes or no.")
        return bool(default)


class AutoConfirm:
    """
    Non-interactive confirm. answer=None answers every question with its
    default; answer=True/False forces that answer.
    """

    def __init__(self, answer: Optional[bool] = None):
        self.answer = answer
        self.asked: List[Tuple[str, bool]] = []

    def confirm(self, question: str, default: bool = False) -> bool:
        self.asked.append((str(question), bool(default)))
        if self.answer is None:
            return bool(default)
        return bool(self.answer)
