from __future__ import annotations

from modsync.core.ux.prompts import AutoConfirm, ConsolePrompt, parse_answer

__all__ = ["AutoConfirm", "ConsolePrompt", "parse_answer"]
