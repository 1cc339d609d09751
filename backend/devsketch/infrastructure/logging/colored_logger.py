"""Colored pipeline logger for sketch-to-code runs.

Each line carries the stage label and icon, so a generation run can be
followed in the terminal from the request through model calls and fallbacks
to the final result.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator, NamedTuple

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_BLUE = "\033[94m"
_CYAN = "\033[96m"
_GRAY = "\033[90m"


class Stage(NamedTuple):
    label: str
    color: str
    icon: str


class PipelineStage:
    """Stages of a generation run."""

    REQUEST = Stage("REQUEST", _BLUE, "📨")
    MODEL = Stage("MODEL", _BLUE, "🤖")
    FALLBACK = Stage("FALLBACK", _CYAN, "↩️")
    COMPLETE = Stage("COMPLETE", _GREEN, "✅")
    ERROR = Stage("ERROR", _RED, "❌")


class PipelineLogger:
    """Stage-aware wrapper around a standard ``logging.Logger``.

    The logger name is the component name, so per-category levels set by
    ``setup_logging`` apply to it like to any module logger.

    Usage:
        plog = PipelineLogger("CodeGenerationOrchestrator")
        plog.step_start(PipelineStage.REQUEST, "Generating from 12 shapes", mode="stream")
        plog.step_complete(PipelineStage.COMPLETE, "Code generated", length=1834)
    """

    def __init__(self, component_name: str, *, use_color: bool = True):
        self._logger = logging.getLogger(component_name)
        self._use_color = use_color

    def _paint(self, text: str, *codes: str) -> str:
        if not self._use_color or not codes:
            return text
        return "".join(codes) + text + _RESET

    def _details(self, details: dict[str, Any]) -> str:
        if not details:
            return ""
        joined = " | ".join(f"{key}={value}" for key, value in details.items())
        return " " + self._paint(f"({joined})", _GRAY)

    def _tag(self, stage: Stage, *, bold: bool = False) -> str:
        codes = (stage.color, _BOLD) if bold else (stage.color,)
        return self._paint(f"{stage.icon} [{stage.label}]", *codes)

    def step_start(self, stage: Stage, message: str, **details: Any) -> None:
        line = f"{self._tag(stage, bold=True)} {self._paint(message, stage.color)}"
        self._logger.info(line + self._details(details))

    def step_complete(self, stage: Stage, message: str, **details: Any) -> None:
        line = f"{self._tag(stage)} {self._paint('✓ ' + message, _GREEN)}"
        self._logger.info(line + self._details(details))

    def step_error(self, stage: Stage, message: str, error: Exception | None = None) -> None:
        line = f"{self._tag(stage, bold=True)} {self._paint(message, _RED)}"
        if error is not None:
            line += " " + self._paint(f"→ {type(error).__name__}: {error}", _DIM)
        self._logger.error(line)

    def detail(self, message: str, **details: Any) -> None:
        """Debug-level line nested under the current step."""
        self._logger.debug(f"   {self._paint('├─ ' + message, _GRAY)}{self._details(details)}")

    @contextmanager
    def timed_step(self, stage: Stage, message: str, **details: Any) -> Iterator[None]:
        """Log ``message`` on entry and its elapsed time on exit or failure."""
        self.step_start(stage, message, **details)
        started = time.perf_counter()
        try:
            yield
        except Exception as e:
            self.step_error(
                stage, f"{message} failed after {time.perf_counter() - started:.2f}s", error=e
            )
            raise
        self.step_complete(stage, f"{message} in {time.perf_counter() - started:.2f}s")
