"""
Result envelopes for the captcha pipeline.

Expected failures (bad threshold, no usable columns, merge problems) are
returned as failed results instead of raised. A failed result may point at
the result that caused it, so the whole causal chain can be printed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class MethodResult(Generic[T]):
    """
    Success flag + message + optional payload.

    `origin` is the result of the call that produced this one (usually the
    failure being wrapped). On success `message` holds warnings or info.
    """

    success: bool
    message: str = ""
    result: Optional[T] = None
    origin: Optional["MethodResult[Any]"] = None

    @classmethod
    def ok(cls, result: T, message: Optional[str] = None) -> "MethodResult[T]":
        return cls(True, message or "", result)

    @classmethod
    def fail(cls, message: str, origin: Optional["MethodResult[Any]"] = None) -> "MethodResult[T]":
        return cls(False, message or "", None, origin)

    def get_result(self) -> Optional[T]:
        return self.result

    def iter_chain(self) -> Iterator["MethodResult[Any]"]:
        """Yield this result, then every origin down to the root."""
        current: Optional[MethodResult[Any]] = self
        while current is not None:
            yield current
            current = current.origin

    @property
    def root_cause(self) -> "MethodResult[Any]":
        last = self
        for last in self.iter_chain():
            pass
        return last

    def message_stack(self, indent_first_line: bool = False, indent_amount: int = 1) -> str:
        """
        Render the messages of the chain, one per line.

        Empty when there is no origin. Origin messages are always indented,
        the first line only when `indent_first_line` is set.
        """
        if self.origin is None:
            return ""

        indent = "\t" * indent_amount
        lines = []
        if self.message.strip():
            lines.append(f"{indent if indent_first_line else ''}{self.message}")

        for previous in self.origin.iter_chain():
            if previous.message.strip():
                lines.append(f"{indent}{previous.message}")

        return "".join(line + "\n" for line in lines)


@dataclass(frozen=True)
class MethodResultList(MethodResult[List[T]]):
    """List payload with record counts (current page vs. source total)."""

    current_count: int = 0
    total_count: int = 0

    @classmethod
    def ok(cls, result: List[T], message: Optional[str] = None,
           total_count: Optional[int] = None) -> "MethodResultList[T]":
        items = list(result)
        return cls(True, message or "", items, None, len(items),
                   len(items) if total_count is None else total_count)

    @classmethod
    def fail(cls, message: str, origin: Optional[MethodResult[Any]] = None) -> "MethodResultList[T]":
        return cls(False, message or "", None, origin, 0, 0)
