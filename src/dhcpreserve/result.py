"""
Explicit result type for workflow steps.

Each step returns ``Ok(value)`` or ``Err(kind, message, cause)`` and the
orchestrator stops at the first ``Err``.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from dhcpreserve.errors import DHCPReserveError, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful step outcome."""
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed step outcome."""
    kind: ErrorKind
    message: str
    cause: str | None = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def error(self) -> str:
        """Error text prefixed with the kind name, with the cause appended."""
        text = f"{self.kind.value}: {self.message}"
        if self.cause and self.cause not in self.message:
            text += f" ({self.cause})"
        return text

    @classmethod
    def from_exception(cls, exc: DHCPReserveError) -> "Err":
        return cls(kind=exc.kind, message=exc.message, cause=exc.cause)


Result = Union[Ok[T], Err]
