from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from screenwarp.measurements import DataOrigin


class ScreenwarpError(ValueError):
    """
    Base class for fatal pipeline errors.

    `origins` lists the measurements responsible for the failure, when known.
    """

    def __init__(self, message: str, origins: Iterable["DataOrigin"] = ()) -> None:
        self.message = message
        self.origins = tuple(origins)
        super().__init__(message)

    def __str__(self) -> str:
        known = [str(o) for o in self.origins if o.known]
        if not known:
            return self.message
        return f"{self.message} (at {', '.join(known)})"


class InvalidConfiguration(ScreenwarpError):
    pass


class DegenerateGeometry(ScreenwarpError):
    pass


class NumericFailure(ScreenwarpError):
    pass


class InsufficientCoverage(ScreenwarpError):
    pass
