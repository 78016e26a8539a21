"""
Nullable column values.

Every nullable column is carried as a value plus a validity flag. A NULL,
or a value that cannot be parsed into the expected type, becomes an
invalid instance; consumers read it through or_default() and never see
an exception for malformed metrics.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Optional


@dataclass(frozen=True)
class _Nullable:
    value: Any = None
    valid: bool = False

    ZERO: ClassVar[Any] = None

    @classmethod
    def of(cls, raw: Any):
        """Build from a raw driver value. None or unparseable -> invalid."""
        if raw is None:
            return cls.null()
        try:
            return cls(value=cls._coerce(raw), valid=True)
        except (TypeError, ValueError, ArithmeticError):
            return cls.null()

    @classmethod
    def null(cls):
        return cls(value=cls.ZERO, valid=False)

    @staticmethod
    def _coerce(raw: Any) -> Any:
        return raw

    def or_default(self, default: Any = None) -> Any:
        if self.valid:
            return self.value
        return self.ZERO if default is None else default

    def __bool__(self) -> bool:
        return self.valid


@dataclass(frozen=True)
class NullInt64(_Nullable):
    value: int = 0
    ZERO: ClassVar[int] = 0

    @staticmethod
    def _coerce(raw: Any) -> int:
        if isinstance(raw, bool):
            raise TypeError("bool is not an integer metric")
        if isinstance(raw, (int,)):
            return raw
        if isinstance(raw, (float, Decimal)):
            return int(raw)
        return int(Decimal(str(raw).strip()))


@dataclass(frozen=True)
class NullFloat64(_Nullable):
    """Also used for numeric/decimal columns."""

    value: float = 0.0
    ZERO: ClassVar[float] = 0.0

    @staticmethod
    def _coerce(raw: Any) -> float:
        if isinstance(raw, bool):
            raise TypeError("bool is not a numeric metric")
        if isinstance(raw, str):
            try:
                raw = Decimal(raw.strip())
            except InvalidOperation:
                raise ValueError(f"not a number: {raw!r}")
        result = float(raw)
        if not math.isfinite(result):
            raise ValueError(f"non-finite metric: {result}")
        return result


@dataclass(frozen=True)
class NullText(_Nullable):
    value: str = ""
    ZERO: ClassVar[str] = ""

    @staticmethod
    def _coerce(raw: Any) -> str:
        return str(raw)


@dataclass(frozen=True)
class NullBool(_Nullable):
    value: bool = False
    ZERO: ClassVar[bool] = False

    @staticmethod
    def _coerce(raw: Any) -> bool:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str) and raw.strip().lower() in ("t", "true", "f", "false"):
            return raw.strip().lower() in ("t", "true")
        raise ValueError(f"not a boolean: {raw!r}")


@dataclass(frozen=True)
class NullTimestamp(_Nullable):
    value: Optional[datetime] = None
    ZERO: ClassVar[Optional[datetime]] = None

    @staticmethod
    def _coerce(raw: Any) -> datetime:
        if isinstance(raw, datetime):
            return raw
        return datetime.fromisoformat(str(raw))
