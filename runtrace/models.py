from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FieldCategory(str, Enum):
    NONE = "None"
    SESSION = "Session"
    APP = "App"
    USER_SYSTEM = "UserSystem"
    USER_CONFIG = "UserConfig"


class ValueKind(str, Enum):
    BOOLEAN = "boolean"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    FINALIZING = "finalizing"
    TERMINATED = "terminated"


class CPUVendor(str, Enum):
    INTEL = "INTEL"
    AMD = "AMD"
    OTHER = "OTHER"


class CpuCore(int, Enum):
    INTERPRETER = 0
    JIT = 1


# Signed or unsigned values are accepted for each width.
INT_RANGES = {
    ValueKind.INT32: (-(2 ** 31), 2 ** 32 - 1),
    ValueKind.INT64: (-(2 ** 63), 2 ** 64 - 1),
}


def fits_int32(value: int) -> bool:
    low, high = INT_RANGES[ValueKind.INT32]
    return low <= value <= high


def infer_kind(value) -> ValueKind:
    """Pick the default ValueKind for a Python scalar."""
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INT64
    if isinstance(value, float):
        return ValueKind.DOUBLE
    if isinstance(value, str):
        return ValueKind.STRING
    raise TypeError(f"unsupported field value type: {type(value).__name__}")


@dataclass(frozen=True)
class Field:
    """One named, typed, categorized datum collected during a session.

    kind is inferred from value when omitted. Integers default to INT64
    and floats to DOUBLE; pass kind explicitly for INT32 or FLOAT.
    """
    category: FieldCategory
    name: str
    value: bool | int | float | str
    kind: ValueKind | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.category, FieldCategory):
            raise TypeError(f"category must be a FieldCategory, got {self.category!r}")
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("field name must be a non-empty string")

        kind = infer_kind(self.value) if self.kind is None else ValueKind(self.kind)
        value = self.value
        if kind is ValueKind.BOOLEAN:
            if not isinstance(value, bool):
                raise TypeError(f"{self.name}: boolean field needs a bool")
        elif kind in INT_RANGES:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{self.name}: {kind.value} field needs an int")
            low, high = INT_RANGES[kind]
            if not low <= value <= high:
                raise ValueError(f"{self.name}: {value} out of range for {kind.value}")
        elif kind in (ValueKind.FLOAT, ValueKind.DOUBLE):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(f"{self.name}: {kind.value} field needs a number")
            value = float(value)
        elif not isinstance(value, str):
            raise TypeError(f"{self.name}: string field needs a str")

        # frozen: bypass __setattr__ for normalization
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "value", value)


@dataclass(frozen=True)
class CPUCaps:
    """Host CPU description as reported by the capability probe."""
    cpu_string: str = ""
    brand_string: str = ""
    vendor: CPUVendor = CPUVendor.OTHER
    aes: bool = False
    avx: bool = False
    avx2: bool = False
    bmi1: bool = False
    bmi2: bool = False
    fma: bool = False
    fma4: bool = False
    sse: bool = False
    sse2: bool = False
    sse3: bool = False
    ssse3: bool = False
    sse4_1: bool = False
    sse4_2: bool = False


@dataclass(frozen=True)
class BuildInfo:
    scm_desc: str = ""
    branch: str = ""
    revision: str = ""
    build_date: str = ""
    build_name: str = ""

    @property
    def is_dirty(self) -> bool:
        return "dirty" in self.scm_desc
