from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation


_QUANTITY_PATTERN = re.compile(
    r"^(?P<val>[+-]?(?:\d+(?:\.\d*)?|\.\d+))(?P<suffix>Ki|Mi|Gi|Ti|Pi|Ei|[numkMGTPE]|[eE][+-]?\d+)?$"
)

_BINARY_SUFFIXES = {
    "Ki": 1,
    "Mi": 2,
    "Gi": 3,
    "Ti": 4,
    "Pi": 5,
    "Ei": 6,
}

_DECIMAL_SUFFIXES = {
    "n": -9,
    "u": -6,
    "m": -3,
    "": 0,
    "k": 3,
    "M": 6,
    "G": 9,
    "T": 12,
    "P": 15,
    "E": 18,
}


@dataclass(frozen=True, slots=True)
class Quantity:
    """A parsed Kubernetes resource quantity.

    ``value`` is the exact amount in base units (bytes for storage) and
    ``binary`` and ``exponent`` record whether the input used a power-of-two
    suffix or exponent notation, which decides the form used by :meth:`canonical`.
    """

    value: Decimal
    binary: bool = False
    exponent: bool = False

    def canonical(self) -> str:
        """Render the quantity the way the Kubernetes API server would.

        - 1024Mi => 1Gi
        - 1.5Gi => 1536Mi
        - 1500M => 1500M
        - 0.5 => 500m
        - 1.5e6 => 1500e3
        """
        if self.value == 0:
            return "0"
        if self.binary and self.value == self.value.to_integral_value():
            for suffix, power in sorted(_BINARY_SUFFIXES.items(), key=lambda kv: -kv[1]):
                scaled = self.value / (Decimal(1024) ** power)
                if scaled == scaled.to_integral_value():
                    return f"{int(scaled)}{suffix}"
            return str(int(self.value))
        for suffix, exp in sorted(_DECIMAL_SUFFIXES.items(), key=lambda kv: -kv[1]):
            scaled = self.value.scaleb(-exp)
            if scaled == scaled.to_integral_value():
                if self.exponent:
                    suffix = f"e{exp}" if exp else ""
                return f"{int(scaled)}{suffix}"
        # Anything finer than a nano unit is rounded up, as the API server does.
        nanos = self.value.scaleb(9).to_integral_value(rounding="ROUND_CEILING")
        return f"{int(nanos)}e-9" if self.exponent else f"{int(nanos)}n"

    def __str__(self) -> str:
        return self.canonical()


def parse_quantity(value: str | int | float) -> Quantity:
    """Parse a Kubernetes quantity string.

    Supports binary suffixes (Ki, Mi, Gi, Ti, Pi, Ei), decimal SI suffixes
    (n, u, m, k, M, G, T, P, E) and exponent notation (1e3).
    """
    s = str(value).strip()
    m = _QUANTITY_PATTERN.match(s)
    if not m:
        raise ValueError(f"Unknown quantity format: {value!r}")
    try:
        number = Decimal(m.group("val"))
    except InvalidOperation as e:  # pragma: no cover - redundant due to regex
        raise ValueError(f"Unknown quantity format: {value!r}") from e

    suffix = m.group("suffix") or ""
    if suffix in _BINARY_SUFFIXES:
        return Quantity(number * (Decimal(1024) ** _BINARY_SUFFIXES[suffix]), binary=True)
    if suffix in _DECIMAL_SUFFIXES:
        return Quantity(number.scaleb(_DECIMAL_SUFFIXES[suffix]))
    # exponent form, e.g. 1e3 or 5E-2
    return Quantity(number.scaleb(int(suffix[1:])), exponent=True)
