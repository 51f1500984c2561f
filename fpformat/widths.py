"""
数值位宽选择 (numeric-width provider)

给定所需位数和选择策略，返回承载该字段的具体整数表示：
  - EXACT:   恰好 N 位 (任意位宽 Python int，按 N 位回绕)
  - LEAST:   至少 N 位的最小标准宽度 (numpy uint8/16/32/64)
  - FASTEST: 至少 N 位的"最快"标准宽度 (按 glibc x86-64 的 uint_fastN_t)

超过 64 位时 LEAST / FASTEST 回退到 EXACT。
"""

import enum
from dataclasses import dataclass
from typing import Optional

import numpy as np


MAX_BITS = 128

_STANDARD_WIDTHS = (8, 16, 32, 64)

_UNSIGNED_DTYPES = {8: np.uint8, 16: np.uint16, 32: np.uint32, 64: np.uint64}
_SIGNED_DTYPES = {8: np.int8, 16: np.int16, 32: np.int32, 64: np.int64}

# glibc x86-64: uint_fast8_t 为 8 位，其余 fast 类型均为 64 位
_FAST_WIDTHS = {8: 8, 16: 64, 32: 64, 64: 64}


class WidthPolicy(enum.Enum):
    """字段整数表示的选择策略"""
    EXACT = "exact"
    LEAST = "least"
    FASTEST = "fastest"


DEFAULT_WIDTH_POLICY = WidthPolicy.EXACT


@dataclass(frozen=True)
class IntType:
    """一个具体的整数表示"""
    bits: int                   # 请求的位数
    width: int                  # 实际位宽
    signed: bool
    dtype: Optional[type]       # numpy 整数类型; None 表示任意位宽 Python int

    @property
    def is_native(self) -> bool:
        return self.dtype is not None

    @property
    def name(self) -> str:
        if self.dtype is not None:
            return np.dtype(self.dtype).name
        return f"{'int' if self.signed else 'uint'}{self.width}"

    @property
    def mask(self) -> int:
        return (1 << self.width) - 1

    @property
    def min_value(self) -> int:
        return -(1 << (self.width - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        if self.signed:
            return (1 << (self.width - 1)) - 1
        return self.mask

    def cast(self, value):
        """
        按 C 语义转换 (模 2^width 回绕)。
        原生类型返回 numpy 标量，否则返回 Python int。
        """
        v = int(value) & self.mask
        if self.signed and v > self.max_value:
            v -= 1 << self.width
        if self.dtype is not None:
            return self.dtype(v)
        return v


def _check_bits(bits: int, signed: bool, policy: WidthPolicy):
    low = 2 if (signed and policy is WidthPolicy.EXACT) else 1
    if not (low <= bits <= MAX_BITS):
        kind = "signed" if signed else "unsigned"
        raise ValueError(
            f"{kind} bit width must be between {low} and {MAX_BITS}, got {bits}")


def _select(bits: int, signed: bool, policy: WidthPolicy) -> IntType:
    policy = WidthPolicy(policy)
    _check_bits(bits, signed, policy)

    if policy is WidthPolicy.EXACT or bits > _STANDARD_WIDTHS[-1]:
        return IntType(bits=bits, width=bits, signed=signed, dtype=None)

    least = next(w for w in _STANDARD_WIDTHS if bits <= w)
    width = least if policy is WidthPolicy.LEAST else _FAST_WIDTHS[least]
    dtypes = _SIGNED_DTYPES if signed else _UNSIGNED_DTYPES
    return IntType(bits=bits, width=width, signed=signed, dtype=dtypes[width])


def uint_t(bits: int, policy: WidthPolicy = DEFAULT_WIDTH_POLICY) -> IntType:
    """无符号表示: 至少 bits 位"""
    return _select(bits, False, policy)


def int_t(bits: int, policy: WidthPolicy = DEFAULT_WIDTH_POLICY) -> IntType:
    """有符号表示: 至少 bits 位 (1 位有符号在标准策略下取 8 位类型)"""
    return _select(bits, True, policy)
