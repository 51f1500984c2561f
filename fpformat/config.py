"""
浮点格式描述 (format descriptor)

描述任意位布局的二进制浮点格式：符号 / 指数 / 尾数三个字段的位宽与位置
(偏移从 LSB 起算)，可选的填充位，以及是否带隐含前导位。

构造时即校验，不合法的布局直接抛出 FormatError，不会产生半合法的描述符。
"""

import enum
from dataclasses import dataclass, field
from typing import Optional

from .widths import IntType, WidthPolicy, DEFAULT_WIDTH_POLICY, uint_t


class FormatError(ValueError):
    """格式描述符配置错误"""


def _field_mask(bits: int, offset: int) -> int:
    return ((1 << bits) - 1) << offset


@dataclass(frozen=True)
class FormatDescriptor:
    """浮点格式位布局"""
    sign_bits: int          # 符号位宽 (通常为 1)
    sign_offset: int        # 符号字段位置
    exp_bits: int           # 指数位宽
    exp_offset: int         # 指数字段位置
    mant_bits: int          # 尾数位宽 (存储部分, 不含隐含位)
    mant_offset: int        # 尾数字段位置
    total_bits: int         # 存储总位宽
    has_implicit_bit: bool  # 是否带隐含前导位
    exponent_bias: Optional[int] = None     # None 表示自动: 2^(exp_bits-1) - 1
    width_policy: WidthPolicy = DEFAULT_WIDTH_POLICY
    name: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        fields = (
            ("sign", self.sign_bits, self.sign_offset),
            ("exponent", self.exp_bits, self.exp_offset),
            ("mantissa", self.mant_bits, self.mant_offset),
        )

        for label, bits, offset in fields:
            if bits <= 0:
                raise FormatError(f"{label} field must have at least 1 bit, got {bits}")
            if offset < 0:
                raise FormatError(f"{label} offset must be non-negative, got {offset}")

        if self.total_bits < self.sign_bits + self.exp_bits + self.mant_bits:
            raise FormatError(
                f"total_bits={self.total_bits} is smaller than the sum of field widths "
                f"({self.sign_bits}+{self.exp_bits}+{self.mant_bits})")

        for label, bits, offset in fields:
            if offset + bits > self.total_bits:
                raise FormatError(
                    f"{label} field [{offset}, {offset + bits}) extends beyond "
                    f"total_bits={self.total_bits}")

        seen = 0
        for label, bits, offset in fields:
            m = _field_mask(bits, offset)
            if seen & m:
                raise FormatError(f"{label} field overlaps another field")
            seen |= m

        # 字段位宽须能由位宽策略承载
        try:
            object.__setattr__(self, "width_policy", WidthPolicy(self.width_policy))
            for bits in (self.total_bits, self.exp_bits, self.mant_bits):
                uint_t(bits, self.width_policy)
        except ValueError as exc:
            raise FormatError(str(exc)) from exc

    # ── 派生常量 ──

    @property
    def exp_bias(self) -> int:
        """指数偏置"""
        if self.exponent_bias is None:
            return (1 << (self.exp_bits - 1)) - 1
        return self.exponent_bias

    @property
    def storage_type(self) -> IntType:
        return uint_t(self.total_bits, self.width_policy)

    @property
    def exponent_type(self) -> IntType:
        return uint_t(self.exp_bits, self.width_policy)

    @property
    def mantissa_storage_type(self) -> IntType:
        return uint_t(self.mant_bits, self.width_policy)

    @property
    def sign_mask(self) -> int:
        return _field_mask(self.sign_bits, self.sign_offset)

    @property
    def exp_mask(self) -> int:
        return _field_mask(self.exp_bits, self.exp_offset)

    @property
    def mant_mask(self) -> int:
        return _field_mask(self.mant_bits, self.mant_offset)

    @property
    def significant_mask(self) -> int:
        """符号 / 指数 / 尾数所占的全部位"""
        return self.sign_mask | self.exp_mask | self.mant_mask

    @property
    def padding_mask(self) -> int:
        return ((1 << self.total_bits) - 1) & ~self.significant_mask

    @property
    def max_biased_exponent(self) -> int:
        return (1 << self.exp_bits) - 1

    def is_standard_layout(self) -> bool:
        """
        是否为 IEEE 754 兼容的标准布局：
        [S:1 (MSB)][E][M (LSB)]，字段连续且无填充。仅供调用方判断，不影响编解码。
        """
        return (self.sign_bits == 1
                and self.mant_offset == 0
                and self.exp_offset == self.mant_offset + self.mant_bits
                and self.sign_offset == self.exp_offset + self.exp_bits
                and self.total_bits == self.sign_bits + self.exp_bits + self.mant_bits)

    def __str__(self) -> str:
        if self.name:
            return self.name
        return (f"fp{self.total_bits}(s{self.sign_bits}@{self.sign_offset}, "
                f"e{self.exp_bits}@{self.exp_offset}, m{self.mant_bits}@{self.mant_offset})")


def ieee_format(exp_bits: int, mant_bits: int,
                width_policy: WidthPolicy = DEFAULT_WIDTH_POLICY,
                name: Optional[str] = None) -> FormatDescriptor:
    """
    标准 IEEE 布局: 符号在最高位，指数紧随其后，尾数在最低位，
    带隐含位，自动偏置。
    """
    total = 1 + exp_bits + mant_bits
    if name is None:
        name = f"fp{total}_e{exp_bits}m{mant_bits}"
    return FormatDescriptor(
        sign_bits=1,
        sign_offset=exp_bits + mant_bits,
        exp_bits=exp_bits,
        exp_offset=mant_bits,
        mant_bits=mant_bits,
        mant_offset=0,
        total_bits=total,
        has_implicit_bit=True,
        width_policy=width_policy,
        name=name,
    )


# ─────────────────────────────────────────────
# 预定义格式
# 命名: fp{总位宽}_e{指数位}m{尾数位}
# ─────────────────────────────────────────────

FP8_E5M2 = ieee_format(5, 2)
FP8_E4M3 = ieee_format(4, 3)
FP16_E5M10 = ieee_format(5, 10)     # IEEE 754 binary16
FP32_E8M23 = ieee_format(8, 23)     # IEEE 754 binary32
FP64_E11M52 = ieee_format(11, 52)   # IEEE 754 binary64

REFERENCE_FORMATS = (FP8_E5M2, FP8_E4M3, FP16_E5M10, FP32_E8M23, FP64_E11M52)


# ─────────────────────────────────────────────
# 非规格化数策略
#
# 目前 unpack / pack 的行为只对应 FULL_SUPPORT；
# 其余策略仅作为配置项保留，尚未接入编解码。
# ─────────────────────────────────────────────

class DenormalPolicy(enum.Enum):
    FULL_SUPPORT = "FullSupport"
    FLUSH_TO_ZERO = "FlushToZero"
    FLUSH_INPUTS_TO_ZERO = "FlushInputsToZero"
    FLUSH_ON_ZERO = "FlushOnZero"
    NONE = "None"

    @property
    def supports_denormals(self) -> bool:
        return self is DenormalPolicy.FULL_SUPPORT

    @property
    def description(self) -> str:
        return _DENORMAL_DESCRIPTIONS[self]


_DENORMAL_DESCRIPTIONS = {
    DenormalPolicy.FULL_SUPPORT: "gradual underflow: exp=0, mant!=0 decoded as denormal",
    DenormalPolicy.FLUSH_TO_ZERO: "denormal results flushed to signed zero (FTZ)",
    DenormalPolicy.FLUSH_INPUTS_TO_ZERO: "denormal inputs treated as zero (DAZ)",
    DenormalPolicy.FLUSH_ON_ZERO: "denormal inputs and results both flushed to zero",
    DenormalPolicy.NONE: "format has no denormals: exp=0 always means zero",
}

DEFAULT_DENORMAL_POLICY = DenormalPolicy.FULL_SUPPORT
