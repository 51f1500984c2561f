"""
解包后的浮点表示 (计算用中间格式)

尾数布局 (从高到低):
  [隐含位 (若有)][mant_bits 位存储尾数][guard_bits 位保护位]

解包后保护位恒为 0，只有将来的运算会写入保护位。
尾数宽度由 (格式, 舍入策略) 决定，不能单独配置。
"""

from .widths import IntType, uint_t
from .rounding import RoundingPolicy


class UnpackedFloat:
    """解包结果"""
    __slots__ = [
        'fmt',        # FormatDescriptor
        'rounding',   # RoundingPolicy
        'sign',       # True = 负
        'exponent',   # 原始偏置指数 (未减 bias), exp_bits 位
        'mantissa',   # 宽尾数, mantissa_bits 位
    ]

    def __init__(self, fmt, rounding: RoundingPolicy,
                 sign: bool = False, exponent: int = 0, mantissa: int = 0):
        self.fmt = fmt
        self.rounding = rounding
        self.sign = bool(sign)
        self.exponent = int(exponent)
        self.mantissa = int(mantissa)

    # ── 布局常量 ──

    @property
    def mantissa_bits(self) -> int:
        return (self.fmt.mant_bits
                + (1 if self.fmt.has_implicit_bit else 0)
                + self.rounding.guard_bits)

    @property
    def mantissa_type(self) -> IntType:
        return uint_t(self.mantissa_bits, self.fmt.width_policy)

    def implicit_bit_position(self) -> int:
        """隐含位位置; 无隐含位时返回 -1"""
        if not self.fmt.has_implicit_bit:
            return -1
        return self.fmt.mant_bits + self.rounding.guard_bits

    def implicit_bit_mask(self) -> int:
        if not self.fmt.has_implicit_bit:
            return 0
        return 1 << self.implicit_bit_position()

    def stored_bits_mask(self) -> int:
        return ((1 << self.fmt.mant_bits) - 1) << self.rounding.guard_bits

    def guard_bits_mask(self) -> int:
        return (1 << self.rounding.guard_bits) - 1

    # ── 字段视图 ──

    @property
    def implicit_bit(self) -> int:
        return 1 if self.mantissa & self.implicit_bit_mask() else 0

    @property
    def stored_bits(self) -> int:
        """去掉隐含位和保护位后的存储尾数"""
        return (self.mantissa & self.stored_bits_mask()) >> self.rounding.guard_bits

    @property
    def guard_value(self) -> int:
        return self.mantissa & self.guard_bits_mask()

    @property
    def is_denormal(self) -> bool:
        return self.exponent == 0

    @property
    def true_exponent(self) -> int:
        """无偏指数; 非规格化数取 1 - bias"""
        if self.exponent == 0:
            return 1 - self.fmt.exp_bias
        return self.exponent - self.fmt.exp_bias

    def __eq__(self, other):
        if not isinstance(other, UnpackedFloat):
            return NotImplemented
        return (self.fmt == other.fmt and self.rounding == other.rounding
                and self.sign == other.sign and self.exponent == other.exponent
                and self.mantissa == other.mantissa)

    __hash__ = None

    def __repr__(self):
        return (f"UnpackedFloat(fmt={self.fmt}, rounding={self.rounding.name}, "
                f"sign={int(self.sign)}, exponent={self.exponent}, "
                f"mantissa=0x{self.mantissa:x})")
