"""
舍入策略

每个策略声明需要携带的保护位 (guard bits) 数量，并负责把宽尾数
[隐含位][存储尾数][保护位] 收缩回存储宽度 mant_bits。

  TowardZero          guard_bits = 0  纯截断
  ToNearestTiesToEven guard_bits = 3  G/R/S 三位, 就近舍入, 平局取偶

round_with_carry 额外报告进位：就近舍入把全 1 尾数加 1 时，结果超出
mant_bits，由 pack 负责把进位传到指数 (见 pack_unpack.pack)。
"""

from typing import Tuple


class RoundingPolicy:
    """舍入策略基类 (无状态)"""
    name = ""
    guard_bits = 0

    def round_with_carry(self, fmt, wide_mantissa: int, is_negative: bool) -> Tuple[int, bool]:
        """
        返回 (存储尾数, 进位)。
        存储尾数恰好 mant_bits 位；进位为 True 表示舍入溢出了尾数字段。
        is_negative 供定向舍入模式使用，现有两种策略均不使用。
        """
        raise NotImplementedError

    def round_mantissa(self, fmt, wide_mantissa: int, is_negative: bool) -> int:
        stored, _ = self.round_with_carry(fmt, wide_mantissa, is_negative)
        return stored

    # 策略无状态，同类即相等
    def __eq__(self, other):
        return type(self) is type(other)

    def __hash__(self):
        return hash(type(self))

    def __repr__(self):
        return f"{type(self).__name__}()"


class TowardZero(RoundingPolicy):
    """向零舍入：直接截断，从不进位"""
    name = "toward_zero"
    guard_bits = 0

    def round_with_carry(self, fmt, wide_mantissa, is_negative):
        # 无保护位，只需去掉位于第 mant_bits 位的隐含位
        return int(wide_mantissa) & ((1 << fmt.mant_bits) - 1), False


class ToNearestTiesToEven(RoundingPolicy):
    """
    就近舍入，平局取偶。

    GRS = 宽尾数最低 3 位:
      GRS <  0b100  舍去
      GRS == 0b100  平局: 候选值为奇数则 +1
      GRS >  0b100  进位
    """
    name = "to_nearest_even"
    guard_bits = 3

    def round_with_carry(self, fmt, wide_mantissa, is_negative):
        wide = int(wide_mantissa)
        mask = (1 << fmt.mant_bits) - 1

        candidate = (wide >> self.guard_bits) & mask
        grs = wide & ((1 << self.guard_bits) - 1)

        half = 1 << (self.guard_bits - 1)
        if grs > half:
            round_up = True
        elif grs == half:
            round_up = bool(candidate & 1)
        else:
            round_up = False

        if not round_up:
            return candidate, False

        rounded = candidate + 1
        return rounded & mask, rounded > mask


TOWARD_ZERO = TowardZero()
TO_NEAREST_EVEN = ToNearestTiesToEven()

DEFAULT_ROUNDING = TOWARD_ZERO

ROUNDING_POLICIES = {p.name: p for p in (TOWARD_ZERO, TO_NEAREST_EVEN)}


def rounding_policy(name: str) -> RoundingPolicy:
    """按名称查找舍入策略"""
    try:
        return ROUNDING_POLICIES[name]
    except KeyError:
        raise ValueError(f"unknown rounding policy '{name}' "
                         f"(expected one of {list(ROUNDING_POLICIES)})") from None
