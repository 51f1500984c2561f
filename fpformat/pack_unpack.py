"""
解包 / 打包

  unpack: 存储位 → UnpackedFloat  (全函数, 任何位模式都合法, 填充位被忽略)
  pack:   UnpackedFloat → 存储位  (填充位恒为 0, 输出总是规范编码)

尾数舍入溢出的处理 (就近舍入把全 1 尾数加 1):
  原始行为是直接丢弃进位，得到错误的数值。这里改为显式重归一化：
    - 指数 +1
    - 带隐含位的格式尾数清零 (1.11..1 + ulp = 10.00..0；
      非规格化数 0.11..1 + ulp 恰好成为最小规格化数)
    - 无隐含位的格式尾数置为 2^(mant_bits-1)
    - 指数已到字段最大值时饱和为最大指数 + 全 1 尾数
  pack_with_status 通过 PackStatus 标志把上述情况报告给调用方。
"""

import enum
from typing import Tuple

from .config import FormatDescriptor
from .rounding import RoundingPolicy, DEFAULT_ROUNDING
from .unpacked import UnpackedFloat


class PackStatus(enum.IntFlag):
    NONE = 0
    MANTISSA_CARRY = 1 << 0         # 舍入使尾数溢出, 已进位到指数
    EXPONENT_SATURATED = 1 << 1     # 进位后指数超出字段, 结果已饱和


def unpack(bits, fmt: FormatDescriptor,
           rounding: RoundingPolicy = DEFAULT_ROUNDING) -> UnpackedFloat:
    """
    从存储位中提取各字段：
      1. 符号: 非零即为负
      2. 指数: 保持原始偏置值
      3. 尾数: 左移 guard_bits 位, 低位保护位留 0
      4. 隐含位: 指数非零 (规格化) 置 1，指数为零 (非规格化) 置 0
    """
    bits = int(bits) & ((1 << fmt.total_bits) - 1)

    sign = (bits >> fmt.sign_offset) & ((1 << fmt.sign_bits) - 1)
    exponent = (bits >> fmt.exp_offset) & ((1 << fmt.exp_bits) - 1)
    mant_stored = (bits >> fmt.mant_offset) & ((1 << fmt.mant_bits) - 1)

    mantissa = mant_stored << rounding.guard_bits

    # 指数为 0 即隐含位为 0，与 bias 无关
    if fmt.has_implicit_bit and exponent != 0:
        mantissa |= 1 << (fmt.mant_bits + rounding.guard_bits)

    return UnpackedFloat(fmt, rounding, sign=sign != 0,
                         exponent=exponent, mantissa=mantissa)


def pack_with_status(unpacked: UnpackedFloat) -> Tuple[int, PackStatus]:
    """
    打包并返回状态标志。
    指数不做范围检查 (调用方保证已在合法偏置范围内)，只截取 exp_bits 位。
    字段可以是 exponent_type / mantissa_type 给出的 numpy 定宽整数,
    拼接前统一转为 Python int, 避免在窄类型中移位。
    """
    fmt = unpacked.fmt
    status = PackStatus.NONE

    exponent = int(unpacked.exponent) & fmt.max_biased_exponent

    mantissa, carry = unpacked.rounding.round_with_carry(
        fmt, int(unpacked.mantissa), bool(unpacked.sign))
    mantissa = int(mantissa)

    if carry:
        status |= PackStatus.MANTISSA_CARRY
        if not fmt.has_implicit_bit and exponent == 0:
            # 无隐含位时指数 0 与指数 1 同尺度
            exponent = 1
        if exponent >= fmt.max_biased_exponent:
            status |= PackStatus.EXPONENT_SATURATED
            exponent = fmt.max_biased_exponent
            mantissa = (1 << fmt.mant_bits) - 1
        else:
            exponent += 1
            mantissa = 0 if fmt.has_implicit_bit else 1 << (fmt.mant_bits - 1)

    result = (1 if unpacked.sign else 0) << fmt.sign_offset
    result |= exponent << fmt.exp_offset
    result |= mantissa << fmt.mant_offset
    return result, status


def pack(unpacked: UnpackedFloat) -> int:
    """打包为存储位, 未覆盖的填充位恒为 0"""
    bits, _ = pack_with_status(unpacked)
    return bits
