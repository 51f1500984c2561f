"""
参考实现 (测试 oracle)

  to_native_float   存储位 → numpy 原生浮点 (float16/32/64)
  to_native_array   向量化版本, 总位宽 <= 64
  to_mpf            存储位 → mpmath 精确值, 任意位宽
  from_native_float 原生浮点 → 存储位 (按指定舍入策略)

原生浮点运算由硬件厂商保证正确，这里把它作为编解码的对照。
不处理 NaN / Inf：全 1 指数按普通数值解码。
"""

import math

import numpy as np
from mpmath import mp, mpf, ldexp as mp_ldexp, nstr

from .config import FormatDescriptor
from .rounding import RoundingPolicy, TOWARD_ZERO
from .unpacked import UnpackedFloat
from .pack_unpack import unpack, pack


def _significand(u: UnpackedFloat) -> int:
    """含隐含位的整数尾数, 值 = significand * 2^(true_exp - mant_bits)"""
    return u.stored_bits | (u.implicit_bit << u.fmt.mant_bits)


def to_native_float(bits, fmt: FormatDescriptor, dtype=np.float32):
    """解码为 numpy 浮点标量"""
    u = unpack(bits, fmt, TOWARD_ZERO)
    value = float(np.ldexp(np.float64(_significand(u)), u.true_exponent - fmt.mant_bits))
    if u.sign:
        value = -value
    return dtype(value)


def to_native_array(bits_array, fmt: FormatDescriptor, dtype=np.float64) -> np.ndarray:
    """向量化解码 (总位宽 <= 64)"""
    if fmt.total_bits > 64:
        raise ValueError(f"to_native_array supports at most 64-bit formats, got {fmt.total_bits}")

    b = np.asarray(bits_array).astype(np.uint64)

    sign = (b >> np.uint64(fmt.sign_offset)) & np.uint64((1 << fmt.sign_bits) - 1)
    exp = ((b >> np.uint64(fmt.exp_offset))
           & np.uint64(fmt.max_biased_exponent)).astype(np.int64)
    mant = ((b >> np.uint64(fmt.mant_offset))
            & np.uint64((1 << fmt.mant_bits) - 1)).astype(np.float64)

    if fmt.has_implicit_bit:
        mant = np.where(exp != 0, mant + 2.0 ** fmt.mant_bits, mant)

    true_exp = np.where(exp == 0, 1 - fmt.exp_bias, exp - fmt.exp_bias)
    values = np.ldexp(mant, (true_exp - fmt.mant_bits).astype(np.int32))
    values = np.where(sign != 0, -values, values)
    return values.astype(dtype)


def to_mpf(bits, fmt: FormatDescriptor) -> mpf:
    """精确解码为 mpmath 数值 (不受原生浮点范围/精度限制)"""
    u = unpack(bits, fmt, TOWARD_ZERO)
    with mp.workprec(max(53, fmt.mant_bits + 2)):
        value = mp_ldexp(mpf(_significand(u)), u.true_exponent - fmt.mant_bits)
        return -value if u.sign else value


def from_native_float(value, fmt: FormatDescriptor, rounding: RoundingPolicy) -> int:
    """
    原生浮点 → 存储位。

    frexp 精确拆分后保留 mant_bits + guard_bits 位, 其余位并入 sticky 位,
    由 pack 按舍入策略收缩。
      - 有符号零保持符号
      - 指数上溢: 饱和到最大编码 (最大指数, 全 1 尾数), 与 pack 的饱和一致
      - 低于最小规格化数: 渐进下溢为非规格化数
    仅支持带隐含位的格式。
    """
    if not fmt.has_implicit_bit:
        raise ValueError("from_native_float supports implicit-bit formats only")

    value = float(value)
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"cannot encode non-finite value {value}")

    sign = math.copysign(1.0, value) < 0
    sign_field = (1 << fmt.sign_offset) if sign else 0
    if value == 0.0:
        return sign_field

    M = fmt.mant_bits
    G = rounding.guard_bits

    # a = frac * 2^e, frac ∈ [1, 2)
    a = abs(value)
    frac, e = math.frexp(a)
    frac *= 2.0
    e -= 1

    max_true_exp = fmt.max_biased_exponent - fmt.exp_bias
    min_true_exp = 1 - fmt.exp_bias

    if e > max_true_exp:
        return (sign_field
                | (fmt.max_biased_exponent << fmt.exp_offset)
                | fmt.mant_mask)

    if e >= min_true_exp:
        biased = e + fmt.exp_bias
        scaled = math.ldexp(frac, M + G)        # 隐含位落在第 M+G 位
    else:
        biased = 0
        scaled = math.ldexp(a, M + G - min_true_exp)

    mantissa = int(scaled)
    if G > 0 and scaled != mantissa:
        mantissa |= 1                           # sticky

    u = UnpackedFloat(fmt, rounding, sign=sign, exponent=biased, mantissa=mantissa)
    return pack(u)


def is_zero(bits, fmt: FormatDescriptor) -> bool:
    """正零或负零"""
    u = unpack(bits, fmt)
    return u.exponent == 0 and u.mantissa == 0


def significant_bits(bits, fmt: FormatDescriptor) -> int:
    """去掉填充位"""
    return int(bits) & fmt.significant_mask


def format_summary(fmt: FormatDescriptor) -> dict:
    """格式的关键数值 (mpmath 精确值)"""
    max_bits = (fmt.max_biased_exponent << fmt.exp_offset) | fmt.mant_mask
    min_normal_bits = 1 << fmt.exp_offset
    min_denormal_bits = 1 << fmt.mant_offset

    return {
        "name": str(fmt),
        "total_bits": fmt.total_bits,
        "bias": fmt.exp_bias,
        "standard_layout": fmt.is_standard_layout(),
        "max_value": to_mpf(max_bits, fmt),
        "min_normal": to_mpf(min_normal_bits, fmt),
        "min_denormal": to_mpf(min_denormal_bits, fmt),
        "epsilon": mp_ldexp(mpf(1), -fmt.mant_bits),
    }


def format_value(value, digits: int = 8) -> str:
    return nstr(value, digits)
