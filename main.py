from fpformat.config import REFERENCE_FORMATS, FP8_E5M2, FP8_E4M3, FormatDescriptor
from fpformat.rounding import TO_NEAREST_EVEN, TOWARD_ZERO
from fpformat.codec import FloatCodec
from fpformat.oracle import format_summary, format_value, to_native_float


# 12 位带填充格式: [pad:3][S:1][E:4][M:3][pad:1]
PADDED_E4M3 = FormatDescriptor(
    sign_bits=1, sign_offset=8,
    exp_bits=4, exp_offset=4,
    mant_bits=3, mant_offset=1,
    total_bits=12,
    has_implicit_bit=True,
    name="fp12_pad_e4m3",
)


def print_summary_table(formats):
    """打印各格式的关键数值"""
    print(f"{'格式':16s} {'bias':>6s} {'标准布局':>8s} {'最大值':>16s} "
          f"{'最小规格化数':>16s} {'最小非规格化数':>16s} {'epsilon':>12s}")
    for fmt in formats:
        s = format_summary(fmt)
        print(f"{s['name']:16s} {s['bias']:>6d} {str(s['standard_layout']):>8s} "
              f"{format_value(s['max_value']):>16s} {format_value(s['min_normal']):>16s} "
              f"{format_value(s['min_denormal']):>16s} {format_value(s['epsilon'], 4):>12s}")


# 示例：解包 / 舍入 / 打包
if __name__ == "__main__":
    print_summary_table(REFERENCE_FORMATS + (PADDED_E4M3,))
    print()

    # fp8_e5m2: 0xB3 = 1 01100 11 → sign=1, exp=12, mant=3
    codec = FloatCodec(FP8_E5M2)
    u = codec.unpack(0xB3, verbose=True)
    print(f"  值 = {to_native_float(0xB3, FP8_E5M2)}")
    codec.pack(u, verbose=True)
    print()

    # fp8_e4m3 就近舍入: 存储尾数 0b011 + GRS=0b100 (平局, 奇数) → 0b100
    codec = FloatCodec(FP8_E4M3, TO_NEAREST_EVEN)
    u = codec.unpack(0x33)
    u.mantissa |= 0b100
    bits = codec.pack(u, verbose=True)
    print(f"  {to_native_float(0x33, FP8_E4M3)} + 半个 ulp → {to_native_float(bits, FP8_E4M3)}")

    # 全 1 尾数向上舍入: 进位到指数
    u = codec.unpack(0x37)
    u.mantissa |= 0b101
    bits = codec.pack(u, verbose=True)
    print(f"  {to_native_float(0x37, FP8_E4M3)} → {to_native_float(bits, FP8_E4M3)}")
    print()

    # 带填充格式: 填充位输入被忽略, 输出恒为 0
    codec = FloatCodec(PADDED_E4M3, TOWARD_ZERO)
    for bits in (0x16B, 0xF6B, 0x16A):
        print(f"  0x{bits:03x} → 0x{codec.roundtrip(bits):03x}")
