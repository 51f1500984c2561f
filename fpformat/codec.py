"""
顶层编解码器：把格式、舍入策略、非规格化数策略绑定在一起

  存储位 → unpack → UnpackedFloat → (将来的运算) → pack → 存储位

配置在构造时确定且不可变，可在多个线程间共享。
"""

from dataclasses import dataclass

from .widths import MAX_BITS
from .config import FormatDescriptor, FormatError, DenormalPolicy, DEFAULT_DENORMAL_POLICY
from .rounding import RoundingPolicy, DEFAULT_ROUNDING
from .unpacked import UnpackedFloat
from .pack_unpack import unpack, pack_with_status, PackStatus


@dataclass(frozen=True)
class FloatCodec:
    fmt: FormatDescriptor
    rounding: RoundingPolicy = DEFAULT_ROUNDING
    # 仅作配置保留: 编解码行为始终等同 FULL_SUPPORT
    denormals: DenormalPolicy = DEFAULT_DENORMAL_POLICY

    def __post_init__(self):
        # 解包尾数 = 存储尾数 + 隐含位 + 保护位, 同样受位宽上限约束
        if self.mantissa_bits > MAX_BITS:
            raise FormatError(
                f"{self.fmt} with {self.rounding.name} needs a {self.mantissa_bits}-bit "
                f"unpacked mantissa (max {MAX_BITS})")

    @property
    def mantissa_bits(self) -> int:
        """解包尾数宽度 = mant_bits + 隐含位 + 保护位"""
        return (self.fmt.mant_bits
                + (1 if self.fmt.has_implicit_bit else 0)
                + self.rounding.guard_bits)

    def unpack(self, bits, verbose: bool = False) -> UnpackedFloat:
        u = unpack(bits, self.fmt, self.rounding)

        if verbose:
            width = (self.fmt.total_bits + 3) // 4
            print(f"[解包] {self.fmt}: 0x{int(bits):0{width}x}")
            print(f"  sign={int(u.sign)}, exponent={u.exponent} "
                  f"(true={u.true_exponent}{', 非规格化' if u.is_denormal else ''})")
            print(f"  mantissa=0b{u.mantissa:0{self.mantissa_bits}b} "
                  f"(隐含位={u.implicit_bit}, 存储={u.stored_bits}, "
                  f"保护位={self.rounding.guard_bits})")

        return u

    def pack_with_status(self, unpacked: UnpackedFloat):
        if unpacked.fmt != self.fmt or unpacked.rounding != self.rounding:
            raise ValueError(
                f"unpacked value belongs to ({unpacked.fmt}, {unpacked.rounding.name}), "
                f"codec is ({self.fmt}, {self.rounding.name})")
        return pack_with_status(unpacked)

    def pack(self, unpacked: UnpackedFloat, verbose: bool = False) -> int:
        bits, status = self.pack_with_status(unpacked)

        if verbose:
            width = (self.fmt.total_bits + 3) // 4
            print(f"[打包] {self.fmt} ({self.rounding.name}): "
                  f"guard=0b{unpacked.guard_value:0{max(self.rounding.guard_bits, 1)}b} "
                  f"→ 0x{bits:0{width}x}")
            if status & PackStatus.MANTISSA_CARRY:
                print("  尾数舍入溢出, 已进位到指数")
            if status & PackStatus.EXPONENT_SATURATED:
                print("  指数溢出, 结果饱和")

        return bits

    def roundtrip(self, bits) -> int:
        """pack(unpack(bits))"""
        return self.pack(self.unpack(bits))
