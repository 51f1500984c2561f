"""
格式描述符与位宽选择测试
"""

import sys
import os

import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fpformat.widths import WidthPolicy, uint_t, int_t
from fpformat.config import (FormatDescriptor, FormatError, ieee_format, DenormalPolicy,
                             DEFAULT_DENORMAL_POLICY, REFERENCE_FORMATS,
                             FP8_E5M2, FP8_E4M3, FP16_E5M10, FP32_E8M23, FP64_E11M52)
from fpformat.codec import FloatCodec


def make(**overrides):
    """在标准 1-4-3 布局上覆盖部分参数"""
    params = dict(sign_bits=1, sign_offset=7, exp_bits=4, exp_offset=3,
                  mant_bits=3, mant_offset=0, total_bits=8, has_implicit_bit=True)
    params.update(overrides)
    return FormatDescriptor(**params)


# ═══════════════════════════════════════════════
# 测试 1: 位宽选择
# ═══════════════════════════════════════════════

def test_width_selection():
    print("=" * 60)
    print("测试 1: 位宽选择")
    print("=" * 60)

    # (位数, 策略, 有符号, 期望宽度, 期望 dtype)
    cases = [
        (1, WidthPolicy.LEAST, False, 8, np.uint8),
        (5, WidthPolicy.LEAST, False, 8, np.uint8),
        (8, WidthPolicy.LEAST, False, 8, np.uint8),
        (9, WidthPolicy.LEAST, False, 16, np.uint16),
        (17, WidthPolicy.LEAST, False, 32, np.uint32),
        (33, WidthPolicy.LEAST, False, 64, np.uint64),
        (64, WidthPolicy.LEAST, False, 64, np.uint64),
        (65, WidthPolicy.LEAST, False, 65, None),
        (1, WidthPolicy.LEAST, True, 8, np.int8),
        (9, WidthPolicy.LEAST, True, 16, np.int16),
        (1, WidthPolicy.FASTEST, False, 8, np.uint8),
        (9, WidthPolicy.FASTEST, False, 64, np.uint64),
        (24, WidthPolicy.FASTEST, False, 64, np.uint64),
        (7, WidthPolicy.FASTEST, True, 8, np.int8),
        (32, WidthPolicy.FASTEST, True, 64, np.int64),
        (100, WidthPolicy.FASTEST, False, 100, None),
        (5, WidthPolicy.EXACT, False, 5, None),
        (26, WidthPolicy.EXACT, False, 26, None),
        (2, WidthPolicy.EXACT, True, 2, None),
        (128, WidthPolicy.EXACT, False, 128, None),
    ]

    passed = 0
    total = len(cases)
    for bits, policy, signed, width, dtype in cases:
        t = int_t(bits, policy) if signed else uint_t(bits, policy)
        if t.width == width and t.dtype is dtype and t.signed == signed:
            passed += 1
        else:
            print(f"  [FAIL] {bits} {policy} signed={signed}: {t}")

    # 非法位宽
    for bits, signed, policy in ((0, False, WidthPolicy.EXACT),
                                 (129, False, WidthPolicy.LEAST),
                                 (1, True, WidthPolicy.EXACT)):
        total += 1
        try:
            (int_t if signed else uint_t)(bits, policy)
            print(f"  [FAIL] {bits} 位未报错")
        except ValueError:
            passed += 1

    print(f"  结果: {passed}/{total} 通过")
    print()
    assert passed == total


def test_width_cast():
    """C 语义回绕"""
    print("=" * 60)
    print("测试 2: 整数表示转换")
    print("=" * 60)

    checks = [
        uint_t(5).cast(0x3F) == 0x1F,
        uint_t(8, WidthPolicy.LEAST).cast(0x1FF) == np.uint8(0xFF),
        type(uint_t(8, WidthPolicy.LEAST).cast(1)) is np.uint8,
        int_t(4).cast(0xF) == -1,
        int_t(8, WidthPolicy.LEAST).cast(200) == np.int8(-56),
        uint_t(26).max_value == (1 << 26) - 1,
        int_t(4).min_value == -8,
        uint_t(16, WidthPolicy.LEAST).name == "uint16",
        uint_t(12).name == "uint12",
        uint_t(12).is_native is False,
    ]

    passed = sum(1 for c in checks if c)
    total = len(checks)
    for i, c in enumerate(checks):
        if not c:
            print(f"  [FAIL] 检查 {i}")

    print(f"  结果: {passed}/{total} 通过")
    print()
    assert passed == total


# ═══════════════════════════════════════════════
# 测试 3: 描述符校验
# ═══════════════════════════════════════════════

def test_descriptor_validation():
    """不合法布局在构造时拒绝"""
    print("=" * 60)
    print("测试 3: 描述符校验")
    print("=" * 60)

    bad = [
        dict(sign_bits=0),
        dict(exp_bits=0),
        dict(mant_bits=-1),
        dict(total_bits=7),                          # 小于字段位宽之和
        dict(sign_offset=8),                         # 超出总位宽
        dict(exp_bits=5, total_bits=9),              # 指数覆盖符号位
        dict(mant_offset=6, total_bits=12),          # 与指数重叠
        dict(mant_offset=-1),
        dict(exp_bits=130, exp_offset=3, total_bits=140, sign_offset=139),
    ]

    passed = 0
    total = 0
    for overrides in bad:
        total += 1
        try:
            fmt = make(**overrides)
            print(f"  [FAIL] 未拒绝 {overrides}: {fmt}")
        except FormatError:
            passed += 1

    # FormatError 是 ValueError
    total += 1
    if issubclass(FormatError, ValueError):
        passed += 1

    # 合法: 有填充 / 非标准顺序
    good = [
        dict(total_bits=12),
        dict(sign_offset=0, exp_offset=1, mant_offset=5),
        dict(has_implicit_bit=False, exponent_bias=3),
    ]
    for overrides in good:
        total += 1
        try:
            make(**overrides)
            passed += 1
        except FormatError as exc:
            print(f"  [FAIL] 误拒 {overrides}: {exc}")

    print(f"  结果: {passed}/{total} 通过")
    print()
    assert passed == total


# ═══════════════════════════════════════════════
# 测试 4: 派生常量
# ═══════════════════════════════════════════════

def test_derived_constants():
    print("=" * 60)
    print("测试 4: 派生常量与预定义格式")
    print("=" * 60)

    expected = {
        # 名称: (总位宽, 偏置, sign_offset, exp_offset)
        "fp8_e5m2": (8, 15, 7, 2),
        "fp8_e4m3": (8, 7, 7, 3),
        "fp16_e5m10": (16, 15, 15, 10),
        "fp32_e8m23": (32, 127, 31, 23),
        "fp64_e11m52": (64, 1023, 63, 52),
    }

    passed = 0
    total = 0
    for fmt in REFERENCE_FORMATS:
        total += 1
        got = (fmt.total_bits, fmt.exp_bias, fmt.sign_offset, fmt.exp_offset)
        if (str(fmt) in expected and got == expected[str(fmt)]
                and fmt.is_standard_layout() and fmt.has_implicit_bit
                and fmt.mant_offset == 0):
            passed += 1
        else:
            print(f"  [FAIL] {fmt}: {got}")

    checks = [
        make(exponent_bias=3).exp_bias == 3,
        make(total_bits=12).is_standard_layout() is False,
        make(sign_offset=0, exp_offset=1, mant_offset=5).is_standard_layout() is False,
        FP8_E4M3.sign_mask == 0x80 and FP8_E4M3.exp_mask == 0x78 and FP8_E4M3.mant_mask == 0x07,
        FP8_E4M3.padding_mask == 0,
        FP8_E4M3.max_biased_exponent == 15,
        FP32_E8M23.storage_type.width == 32 and FP32_E8M23.storage_type.dtype is None,
        ieee_format(8, 23, WidthPolicy.LEAST).storage_type.dtype is np.uint32,
        ieee_format(8, 23, WidthPolicy.FASTEST).mantissa_storage_type.dtype is np.uint64,
        FP16_E5M10.exponent_type.width == 5,
        ieee_format(5, 2) == FP8_E5M2,
        FP8_E5M2 != FP8_E4M3,
        hash(ieee_format(11, 52, name="binary64")) == hash(FP64_E11M52),
        make(width_policy="least").width_policy is WidthPolicy.LEAST,
    ]
    for i, c in enumerate(checks):
        total += 1
        if c:
            passed += 1
        else:
            print(f"  [FAIL] 检查 {i}")

    print(f"  结果: {passed}/{total} 通过")
    print()
    assert passed == total


# ═══════════════════════════════════════════════
# 测试 5: 非规格化数策略
# ═══════════════════════════════════════════════

def test_denormal_policies():
    """仅 FULL_SUPPORT 支持非规格化数; 其余策略不改变编解码"""
    print("=" * 60)
    print("测试 5: 非规格化数策略")
    print("=" * 60)

    passed = 0
    total = 0

    total += 1
    supporting = [p for p in DenormalPolicy if p.supports_denormals]
    if supporting == [DenormalPolicy.FULL_SUPPORT] and DEFAULT_DENORMAL_POLICY is DenormalPolicy.FULL_SUPPORT:
        passed += 1

    total += 1
    if all(p.description for p in DenormalPolicy):
        passed += 1

    # 非规格化输入 0x07 在任意策略下解包结果相同
    total += 1
    results = {FloatCodec(FP8_E4M3, denormals=p).unpack(0x07).mantissa for p in DenormalPolicy}
    if results == {7}:
        passed += 1
    else:
        print(f"  [FAIL] {results}")

    print(f"  结果: {passed}/{total} 通过")
    print()
    assert passed == total


def run(test) -> bool:
    try:
        test()
        return True
    except AssertionError:
        return False


def main():
    results = {
        "位宽选择": run(test_width_selection),
        "整数转换": run(test_width_cast),
        "描述符校验": run(test_descriptor_validation),
        "派生常量": run(test_derived_constants),
        "非规格化数策略": run(test_denormal_policies),
    }

    print("=" * 60)
    print("测试汇总")
    print("=" * 60)
    all_pass = True
    for name, ok in results.items():
        print(f"  {name:20s} : {'PASS ✓' if ok else 'FAIL ✗'}")
        all_pass = all_pass and ok

    print()
    if all_pass:
        print("所有测试通过!")
    else:
        print("有测试失败，请检查上述输出。")
        sys.exit(1)


if __name__ == "__main__":
    main()
