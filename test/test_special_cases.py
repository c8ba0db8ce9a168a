import sys

from amaranth.sim import Simulator

import special_cases
from float32 import FP32, QUIET_NAN, Opcode

POS_INF = 0x7F800000
NEG_INF = 0xFF800000
POS_ZERO = 0x00000000
NEG_ZERO = 0x80000000
ONE = 0x3F800000
NEG_TWO = 0xC0000000
DENORM = 0x00000001
NAN = 0x7FC12345


async def resolve(ctx, dut, op, a, b):
    ctx.set(dut.a, FP32(a).fields())
    ctx.set(dut.b, FP32(b).fields())
    ctx.set(dut.a_category, FP32(a).category())
    ctx.set(dut.b_category, FP32(b).category())
    ctx.set(dut.op, op)

    hit = ctx.get(dut.hit)
    result = ctx.get(dut.result)
    bits = FP32.pack(result["sign"], result["exponent"], result["mantissa"]).to_bits()
    return hit, bits, ctx.get(dut.invalid)


def test_special_cases_table(request):
    dut = special_cases.SpecialCases()

    test_cases = [
        # (op, a, b, expected_result, expected_invalid)
        # NaN in, canonical NaN out
        (Opcode.ADD, NAN, ONE, QUIET_NAN, 1),
        (Opcode.SUB, ONE, NAN, QUIET_NAN, 1),
        (Opcode.MUL, NAN, POS_ZERO, QUIET_NAN, 1),
        (Opcode.DIV, POS_INF, 0xFFC00001, QUIET_NAN, 1),
        # Infinity arithmetic
        (Opcode.ADD, POS_INF, NEG_INF, QUIET_NAN, 1),
        (Opcode.SUB, POS_INF, POS_INF, QUIET_NAN, 1),
        (Opcode.ADD, POS_INF, POS_INF, POS_INF, 0),
        (Opcode.SUB, POS_INF, NEG_INF, POS_INF, 0),
        (Opcode.ADD, ONE, NEG_INF, NEG_INF, 0),
        (Opcode.SUB, ONE, NEG_INF, POS_INF, 0),
        (Opcode.SUB, NEG_INF, ONE, NEG_INF, 0),
        (Opcode.MUL, POS_INF, POS_ZERO, QUIET_NAN, 1),
        (Opcode.MUL, NEG_ZERO, NEG_INF, QUIET_NAN, 1),
        (Opcode.MUL, NEG_TWO, POS_INF, NEG_INF, 0),
        (Opcode.DIV, POS_INF, NEG_INF, QUIET_NAN, 1),
        (Opcode.DIV, NEG_INF, NEG_TWO, POS_INF, 0),
        (Opcode.DIV, ONE, NEG_INF, NEG_ZERO, 0),
        # Zero operands
        (Opcode.DIV, POS_ZERO, NEG_ZERO, QUIET_NAN, 1),
        (Opcode.DIV, ONE, POS_ZERO, POS_INF, 1),
        (Opcode.DIV, NEG_TWO, POS_ZERO, NEG_INF, 1),
        (Opcode.DIV, POS_INF, NEG_ZERO, NEG_INF, 1),
        (Opcode.DIV, NEG_ZERO, ONE, NEG_ZERO, 0),
        (Opcode.MUL, NEG_TWO, POS_ZERO, NEG_ZERO, 0),
        (Opcode.ADD, ONE, POS_ZERO, ONE, 0),
        (Opcode.ADD, NEG_ZERO, NEG_TWO, NEG_TWO, 0),
        (Opcode.SUB, POS_ZERO, ONE, 0xBF800000, 0),
        (Opcode.ADD, DENORM, POS_ZERO, DENORM, 0),
        (Opcode.ADD, POS_ZERO, NEG_ZERO, POS_ZERO, 0),
        (Opcode.ADD, NEG_ZERO, NEG_ZERO, NEG_ZERO, 0),
        (Opcode.SUB, NEG_ZERO, POS_ZERO, NEG_ZERO, 0),
        (Opcode.SUB, POS_ZERO, POS_ZERO, POS_ZERO, 0),
    ]

    async def bench(ctx):
        for op, a, b, expected, expected_invalid in test_cases:
            hit, result, invalid = await resolve(ctx, dut, op, a, b)

            desc = f"{op.name}(0x{a:08X}, 0x{b:08X})"
            assert hit, f"{desc}: not resolved"
            assert result == expected, f"{desc}: got 0x{result:08X}, expected 0x{expected:08X}"
            assert invalid == expected_invalid, f"{desc}: invalid={invalid}"

    sim = Simulator(dut)
    sim.add_testbench(bench)

    if request.config.getoption("--vcd"):
        vcd_name = f"SpecialCases_{sys._getframe().f_code.co_name}.vcd"
        with sim.write_vcd(vcd_name):
            sim.run()
    else:
        sim.run()


def test_special_cases_numeric_operands_pass(request):
    dut = special_cases.SpecialCases()

    test_cases = [
        (Opcode.ADD, ONE, NEG_TWO),
        (Opcode.SUB, DENORM, ONE),
        (Opcode.MUL, DENORM, DENORM),
        (Opcode.DIV, NEG_TWO, DENORM),
    ]

    async def bench(ctx):
        for op, a, b in test_cases:
            hit, _, invalid = await resolve(ctx, dut, op, a, b)
            assert not hit, f"{op.name}(0x{a:08X}, 0x{b:08X}) taken as special"
            assert not invalid

    sim = Simulator(dut)
    sim.add_testbench(bench)

    if request.config.getoption("--vcd"):
        vcd_name = f"SpecialCases_{sys._getframe().f_code.co_name}.vcd"
        with sim.write_vcd(vcd_name):
            sim.run()
    else:
        sim.run()


def test_special_cases_divide_by_zero_policy(request):
    dut = special_cases.SpecialCases(div_by_zero_invalid=False)

    async def bench(ctx):
        hit, result, invalid = await resolve(ctx, dut, Opcode.DIV, NEG_TWO, POS_ZERO)
        assert hit
        assert result == NEG_INF
        assert not invalid

        # 0/0 stays invalid regardless of policy
        hit, result, invalid = await resolve(ctx, dut, Opcode.DIV, POS_ZERO, POS_ZERO)
        assert result == QUIET_NAN
        assert invalid

    sim = Simulator(dut)
    sim.add_testbench(bench)

    if request.config.getoption("--vcd"):
        vcd_name = f"SpecialCases_{sys._getframe().f_code.co_name}.vcd"
        with sim.write_vcd(vcd_name):
            sim.run()
    else:
        sim.run()
