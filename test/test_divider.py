import sys

from amaranth.sim import Simulator

import divider
from float32 import FP32
from fp32_model import FP32Model, classify


def unpacked(bits):
    _, u = classify(bits)
    return {"sign": u.sign, "exponent": u.exponent, "significand": u.significand}


async def divide(ctx, dut, a_bits, b_bits):
    ctx.set(dut.a, unpacked(a_bits))
    ctx.set(dut.b, unpacked(b_bits))
    ctx.set(dut.start, 1)
    await ctx.tick()
    ctx.set(dut.start, 0)

    cycles = 1
    while not ctx.get(dut.done):
        assert ctx.get(dut.busy)
        await ctx.tick()
        cycles += 1

    result = ctx.get(dut.result)
    return (result["sign"], result["exponent"], result["significand"]), cycles


def test_divider_exact_quotients(request):
    dut = divider.Divider()

    test_cases = [
        # (a, b, sign, exponent, significand)
        (10.0, 2.0, 0, 129, 0xA00000 << 25),
        (1.0, 1.0, 0, 127, 0x800000 << 25),
        # dividend significand smaller than divisor: pre-aligned
        (1.0, -1.5, 1, 126, 0xAAAAAA << 25 | 0b101 << 22),
        (-7.5, -2.5, 0, 128, 0xC00000 << 25),
    ]

    async def bench(ctx):
        for a, b, sign, exponent, significand in test_cases:
            got, cycles = await divide(ctx, dut, FP32.from_float(a).to_bits(), FP32.from_float(b).to_bits())

            assert cycles == divider.Divider.ITERATIONS + 1, f"{a} / {b}: {cycles} cycles"
            assert got == (sign, exponent, significand), (
                f"{a} / {b}: got ({got[0]}, {got[1]}, 0x{got[2]:013X}), "
                f"expected ({sign}, {exponent}, 0x{significand:013X})"
            )

    sim = Simulator(dut)
    sim.add_clock(1e-6)
    sim.add_testbench(bench)

    if request.config.getoption("--vcd"):
        vcd_name = f"Divider_{sys._getframe().f_code.co_name}.vcd"
        with sim.write_vcd(vcd_name):
            sim.run()
    else:
        sim.run()


def test_divider_matches_model(request):
    dut = divider.Divider()
    model = FP32Model()

    operands = [0x3F800000, 0x40490FDB, 0x3DCCCCCD, 0xC2F6E979, 0x00000003, 0x7F7FFFFF, 0x3F7FFFFF]

    async def bench(ctx):
        for a in operands:
            for b in operands:
                got, _ = await divide(ctx, dut, a, b)
                expected = model.divide(classify(a)[1], classify(b)[1])
                assert got == expected, f"0x{a:08X} / 0x{b:08X}: {got} != {expected}"

    sim = Simulator(dut)
    sim.add_clock(1e-6)
    sim.add_testbench(bench)

    if request.config.getoption("--vcd"):
        vcd_name = f"Divider_{sys._getframe().f_code.co_name}.vcd"
        with sim.write_vcd(vcd_name):
            sim.run()
    else:
        sim.run()
