from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from float32 import BIAS, Extended, Unpacked


class Divider(wiring.Component):
    """Bit-serial significand divider, one quotient bit per clock

    `start` latches the operands. The dividend is pre-aligned so the first
    quotient bit is always 1, then ITERATIONS compare/subtract/shift steps
    run. `done` is held once the last step has been taken until the next
    `start`; guard, round and sticky are derived from the final remainder.

    - Latency: ITERATIONS + 1 clocks from `start` to `done`
    - Quotient: 24 iterated bits + guard + round + sticky, placed with the
      leading one at bit 48 of `result.significand`
    """

    ITERATIONS = 24

    a: In(Unpacked)
    b: In(Unpacked)
    start: In(1)
    busy: Out(1)
    done: Out(1)
    result: Out(Extended)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        # remainder stays below 2 * divisor <= 2^25
        remainder = Signal(26)
        divisor = Signal(24)
        quotient = Signal(self.ITERATIONS)
        iters_left = Signal(range(self.ITERATIONS + 1))
        running = Signal()

        sign = Signal()
        exponent = Signal(signed(12))

        # ---- Load ----
        pre_shift = Signal()
        m.d.comb += pre_shift.eq(self.a.significand < self.b.significand)

        with m.If(self.start):
            m.d.sync += [
                running.eq(1),
                iters_left.eq(self.ITERATIONS),
                quotient.eq(0),
                divisor.eq(self.b.significand),
                remainder.eq(self.a.significand << pre_shift),
                sign.eq(self.a.sign ^ self.b.sign),
                exponent.eq(self.a.exponent - self.b.exponent + BIAS - pre_shift),
            ]

        # ---- Iterate ----
        with m.Elif(running & (iters_left != 0)):
            take = remainder >= divisor
            m.d.sync += quotient.eq(Cat(take, quotient[0 : self.ITERATIONS - 1]))
            with m.If(take):
                m.d.sync += remainder.eq((remainder - divisor) << 1)
            with m.Else():
                m.d.sync += remainder.eq(remainder << 1)
            m.d.sync += iters_left.eq(iters_left - 1)

        m.d.comb += self.busy.eq(running & (iters_left != 0))
        m.d.comb += self.done.eq(running & (iters_left == 0))

        # ---- Guard / Round / Sticky ----
        guard = Signal()
        round_bit = Signal()
        sticky = Signal()
        rem_1 = Signal(26)
        rem_2 = Signal(26)

        m.d.comb += guard.eq(remainder >= divisor)
        m.d.comb += rem_1.eq(Mux(guard, remainder - divisor, remainder) << 1)
        m.d.comb += round_bit.eq(rem_1 >= divisor)
        m.d.comb += rem_2.eq(Mux(round_bit, rem_1 - divisor, rem_1))
        m.d.comb += sticky.eq(rem_2 != 0)

        m.d.comb += self.result.sign.eq(sign)
        m.d.comb += self.result.exponent.eq(exponent)
        m.d.comb += self.result.significand.eq(Cat(sticky, round_bit, guard, quotient) << 22)

        return m
