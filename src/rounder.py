from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from float32 import EXP_MAX, EXT_LEAD, FRAC_WIDTH, Extended


class Rounder(wiring.Component):
    """Round-to-nearest, ties-to-even on a normalized extended value

    Keeps the 23 fraction bits below the leading one. Guard is the next bit,
    round the one after, sticky the OR of everything below. A carry out of
    the fraction bumps the exponent; reaching 255 raises `overflow` and
    yields infinity.
    """

    value_in: In(Extended)
    sign: Out(1)
    exponent: Out(8)
    mantissa: Out(FRAC_WIDTH)
    overflow: Out(1)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        sig = self.value_in.significand
        low = EXT_LEAD - FRAC_WIDTH

        mantissa_in = Signal(FRAC_WIDTH)
        guard = Signal()
        round_bit = Signal()
        sticky = Signal()

        m.d.comb += mantissa_in.eq(sig[low:EXT_LEAD])
        m.d.comb += guard.eq(sig[low - 1])
        m.d.comb += round_bit.eq(sig[low - 2])
        m.d.comb += sticky.eq(sig[0 : low - 2].any())

        lsb = mantissa_in[0]

        round_up = Signal()
        with m.If(guard):
            with m.If(round_bit | sticky):
                m.d.comb += round_up.eq(1)
            with m.Else():
                m.d.comb += round_up.eq(lsb)
        with m.Else():
            m.d.comb += round_up.eq(0)

        incremented = Signal(FRAC_WIDTH + 1)
        m.d.comb += incremented.eq(mantissa_in + round_up)

        carry = incremented[FRAC_WIDTH]

        exp_rounded = Signal(signed(12))
        m.d.comb += exp_rounded.eq(self.value_in.exponent + carry)

        m.d.comb += self.sign.eq(self.value_in.sign)

        # carry leaves the fraction all zero: 1.11..1 + ulp = 10.00..0
        with m.If(carry & (exp_rounded >= EXP_MAX)):
            m.d.comb += self.overflow.eq(1)
            m.d.comb += self.exponent.eq(EXP_MAX)
            m.d.comb += self.mantissa.eq(0)
        with m.Else():
            m.d.comb += self.exponent.eq(exp_rounded[0:8])
            m.d.comb += self.mantissa.eq(incremented[0:FRAC_WIDTH])

        return m
