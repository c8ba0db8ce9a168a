from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from float32 import EXP_MAX, EXT_LEAD, EXT_WIDTH, Extended
from lzc import LeadingZeroCounter


class Normalizer(wiring.Component):
    """Restore the leading one to bit 48 and range-check the exponent

    - Carry at bit 49: shift right by one, sticky kept in bit 0
    - Otherwise: shift left by the leading zero count
    - Zero significand: +0 (exact cancellation)
    - Exponent >= 255: `overflow`, forced to signed infinity
    - Exponent <= 0: `underflow`, flushed to signed zero

    Forced results leave bit 48 clear so the rounder passes them through.
    """

    value_in: In(Extended)
    value_out: Out(Extended)
    overflow: Out(1)
    underflow: Out(1)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.lzc = lzc = LeadingZeroCounter(width=EXT_WIDTH)

        sig = self.value_in.significand
        m.d.comb += lzc.value.eq(sig)

        shifted = Signal(EXT_WIDTH)
        exp_adjusted = Signal(signed(12))

        # ---- Shift ----
        with m.If(sig[EXT_WIDTH - 1]):
            m.d.comb += shifted.eq(Cat(sig[0] | sig[1], sig[2:EXT_WIDTH]))
            m.d.comb += exp_adjusted.eq(self.value_in.exponent + 1)
        with m.Else():
            shift_amount = Signal(range(EXT_WIDTH + 1))
            m.d.comb += shift_amount.eq(lzc.count - (EXT_WIDTH - 1 - EXT_LEAD))
            m.d.comb += shifted.eq(sig << shift_amount)
            m.d.comb += exp_adjusted.eq(self.value_in.exponent - shift_amount)

        # ---- Range Check ----
        m.d.comb += self.value_out.sign.eq(self.value_in.sign)

        with m.If(lzc.zero):
            m.d.comb += self.value_out.sign.eq(0)
            m.d.comb += self.value_out.exponent.eq(0)
            m.d.comb += self.value_out.significand.eq(0)
        with m.Elif(exp_adjusted >= EXP_MAX):
            m.d.comb += self.overflow.eq(1)
            m.d.comb += self.value_out.exponent.eq(EXP_MAX)
            m.d.comb += self.value_out.significand.eq(0)
        with m.Elif(exp_adjusted <= 0):
            m.d.comb += self.underflow.eq(1)
            m.d.comb += self.value_out.exponent.eq(0)
            m.d.comb += self.value_out.significand.eq(0)
        with m.Else():
            m.d.comb += self.value_out.exponent.eq(exp_adjusted)
            m.d.comb += self.value_out.significand.eq(shifted)

        return m
