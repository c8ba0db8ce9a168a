from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from float32 import BIAS, Extended, Unpacked


class Multiplier(wiring.Component):
    """Significand product of two nonzero finite operands

    The 48-bit product of the 24-bit significands has its leading one at
    bit 46 or 47; it is placed two bits up in the extended accumulator and
    left for the normalizer.
    """

    a: In(Unpacked)
    b: In(Unpacked)
    result: Out(Extended)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        # ---- Result Sign ----
        m.d.comb += self.result.sign.eq(self.a.sign ^ self.b.sign)

        # ---- Exponent Addition ----
        exp_sum = Signal(signed(12))
        m.d.comb += exp_sum.eq(self.a.exponent + self.b.exponent - BIAS)
        m.d.comb += self.result.exponent.eq(exp_sum)

        # ---- Significand Multiply ----
        product = Signal(48)
        m.d.comb += product.eq(self.a.significand * self.b.significand)
        m.d.comb += self.result.significand.eq(product << 2)

        return m
