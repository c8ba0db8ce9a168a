from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from float32 import FRAC_WIDTH, Float32


class ResultPacker(wiring.Component):
    sign: In(1)
    exponent: In(8)
    mantissa: In(FRAC_WIDTH)
    result: Out(Float32)
    bits: Out(32)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.d.comb += self.result.sign.eq(self.sign)
        m.d.comb += self.result.exponent.eq(self.exponent)
        m.d.comb += self.result.mantissa.eq(self.mantissa)

        m.d.comb += self.bits.eq(Cat(self.mantissa, self.exponent, self.sign))

        return m
