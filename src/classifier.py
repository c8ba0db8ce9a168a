from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from float32 import EXP_MAX, Category, Float32, Unpacked
from lzc import LeadingZeroCounter


class Classifier(wiring.Component):
    """Decode a packed binary32 into its category and an unpacked operand

    - Normal: implicit one materialized at bit 23
    - Denormal: mantissa shifted up to bit 23, exponent 1 - shift
    - Zero: exponent and significand both 0
    - Infinity/NaN: exponent 255, significand is the raw mantissa
    """

    operand: In(Float32)
    unpacked: Out(Unpacked)
    category: Out(Category)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.lzc = lzc = LeadingZeroCounter(width=23)

        exp = self.operand.exponent
        mant = self.operand.mantissa

        exp_zero = exp == 0
        exp_ones = exp == EXP_MAX
        mant_zero = mant == 0

        m.d.comb += self.unpacked.sign.eq(self.operand.sign)
        m.d.comb += lzc.value.eq(mant)

        with m.If(exp_zero & mant_zero):
            m.d.comb += self.category.eq(Category.ZERO)
            m.d.comb += self.unpacked.exponent.eq(0)
            m.d.comb += self.unpacked.significand.eq(0)
        with m.Elif(exp_zero):
            m.d.comb += self.category.eq(Category.DENORMAL)

            shift = Signal(5)
            m.d.comb += shift.eq(lzc.count + 1)
            m.d.comb += self.unpacked.exponent.eq(1 - shift)
            m.d.comb += self.unpacked.significand.eq((mant << shift)[0:24])
        with m.Elif(exp_ones & mant_zero):
            m.d.comb += self.category.eq(Category.INFINITY)
            m.d.comb += self.unpacked.exponent.eq(EXP_MAX)
            m.d.comb += self.unpacked.significand.eq(0)
        with m.Elif(exp_ones):
            m.d.comb += self.category.eq(Category.NAN)
            m.d.comb += self.unpacked.exponent.eq(EXP_MAX)
            m.d.comb += self.unpacked.significand.eq(mant)
        with m.Else():
            m.d.comb += self.category.eq(Category.NORMAL)
            m.d.comb += self.unpacked.exponent.eq(exp)
            m.d.comb += self.unpacked.significand.eq(Cat(mant, Const(1, 1)))

        return m
