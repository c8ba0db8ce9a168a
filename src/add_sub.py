from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from aligner import Aligner
from float32 import EXT_WIDTH, Extended, Unpacked

# significands sit at bits 25..48 of the extended accumulator
ALIGN_OFFSET = 25


class AddSub(wiring.Component):
    """Aligned add/subtract of two nonzero finite operands

    Sub flips the sign of b first. The smaller magnitude is aligned to the
    larger and the result takes the larger magnitude's sign.
    """

    a: In(Unpacked)
    b: In(Unpacked)
    subtract: In(1)
    result: Out(Extended)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.aligner = aligner = Aligner(width=EXT_WIDTH)

        b_sign = Signal()
        m.d.comb += b_sign.eq(self.b.sign ^ self.subtract)

        # ---- Magnitude Compare ----
        a_larger = Signal()
        m.d.comb += a_larger.eq(
            (self.a.exponent > self.b.exponent)
            | ((self.a.exponent == self.b.exponent) & (self.a.significand >= self.b.significand))
        )

        big_sign = Signal()
        big_exp = Signal(signed(10))
        big_sig = Signal(24)
        small_exp = Signal(signed(10))
        small_sig = Signal(24)

        with m.If(a_larger):
            m.d.comb += [
                big_sign.eq(self.a.sign),
                big_exp.eq(self.a.exponent),
                big_sig.eq(self.a.significand),
                small_exp.eq(self.b.exponent),
                small_sig.eq(self.b.significand),
            ]
        with m.Else():
            m.d.comb += [
                big_sign.eq(b_sign),
                big_exp.eq(self.b.exponent),
                big_sig.eq(self.b.significand),
                small_exp.eq(self.a.exponent),
                small_sig.eq(self.a.significand),
            ]

        # ---- Alignment ----
        exp_difference = Signal(signed(11))
        m.d.comb += exp_difference.eq(big_exp - small_exp)

        shift_amt = Signal(aligner.shift_bits)
        with m.If(exp_difference > EXT_WIDTH):
            m.d.comb += shift_amt.eq(EXT_WIDTH)
        with m.Else():
            m.d.comb += shift_amt.eq(exp_difference[0 : aligner.shift_bits])

        big_ext = Signal(EXT_WIDTH)
        small_ext = Signal(EXT_WIDTH)

        m.d.comb += big_ext.eq(big_sig << ALIGN_OFFSET)
        m.d.comb += aligner.value_in.eq(small_sig << ALIGN_OFFSET)
        m.d.comb += aligner.shift_amount.eq(shift_amt)
        m.d.comb += small_ext.eq(aligner.value_out)

        # ---- Add / Subtract ----
        signs_match = Signal()
        m.d.comb += signs_match.eq(self.a.sign == b_sign)

        with m.If(signs_match):
            m.d.comb += self.result.significand.eq(big_ext + small_ext)
        with m.Else():
            m.d.comb += self.result.significand.eq(big_ext - small_ext)

        m.d.comb += self.result.sign.eq(big_sign)
        m.d.comb += self.result.exponent.eq(big_exp)

        return m
