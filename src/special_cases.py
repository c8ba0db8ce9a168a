from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from float32 import EXP_MAX, QUIET_NAN, Category, Float32, Opcode


class SpecialCases(wiring.Component):
    """Resolve NaN, infinity and zero operands without the numeric units

    `hit` is asserted when `result`/`invalid` are final. NaN payloads are
    not propagated; every NaN result is the canonical quiet NaN.

    div_by_zero_invalid: raise `invalid` for x / 0 with nonzero x
    """

    def __init__(self, div_by_zero_invalid: bool = True):
        self.div_by_zero_invalid = div_by_zero_invalid

        super().__init__(
            {
                "a": In(Float32),
                "b": In(Float32),
                "a_category": In(Category),
                "b_category": In(Category),
                "op": In(Opcode),
                "hit": Out(1),
                "result": Out(Float32),
                "invalid": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        a_nan = self.a_category == Category.NAN
        b_nan = self.b_category == Category.NAN
        a_inf = self.a_category == Category.INFINITY
        b_inf = self.b_category == Category.INFINITY
        a_zero = self.a_category == Category.ZERO
        b_zero = self.b_category == Category.ZERO

        def quiet_nan():
            return [
                self.hit.eq(1),
                self.result.as_value().eq(QUIET_NAN),
                self.invalid.eq(1),
            ]

        def infinity(sign):
            return [
                self.hit.eq(1),
                self.result.sign.eq(sign),
                self.result.exponent.eq(EXP_MAX),
                self.result.mantissa.eq(0),
            ]

        def zero(sign):
            return [
                self.hit.eq(1),
                self.result.sign.eq(sign),
                self.result.exponent.eq(0),
                self.result.mantissa.eq(0),
            ]

        def passthrough(operand, sign):
            return [
                self.hit.eq(1),
                self.result.sign.eq(sign),
                self.result.exponent.eq(operand.exponent),
                self.result.mantissa.eq(operand.mantissa),
            ]

        # Sub is an add with the second operand negated
        b_sign_eff = Signal()
        m.d.comb += b_sign_eff.eq(self.b.sign ^ (self.op == Opcode.SUB))

        product_sign = Signal()
        m.d.comb += product_sign.eq(self.a.sign ^ self.b.sign)

        with m.If(a_nan | b_nan):
            m.d.comb += quiet_nan()

        with m.Elif((self.op == Opcode.ADD) | (self.op == Opcode.SUB)):
            with m.If(a_inf & b_inf):
                with m.If(self.a.sign != b_sign_eff):
                    m.d.comb += quiet_nan()
                with m.Else():
                    m.d.comb += infinity(self.a.sign)
            with m.Elif(a_inf):
                m.d.comb += infinity(self.a.sign)
            with m.Elif(b_inf):
                m.d.comb += infinity(b_sign_eff)
            with m.Elif(a_zero & b_zero):
                # -0 only when both addends are -0
                m.d.comb += zero(self.a.sign & b_sign_eff)
            with m.Elif(a_zero):
                m.d.comb += passthrough(self.b, b_sign_eff)
            with m.Elif(b_zero):
                m.d.comb += passthrough(self.a, self.a.sign)

        with m.Elif(self.op == Opcode.MUL):
            with m.If((a_inf & b_zero) | (a_zero & b_inf)):
                m.d.comb += quiet_nan()
            with m.Elif(a_inf | b_inf):
                m.d.comb += infinity(product_sign)
            with m.Elif(a_zero | b_zero):
                m.d.comb += zero(product_sign)

        with m.Elif(self.op == Opcode.DIV):
            with m.If((a_inf & b_inf) | (a_zero & b_zero)):
                m.d.comb += quiet_nan()
            with m.Elif(b_zero):
                m.d.comb += infinity(product_sign)
                if self.div_by_zero_invalid:
                    m.d.comb += self.invalid.eq(1)
            with m.Elif(a_inf):
                m.d.comb += infinity(product_sign)
            with m.Elif(b_inf | a_zero):
                m.d.comb += zero(product_sign)

        return m
