from amaranth import *
from amaranth.build import Platform
from amaranth.lib import enum, wiring
from amaranth.lib.wiring import In, Out

from add_sub import AddSub
from classifier import Classifier
from divider import Divider
from float32 import Category, Extended, Float32, Opcode, Unpacked
from multiplier import Multiplier
from normalizer import Normalizer
from packer import ResultPacker
from rounder import Rounder
from special_cases import SpecialCases


class State(enum.Enum, shape=3):
    IDLE = 0
    UNPACK = 1
    DISPATCH = 2
    DIVIDE = 3
    NORMALIZE = 4
    ROUND = 5
    PACK = 6
    PUBLISH = 7


class FPU32(wiring.Component):
    """Multi-cycle IEEE 754 binary32 add/sub/mul/div unit

    Handshake: `start` is accepted only while `ready` is high (IDLE); the
    operands and opcode are latched on that edge and the flags are cleared.
    `done` is high for exactly one cycle in PUBLISH. `result` and the flags
    hold until the next accepted `start`.

    - Special operands: 2 clocks after acceptance to PUBLISH
    - Add/sub/mul: 5 clocks
    - Divide: 5 + Divider.ITERATIONS + 1 clocks

    Rounding is round-to-nearest-even only; denormal results are flushed to
    signed zero with `underflow`.

    div_by_zero_invalid: raise `invalid` for x / 0 with nonzero x
    """

    def __init__(self, div_by_zero_invalid: bool = True):
        self.div_by_zero_invalid = div_by_zero_invalid

        super().__init__(
            {
                "a": In(Float32),
                "b": In(Float32),
                "op": In(Opcode),
                "start": In(1),
                "ready": Out(1),
                "done": Out(1),
                "result": Out(Float32),
                "invalid": Out(1),
                "overflow": Out(1),
                "underflow": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.classify_a = classify_a = Classifier()
        m.submodules.classify_b = classify_b = Classifier()
        m.submodules.special = special = SpecialCases(self.div_by_zero_invalid)
        m.submodules.add_sub = add_sub = AddSub()
        m.submodules.multiplier = multiplier = Multiplier()
        m.submodules.divider = divider = Divider()
        m.submodules.normalizer = normalizer = Normalizer()
        m.submodules.rounder = rounder = Rounder()
        m.submodules.packer = packer = ResultPacker()

        state = Signal(State)

        a_reg = Signal(Float32)
        b_reg = Signal(Float32)
        op_reg = Signal(Opcode)

        a_unpacked = Signal(Unpacked)
        b_unpacked = Signal(Unpacked)
        a_category = Signal(Category)
        b_category = Signal(Category)

        ext = Signal(Extended)

        rnd_sign = Signal()
        rnd_exp = Signal(8)
        rnd_mant = Signal(23)

        # ---- Datapath ----
        m.d.comb += classify_a.operand.eq(a_reg)
        m.d.comb += classify_b.operand.eq(b_reg)

        m.d.comb += special.a.eq(a_reg)
        m.d.comb += special.b.eq(b_reg)
        m.d.comb += special.a_category.eq(a_category)
        m.d.comb += special.b_category.eq(b_category)
        m.d.comb += special.op.eq(op_reg)

        m.d.comb += add_sub.a.eq(a_unpacked)
        m.d.comb += add_sub.b.eq(b_unpacked)
        m.d.comb += add_sub.subtract.eq(op_reg == Opcode.SUB)

        m.d.comb += multiplier.a.eq(a_unpacked)
        m.d.comb += multiplier.b.eq(b_unpacked)

        m.d.comb += divider.a.eq(a_unpacked)
        m.d.comb += divider.b.eq(b_unpacked)

        m.d.comb += normalizer.value_in.eq(ext)
        m.d.comb += rounder.value_in.eq(ext)

        m.d.comb += packer.sign.eq(rnd_sign)
        m.d.comb += packer.exponent.eq(rnd_exp)
        m.d.comb += packer.mantissa.eq(rnd_mant)

        # ---- Control ----
        with m.Switch(state):
            with m.Case(State.IDLE):
                m.d.comb += self.ready.eq(1)

                with m.If(self.start):
                    m.d.sync += [
                        a_reg.eq(self.a),
                        b_reg.eq(self.b),
                        op_reg.eq(self.op),
                        self.invalid.eq(0),
                        self.overflow.eq(0),
                        self.underflow.eq(0),
                    ]
                    m.d.sync += state.eq(State.UNPACK)

            with m.Case(State.UNPACK):
                m.d.sync += [
                    a_unpacked.eq(classify_a.unpacked),
                    b_unpacked.eq(classify_b.unpacked),
                    a_category.eq(classify_a.category),
                    b_category.eq(classify_b.category),
                ]
                m.d.sync += state.eq(State.DISPATCH)

            with m.Case(State.DISPATCH):
                with m.If(special.hit):
                    m.d.sync += self.result.eq(special.result)
                    m.d.sync += self.invalid.eq(special.invalid)
                    m.d.sync += state.eq(State.PUBLISH)
                with m.Elif((op_reg == Opcode.ADD) | (op_reg == Opcode.SUB)):
                    m.d.sync += ext.eq(add_sub.result)
                    m.d.sync += state.eq(State.NORMALIZE)
                with m.Elif(op_reg == Opcode.MUL):
                    m.d.sync += ext.eq(multiplier.result)
                    m.d.sync += state.eq(State.NORMALIZE)
                with m.Else():
                    m.d.comb += divider.start.eq(1)
                    m.d.sync += state.eq(State.DIVIDE)

            with m.Case(State.DIVIDE):
                with m.If(divider.done):
                    m.d.sync += ext.eq(divider.result)
                    m.d.sync += state.eq(State.NORMALIZE)

            with m.Case(State.NORMALIZE):
                m.d.sync += [
                    ext.eq(normalizer.value_out),
                    self.overflow.eq(normalizer.overflow),
                    self.underflow.eq(normalizer.underflow),
                ]
                m.d.sync += state.eq(State.ROUND)

            with m.Case(State.ROUND):
                m.d.sync += [
                    rnd_sign.eq(rounder.sign),
                    rnd_exp.eq(rounder.exponent),
                    rnd_mant.eq(rounder.mantissa),
                ]
                with m.If(rounder.overflow):
                    m.d.sync += self.overflow.eq(1)
                m.d.sync += state.eq(State.PACK)

            with m.Case(State.PACK):
                m.d.sync += self.result.eq(packer.result)
                m.d.sync += state.eq(State.PUBLISH)

            with m.Case(State.PUBLISH):
                m.d.comb += self.done.eq(1)
                m.d.sync += state.eq(State.IDLE)

        return m
