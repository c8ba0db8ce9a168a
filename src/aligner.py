from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class Aligner(wiring.Component):
    """Right shift with sticky: bits shifted out are ORed into bit 0

    Shift amounts >= width flush the value, leaving only the sticky bit.
    """

    def __init__(self, width: int = 50):
        if width < 2:
            raise ValueError(f"width must be at least 2, got {width}")

        self.width = width
        self.shift_bits = (width).bit_length()

        super().__init__(
            {
                "value_in": In(width),
                "shift_amount": In(self.shift_bits),
                "value_out": Out(width),
                "sticky": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        shift = Signal(self.shift_bits)
        with m.If(self.shift_amount > self.width):
            m.d.comb += shift.eq(self.width)
        with m.Else():
            m.d.comb += shift.eq(self.shift_amount)

        shifted = Signal(self.width)
        m.d.comb += shifted.eq(self.value_in >> shift)

        # any set bit below the shift point is lost
        lost = Signal(self.width)
        m.d.comb += lost.eq(self.value_in & ((Const(1, self.width + 1) << shift) - 1))
        m.d.comb += self.sticky.eq(lost.any())

        m.d.comb += self.value_out.eq(shifted | self.sticky)

        return m
