from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class LeadingZeroCounter(wiring.Component):
    """Count leading zeros from the MSB; an all-zero input counts as `width`"""

    def __init__(self, width: int = 24):
        if width < 1:
            raise ValueError(f"width must be positive, got {width}")

        self.width = width
        self.count_bits = (width).bit_length()

        super().__init__(
            {
                "value": In(width),
                "count": Out(self.count_bits),
                "zero": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.d.comb += self.count.eq(self.width)

        # flat priority: the highest set bit is assigned last and wins
        for i in range(self.width):
            with m.If(self.value[i]):
                m.d.comb += self.count.eq(self.width - 1 - i)

        m.d.comb += self.zero.eq(self.value == 0)

        return m
