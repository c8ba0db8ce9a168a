import struct

from amaranth import *
from amaranth.lib import data, enum

BIAS = 127
EXP_MAX = 0xFF
SIG_WIDTH = 24
FRAC_WIDTH = 23

QUIET_NAN = 0x7FC00000


class Float32(data.Struct):
    mantissa: 23
    exponent: 8
    sign: 1


class Unpacked(data.Struct):
    """Operand with the implicit leading one materialized

    Nonzero finite operands always carry their leading one at bit 23;
    denormals are shifted up and get an exponent of 1 - shift (<= 0).
    """

    significand: 24
    exponent: signed(10)
    sign: 1


class Extended(data.Struct):
    """Unnormalized working result shared by the arithmetic stages

    value = significand * 2^(exponent - 127 - 48). A normalized significand
    has its leading one at bit 48; bit 49 is carry headroom.
    """

    significand: 50
    exponent: signed(12)
    sign: 1


EXT_WIDTH = 50
EXT_LEAD = 48


class Category(enum.Enum, shape=3):
    ZERO = 0
    DENORMAL = 1
    NORMAL = 2
    INFINITY = 3
    NAN = 4


class Opcode(enum.Enum, shape=2):
    ADD = 0
    SUB = 1
    MUL = 2
    DIV = 3


class FP32:
    def __init__(self, bits: int):
        if not 0 <= bits <= 0xFFFFFFFF:
            raise ValueError(f"not a 32-bit pattern: {bits:#x}")
        self.bits = bits

    @classmethod
    def from_float(cls, f: float):
        bits = struct.unpack(">I", struct.pack(">f", f))[0]
        return cls(bits)

    @classmethod
    def from_bits(cls, bits: int):
        return cls(bits)

    def to_bits(self) -> int:
        return self.bits

    def to_float(self) -> float:
        return struct.unpack(">f", struct.pack(">I", self.bits))[0]

    def unpack(self) -> tuple[int, int, int]:
        sign = (self.bits >> 31) & 0x1
        exp = (self.bits >> 23) & 0xFF
        mant = self.bits & 0x7FFFFF
        return sign, exp, mant

    @classmethod
    def pack(cls, sign: int, exp: int, mant: int):
        bits = (sign << 31) | (exp << 23) | mant
        return cls(bits)

    def fields(self) -> dict:
        sign, exp, mant = self.unpack()
        return {"sign": sign, "exponent": exp, "mantissa": mant}

    def category(self) -> Category:
        _, exp, mant = self.unpack()
        if exp == 0:
            return Category.ZERO if mant == 0 else Category.DENORMAL
        if exp == EXP_MAX:
            return Category.INFINITY if mant == 0 else Category.NAN
        return Category.NORMAL

    def __eq__(self, other):
        return isinstance(other, FP32) and self.bits == other.bits

    def __hash__(self):
        return hash(self.bits)

    def __repr__(self):
        return f"FP32(0x{self.bits:08X})"
