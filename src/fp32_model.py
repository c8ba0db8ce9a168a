from typing import NamedTuple

from float32 import (
    BIAS,
    EXP_MAX,
    EXT_LEAD,
    EXT_WIDTH,
    FRAC_WIDTH,
    QUIET_NAN,
    Category,
    FP32,
    Opcode,
)

DIV_ITERATIONS = 24


class Flags(NamedTuple):
    invalid: bool = False
    overflow: bool = False
    underflow: bool = False


class Operand(NamedTuple):
    sign: int
    exponent: int
    significand: int


def classify(bits: int) -> tuple[Category, Operand]:
    value = FP32.from_bits(bits)
    sign, exp, mant = value.unpack()
    category = value.category()

    if category == Category.ZERO:
        return category, Operand(sign, 0, 0)
    if category == Category.DENORMAL:
        shift = FRAC_WIDTH - mant.bit_length() + 1
        return category, Operand(sign, 1 - shift, mant << shift)
    if category == Category.NORMAL:
        return category, Operand(sign, exp, (1 << FRAC_WIDTH) | mant)
    if category == Category.INFINITY:
        return category, Operand(sign, EXP_MAX, 0)
    return category, Operand(sign, EXP_MAX, mant)


def _infinity(sign: int) -> int:
    return FP32.pack(sign, EXP_MAX, 0).to_bits()


def _zero(sign: int) -> int:
    return FP32.pack(sign, 0, 0).to_bits()


def _with_sign(bits: int, sign: int) -> int:
    return (bits & 0x7FFFFFFF) | (sign << 31)


def _align(value: int, shift: int) -> int:
    shift = min(shift, EXT_WIDTH)
    lost = value & ((1 << shift) - 1)
    return (value >> shift) | int(lost != 0)


class FP32Model:
    """Bit-exact software model of the FPU32 datapath

    Runs the same stages as the gateware (classify, special cases, add/sub,
    multiply, bit-serial divide, normalize, round, pack) on Python integers
    so testbenches can check results and flags, including the flush-to-zero
    and divide-by-zero policies that a host float32 does not share.
    """

    def __init__(self, div_by_zero_invalid: bool = True):
        self.div_by_zero_invalid = div_by_zero_invalid

    def add(self, a: int, b: int) -> tuple[int, Flags]:
        return self.compute(Opcode.ADD, a, b)

    def sub(self, a: int, b: int) -> tuple[int, Flags]:
        return self.compute(Opcode.SUB, a, b)

    def mul(self, a: int, b: int) -> tuple[int, Flags]:
        return self.compute(Opcode.MUL, a, b)

    def div(self, a: int, b: int) -> tuple[int, Flags]:
        return self.compute(Opcode.DIV, a, b)

    def compute(self, op: Opcode, a: int, b: int) -> tuple[int, Flags]:
        if not isinstance(op, Opcode):
            raise ValueError(f"unknown opcode: {op!r}")

        a_cat, ua = classify(a)
        b_cat, ub = classify(b)

        special = self.special_case(op, a, b, a_cat, b_cat)
        if special is not None:
            return special

        if op in (Opcode.ADD, Opcode.SUB):
            ext = self.add_sub(ua, ub, op == Opcode.SUB)
        elif op == Opcode.MUL:
            ext = self.multiply(ua, ub)
        else:
            ext = self.divide(ua, ub)

        ext, overflow, underflow = self.normalize(*ext)
        sign, exp, mant, round_overflow = self.round(*ext)

        flags = Flags(overflow=overflow or round_overflow, underflow=underflow)
        return FP32.pack(sign, exp, mant).to_bits(), flags

    def special_case(
        self, op: Opcode, a: int, b: int, a_cat: Category, b_cat: Category
    ) -> tuple[int, Flags] | None:
        a_sign = a >> 31
        b_sign = b >> 31
        nan = (QUIET_NAN, Flags(invalid=True))

        if Category.NAN in (a_cat, b_cat):
            return nan

        a_inf = a_cat == Category.INFINITY
        b_inf = b_cat == Category.INFINITY
        a_zero = a_cat == Category.ZERO
        b_zero = b_cat == Category.ZERO

        if op in (Opcode.ADD, Opcode.SUB):
            b_sign ^= int(op == Opcode.SUB)
            if a_inf and b_inf:
                return nan if a_sign != b_sign else (_infinity(a_sign), Flags())
            if a_inf:
                return _infinity(a_sign), Flags()
            if b_inf:
                return _infinity(b_sign), Flags()
            if a_zero and b_zero:
                return _zero(a_sign & b_sign), Flags()
            if a_zero:
                return _with_sign(b, b_sign), Flags()
            if b_zero:
                return a, Flags()
            return None

        sign = a_sign ^ b_sign

        if op == Opcode.MUL:
            if (a_inf and b_zero) or (a_zero and b_inf):
                return nan
            if a_inf or b_inf:
                return _infinity(sign), Flags()
            if a_zero or b_zero:
                return _zero(sign), Flags()
            return None

        if (a_inf and b_inf) or (a_zero and b_zero):
            return nan
        if b_zero:
            return _infinity(sign), Flags(invalid=self.div_by_zero_invalid)
        if a_inf:
            return _infinity(sign), Flags()
        if b_inf or a_zero:
            return _zero(sign), Flags()
        return None

    def add_sub(self, a: Operand, b: Operand, subtract: bool):
        b_sign = b.sign ^ int(subtract)

        if (a.exponent, a.significand) >= (b.exponent, b.significand):
            big, small, big_sign = a, b, a.sign
        else:
            big, small, big_sign = b, a, b_sign

        big_ext = big.significand << 25
        small_ext = _align(small.significand << 25, big.exponent - small.exponent)

        if a.sign == b_sign:
            sig = big_ext + small_ext
        else:
            sig = big_ext - small_ext

        return big_sign, big.exponent, sig

    def multiply(self, a: Operand, b: Operand):
        sign = a.sign ^ b.sign
        exp = a.exponent + b.exponent - BIAS
        return sign, exp, (a.significand * b.significand) << 2

    def divide(self, a: Operand, b: Operand):
        sign = a.sign ^ b.sign
        pre_shift = int(a.significand < b.significand)
        exp = a.exponent - b.exponent + BIAS - pre_shift

        remainder = a.significand << pre_shift
        divisor = b.significand
        quotient = 0

        for _ in range(DIV_ITERATIONS):
            take = remainder >= divisor
            quotient = (quotient << 1) | int(take)
            if take:
                remainder -= divisor
            remainder <<= 1

        guard = remainder >= divisor
        if guard:
            remainder -= divisor
        remainder <<= 1
        round_bit = remainder >= divisor
        if round_bit:
            remainder -= divisor
        sticky = remainder != 0

        tail = (int(guard) << 2) | (int(round_bit) << 1) | int(sticky)
        return sign, exp, ((quotient << 3) | tail) << 22

    def normalize(self, sign: int, exp: int, sig: int):
        if sig == 0:
            return (0, 0, 0), False, False

        if sig >> (EXT_WIDTH - 1):
            sig = (sig >> 1) | (sig & 1)
            exp += 1
        else:
            shift = EXT_LEAD - (sig.bit_length() - 1)
            sig <<= shift
            exp -= shift

        if exp >= EXP_MAX:
            return (sign, EXP_MAX, 0), True, False
        if exp <= 0:
            return (sign, 0, 0), False, True
        return (sign, exp, sig), False, False

    def round(self, sign: int, exp: int, sig: int):
        low = EXT_LEAD - FRAC_WIDTH
        mant = (sig >> low) & ((1 << FRAC_WIDTH) - 1)
        guard = (sig >> (low - 1)) & 1
        round_bit = (sig >> (low - 2)) & 1
        sticky = int(sig & ((1 << (low - 2)) - 1) != 0)

        if guard and (round_bit or sticky or mant & 1):
            mant += 1

        if mant >> FRAC_WIDTH:
            mant = 0
            exp += 1
            if exp >= EXP_MAX:
                return sign, EXP_MAX, 0, True

        return sign, exp, mant, False
