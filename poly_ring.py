# poly_ring.py
"""
Polynomial arithmetic over Z_mod[x].

Polynomials are plain lists of ints, poly[i] being the coefficient of x^i.
Every operation returns a new list and leaves its operands untouched; results
are canonical (trailing zeros trimmed, zero polynomial == [0]).
"""

import logging

import numpy as np

from ntru_errors import DivisionError, MalformedInput

log = logging.getLogger(__name__)

# Largest convolution term sum that still fits an int64 accumulator
_INT64_BOUND = 1 << 62
# Largest term sum the float64 FFT reproduces exactly after rounding
_FFT_BOUND = 1 << 40


def degree(poly):
    for i in range(len(poly) - 1, -1, -1):
        if poly[i] != 0:
            return i
    return -1


def trim(poly):
    d = degree(poly)
    return list(poly[:d + 1]) if d >= 0 else [0]


def expand(poly, length, fill=0):
    """Pad `poly` with `fill` up to exactly `length` coefficients."""
    if len(poly) > length:
        raise MalformedInput(
            f"polynomial has {len(poly)} coefficients, expected at most {length}")
    return list(poly) + [fill] * (length - len(poly))


def expand_to_multiple(poly, multiple):
    if not isinstance(multiple, int) or multiple <= 0:
        raise MalformedInput("multiple must be a positive integer")
    length = -(-len(poly) // multiple) * multiple
    return expand(poly, length)


def mod_inverse(a, mod):
    """Inverse of the scalar `a` modulo `mod`, or None when it does not exist."""
    try:
        return pow(a % mod, -1, mod)
    except ValueError:
        return None


def reduce(poly, mod):
    return [x % mod for x in poly]


def ideal(N, mod):
    """x^N - 1 written as 1 + (mod-1)·x^N, the form the verifier expects."""
    return [1] + [0] * (N - 1) + [mod - 1]


def add(a, b, mod):
    n = max(len(a), len(b))
    return trim([((a[i] if i < len(a) else 0) + (b[i] if i < len(b) else 0)) % mod
                 for i in range(n)])


def subtract(a, b, mod):
    n = max(len(a), len(b))
    return trim([((a[i] if i < len(a) else 0) - (b[i] if i < len(b) else 0)) % mod
                 for i in range(n)])


def scale(poly, scalar, mod):
    return [(c * scalar) % mod for c in poly]


def _term_bound(a, b):
    return max(abs(x) for x in a) * max(abs(x) for x in b) * min(len(a), len(b))


def _convolve_exact(a, b):
    if _term_bound(a, b) < _INT64_BOUND:
        conv = np.convolve(np.asarray(a, dtype=np.int64), np.asarray(b, dtype=np.int64))
    else:
        # arbitrary precision fallback, slow but never overflows
        conv = np.convolve(np.asarray(a, dtype=object), np.asarray(b, dtype=object))
    return [int(x) for x in conv]


def _convolve_fft(a, b):
    size = len(a) + len(b) - 1
    n = 1 << (size - 1).bit_length()
    spectrum = np.fft.rfft(a, n) * np.fft.rfft(b, n)
    return [int(x) for x in np.rint(np.fft.irfft(spectrum, n)[:size])]


def multiply(a, b, mod, method="exact", verify=__debug__):
    """
    Product of `a` and `b` with coefficients reduced mod `mod`.
    The raw product has len(a) + len(b) - 1 coefficients (no ring reduction).

    method="fft" is a speed-up only: it is used when the float round-off is
    provably harmless and, with `verify` set, it is checked against the exact
    convolution, whose result wins on any disagreement.
    """
    if method not in ("exact", "fft"):
        raise MalformedInput(f"unknown multiplication method {method!r}")
    if not a or not b:
        return [0]
    a = reduce(a, mod)
    b = reduce(b, mod)

    if method == "fft" and _term_bound(a, b) < _FFT_BOUND:
        conv = _convolve_fft(a, b)
        if verify:
            exact = _convolve_exact(a, b)
            if conv != exact:
                log.warning("FFT convolution diverged from exact result (len %d x %d, mod %d)",
                            len(a), len(b), mod)
                conv = exact
    else:
        conv = _convolve_exact(a, b)

    return trim([x % mod for x in conv])


def divide_with_remainder(a, b, mod):
    """
    Long division of `a` by `b` over Z_mod.
    Returns (quotient, remainder) with a ≡ quotient·b + remainder (mod `mod`).
    """
    divisor = trim(reduce(b, mod))
    deg_b = degree(divisor)
    if deg_b < 0:
        raise DivisionError("cannot divide by the zero polynomial")
    inv_lead = mod_inverse(divisor[deg_b], mod)
    if inv_lead is None:
        raise DivisionError(
            f"leading coefficient {divisor[deg_b]} has no inverse mod {mod}")

    remainder = reduce(a, mod)
    deg_r = degree(remainder)
    quotient = [0] * max(0, deg_r - deg_b + 1)

    while deg_r >= deg_b:
        coeff = (remainder[deg_r] * inv_lead) % mod
        shift = deg_r - deg_b
        quotient[shift] = coeff
        for i in range(deg_b + 1):
            remainder[shift + i] = (remainder[shift + i] - coeff * divisor[i]) % mod
        while deg_r >= 0 and remainder[deg_r] == 0:
            deg_r -= 1

    return trim(quotient), trim(remainder)


# -- sign <-> field representation -------------------------------------------

def to_field(poly, mod):
    """Map signed coefficients into [0, mod): -1 becomes mod-1."""
    return [c % mod for c in poly]


def centered(poly, mod):
    """Signed representative of each coefficient: values above mod/2 go negative."""
    return [c - mod if c > mod / 2 else c for c in poly]


def lift_to_small(poly, q, p):
    """
    Move coefficients in [0, q) to Z_p treating values above q/2 as negative.
    The "+1" stands in for subtracting q and equals it when q ≡ -1 (mod p),
    which holds for the q = 2^odd, p = 3 profiles; the verifier computes
    exactly this expression, so it must not be changed.
    """
    return [(c + 1) % p if c > q / 2 else c % p for c in poly]
