# poly_inverse.py

from ntru_errors import DivisionError, NotInvertible
from poly_ring import (
    degree, divide_with_remainder, ideal, mod_inverse, multiply, reduce,
    scale, subtract, trim,
)


def is_power_of_two(n):
    return n > 0 and n & (n - 1) == 0


def extended_euclid(a, b, mod, method="exact"):
    """
    Extended Euclid for polynomials over Z_mod (mod prime).
    Returns (gcd, s) with s·a ≡ gcd (mod b, mod), gcd normalized to 1 when it
    is a non-zero constant. Raises NotInvertible otherwise.

    e.g. a = 3x^3+2x+4, b = x^2+2x+3, mod 11 -> s = 8x+5
    """
    r0, r1 = trim(reduce(a, mod)), trim(reduce(b, mod))
    s0, s1 = [1], [0]
    try:
        while degree(r1) >= 0:
            q, r2 = divide_with_remainder(r0, r1, mod)
            r0, r1 = r1, r2
            s0, s1 = s1, subtract(s0, multiply(q, s1, mod, method=method), mod)
    except DivisionError as exc:
        raise NotInvertible(f"euclid stalled mod {mod}: {exc}") from exc

    if degree(r0) != 0:
        raise NotInvertible(f"gcd has degree {degree(r0)} mod {mod}")
    inv = mod_inverse(r0[0], mod)
    if inv is None:
        raise NotInvertible(f"gcd {r0[0]} is not a unit mod {mod}")
    return [1], trim(scale(s0, inv, mod))


def invert_prime(f, N, mod, method="exact"):
    """f^-1 modulo (x^N - 1, mod) for prime `mod`."""
    if degree(reduce(f, mod)) < 0:
        raise NotInvertible("zero polynomial has no inverse")
    _, inverse = extended_euclid(f, ideal(N, mod), mod, method=method)
    return inverse


def invert_power_of_two(f, N, mod, method="exact"):
    """
    f^-1 modulo (x^N - 1, 2^k): invert mod 2, then Newton steps
    g <- 2g - f·g^2, each doubling the exponent the inverse is valid for.
    """
    k = mod.bit_length() - 1
    inverse = invert_prime(f, N, 2, method=method)
    exponent = 1
    while exponent < k:
        exponent = min(2 * exponent, k)
        step = 1 << exponent
        twice = scale(inverse, 2, step)
        square = multiply(inverse, inverse, step, method=method)
        updated = subtract(twice, multiply(f, square, step, method=method), step)
        _, inverse = divide_with_remainder(updated, ideal(N, step), step)
    return inverse


def invert(f, N, mod, method="exact"):
    if is_power_of_two(mod):
        return invert_power_of_two(f, N, mod, method=method)
    return invert_prime(f, N, mod, method=method)
