# pq_ntru.py
"""
NTRU over R = Z[x]/(x^N - 1):

    keygen   f, g <- trinary;  fp = f^-1 mod p;  fq = f^-1 mod q
             h = p·fq·g  mod (q, x^N - 1)
    encrypt  e = r·h + m   mod (q, x^N - 1)
    decrypt  a = f·e mod (q, x^N - 1);  b = a lifted to Z_p
             m = fp·b mod (p, x^N - 1)

Every reduction modulo x^N - 1 keeps its quotient and remainder in a trace,
so that ntru_witness can hand the exact same numbers to the verifier.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Optional

from Crypto.Random import random as strong_random

from bit_codec import bits_to_string, string_to_bits
from ntru_errors import (
    InvalidKeyState, KeyGenerationCancelled, KeySearchExhausted,
    MalformedInput, NotInvertible,
)
from poly_inverse import invert, is_power_of_two
from poly_ring import (
    add, divide_with_remainder, ideal, lift_to_small, multiply, scale,
    to_field, trim,
)

log = logging.getLogger(__name__)


def _is_prime(n):
    if n < 2:
        return False
    i = 2
    while i * i <= n:
        if n % i == 0:
            return False
        i += 1
    return True


@dataclass(frozen=True)
class Params:
    """
    Ring and sampling parameters.

    N   number of coefficients (ring rank)
    p   small prime modulus
    q   large modulus, a power of two
    df  f has df ones and df-1 minus ones
    dg  g has dg ones and dg minus ones
    dr  per-encryption randomness r has dr ones and dr minus ones
    max_attempts     private key candidates tried before giving up
    multiply_method  "exact" or "fft" (see poly_ring.multiply)
    """
    N: int = 167
    p: int = 3
    q: int = 128
    df: int = 61
    dg: int = 20
    dr: int = 18
    max_attempts: int = 100
    multiply_method: str = "exact"

    def __post_init__(self):
        for name in ('N', 'p', 'q', 'df', 'dg', 'dr', 'max_attempts'):
            if type(getattr(self, name)) is not int:
                raise MalformedInput(f"{name} must be an integer, got {getattr(self, name)!r}")
        if self.N < 2:
            raise MalformedInput(f"N must be at least 2, got {self.N}")
        if not _is_prime(self.p):
            raise MalformedInput(f"p must be prime, got {self.p}")
        if not is_power_of_two(self.q) or self.q <= self.p:
            raise MalformedInput(f"q must be a power of two larger than p, got {self.q}")
        if self.q % self.p == 0:
            raise MalformedInput(f"p={self.p} and q={self.q} must be coprime")
        if self.df < 1 or 2 * self.df - 1 > self.N:
            raise MalformedInput(f"df={self.df} does not fit N={self.N}")
        if self.dg < 0 or 2 * self.dg > self.N:
            raise MalformedInput(f"dg={self.dg} does not fit N={self.N}")
        if self.dr < 0 or 2 * self.dr > self.N:
            raise MalformedInput(f"dr={self.dr} does not fit N={self.N}")
        if self.max_attempts < 1:
            raise MalformedInput("max_attempts must be positive")
        if self.multiply_method not in ("exact", "fft"):
            raise MalformedInput(f"unknown multiply_method {self.multiply_method!r}")

    @classmethod
    def from_mapping(cls, mapping):
        """Build from any mapping, ignoring keys that are not parameters."""
        names = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in mapping.items() if k in names})

    def to_dict(self):
        return dataclasses.asdict(self)

    def ideal(self, mod):
        return ideal(self.N, mod)


@dataclass(frozen=True)
class KeyPair:
    f: List[int]
    fp: List[int]
    fq: List[int]
    g: Optional[List[int]] = None
    h: Optional[List[int]] = None

    @property
    def has_public_key(self):
        return self.g is not None and self.h is not None


class KeyTrace(NamedTuple):
    """candidate·f = quotient·I + remainder, with remainder == expected."""
    f: list
    candidate: list
    quotient: list
    remainder: list
    expected: list


class EncryptTrace(NamedTuple):
    r: list
    m: list
    h: list
    quotient: list
    remainder: list

    @property
    def value(self):
        return self.remainder


class DecryptTrace(NamedTuple):
    f: list
    fp: list
    e: list
    quotient1: list
    remainder1: list
    quotient2: list
    remainder2: list

    @property
    def value(self):
        return self.remainder2


def _coefficients(poly, what):
    """`poly` as a list, provided it is a list or tuple of plain ints."""
    if not isinstance(poly, (list, tuple)):
        raise MalformedInput(f"{what} must be a list of integers")
    if any(type(c) is not int for c in poly):
        raise MalformedInput(f"{what} coefficients must be integers")
    return list(poly)


def _trinary(poly, length, what, neg_one=-1):
    poly = _coefficients(poly, what)
    if len(poly) != length:
        raise MalformedInput(f"{what} must have {length} coefficients, got {len(poly)}")
    if any(c not in (-1, 0, 1, neg_one) for c in poly):
        raise MalformedInput(f"{what} coefficients must be in {{-1, 0, 1}}")
    return poly


# -- sampling -----------------------------------------------------------------

def sample_trinary(length, num_ones, num_neg_ones):
    """`num_ones` 1s and `num_neg_ones` -1s at CSPRNG-shuffled positions."""
    if num_ones < 0 or num_neg_ones < 0 or num_ones + num_neg_ones > length:
        raise MalformedInput("the total of 1s and -1s cannot exceed the length")
    poly = [1] * num_ones + [-1] * num_neg_ones + [0] * (length - num_ones - num_neg_ones)
    strong_random.shuffle(poly)
    return poly


# -- keys -----------------------------------------------------------------------

def _key_trace(f_field, candidate, mod, params, expected=None):
    product = multiply(candidate, f_field, mod, method=params.multiply_method)
    quotient, remainder = divide_with_remainder(product, params.ideal(mod), mod)
    return KeyTrace(f_field, candidate, quotient, remainder,
                    [1] if expected is None else expected)


def _check(trace, label):
    if trim(trace.remainder) != trim(trace.expected):
        raise InvalidKeyState(f"invalid {label}")


def _derive_private_key(f, params):
    # NotInvertible propagates to the caller
    fq = invert(f, params.N, params.q, method=params.multiply_method)
    fp = invert(f, params.N, params.p, method=params.multiply_method)
    _check(_key_trace(to_field(f, params.q), fq, params.q, params), "fq")
    _check(_key_trace(to_field(f, params.p), fp, params.p, params), "fp")
    return KeyPair(f=list(f), fp=fp, fq=fq)


def load_private_key(f, params):
    """Re-derive fp and fq for a supplied private key f and verify them."""
    f = _trinary(f, params.N, "private key")
    try:
        return _derive_private_key(f, params)
    except NotInvertible as exc:
        raise InvalidKeyState(f"private key is not invertible: {exc}") from exc


def generate_private_key(params, cancel=None):
    """
    Sample candidates until one is invertible mod p and mod q.
    `cancel` is an optional threading.Event checked before every attempt.
    """
    for attempt in range(1, params.max_attempts + 1):
        if cancel is not None and cancel.is_set():
            raise KeyGenerationCancelled(f"cancelled after {attempt - 1} attempts")
        f = sample_trinary(params.N, params.df, params.df - 1)
        try:
            keypair = _derive_private_key(f, params)
        except NotInvertible as exc:
            log.debug("private key attempt %d rejected: %s", attempt, exc)
            continue
        log.info("found invertible private key after %d attempt(s)", attempt)
        return keypair
    raise KeySearchExhausted(
        f"could not find invertible f in {params.max_attempts} attempts "
        f"(N={params.N}, df={params.df})")


def generate_public_key(keypair, params, g=None):
    """Return a copy of `keypair` with g (sampled if not given) and h = p·fq·g."""
    if keypair.f is None or keypair.fq is None:
        raise InvalidKeyState("missing private key f")
    if g is None:
        g = sample_trinary(params.N, params.dg, params.dg)
    else:
        g = _trinary(g, params.N, "g")
    p_fq = scale(keypair.fq, params.p, params.q)
    product = multiply(p_fq, g, params.q, method=params.multiply_method)
    _, h = divide_with_remainder(product, params.ideal(params.q), params.q)
    return dataclasses.replace(keypair, g=list(g), h=trim(h))


def generate_keypair(params, cancel=None):
    return generate_public_key(generate_private_key(params, cancel=cancel), params)


def key_traces(keypair, params):
    """
    The three identities tying the key together, each as a division by I:
    fq·f ≡ 1 (mod q), fp·f ≡ 1 (mod p), (p·fq)·g ≡ h (mod q).
    Raises InvalidKeyState when a component is missing or an identity fails.
    """
    for name in ('f', 'fq', 'fp', 'g', 'h'):
        if getattr(keypair, name) is None:
            raise InvalidKeyState(f"missing key component {name}")
    p, q = params.p, params.q
    traces = {
        'fq': _key_trace(to_field(keypair.f, q), keypair.fq, q, params),
        'fp': _key_trace(to_field(keypair.f, p), keypair.fp, p, params),
        'h': _key_trace(to_field(keypair.g, q), [c * p for c in keypair.fq], q, params,
                        expected=trim(keypair.h)),
    }
    for label, trace in traces.items():
        _check(trace, label)
    return traces


# -- encrypt / decrypt ------------------------------------------------------

def validate_public_key(h, params):
    if h is None:
        raise InvalidKeyState("missing public key h")
    h = _coefficients(h, "public key")
    if len(h) > params.N or any(not 0 <= c < params.q for c in h):
        raise MalformedInput(f"public key must have at most {params.N} coefficients in [0, q)")
    return trim(h)


def validate_ciphertext(e, params):
    e = _coefficients(e, "ciphertext")
    if len(e) > params.N or any(not 0 <= c < params.q for c in e):
        raise MalformedInput(f"ciphertext must have at most {params.N} coefficients in [0, q)")
    return e


def validate_randomness(r, params):
    """
    A caller-supplied r must be trinary with exactly dr ones and dr minus
    ones; -1 may also be written as p-1. Returns r with -1 carried as p-1.
    """
    p = params.p
    r = to_field(_trinary(r, params.N, "randomness", neg_one=p - 1), p)
    if r.count(1) != params.dr or r.count(p - 1) != params.dr:
        raise MalformedInput(
            f"randomness must have {params.dr} ones and {params.dr} minus ones")
    return r


def encrypt_trace(m, h, params, r=None):
    """
    e = r·h + m mod (q, I). `r` may be given (trinary, signed); -1 entries
    are carried as p-1 because the verifier only accepts non-negative values.
    """
    h = validate_public_key(h, params)
    m = _coefficients(m, "plaintext")
    if len(m) > params.N:
        raise MalformedInput(f"plaintext has {len(m)} coefficients, N is {params.N}")
    if any(not 0 <= c < params.p for c in m):
        raise MalformedInput(f"plaintext coefficients must be in [0, {params.p})")
    if r is None:
        r = sample_trinary(params.N, params.dr, params.dr)
    r = validate_randomness(r, params)

    rh = multiply(r, h, params.q, method=params.multiply_method)
    rhm = add(m, rh, params.q)
    quotient, remainder = divide_with_remainder(rhm, params.ideal(params.q), params.q)
    return EncryptTrace(r, list(m), h, quotient, remainder)


def encrypt(m, h, params, r=None):
    return encrypt_trace(m, h, params, r=r).value


def decrypt_trace(e, keypair, params):
    if keypair is None or keypair.f is None or keypair.fp is None:
        raise InvalidKeyState("missing private key f / fp")
    e = validate_ciphertext(e, params)
    p, q = params.p, params.q

    f = to_field(keypair.f, q)
    a = multiply(f, e, q, method=params.multiply_method)
    quotient1, remainder1 = divide_with_remainder(a, params.ideal(q), q)
    b = lift_to_small(remainder1, q, p)
    c = multiply(keypair.fp, b, p, method=params.multiply_method)
    quotient2, remainder2 = divide_with_remainder(c, params.ideal(p), p)
    return DecryptTrace(f, list(keypair.fp), e, quotient1, remainder1, quotient2, remainder2)


def decrypt(e, keypair, params):
    """Recovered plaintext in [0, p). A wrong key yields a different value, not an error."""
    return decrypt_trace(e, keypair, params).value


def add_ciphertexts(e1, e2, params):
    """Decrypts (noise permitting) to the coefficientwise sum of the plaintexts mod p."""
    return add(validate_ciphertext(e1, params), validate_ciphertext(e2, params), params.q)


def encrypt_text(text, h, params):
    # Max N bits since there's no provision to split into words
    bits = string_to_bits(text)
    if len(bits) > params.N:
        raise MalformedInput(f"text needs {len(bits)} bits, N is {params.N}")
    return encrypt(bits, h, params)


def decrypt_text(e, keypair, params):
    return bits_to_string(decrypt(e, keypair, params))
