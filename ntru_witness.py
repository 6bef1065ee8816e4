# ntru_witness.py
"""
Proof inputs for the external verifier.

The verifier never divides: for each step it checks
    dividend ≡ divisor·quotient + remainder
over fixed-length, zero-padded vectors of non-negative field elements. The
values below are taken from the traces pq_ntru builds while computing, so a
witness always describes the computation that produced the returned value.
"""

from dataclasses import dataclass
from typing import List, Optional

from ntru_errors import MalformedInput
from pq_ntru import decrypt_trace, encrypt_trace, key_traces
from poly_ring import expand, trim

# Bits of a verifier field element that can carry packed data
FIELD_BITS = 252
MIN_OUTPUTS = 3


def bit_width(modulus, N):
    """
    ceil(log2(modulus^2 · N)): the largest coefficient of a product of two
    length-N vectors before reduction. Callers targeting a verifier with a
    different bound pass their own estimator to the export functions.
    """
    return (modulus * modulus * N - 1).bit_length()


@dataclass
class Witness:
    value: List[int]
    inputs: dict
    params: List[int]
    expected: Optional[List[int]] = None

    def to_dict(self):
        out = {'value': self.value, 'inputs': self.inputs, 'params': self.params}
        if self.expected is not None:
            out['expected'] = self.expected
        return out


def encrypt_witness(m, h, params, r=None, bit_width=bit_width):
    trace = encrypt_trace(m, h, params, r=r)
    N, q = params.N, params.q
    return Witness(
        value=trace.value,
        inputs={
            'r': expand(trace.r, N),
            'm': expand(trace.m, N),
            'h': expand(trace.h, N),
            'quotientE': expand([x % q for x in trace.quotient], N + 1),
            'remainderE': expand(trace.remainder, N + 1),
        },
        params=[q, bit_width(q, N), N],
    )


def decrypt_witness(e, keypair, params, bit_width=bit_width):
    trace = decrypt_trace(e, keypair, params)
    N, p, q = params.N, params.p, params.q
    return Witness(
        value=trace.value,
        inputs={
            'f': expand(trace.f, N),
            'fp': expand(trace.fp, N),
            'e': expand(trace.e, N),
            'quotient1': expand(trace.quotient1, N + 1),
            'remainder1': expand(trace.remainder1, N + 1),
            'quotient2': expand(trace.quotient2, N + 1),
            'remainder2': expand(trace.remainder2, N + 1),
        },
        params=[q, bit_width(q, N), p, bit_width(p, N), N],
    )


def key_witness(keypair, params, bit_width=bit_width):
    """
    Witnesses that h belongs to f without revealing more than the verifier
    needs: cases 'fq' and 'fp' (inverse candidates of f) and 'h'.
    """
    N = params.N
    moduli = {'fq': params.q, 'fp': params.p, 'h': params.q}
    witnesses = {}
    for label, trace in key_traces(keypair, params).items():
        mod = moduli[label]
        witnesses[label] = Witness(
            value=trim(trace.remainder),
            inputs={
                'f': expand(trace.f, N),
                'fq': expand(trace.candidate, N),
                'quotientI': expand(trace.quotient, N + 1),
                'remainderI': expand(trace.remainder, N + 1),
            },
            params=[mod, bit_width(mod, N), N],
            expected=expand(trace.expected, N + 1),
        )
    return witnesses


# -- field element packing ----------------------------------------------------

@dataclass
class PackedOutput:
    max_input_bits: int
    max_output_bits: int
    output_size: int
    arr_len: int
    expected: List[int]


@dataclass
class UnpackedInput:
    max_input_bits: int
    packed_bits: int
    packed_size: int
    unpacked_size: int
    unpacked: List[int]


def pack_output(max_value, data_length, data):
    """
    Pack values in [0, max_value] little-end first into field elements of
    FIELD_BITS bits; at least MIN_OUTPUTS elements are produced.
    """
    if max_value < 1:
        raise MalformedInput("max_value must be positive")
    max_input_bits = max_value.bit_length()
    per_output = FIELD_BITS // max_input_bits
    arr_len = max(-(-data_length // per_output) * per_output, per_output * MIN_OUTPUTS)
    output_size = max(-(-arr_len // per_output), MIN_OUTPUTS)
    values = expand(data, arr_len)

    expected = [0] * output_size
    for i, value in enumerate(values):
        expected[i // per_output] += value << ((i % per_output) * max_input_bits)

    return PackedOutput(
        max_input_bits=max_input_bits,
        max_output_bits=per_output * max_input_bits,
        output_size=output_size,
        arr_len=arr_len,
        expected=expected,
    )


def unpack_input(max_value, packed_bits, data):
    if max_value < 1:
        raise MalformedInput("max_value must be positive")
    max_input_bits = max_value.bit_length()
    per_input = packed_bits // max_input_bits
    mask = (1 << max_input_bits) - 1

    unpacked = []
    for word in data:
        unpacked.extend((word >> (j * max_input_bits)) & mask for j in range(per_input))

    return UnpackedInput(
        max_input_bits=max_input_bits,
        packed_bits=packed_bits,
        packed_size=len(data),
        unpacked_size=per_input * len(data),
        unpacked=trim(unpacked),
    )
