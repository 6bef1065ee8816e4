# bit_codec.py
"""
Framing between text and 0/1 coefficient vectors.
Each UTF-8 byte becomes 8 coefficients, most significant bit first.
"""

from poly_ring import expand_to_multiple


def string_to_bits(text: str) -> list:
    bits = []
    for byte in text.encode('utf-8'):
        bits.extend(int(b) for b in format(byte, '08b'))
    return bits


def bits_to_string(bits) -> str:
    """
    Inverse of string_to_bits. Trailing zero bits that a canonicalized
    polynomial lost are restored by padding to whole bytes; coefficients other
    than 1 read as 0 and undecodable bytes are replaced, so a wrong-key
    decryption still yields a (garbled) string.
    """
    bits = expand_to_multiple(list(bits), 8)
    data = bytes(
        int(''.join('1' if b == 1 else '0' for b in bits[i:i + 8]), 2)
        for i in range(0, len(bits), 8)
    )
    return data.decode('utf-8', errors='replace')
