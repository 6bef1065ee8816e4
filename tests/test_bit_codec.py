from bit_codec import bits_to_string, string_to_bits
from poly_ring import trim


def test_string_to_bits():
    # 'H' = 0x48, 'i' = 0x69
    assert string_to_bits("Hi") == [0, 1, 0, 0, 1, 0, 0, 0, 0, 1, 1, 0, 1, 0, 0, 1]
    assert len(string_to_bits("Hello World")) == 88


def test_round_trip_after_canonicalization():
    for text in ("Hello World", "@", "p", "héllo"):
        assert bits_to_string(trim(string_to_bits(text))) == text


def test_garbage_bits_do_not_raise():
    assert isinstance(bits_to_string([2, 1, 0, 2, 2, 1, 1, 1, 1, 1, 1]), str)
