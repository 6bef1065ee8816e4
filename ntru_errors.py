# ntru_errors.py


class NTRUError(Exception):
    """Base class for every error raised by the NTRU engine."""


class MalformedInput(NTRUError, ValueError):
    """Wrong polynomial length, out of range coefficient or bad parameters."""


class DivisionError(NTRUError, ZeroDivisionError):
    """Division by the zero polynomial, or a leading coefficient with no inverse."""


class NotInvertible(NTRUError, ValueError):
    """Polynomial has no inverse modulo (mod, x^N - 1). Expected during key search."""


class KeySearchExhausted(NTRUError, RuntimeError):
    """No invertible private key found within the configured attempt budget."""


class KeyGenerationCancelled(NTRUError, RuntimeError):
    pass


class InvalidKeyState(NTRUError, ValueError):
    """A key component is missing, or a key fails its coherency checks."""
