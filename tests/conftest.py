import pytest

from pq_ntru import KeyPair, Params, generate_keypair

# Textbook example, N=11 p=3 q=32
SMALL_F = [-1, 1, 1, 0, -1, 0, 1, 0, 0, 1, -1]
SMALL_FP = [1, 2, 0, 2, 2, 1, 0, 2, 1, 2]
SMALL_FQ = [5, 9, 6, 16, 4, 15, 16, 22, 20, 18, 30]
SMALL_G = [-1, 0, 1, 1, 0, 1, 0, 0, -1, 0, -1]
SMALL_H = [8, 25, 22, 20, 12, 24, 15, 19, 12, 19, 16]
SMALL_M = [-1, 0, 0, 1, -1, 0, 0, 0, -1, 1, 1]
SMALL_R = [-1, 0, 1, 1, 1, -1, 0, -1, 0, 0, 0]
SMALL_E = [14, 11, 26, 24, 14, 16, 30, 7, 25, 6, 19]


@pytest.fixture
def small_params():
    return Params(N=11, p=3, q=32, df=4, dg=3, dr=3)


@pytest.fixture
def small_keypair():
    return KeyPair(f=SMALL_F, fp=SMALL_FP, fq=SMALL_FQ, g=SMALL_G, h=SMALL_H)


@pytest.fixture(scope="session")
def params():
    return Params()


@pytest.fixture(scope="session")
def keypair(params):
    return generate_keypair(params)
