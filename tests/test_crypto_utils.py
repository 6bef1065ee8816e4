import json

import pytest

from crypto_utils import (
    dump_keypair, dump_public_key, hmac_params, load_keypair, load_public_key,
    params_json, verify_hmac_params,
)
from ntru_errors import InvalidKeyState, MalformedInput
from pq_ntru import KeyPair

from conftest import SMALL_F, SMALL_FP, SMALL_FQ, SMALL_H

MAC_KEY = b"k" * 32


def test_hmac_params(small_params):
    pj = params_json(small_params)
    tag = hmac_params(pj, MAC_KEY)
    assert verify_hmac_params(pj, MAC_KEY, tag)
    assert not verify_hmac_params(pj, b"x" * 32, tag)
    assert not verify_hmac_params(pj, MAC_KEY, "not hex")


def test_keypair_round_trip(small_params, small_keypair):
    blob = dump_keypair(small_keypair, small_params, mac_key=MAC_KEY)
    doc = json.loads(blob)
    assert set(doc) == {'params', 'params_hmac', 'f', 'g', 'h'}
    keypair, params = load_keypair(blob, mac_key=MAC_KEY)
    assert params == small_params
    assert keypair.fp == SMALL_FP
    assert keypair.fq == SMALL_FQ
    assert keypair.h == SMALL_H


def test_generated_keypair_round_trip(params, keypair):
    loaded, loaded_params = load_keypair(dump_keypair(keypair, params))
    assert loaded == keypair
    assert loaded_params == params


def test_tampered_h_rejected(small_params, small_keypair):
    doc = json.loads(dump_keypair(small_keypair, small_params))
    doc['h'][0] = (doc['h'][0] + 1) % 32
    with pytest.raises(InvalidKeyState):
        load_keypair(json.dumps(doc))


def test_tampered_params_rejected(small_params, small_keypair):
    doc = json.loads(dump_keypair(small_keypair, small_params, mac_key=MAC_KEY))
    doc['params']['dr'] = 2
    with pytest.raises(InvalidKeyState):
        load_keypair(json.dumps(doc), mac_key=MAC_KEY)


def test_missing_hmac_rejected(small_params, small_keypair):
    blob = dump_keypair(small_keypair, small_params)
    with pytest.raises(InvalidKeyState):
        load_keypair(blob, mac_key=MAC_KEY)


def test_non_invertible_private_key_rejected(small_params, small_keypair):
    doc = json.loads(dump_keypair(small_keypair, small_params))
    doc['f'] = [1, -1] + [0] * 9
    with pytest.raises(InvalidKeyState):
        load_keypair(json.dumps(doc))


def test_missing_fields(small_params, small_keypair):
    doc = json.loads(dump_keypair(small_keypair, small_params))
    del doc['g']
    with pytest.raises(MalformedInput):
        load_keypair(json.dumps(doc))


def test_private_only_keypair_cannot_be_dumped(small_params):
    with pytest.raises(InvalidKeyState):
        dump_keypair(KeyPair(f=SMALL_F, fp=SMALL_FP, fq=SMALL_FQ), small_params)


def test_public_key_round_trip(small_params):
    blob = dump_public_key(SMALL_H, small_params, mac_key=MAC_KEY)
    h, params = load_public_key(blob, mac_key=MAC_KEY)
    assert h == SMALL_H
    assert params == small_params


def test_public_key_out_of_range(small_params):
    with pytest.raises(MalformedInput):
        dump_public_key([32] + SMALL_H[1:], small_params)


@pytest.mark.parametrize("name, value", [
    ('f', 5), ('f', [0.5] * 11), ('g', [True] * 11), ('h', "8,25"),
])
def test_wrongly_typed_fields(small_params, small_keypair, name, value):
    doc = json.loads(dump_keypair(small_keypair, small_params))
    doc[name] = value
    with pytest.raises(MalformedInput):
        load_keypair(json.dumps(doc))


def test_non_string_hmac_rejected(small_params, small_keypair):
    doc = json.loads(dump_keypair(small_keypair, small_params, mac_key=MAC_KEY))
    doc['params_hmac'] = 12
    with pytest.raises(InvalidKeyState):
        load_keypair(json.dumps(doc), mac_key=MAC_KEY)
