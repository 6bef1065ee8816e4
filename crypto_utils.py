# crypto_utils.py
"""
JSON key documents. Only f, g and h are stored: fp and fq are re-derived on
load and the whole key is re-checked, so a tampered or mistyped key is
rejected rather than used. An optional HMAC binds the document to the
parameters it was generated for.
"""

import json

from Crypto.Hash import HMAC, SHA256

from ntru_errors import InvalidKeyState, MalformedInput
from pq_ntru import (
    Params, generate_public_key, key_traces, load_private_key,
    validate_public_key,
)


def params_json(params) -> str:
    return json.dumps(params.to_dict(), sort_keys=True)


def hmac_params(params_json: str, key: bytes) -> str:
    h = HMAC.new(key, params_json.encode(), digestmod=SHA256)
    return h.hexdigest()


def verify_hmac_params(params_json: str, key: bytes, hmac_hex: str) -> bool:
    h = HMAC.new(key, params_json.encode(), digestmod=SHA256)
    try:
        h.verify(bytes.fromhex(hmac_hex))
        return True
    except ValueError:
        return False


def _params_from_document(doc, mac_key):
    if not isinstance(doc, dict) or not isinstance(doc.get('params'), dict):
        raise MalformedInput("key document has no params")
    params = Params.from_mapping(doc['params'])
    if mac_key is not None:
        tag = doc.get('params_hmac')
        if not isinstance(tag, str) or not verify_hmac_params(params_json(params), mac_key, tag):
            raise InvalidKeyState("key document parameters failed authentication")
    return params


def _document(params, mac_key, **fields):
    doc = {'params': params.to_dict(), **fields}
    if mac_key is not None:
        doc['params_hmac'] = hmac_params(params_json(params), mac_key)
    return doc


def keypair_document(keypair, params, mac_key=None) -> dict:
    if not keypair.has_public_key:
        raise InvalidKeyState("keypair has no public key to store")
    return _document(params, mac_key, f=keypair.f, g=keypair.g, h=keypair.h)


def dump_keypair(keypair, params, mac_key=None) -> str:
    return json.dumps(keypair_document(keypair, params, mac_key))


def load_keypair_document(doc, mac_key=None):
    """Returns (keypair, params); raises InvalidKeyState for incoherent keys."""
    params = _params_from_document(doc, mac_key)
    try:
        f, g, h = doc['f'], doc['g'], doc['h']
    except KeyError as exc:
        raise MalformedInput(f"key document is missing {exc.args[0]}") from exc
    keypair = generate_public_key(load_private_key(f, params), params, g=g)
    if keypair.h != validate_public_key(h, params):
        raise InvalidKeyState("invalid h")
    key_traces(keypair, params)
    return keypair, params


def load_keypair(blob: str, mac_key=None):
    return load_keypair_document(json.loads(blob), mac_key)


def dump_public_key(h, params, mac_key=None) -> str:
    return json.dumps(_document(params, mac_key, h=validate_public_key(h, params)))


def load_public_key(blob: str, mac_key=None):
    """Returns (h, params)."""
    doc = json.loads(blob)
    params = _params_from_document(doc, mac_key)
    if 'h' not in doc:
        raise MalformedInput("public key document is missing h")
    return validate_public_key(doc['h'], params), params
