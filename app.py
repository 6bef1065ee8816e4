import os

from flask import Flask, current_app, jsonify, request

from bit_codec import bits_to_string, string_to_bits
from crypto_utils import keypair_document, load_keypair_document
from ntru_errors import KeySearchExhausted, MalformedInput, NTRUError
from ntru_witness import decrypt_witness, encrypt_witness, key_witness
from pq_ntru import Params, add_ciphertexts, generate_keypair

DEFAULTS = Params()


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_mapping(
        NTRU_N=DEFAULTS.N,
        NTRU_P=DEFAULTS.p,
        NTRU_Q=DEFAULTS.q,
        NTRU_DF=DEFAULTS.df,
        NTRU_DG=DEFAULTS.dg,
        NTRU_DR=DEFAULTS.dr,
        NTRU_MAX_ATTEMPTS=DEFAULTS.max_attempts,
        NTRU_MULTIPLY_METHOD=DEFAULTS.multiply_method,
        PARAM_HMAC_KEY=os.urandom(32),
    )
    # FLASK_NTRU_N=251 etc.
    app.config.from_prefixed_env()
    if test_config is not None:
        app.config.from_mapping(test_config)

    # fail at startup, not on the first request
    app.extensions['ntru_params'] = _params_from_config(app.config)

    register_routes(app)
    register_error_handlers(app)
    return app


def _params_from_config(config):
    return Params(
        N=int(config['NTRU_N']),
        p=int(config['NTRU_P']),
        q=int(config['NTRU_Q']),
        df=int(config['NTRU_DF']),
        dg=int(config['NTRU_DG']),
        dr=int(config['NTRU_DR']),
        max_attempts=int(config['NTRU_MAX_ATTEMPTS']),
        multiply_method=config['NTRU_MULTIPLY_METHOD'],
    )


def _params():
    return current_app.extensions['ntru_params']


def _payload():
    payload = request.get_json(force=True, silent=True)
    if not isinstance(payload, dict):
        raise MalformedInput("request body must be a JSON object")
    return payload


def _field(payload, name):
    if name not in payload:
        raise MalformedInput(f"missing field {name!r}")
    return payload[name]


def _load_key(payload):
    keypair, params = load_keypair_document(
        _field(payload, 'key'), current_app.config['PARAM_HMAC_KEY'])
    if params != _params():
        raise MalformedInput("key was generated for different parameters")
    return keypair


def register_routes(app):

    @app.route('/')
    def index():
        return jsonify({'status': 'NTRU witness service online', 'params': _params().to_dict()})

    @app.route('/keys', methods=['POST'])
    def create_keys():
        params = _params()
        keypair = generate_keypair(params)
        doc = keypair_document(keypair, params, current_app.config['PARAM_HMAC_KEY'])
        current_app.logger.info("generated keypair for N=%d q=%d", params.N, params.q)
        return jsonify({'key': doc, 'h': keypair.h}), 201

    @app.route('/encrypt', methods=['POST'])
    def encrypt():
        payload = _payload()
        h = _field(payload, 'h')
        if 'text' in payload:
            if not isinstance(payload['text'], str):
                raise MalformedInput("text must be a string")
            m = string_to_bits(payload['text'])
        else:
            m = _field(payload, 'm')
        return jsonify(encrypt_witness(m, h, _params()).to_dict())

    @app.route('/decrypt', methods=['POST'])
    def decrypt():
        payload = _payload()
        keypair = _load_key(payload)
        witness = decrypt_witness(_field(payload, 'e'), keypair, _params())
        body = witness.to_dict()
        if payload.get('as_text'):
            body['text'] = bits_to_string(witness.value)
        return jsonify(body)

    @app.route('/add', methods=['POST'])
    def add():
        payload = _payload()
        return jsonify({'e': add_ciphertexts(_field(payload, 'e1'), _field(payload, 'e2'), _params())})

    @app.route('/verify-keys', methods=['POST'])
    def verify_keys():
        keypair = _load_key(_payload())
        witnesses = key_witness(keypair, _params())
        return jsonify({label: w.to_dict() for label, w in witnesses.items()})


def register_error_handlers(app):

    @app.errorhandler(KeySearchExhausted)
    def key_search_exhausted(e):
        current_app.logger.error("key search exhausted: %s", e)
        return jsonify({'error': str(e), 'type': type(e).__name__}), 503

    @app.errorhandler(NTRUError)
    def ntru_error(e):
        current_app.logger.warning("rejected request: %s", e)
        return jsonify({'error': str(e), 'type': type(e).__name__}), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'not found'}), 404

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({'error': 'internal server error'}), 500


if __name__ == '__main__':
    create_app().run(debug=True)
