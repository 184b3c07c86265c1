from flask import Blueprint, current_app, jsonify, request
from web3 import Web3

from utils.errors import (
    ActionInProgressError,
    ConnectionRejectedError,
    MetadataFetchError,
    MetadataUpdateError,
    MintError,
    NotAuthorizedError,
    NotConnectedError,
    NoWalletError,
    TicketingError,
    SessionSetupError,
    TokenFetchError,
)

tickets_bp = Blueprint('tickets', __name__, url_prefix='/tickets')

ERROR_STATUS = {
    NoWalletError: 503,
    ConnectionRejectedError: 403,
    NotAuthorizedError: 403,
    NotConnectedError: 409,
    ActionInProgressError: 409,
    TokenFetchError: 502,
    MintError: 502,
    MetadataFetchError: 502,
    MetadataUpdateError: 502,
    SessionSetupError: 500,
}


def _ticketing():
    return current_app.extensions['ticketing']


def _run(coro):
    return _ticketing()['runner'].run(coro)


def _coordinator():
    return _ticketing()['coordinator']


def _state():
    return _coordinator().view_model.snapshot()


def _blank(value):
    # Token id 0 is valid, only missing or empty values are rejected
    return value is None or str(value).strip() == ''


def _receipt_hash(receipt):
    tx_hash = receipt.get('transactionHash') if receipt else None
    if tx_hash is None or isinstance(tx_hash, str):
        return tx_hash
    return Web3.to_hex(tx_hash)


@tickets_bp.errorhandler(TicketingError)
def handle_ticketing_error(error):
    status = ERROR_STATUS.get(type(error), 500)
    return jsonify({'success': False, 'error': str(error), 'state': _state()}), status


@tickets_bp.route('/state', methods=['GET'])
def state():
    """Current view model for the client"""
    return jsonify({'success': True, 'state': _state()})


@tickets_bp.route('/session', methods=['POST'])
def connect():
    """Connect the wallet and resolve the organizer role"""
    session = _run(_coordinator().establish_session())
    return jsonify({
        'success': True,
        'account': session.address,
        'is_organizer': session.is_authorized_organizer,
        'state': _state(),
    })


@tickets_bp.route('/session', methods=['DELETE'])
def disconnect():
    _coordinator().disconnect()
    return jsonify({'success': True, 'state': _state()})


@tickets_bp.route('/tokens/refresh', methods=['POST'])
def refresh_tokens():
    records = _run(_coordinator().refresh_owned_tokens())
    return jsonify({'success': True, 'token_ids': [record.token_id for record in records], 'state': _state()})


@tickets_bp.route('/mint', methods=['POST'])
def mint():
    """Mint a ticket to the connected account"""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'success': False, 'error': 'No data provided'}), 400

    token_id = data.get('token_id')
    metadata_hash = data.get('metadata_hash')
    if _blank(token_id) or _blank(metadata_hash):
        return jsonify({'success': False, 'error': 'Token ID and metadata hash are required'}), 400

    coordinator = _coordinator()
    if coordinator.is_pending(token_id):
        return jsonify({'success': False, 'error': f'Token {token_id} already has a transaction in flight'}), 409

    receipt = _run(coordinator.mint_token(token_id, metadata_hash))
    return jsonify({
        'success': True,
        'message': f'NFT Minted with Token ID: {token_id}',
        'transaction_hash': _receipt_hash(receipt),
        'ticket_link': coordinator.ticket_link(token_id),
        'state': _state(),
    })


@tickets_bp.route('/tokens/<token_id>/metadata', methods=['GET'])
def token_metadata(token_id):
    metadata_uri = _run(_coordinator().fetch_metadata(token_id))
    return jsonify({'success': True, 'token_id': token_id, 'metadata_uri': metadata_uri, 'state': _state()})


@tickets_bp.route('/tokens/<token_id>/metadata', methods=['POST'])
def update_token_metadata(token_id):
    """Update ticket metadata (organizer only)"""
    data = request.get_json(silent=True) or {}
    coordinator = _coordinator()
    if coordinator.is_pending(token_id):
        return jsonify({'success': False, 'error': f'Token {token_id} already has a transaction in flight'}), 409

    receipt = _run(coordinator.update_metadata(token_id, data.get('metadata_hash')))
    return jsonify({
        'success': True,
        'message': f'Metadata updated for Token ID: {token_id}',
        'transaction_hash': _receipt_hash(receipt),
        'state': _state(),
    })


@tickets_bp.route('/tokens/<token_id>/link', methods=['GET'])
def token_link(token_id):
    """Link a QR code for the ticket should encode"""
    return jsonify({'success': True, 'token_id': token_id, 'ticket_link': _coordinator().ticket_link(token_id)})
