"""
EventNFT Contract Client
Typed async wrapper over the ticketing contract
"""

import json
import logging
from pathlib import Path

from web3 import Web3
from web3.exceptions import TimeExhausted

import config
from utils.errors import TransactionFailedError

logger = logging.getLogger(__name__)

ARTIFACTS_DIR = Path(__file__).parent.parent / 'contracts' / 'artifacts'

# keccak256("ORGANIZER_ROLE"), as AccessControl hashes role names
ORGANIZER_ROLE_HASH = Web3.keccak(text="ORGANIZER_ROLE")


def load_contract_abi(contract_name):
    """Load a contract ABI from the artifacts directory"""
    abi_file = ARTIFACTS_DIR / f'{contract_name}.json'
    if not abi_file.exists():
        raise ValueError(f"ABI not found for contract: {contract_name}")
    with open(abi_file, 'r') as f:
        return json.load(f)['abi']


def to_token_uint(token_id):
    """Token ids travel as strings locally and as uint256 on chain"""
    try:
        value = int(str(token_id).strip())
    except ValueError:
        raise ValueError(f"Token ID must be an unsigned integer, got {token_id!r}")
    if value < 0:
        raise ValueError(f"Token ID must be an unsigned integer, got {token_id!r}")
    return value


class PendingTransaction:
    """Handle to a submitted state-changing call"""

    def __init__(self, w3, tx_hash, timeout=None):
        self.w3 = w3
        self.tx_hash = tx_hash
        self.timeout = timeout or config.CONFIRMATION_TIMEOUT

    @property
    def hash_hex(self):
        return Web3.to_hex(self.tx_hash)

    async def await_confirmation(self):
        """
        Wait until the transaction is mined

        Returns:
            receipt: The transaction receipt of a successful transaction

        Raises:
            TransactionFailedError: Reverted on chain or not mined before the timeout
        """
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(self.tx_hash, timeout=self.timeout)
        except TimeExhausted as e:
            raise TransactionFailedError(
                f"Transaction {self.hash_hex} not confirmed after {self.timeout}s",
                reason=str(e),
                tx_hash=self.hash_hex,
            ) from e

        if receipt['status'] != 1:
            raise TransactionFailedError(
                f"Transaction {self.hash_hex} reverted",
                reason=f"status {receipt['status']} in block {receipt.get('blockNumber')}",
                tx_hash=self.hash_hex,
            )
        logger.info(f"✅ Transaction {self.hash_hex} confirmed in block {receipt.get('blockNumber')}")
        return receipt


class TicketContractClient:
    """Client bound to one contract address and one signer for the life of a session"""

    def __init__(self, w3, contract_address, signer, abi=None, confirmation_timeout=None):
        self._w3 = w3
        self._address = Web3.to_checksum_address(contract_address)
        self._signer = signer
        self._contract = w3.eth.contract(address=self._address, abi=abi or load_contract_abi('EventNFT'))
        self.confirmation_timeout = confirmation_timeout or config.CONFIRMATION_TIMEOUT

    @property
    def address(self):
        return self._address

    @property
    def signer(self):
        return self._signer

    async def has_role(self, role_hash, account_address):
        return await self._contract.functions.hasRole(role_hash, Web3.to_checksum_address(account_address)).call()

    async def get_token_uris_for_owner(self, owner_address):
        """Token ids owned by an address, as strings"""
        token_ids = await self._contract.functions.getTokenURIsForOwner(Web3.to_checksum_address(owner_address)).call()
        return [str(token_id) for token_id in token_ids]

    async def token_uri(self, token_id):
        return await self._contract.functions.tokenURI(to_token_uint(token_id)).call()

    async def mint_nft(self, to_address, token_id, uri):
        function = self._contract.functions.mintNFT(Web3.to_checksum_address(to_address), to_token_uint(token_id), uri)
        return await self._transact('mintNFT', function)

    async def update_metadata(self, token_id, uri):
        function = self._contract.functions.updateMetadata(to_token_uint(token_id), uri)
        return await self._transact('updateMetadata', function)

    async def _transact(self, function_name, function):
        tx_hash = await self._signer.send_transaction(self._w3, function)
        pending = PendingTransaction(self._w3, tx_hash, self.confirmation_timeout)
        logger.info(f"🔧 {function_name} submitted: {pending.hash_hex}")
        return pending
