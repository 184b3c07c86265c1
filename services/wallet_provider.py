"""
Wallet Provider Adapter
Wraps the wallet injection point: a configured private key or an EIP-1193 style JSON-RPC wallet
"""

import asyncio
import logging

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3

import config
from utils.errors import ConnectionRejectedError, NoWalletError

logger = logging.getLogger(__name__)

# EIP-1193 error codes
USER_REJECTED_CODE = 4001
METHOD_NOT_FOUND_CODE = -32601


class LocalAccountSigner:
    """Signs transactions locally with an eth_account key"""

    def __init__(self, account):
        self.account = account
        # Nonce read, signing and broadcast must not interleave between sends
        self._send_lock = asyncio.Lock()

    @property
    def address(self):
        return self.account.address

    async def send_transaction(self, w3, contract_function):
        """Build, sign and broadcast a contract call, returning the transaction hash"""
        async with self._send_lock:
            tx = await contract_function.build_transaction({
                'from': self.account.address,
                'nonce': await w3.eth.get_transaction_count(self.account.address, 'pending'),
            })
            signed_tx = self.account.sign_transaction(tx)
            return await w3.eth.send_raw_transaction(signed_tx.raw_transaction)


class NodeAccountSigner:
    """Delegates signing to the wallet behind the RPC endpoint (eth_sendTransaction)"""

    def __init__(self, address):
        self.address = address

    async def send_transaction(self, w3, contract_function):
        return await contract_function.transact({'from': self.address})


class WalletProvider:
    """Connects to the user's wallet and hands out a signing capability"""

    def __init__(self, w3: AsyncWeb3, private_key=None):
        self.w3 = w3
        self.private_key = private_key
        self._account = Account.from_key(private_key) if private_key else None
        self._local_signer = LocalAccountSigner(self._account) if self._account else None

    @classmethod
    def from_config(cls):
        """Build the provider from environment configuration"""
        rpc_url = config.RPC_URL if config.WALLET_PRIVATE_KEY else config.WALLET_RPC_URL
        logger.info(f"🔗 Wallet provider using RPC endpoint {rpc_url}")
        return cls(AsyncWeb3(AsyncHTTPProvider(rpc_url)), config.WALLET_PRIVATE_KEY)

    @property
    def uses_local_key(self):
        return self._account is not None

    async def is_available(self):
        """Check whether a wallet can be reached at all"""
        if self.uses_local_key:
            return True
        return await self.w3.is_connected()

    async def request_accounts(self):
        """
        Ask the wallet for account access

        Returns:
            list: Authorized account addresses, first one is the active account

        Raises:
            ConnectionRejectedError: The user declined or no account was authorized
            NoWalletError: The wallet endpoint could not be reached
        """
        if self.uses_local_key:
            return [self._account.address]

        response = await self._rpc('eth_requestAccounts')
        error = response.get('error')
        if error and error.get('code') == METHOD_NOT_FOUND_CODE:
            # Plain nodes expose their unlocked accounts without an approval prompt
            logger.info("🔍 eth_requestAccounts unsupported, falling back to eth_accounts")
            response = await self._rpc('eth_accounts')
            error = response.get('error')

        if error:
            if error.get('code') == USER_REJECTED_CODE:
                raise ConnectionRejectedError("User rejected the connection request", reason=error.get('message'))
            raise ConnectionRejectedError(f"Wallet refused account access: {error.get('message')}", reason=error.get('message'))

        accounts = response.get('result') or []
        if not accounts:
            raise ConnectionRejectedError("No account was authorized by the wallet")
        return list(accounts)

    def get_signing_capability(self, address):
        if self.uses_local_key:
            return self._local_signer
        return NodeAccountSigner(address)

    async def connect(self):
        """Request account access and return (address, signer)"""
        accounts = await self.request_accounts()
        address = AsyncWeb3.to_checksum_address(accounts[0])
        logger.info(f"✅ Wallet connected: {address}")
        return address, self.get_signing_capability(address)

    async def _rpc(self, method, params=None):
        try:
            return await self.w3.provider.make_request(method, params or [])
        except Exception as e:
            logger.error(f"❌ Wallet RPC {method} failed: {e}")
            raise NoWalletError(f"Wallet endpoint unreachable: {e}", reason=str(e)) from e
