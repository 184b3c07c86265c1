"""
Session Coordinator
Establishes the wallet session, resolves the organizer role and runs ticket actions,
keeping the view model consistent with the contract
"""

import logging

import config
from models.session import ActionKind, ActionState, PendingAction, Session, TokenRecord
from models.view_model import TicketingViewModel
from services.ticket_contract import ORGANIZER_ROLE_HASH, TicketContractClient
from utils.errors import (
    ActionInProgressError,
    MetadataFetchError,
    MetadataUpdateError,
    MintError,
    NotAuthorizedError,
    NotConnectedError,
    NoWalletError,
    RoleResolutionError,
    SessionSetupError,
    TicketingError,
    TokenFetchError,
)

logger = logging.getLogger(__name__)


def ipfs_uri(metadata_hash):
    return f"ipfs://{metadata_hash}"


def _clean(value):
    return str(value).strip() if value is not None else ''


def _reason(error):
    return getattr(error, 'reason', None) or str(error)


def build_token_records(token_ids):
    """One record per token id, keeping the contract's order"""
    records = []
    seen = set()
    for token_id in token_ids:
        token_id = str(token_id)
        if token_id in seen:
            continue
        seen.add(token_id)
        records.append(TokenRecord(token_id=token_id))
    return records


class SessionCoordinator:
    """Owns the session for one user and drives every contract interaction"""

    def __init__(self, wallet_provider, view_model: TicketingViewModel = None,
                 contract_address=None, contract_factory=None):
        self.wallet_provider = wallet_provider
        self.view_model = view_model or TicketingViewModel()
        self.contract_address = contract_address or config.CONTRACT_ADDRESS
        self.contract_factory = contract_factory or self._build_contract_client
        self._session = None
        self._contract = None
        self._pending = {}

    def _build_contract_client(self, contract_address, signer):
        return TicketContractClient(
            self.wallet_provider.w3,
            contract_address,
            signer,
            confirmation_timeout=config.CONFIRMATION_TIMEOUT,
        )

    @property
    def session(self):
        return self._session

    @property
    def contract(self):
        return self._contract

    def is_pending(self, token_id):
        """Whether a mint or metadata update for this token is in flight"""
        return _clean(token_id) in self._pending

    def ticket_link(self, token_id):
        return self.view_model.ticket_link(_clean(token_id))

    # Session lifecycle

    async def establish_session(self):
        """
        Connect the wallet, resolve the organizer role and load owned tokens

        Returns:
            Session: The new session; any previous session is replaced

        Raises:
            NoWalletError: No wallet is available, nothing else is attempted
            ConnectionRejectedError: The user declined account access
            SessionSetupError: Any other failure while binding the session
        """
        self._drop_session()
        self.view_model.set_connecting()
        try:
            if not await self.wallet_provider.is_available():
                raise NoWalletError("No wallet detected")
            address, signer = await self.wallet_provider.connect()
            contract = self.contract_factory(self.contract_address, signer)
        except Exception as e:
            logger.error(f"❌ Error establishing session: {e}")
            error = e if isinstance(e, TicketingError) else SessionSetupError(
                f"Could not set up the wallet session: {e}", reason=str(e)
            )
            self.view_model.clear_session()
            self.view_model.report_error(error)
            if error is e:
                raise
            raise error from e

        is_organizer = await self._resolve_role(contract, address)
        session = Session(address=address, signer=signer, is_authorized_organizer=is_organizer)
        self._session = session
        self._contract = contract
        self.view_model.apply_session(session)
        logger.info(f"✅ Session established for {address} (organizer: {is_organizer})")

        try:
            await self.refresh_owned_tokens(address)
        except TokenFetchError:
            # Already reported; the session stays usable with an empty token list
            pass
        return session

    def disconnect(self):
        self._drop_session()
        self.view_model.clear_session()
        logger.info("🔌 Session disconnected")

    def _drop_session(self):
        # In-flight actions stay tracked until they settle
        self._session = None
        self._contract = None

    async def _resolve_role(self, contract, address):
        try:
            return bool(await contract.has_role(ORGANIZER_ROLE_HASH, address))
        except Exception as e:
            error = RoleResolutionError(f"Could not resolve organizer role: {e}", reason=str(e))
            logger.warning(f"⚠️ {error}, continuing as non-organizer")
            self.view_model.report_error(error)
            return False

    def _require_session(self):
        if self._session is None:
            raise self._fail(NotConnectedError())
        return self._session

    def _fail(self, error):
        logger.error(f"❌ {error}")
        self.view_model.report_error(error)
        return error

    # Reads

    async def refresh_owned_tokens(self, address=None):
        """
        Replace the active token set with the contract's enumeration for an address

        A failure keeps the previous token set and raises TokenFetchError.
        """
        session = self._require_session()
        contract = self._contract
        address = address or session.address
        try:
            token_ids = await contract.get_token_uris_for_owner(address)
        except Exception as e:
            raise self._fail(TokenFetchError(f"Error fetching user's token URIs: {e}", reason=str(e))) from e

        if self._session is not session:
            logger.info(f"🔍 Discarding token list for {address}, session changed")
            return self.view_model.tokens

        records = build_token_records(token_ids)
        self.view_model.replace_tokens(records)
        logger.info(f"🔍 {address} owns {len(records)} ticket(s)")
        return records

    async def fetch_metadata(self, token_id):
        """Query tokenURI and show the raw URI for the token; never cached"""
        session = self._require_session()
        contract = self._contract
        token_id = _clean(token_id)
        if not token_id:
            raise self._fail(MetadataFetchError("Token ID is required"))

        self.view_model.set_action_state(ActionKind.FETCH_METADATA, ActionState.SUBMITTED)
        try:
            metadata_uri = await contract.token_uri(token_id)
        except Exception as e:
            self._settle(ActionKind.FETCH_METADATA, ActionState.FAILED)
            raise self._fail(MetadataFetchError(f"Error fetching token metadata: {e}", reason=str(e))) from e

        self._settle(ActionKind.FETCH_METADATA, ActionState.CONFIRMED)
        if self._session is session:
            self.view_model.show_metadata(token_id, metadata_uri)
        return metadata_uri

    # Transactions

    async def mint_token(self, token_id, metadata_hash):
        """
        Mint a ticket to the session's own address

        The token list is only refreshed after the transaction is confirmed.

        Args:
            token_id (str): Ticket token id; uniqueness is enforced by the contract
            metadata_hash (str): IPFS hash of the ticket metadata

        Returns:
            receipt: Receipt of the confirmed mint transaction
        """
        session = self._require_session()
        contract = self._contract
        token_id = _clean(token_id)
        metadata_hash = _clean(metadata_hash)
        if not token_id or not metadata_hash:
            raise self._fail(MintError("Token ID and metadata hash are required"))

        uri = ipfs_uri(metadata_hash)
        action = self._begin(ActionKind.MINT, token_id, uri)
        try:
            pending = await contract.mint_nft(session.address, token_id, uri)
            receipt = await pending.await_confirmation()
        except Exception as e:
            self._finish(action, ActionState.FAILED)
            raise self._fail(MintError(f"Error minting NFT: {_reason(e)}", reason=_reason(e))) from e

        self._finish(action, ActionState.CONFIRMED)
        self.view_model.report(f"NFT Minted with Token ID: {token_id}")

        if self._session is session:
            try:
                await self.refresh_owned_tokens(session.address)
            except TokenFetchError:
                # Mint is confirmed; the stale list stays until the next refresh
                pass
        return receipt

    async def update_metadata(self, token_id, metadata_hash):
        """
        Point a ticket at new metadata (organizer only)

        The organizer check here only gates the UI; the contract still enforces the role.

        Raises:
            NotAuthorizedError: No session, not an organizer, or missing input; no contract call is made
            MetadataUpdateError: Submission failed or the transaction reverted
        """
        session = self._session
        token_id = _clean(token_id)
        metadata_hash = _clean(metadata_hash)
        if session is None or not session.is_authorized_organizer or not token_id or not metadata_hash:
            raise self._fail(NotAuthorizedError())

        contract = self._contract
        uri = ipfs_uri(metadata_hash)
        action = self._begin(ActionKind.UPDATE_METADATA, token_id, uri)
        try:
            pending = await contract.update_metadata(token_id, uri)
            receipt = await pending.await_confirmation()
        except Exception as e:
            self._finish(action, ActionState.FAILED)
            raise self._fail(MetadataUpdateError(f"Error updating metadata: {_reason(e)}", reason=_reason(e))) from e

        self._finish(action, ActionState.CONFIRMED)
        self.view_model.report(f"Metadata updated for Token ID: {token_id}")
        return receipt

    def _begin(self, kind, token_id, metadata_uri):
        if token_id in self._pending:
            in_flight = self._pending[token_id]
            raise self._fail(ActionInProgressError(
                f"A {in_flight.kind.value} transaction for token {token_id} is already in flight"
            ))
        action = PendingAction(kind=kind, token_id=token_id, metadata_uri=metadata_uri)
        self._pending[token_id] = action
        self.view_model.set_action_state(kind, ActionState.SUBMITTED, token_id)
        return action

    def _finish(self, action, state):
        action.state = state
        if self._pending.get(action.token_id) is action:
            del self._pending[action.token_id]
        self._settle(action.kind, state, action.token_id)

    def _settle(self, kind, state, token_id=None):
        self.view_model.set_action_state(kind, state, token_id)
        self.view_model.set_action_state(kind, ActionState.IDLE, token_id)
