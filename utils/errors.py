"""
Ticketing error taxonomy
Every failure surfaced to the user derives from TicketingError
"""


class TicketingError(Exception):
    """Base class for all ticketing client failures"""

    default_message = "Ticketing operation failed"

    def __init__(self, message=None, reason=None):
        self.reason = reason
        super().__init__(message or self.default_message)

    @property
    def message(self):
        return str(self)


class NoWalletError(TicketingError):
    default_message = "No wallet detected"


class ConnectionRejectedError(TicketingError):
    default_message = "Wallet connection was rejected"


class RoleResolutionError(TicketingError):
    default_message = "Could not resolve organizer role"


class TokenFetchError(TicketingError):
    default_message = "Error fetching owned tokens"


class MintError(TicketingError):
    default_message = "Error minting ticket"


class MetadataFetchError(TicketingError):
    default_message = "Error fetching token metadata"


class MetadataUpdateError(TicketingError):
    default_message = "Error updating metadata"


class NotAuthorizedError(TicketingError):
    default_message = "Only the organizer can update metadata"


class NotConnectedError(TicketingError):
    default_message = "Wallet is not connected"


class ActionInProgressError(TicketingError):
    default_message = "A transaction for this token is already in flight"


class TransactionFailedError(TicketingError):
    """Raised by a pending transaction that reverted or never confirmed"""

    default_message = "Transaction failed"

    def __init__(self, message=None, reason=None, tx_hash=None):
        self.tx_hash = tx_hash
        super().__init__(message, reason)


class SessionSetupError(TicketingError):
    """Unexpected failure while binding the wallet session to the contract"""

    default_message = "Could not set up the wallet session"
