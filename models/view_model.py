import logging
from dataclasses import replace

import config
from models.session import ActionKind, ActionState, ConnectionState

logger = logging.getLogger(__name__)


class TicketingViewModel:
    """
    Observable local state consumed by the presentation layer

    Only the session coordinator mutates it. Listeners registered with
    subscribe() are called with (field_name, view_model) after every change.
    """

    def __init__(self, link_base=None):
        self.link_base = (link_base or config.TICKET_LINK_BASE).rstrip('/')
        self._listeners = []
        self._reset()

    def _reset(self):
        self._clear_account()
        self._connection_state = ConnectionState.DISCONNECTED
        self.pending_token_ids = set()
        self.action_states = {kind: ActionState.IDLE for kind in ActionKind}
        self.last_message = None
        self.last_error = None

    def _clear_account(self):
        self._account = ''
        self._is_organizer = False
        self._tokens = []
        self.selected_token_id = None
        self.metadata_uri = None

    # Observation

    def subscribe(self, listener):
        """Register a change listener and return a callable that removes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, field_name):
        for listener in list(self._listeners):
            listener(field_name, self)

    # Read-only view

    @property
    def connection_state(self):
        return self._connection_state

    @property
    def account(self):
        return self._account

    @property
    def is_organizer(self):
        return self._is_organizer

    @property
    def is_connected(self):
        return self._connection_state == ConnectionState.CONNECTED

    @property
    def tokens(self):
        return list(self._tokens)

    @property
    def token_ids(self):
        return [record.token_id for record in self._tokens]

    def ticket_link(self, token_id):
        """URL encoded into the ticket's QR code"""
        return f"{self.link_base}/{token_id}"

    def snapshot(self):
        return {
            'connection_state': self._connection_state.value,
            'account': self._account,
            'is_organizer': self._is_organizer,
            'tokens': [
                {'token_id': record.token_id, 'metadata_uri': record.metadata_uri}
                for record in self._tokens
            ],
            'selected_token_id': self.selected_token_id,
            'metadata_uri': self.metadata_uri,
            'pending_token_ids': sorted(self.pending_token_ids),
            'action_states': {kind.value: state.value for kind, state in self.action_states.items()},
            'last_message': self.last_message,
            'last_error': self.last_error,
        }

    # Coordinator-side updates

    def set_connecting(self):
        """Nothing from the previous account stays visible while connecting"""
        self._clear_account()
        self._connection_state = ConnectionState.CONNECTING
        self._notify('connection_state')

    def apply_session(self, session):
        """Show a fully established session; the role flag only ever comes from here"""
        self._clear_account()
        self._account = session.address
        self._is_organizer = bool(session.is_authorized_organizer)
        self._connection_state = ConnectionState.CONNECTED
        self._notify('session')

    def clear_session(self):
        # In-flight transactions still settle, so their pending ids and action states stay
        self._clear_account()
        self._connection_state = ConnectionState.DISCONNECTED
        self.last_message = None
        self._notify('session')

    def replace_tokens(self, records):
        self._tokens = list(records)
        self._notify('tokens')

    def show_metadata(self, token_id, metadata_uri):
        self.selected_token_id = token_id
        self.metadata_uri = metadata_uri
        self._tokens = [
            replace(record, metadata_uri=metadata_uri) if record.token_id == token_id else record
            for record in self._tokens
        ]
        self._notify('metadata')

    def set_action_state(self, kind, state, token_id=None):
        self.action_states[kind] = state
        if token_id is not None:
            if state == ActionState.SUBMITTED:
                self.pending_token_ids.add(token_id)
            else:
                self.pending_token_ids.discard(token_id)
        self._notify('action_states')

    def report(self, message):
        logger.info(f"✅ {message}")
        self.last_message = message
        self.last_error = None
        self._notify('last_message')

    def report_error(self, error):
        self.last_error = str(error)
        self._notify('last_error')
