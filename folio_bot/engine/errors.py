# folio_bot/engine/errors.py
"""
Failure taxonomy for the conversation engine.

Handlers raise these; ConversationEngine decides what happens to the actor's
state. Store failures come from folio_bot.database.stores.StoreError and are
handled there too.
"""


class ConversationFailure(Exception):
    """Base class. `message` is what the admin sees."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationFailure(ConversationFailure):
    """Event from someone other than the configured admin."""


class ValidationFailure(ConversationFailure):
    """Bad input for the current step. The actor stays where they are."""


class NotFoundFailure(ConversationFailure):
    """
    A referenced media id does not exist.
    `retry=True` keeps the actor in the current step, otherwise the dialog ends.
    """

    def __init__(self, message: str, retry: bool = True):
        super().__init__(message)
        self.retry = retry
