# folio_bot/handlers/__init__.py
# Importing a handler module registers its handlers and commands on `registry`.
# Add any handler modules you create here.

from folio_bot.handlers.base import registry
from folio_bot.handlers import commands_handler
from folio_bot.handlers import profile_handler
from folio_bot.handlers import link_handler
from folio_bot.handlers import media_handler
from folio_bot.handlers import security_handler

__all__ = ["registry"]
