# folio_bot/__init__.py
from folio_bot.config import __version__
