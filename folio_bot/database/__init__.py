# folio_bot/database/__init__.py
