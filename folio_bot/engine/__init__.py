# folio_bot/engine/__init__.py
