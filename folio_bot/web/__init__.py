# folio_bot/web/__init__.py
