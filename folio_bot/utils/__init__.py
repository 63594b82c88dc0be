# folio_bot/utils/__init__.py
