# folio_bot/main.py
import asyncio
import logging
import sys

from aiohttp import web
from pyrogram import Client, idle
from pyrogram.enums import ParseMode
from pyrogram.errors import ApiIdInvalid, AuthKeyUnregistered

from folio_bot import config
from folio_bot.database.mongo_db import MongoDB, init_db
from folio_bot.database.stores import AccessControlList, ConfigStore, ConversationStore, MediaCatalog, StoreError
from folio_bot.engine.conversation import ConversationEngine, Services
from folio_bot.handlers import registry
from folio_bot.handlers.telegram_bridge import TelegramBridge
from folio_bot.utils.bot_api import BotApiClient, BotApiError
from folio_bot.utils.logger import AuditAction, AuditLog, configure_logging
from folio_bot.utils.notifier import UpdateNotifier
from folio_bot.web.projector import ContentProjector
from folio_bot.web.server import create_app

main_logger = logging.getLogger(__name__)


async def main():
    configure_logging()
    main_logger.info(f"Starting folio_bot v{config.__version__}...")

    missing = config.validate_config()
    if missing:
        main_logger.critical(f"Missing required environment variables: {', '.join(missing)}")
        sys.exit(1)

    # --- Database ---
    try:
        db = await init_db(config.MONGO_URI, config.DB_NAME)
    except Exception as e:
        main_logger.critical(f"Database initialization failed: {e}", exc_info=True)
        sys.exit(1)

    audit = AuditLog(db)
    notifier = UpdateNotifier()
    config_store = ConfigStore(db, audit, notifier)
    catalog = MediaCatalog(db, audit, notifier)
    acl = AccessControlList(db, audit)
    try:
        await config_store.seed_defaults(config.DEFAULT_SITE_CONFIG)
        await acl.load()
    except StoreError as e:
        main_logger.critical(f"Could not prepare site data: {e}")
        sys.exit(1)

    engine = ConversationEngine(
        config.ADMIN_CHAT_ID,
        ConversationStore(db),
        Services(config_store, catalog, acl, audit),
        registry,
    )
    missing_pairs = registry.missing()
    if missing_pairs:
        main_logger.warning(f"No handler for: {', '.join(f'{s.value}/{k.value}' for s, k in missing_pairs)}")

    bot_api = BotApiClient(config.BOT_TOKEN)
    projector = ContentProjector(config_store, catalog, bot_api, audit)

    # --- Telegram ---
    bot = None
    if config.WEBHOOK_MODE:
        notify_admin = bot_api.notify_admin
        if config.PUBLIC_URL:
            try:
                await bot_api.set_webhook(f"{config.PUBLIC_URL}{config.WEBHOOK_PATH_PREFIX}{config.BOT_TOKEN}")
            except BotApiError as e:
                main_logger.error(f"Failed to set webhook: {e}")
        else:
            main_logger.warning("WEBHOOK_MODE is on but PUBLIC_URL is not set; register the webhook yourself.")
    else:
        main_logger.info("Initializing Pyrogram client...")
        bot = Client(
            name=config.BOT_SESSION_NAME,
            api_id=int(config.API_ID),
            api_hash=config.API_HASH,
            bot_token=config.BOT_TOKEN,
            workdir=".",
            parse_mode=ParseMode.HTML,
        )
        bridge = TelegramBridge(bot, engine)
        bridge.register()
        notify_admin = bridge.notify_admin

    # --- Web server ---
    app = create_app(
        config_store=config_store,
        acl=acl,
        audit=audit,
        notifier=notifier,
        projector=projector,
        notify_admin=notify_admin,
        engine=engine if config.WEBHOOK_MODE else None,
        bot_api=bot_api,
    )
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, config.HOST, config.PORT)

    try:
        await site.start()
        main_logger.info(f"🚀 Web server running on http://{config.HOST}:{config.PORT}")
        await audit.log(AuditAction.SERVER_START, f"Server running on port {config.PORT}")

        if bot is not None:
            try:
                await bot.start()
            except (ApiIdInvalid, AuthKeyUnregistered) as e:
                main_logger.critical(f"Telegram rejected the bot credentials: {e}")
                return
            bot_user = await bot.get_me()
            main_logger.info(f"Pyrogram client started as @{bot_user.username}.")
        else:
            main_logger.info(f"Webhook mode: listening on {config.WEBHOOK_PATH_PREFIX}<token>.")

        await idle()
    finally:
        main_logger.info("Shutting down...")
        if bot is not None and bot.is_connected:
            await bot.stop()
        await runner.cleanup()
        await bot_api.close()
        await MongoDB.close()
        main_logger.info("✅ Shutdown complete.")


def run():
    """Console-script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        main_logger.info("Interrupted.")


if __name__ == "__main__":
    run()
