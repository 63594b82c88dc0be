# folio_bot/utils/notifier.py
import asyncio
import logging
import itertools
from typing import Dict, Optional, Protocol

from aiohttp import web

from folio_bot import config

notifier_logger = logging.getLogger(__name__)

UPDATE_EVENT = b"data: update\n\n"


class LiveChannel(Protocol):
    async def send(self, data: bytes) -> None: ...


class SSEChannel:
    """Adapts a prepared aiohttp StreamResponse to the LiveChannel protocol."""

    def __init__(self, response: web.StreamResponse):
        self.response = response

    async def send(self, data: bytes) -> None:
        await self.response.write(data)


class Subscription:
    """Handle returned by UpdateNotifier.subscribe(). Closing it twice is harmless."""

    def __init__(self, notifier: "UpdateNotifier", channel_id: int):
        self._notifier = notifier
        self.channel_id = channel_id

    @property
    def closed(self) -> bool:
        return not self._notifier.is_registered(self.channel_id)

    def close(self) -> None:
        self._notifier.unsubscribe(self.channel_id)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class UpdateNotifier:
    """
    Set of live client channels plus a content-free "something changed" signal.

    The channel set is only touched from the event loop thread, inside a
    single dispatch turn, so no lock is needed.
    """

    def __init__(self, write_timeout: Optional[float] = None):
        self._channels: Dict[int, LiveChannel] = {}
        self._ids = itertools.count(1)
        self.write_timeout = write_timeout if write_timeout is not None else config.NOTIFY_WRITE_TIMEOUT
        self.publish_count = 0

    def __len__(self) -> int:
        return len(self._channels)

    def is_registered(self, channel_id: int) -> bool:
        return channel_id in self._channels

    def subscribe(self, channel: LiveChannel) -> Subscription:
        channel_id = next(self._ids)
        self._channels[channel_id] = channel
        notifier_logger.debug(f"Live channel {channel_id} subscribed ({len(self._channels)} active).")
        return Subscription(self, channel_id)

    def unsubscribe(self, channel_id: int) -> None:
        if self._channels.pop(channel_id, None) is not None:
            notifier_logger.debug(f"Live channel {channel_id} unsubscribed ({len(self._channels)} active).")

    async def _deliver(self, channel_id: int, channel: LiveChannel) -> bool:
        try:
            await asyncio.wait_for(channel.send(UPDATE_EVENT), timeout=self.write_timeout)
            return True
        except Exception as e:
            notifier_logger.warning(f"Dropping live channel {channel_id} after failed write: {e!r}")
            self.unsubscribe(channel_id)
            return False

    async def publish(self) -> int:
        """Signals every registered channel. Returns how many were reached."""
        self.publish_count += 1
        targets = list(self._channels.items())
        if not targets:
            return 0
        results = await asyncio.gather(*(self._deliver(cid, ch) for cid, ch in targets))
        delivered = sum(1 for ok in results if ok)
        notifier_logger.info(f"Broadcast update to {delivered}/{len(targets)} live clients.")
        return delivered
