import asyncio

from folio_bot.utils.notifier import UPDATE_EVENT, UpdateNotifier
from tests.fakes import RecordingChannel
from tests.harness import run


class _SlowChannel:
    async def send(self, data: bytes) -> None:
        await asyncio.sleep(10)


def test_publish_reaches_every_channel():
    notifier = UpdateNotifier(write_timeout=1)
    channels = [RecordingChannel() for _ in range(3)]
    for channel in channels:
        notifier.subscribe(channel)

    assert run(notifier.publish()) == 3
    assert all(channel.sent == [UPDATE_EVENT] for channel in channels)


def test_publish_with_no_channels():
    notifier = UpdateNotifier()
    assert run(notifier.publish()) == 0
    assert notifier.publish_count == 1


def test_failing_channel_is_dropped_without_affecting_others():
    notifier = UpdateNotifier(write_timeout=1)
    good = RecordingChannel()
    bad = RecordingChannel(error=ConnectionResetError("peer went away"))
    notifier.subscribe(good)
    bad_subscription = notifier.subscribe(bad)

    assert run(notifier.publish()) == 1
    assert bad_subscription.closed
    assert len(notifier) == 1

    assert run(notifier.publish()) == 1
    assert good.sent == [UPDATE_EVENT, UPDATE_EVENT]


def test_stalled_channel_times_out_and_is_dropped():
    notifier = UpdateNotifier(write_timeout=0.05)
    good = RecordingChannel()
    notifier.subscribe(good)
    slow = notifier.subscribe(_SlowChannel())

    assert run(notifier.publish()) == 1
    assert slow.closed
    assert good.sent == [UPDATE_EVENT]


def test_subscription_close_is_idempotent():
    notifier = UpdateNotifier()
    subscription = notifier.subscribe(RecordingChannel())
    subscription.close()
    subscription.close()
    assert subscription.closed
    assert len(notifier) == 0


def test_subscription_as_context_manager():
    notifier = UpdateNotifier()
    channel = RecordingChannel()
    with notifier.subscribe(channel) as subscription:
        assert not subscription.closed
        assert len(notifier) == 1
    assert len(notifier) == 0
    assert run(notifier.publish()) == 0
    assert channel.sent == []


def test_unexpected_channel_error_is_contained():
    notifier = UpdateNotifier(write_timeout=1)
    good = RecordingChannel()
    notifier.subscribe(good)
    broken = notifier.subscribe(RecordingChannel(error=ValueError("bad frame")))

    assert run(notifier.publish()) == 1
    assert broken.closed
    assert good.sent == [UPDATE_EVENT]
