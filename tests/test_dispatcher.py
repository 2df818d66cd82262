"""Tests for outbound delivery and broadcast pacing."""

import asyncio
import random

import pytest

from attendance_bot.errors import NotReady
from attendance_bot.services.dispatch import OutboundDispatcher, PlatformReadiness
from attendance_bot.services.events import InMemoryEventLog
from tests.conftest import FakeWhatsAppClient, RecordingSleeper


def test_broadcast_counts_failures_and_paces_sends(
    dispatcher: OutboundDispatcher,
    whatsapp_client: FakeWhatsAppClient,
    sleeper: RecordingSleeper,
) -> None:
    addresses = [f"62810000000{index}" for index in range(10)]
    whatsapp_client.failing.update(addresses[2:5])

    result = asyncio.run(dispatcher.send_broadcast(addresses, "Pengumuman"))

    assert result.success_count == 7
    assert result.fail_count == 3
    assert result.total == 10
    assert len(sleeper.delays) == 9
    assert all(3.0 <= delay <= 7.0 for delay in sleeper.delays)
    assert [to for to, _ in whatsapp_client.texts] == addresses[:2] + addresses[5:]


def test_broadcast_uses_configured_delay_bounds(
    whatsapp_client: FakeWhatsAppClient,
    readiness: PlatformReadiness,
    events: InMemoryEventLog,
    sleeper: RecordingSleeper,
) -> None:
    dispatcher = OutboundDispatcher(
        client=whatsapp_client,
        readiness=readiness,
        events=events,
        min_delay_ms=100,
        max_delay_ms=200,
        sleep=sleeper,
        rng=random.Random(7),
    )

    asyncio.run(dispatcher.send_broadcast(["628111", "628222", "628333"], "Hai"))

    assert len(sleeper.delays) == 2
    assert all(0.1 <= delay <= 0.2 for delay in sleeper.delays)


def test_broadcast_fails_fast_when_not_ready(
    dispatcher: OutboundDispatcher,
    readiness: PlatformReadiness,
    whatsapp_client: FakeWhatsAppClient,
) -> None:
    readiness.mark_not_ready("logged out")

    with pytest.raises(NotReady):
        asyncio.run(dispatcher.send_broadcast(["628111"], "Hai"))

    assert whatsapp_client.texts == []


def test_send_single_reports_failure_without_raising(
    dispatcher: OutboundDispatcher, whatsapp_client: FakeWhatsAppClient
) -> None:
    whatsapp_client.failing.add("628111")

    result = asyncio.run(dispatcher.send_single("628111", "Hai"))

    assert not result.ok
    assert "delivery failed" in result.error


def test_notify_never_raises_when_not_ready(
    dispatcher: OutboundDispatcher, readiness: PlatformReadiness
) -> None:
    readiness.mark_not_ready("logged out")

    result = asyncio.run(dispatcher.notify("628111", "Hai"))

    assert not result.ok
    with pytest.raises(NotReady):
        asyncio.run(dispatcher.send_single("628111", "Hai"))


def test_refresh_readiness_tracks_probe(
    dispatcher: OutboundDispatcher,
    readiness: PlatformReadiness,
    whatsapp_client: FakeWhatsAppClient,
    events: InMemoryEventLog,
) -> None:
    whatsapp_client.connected = False

    assert not asyncio.run(dispatcher.refresh_readiness())
    assert not readiness.is_ready
    assert events.statuses["whatsapp"] == "disconnected"

    whatsapp_client.connected = True
    assert asyncio.run(dispatcher.refresh_readiness())
    assert readiness.is_ready
    assert readiness.reason is None
    assert events.statuses["whatsapp"] == "connected"
