"""Tests for ChannelState transitions and notifications."""

from whatsapp_otp.delivery.channel_state import ChannelState, ChannelStatus


def test_starts_disconnected():
    state = ChannelState()
    assert state.status is ChannelStatus.DISCONNECTED
    assert not state.is_ready


def test_transitions_notify_subscribers():
    state = ChannelState()
    seen: list[ChannelStatus] = []
    state.subscribe(seen.append)

    state.await_pairing("qr-payload")
    assert state.pairing_code == "qr-payload"
    state.mark_ready()
    assert state.pairing_code is None
    state.mark_ready()  # no change, no notification

    assert seen == [ChannelStatus.AWAITING_PAIRING, ChannelStatus.READY]
    assert state.is_ready


def test_unsubscribe():
    state = ChannelState()
    seen: list[ChannelStatus] = []
    unsubscribe = state.subscribe(seen.append)
    unsubscribe()
    state.mark_ready()
    assert seen == []


def test_failing_listener_does_not_block_others():
    state = ChannelState()
    seen: list[ChannelStatus] = []

    def broken(status):
        raise RuntimeError("boom")

    state.subscribe(broken)
    state.subscribe(seen.append)
    state.mark_ready()

    assert seen == [ChannelStatus.READY]
    assert state.is_ready
