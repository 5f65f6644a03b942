# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""Unit tests for the notification streamer"""

import asyncio
import json

import pytest

from intern_mcp.mcp_transport import StreamableHTTPTransport
from intern_mcp.notification_streamer import NotificationStreamer

from conftest import INITIALIZE_BODY


def _data(frame: str):
    line = next(line for line in frame.split("\n") if line.startswith("data: "))
    return json.loads(line[len("data: "):])


async def _bound_transport(server) -> StreamableHTTPTransport:
    transport = StreamableHTTPTransport(server)
    await transport.handle_request(INITIALIZE_BODY)
    return transport


@pytest.mark.asyncio
async def test_streams_fixed_sequence(echo_server):
    """Test the established / updates / complete frame sequence"""
    transport = await _bound_transport(echo_server)
    frames = transport.open_stream()
    streamer = NotificationStreamer(transport, interval=0, count=3, logger_name="interview-scheduler")

    await streamer.start()

    received = [_data(await frames.__anext__()) for _ in range(5)]
    texts = [message["params"]["data"] for message in received]

    assert texts == [
        "Notification stream connection established",
        "Streaming update 1/3",
        "Streaming update 2/3",
        "Streaming update 3/3",
        "Streaming complete",
    ]
    assert all(message["method"] == "notifications/message" for message in received)
    assert all(message["params"]["logger"] == "interview-scheduler" for message in received)
    assert streamer.sent == 5
    assert streamer.done


@pytest.mark.asyncio
async def test_no_stream_sends_nothing(echo_server):
    transport = await _bound_transport(echo_server)
    streamer = NotificationStreamer(transport, interval=0, count=3)

    await streamer.start()

    assert streamer.sent == 0


@pytest.mark.asyncio
async def test_cancelled_when_stream_detaches(echo_server):
    transport = await _bound_transport(echo_server)
    frames = transport.open_stream()
    streamer = NotificationStreamer(transport, interval=60, count=3)
    task = streamer.start()

    first = await frames.__anext__()
    assert _data(first)["params"]["data"] == "Notification stream connection established"

    await frames.aclose()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert streamer.sent == 1


@pytest.mark.asyncio
async def test_start_is_idempotent(echo_server):
    transport = await _bound_transport(echo_server)
    transport.open_stream()
    streamer = NotificationStreamer(transport, interval=0, count=0)

    assert streamer.start() is streamer.start()
    await streamer.task
