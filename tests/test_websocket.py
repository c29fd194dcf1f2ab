"""Tests for the dashboard WebSocket manager."""

import json

import pytest

from dashboard.api.websocket import WebSocketManager


class FakeSocket:
    def __init__(self, on_send=None, fail=False):
        self.sent = []
        self.on_send = on_send
        self.fail = fail

    async def accept(self):
        pass

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))
        if self.on_send:
            await self.on_send()


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_client_joining_mid_broadcast(self):
        manager = WebSocketManager()
        late = FakeSocket()
        early = FakeSocket(on_send=lambda: manager.connect(late))
        await manager.connect(early)

        await manager.broadcast({"event": "analysis_complete", "data": {}})

        assert early.sent[0]["event"] == "analysis_complete"
        assert manager.connection_count == 2

    @pytest.mark.asyncio
    async def test_dead_socket_dropped(self):
        manager = WebSocketManager()
        healthy, dead = FakeSocket(), FakeSocket(fail=True)
        await manager.connect(healthy)
        await manager.connect(dead)

        await manager.broadcast({"event": "pong", "data": {}})

        assert manager.connection_count == 1
        assert healthy.sent[0]["event"] == "pong"
