"""
Tests for the WebSocket protocol.
"""


def receive_until(ws, msg_type, limit=20, **expected):
    """Read messages until one of ``msg_type`` (with ``expected`` fields) arrives."""
    for _ in range(limit):
        message = ws.receive_json()
        if message["type"] == msg_type and all(message.get(k) == v for k, v in expected.items()):
            return message
    raise AssertionError(f"No {msg_type} message received")


def join(client_ws, name):
    client_ws.send_json({"type": "player:join", "name": name})
    accepted = client_ws.receive_json()
    assert accepted["type"] == "player:accepted"
    state = client_ws.receive_json()
    assert state["type"] == "state:update"
    return accepted["id"], state


class TestHostSocket:
    """host:join and host controls."""

    def test_host_welcome(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "host:join"})
            assert ws.receive_json() == {"type": "host:welcome", "ok": True}
            state = ws.receive_json()
            assert state["type"] == "state:update"
            assert state["stage"] == "lobby"
            assert "sidePots" in state

    def test_host_start_broadcasts(self, client, table):
        table.join("alice")
        table.join("bob")
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "host:join"})
            receive_until(ws, "state:update")
            ws.send_json({"type": "host:start"})
            state = receive_until(ws, "state:update", stage="preflop")
            assert all(len(p["cards"]) == 2 for p in state["players"])


class TestPlayerSocket:
    """Seating and actions over the socket."""

    def test_join_accepted(self, client, table):
        with client.websocket_connect("/ws") as ws:
            seat_id, state = join(ws, "alice")
            assert state["me"]["id"] == seat_id
            assert state["me"]["name"] == "alice"
            assert table.ledger.get(seat_id) is not None

    def test_join_rejected_after_start(self, client, table):
        table.join("alice")
        table.join("bob")
        table.start_table()
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "player:join", "name": "late"})
            assert ws.receive_json() == {"type": "player:reject", "reason": "Table full or game started"}

    def test_actions_reach_table(self, client, table):
        with client.websocket_connect("/ws") as ws_a, client.websocket_connect("/ws") as ws_b:
            a_id, _ = join(ws_a, "alice")
            join(ws_b, "bob")
            client.post("/host/start")

            state = receive_until(ws_a, "state:update", stage="preflop")
            assert state["currentActorId"] == a_id
            assert state["toCall"] == 10

            ws_a.send_json({"type": "player:action", "action": "CALL", "amount": "junk"})
            state = receive_until(ws_a, "state:update")
            assert state["me"]["bet"] == 20
            assert state["currentActorId"] != a_id

    def test_action_when_not_seated(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "player:action", "action": "call"})
            assert ws.receive_json() == {"type": "error", "message": "Not seated"}

    def test_disconnect_marks_seat(self, client, table):
        with client.websocket_connect("/ws") as ws:
            seat_id, _ = join(ws, "alice")
        assert table.ledger.get(seat_id).connected is False

    def test_rejoin(self, client, table):
        seat = table.join("alice")
        table.disconnect(seat.seat_id)
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "player:rejoin", "seat_id": seat.seat_id})
            assert ws.receive_json() == {"type": "player:accepted", "id": seat.seat_id}
            state = receive_until(ws, "state:update")
            assert state["me"]["id"] == seat.seat_id
        assert table.ledger.get(seat.seat_id) is not None

    def test_rejoin_unknown(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "player:rejoin", "seat_id": "nope"})
            assert ws.receive_json() == {"type": "player:reject", "reason": "Unknown seat"}

    def test_removed_player_is_told(self, client, table):
        with client.websocket_connect("/ws") as ws, client.websocket_connect("/ws") as host:
            seat_id, _ = join(ws, "alice")
            host.send_json({"type": "host:removePlayer", "seat_id": seat_id})
            assert receive_until(ws, "player:removed") == {"type": "player:removed"}
            assert table.ledger.get(seat_id) is None


class TestMalformedMessages:
    """Bad input is answered, never raised."""

    def test_invalid_json(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("{not json")
            assert ws.receive_json()["type"] == "error"

    def test_missing_type(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"name": "alice"})
            assert ws.receive_json()["type"] == "error"

    def test_unknown_type(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "player:dance"})
            assert ws.receive_json() == {"type": "error", "message": "Unknown message type: player:dance"}

    def test_bad_payload(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "host:removePlayer"})
            assert ws.receive_json()["type"] == "error"
