"""
Tests for the HTTP routes.
"""


class TestStateRoutes:
    """Read-only projections over HTTP."""

    def test_index(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Poker Table is running" in response.text
        assert "Seated: 0 / 6" in response.text

    def test_lobby_state(self, client):
        state = client.get("/state").json()
        assert state["stage"] == "lobby"
        assert state["players"] == []
        assert state["community"] == []

    def test_seat_state(self, client, table):
        seat = table.join("alice")
        state = client.get(f"/state/{seat.seat_id}").json()
        assert state["me"]["name"] == "alice"
        assert state["me"]["stack"] == 1000

    def test_unknown_seat_state(self, client):
        response = client.get("/state/nope")
        assert response.status_code == 404


class TestHostRoutes:
    """HTTP mirrors of the host controls."""

    def test_start_needs_two_seats(self, client, table):
        table.join("alice")
        body = client.post("/host/start").json()
        assert body["success"] is False
        assert body["stage"] == "lobby"

    def test_start_and_next_hand(self, client, table):
        table.join("alice")
        table.join("bob")

        body = client.post("/host/start").json()
        assert body == {"success": True, "message": "Hand #1 started", "hand_id": 1, "stage": "preflop"}

        body = client.post("/host/next-hand").json()
        assert body["success"] is True
        assert body["hand_id"] == 2
        assert table.total_chips() == 2000

    def test_next_hand_in_lobby(self, client):
        body = client.post("/host/next-hand").json()
        assert body["success"] is False

    def test_reset(self, client, table):
        table.join("alice")
        table.join("bob")
        client.post("/host/start")
        body = client.post("/host/reset").json()
        assert body["success"] is True
        assert body["hand_id"] == 0
        assert client.get("/state").json()["players"] == []

    def test_remove_seat(self, client, table):
        seat = table.join("alice")
        assert client.delete(f"/seats/{seat.seat_id}").status_code == 200
        assert len(table.ledger) == 0
        assert client.delete(f"/seats/{seat.seat_id}").status_code == 404


class TestLatestLog:
    """Audit CSV download."""

    def test_no_log_yet(self, client):
        assert client.get("/latest-log").status_code == 404

    def test_download(self, client, table):
        table.join("alice")
        response = client.get("/latest-log")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.splitlines()
        assert lines[0].startswith("timestamp,handId,stage,event")
        assert ",player_join," in lines[1]
