"""Platform pieces: structured logging, request ids and the team access policy."""

import json
import logging

from roster.domains.identity_access.access_policy import evaluate_team_mutation, team_manager_grants
from roster.platform.logging import JsonFormatter
from roster.platform.request_context import get_request_id, reset_request_id, set_request_id


class TestJsonFormatter:

    def _record(self, **extra):
        record = logging.LogRecord("roster.test", logging.INFO, __file__, 1, "granted %d", (3,), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_includes_context_request_id_and_extras(self):
        token = set_request_id("req-123")
        try:
            payload = json.loads(JsonFormatter().format(self._record(team_id=7, player_id=1)))
        finally:
            reset_request_id(token)

        assert payload["message"] == "granted 3"
        assert payload["level"] == "INFO"
        assert payload["request_id"] == "req-123"
        assert payload["team_id"] == 7
        assert payload["player_id"] == 1
        assert "payment_id" not in payload
        assert get_request_id() is None


class TestRequestIdMiddleware:

    def test_request_id_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "abc-1"})
        assert resp.headers["X-Request-ID"] == "abc-1"
        assert "X-Process-Time-Ms" in resp.headers
        assert resp.headers["X-Content-Type-Options"] == "nosniff"

    def test_request_id_generated(self, client):
        resp = client.get("/health")
        assert resp.headers["X-Request-ID"]


class TestTeamAccessPolicy:

    def test_grants_parsed(self):
        grants = team_manager_grants('{"1": ["*"], "2": [7, "8"], "x": [1], "3": "7", "4": []}')
        assert grants == {1: {"*"}, 2: {7, 8}}

    def test_malformed_json_grants_nothing(self):
        assert team_manager_grants("{not json") == {}
        assert team_manager_grants("[1, 2]") == {}

    def test_evaluate_team_mutation(self):
        raw = '{"1": ["*"], "2": [7]}'
        assert evaluate_team_mutation(user_id=1, team_id=99, raw_json=raw).allowed
        assert evaluate_team_mutation(user_id=2, team_id=7, raw_json=raw).allowed
        denied = evaluate_team_mutation(user_id=2, team_id=8, raw_json=raw)
        assert not denied.allowed
        assert denied.reason
        assert not evaluate_team_mutation(user_id=3, team_id=7, raw_json=raw).allowed
