"""Tests for the webhook HTTP endpoint."""

import hashlib
import hmac
import json
from typing import Any

import pytest
from conftest import COMMENTS_URL, PR_URL, review
from fastapi.testclient import TestClient

from merge_gate.config import Config
from merge_gate.dispatcher import Dispatcher
from merge_gate.policy.models import Roster
from merge_gate.server import app, init_app, verify_webhook_signature

SECRET = "s3cret"


def sign(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


@pytest.fixture
def gateway(make_gateway):
    return make_gateway(reviews=[review("alice", "APPROVED"), review("carol", "APPROVED")])


@pytest.fixture
def client(gateway, team_a: Roster, team_b: Roster):
    config = Config(
        github_app_id="1",
        github_private_key="unused",
        github_webhook_secret=SECRET,
        team_a=team_a,
        team_b=team_b,
    )
    init_app(config, Dispatcher(lambda installation_id: gateway, team_a, team_b))
    return TestClient(app)


def post(client: TestClient, event: str, payload: Any, signature: str | None = None):
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    headers = {
        "X-GitHub-Event": event,
        "X-Hub-Signature-256": signature if signature is not None else sign(body),
        "Content-Type": "application/json",
    }
    return client.post("/webhook", content=body, headers=headers)


OPENED = {
    "action": "opened",
    "installation": {"id": 42},
    "pull_request": {
        "number": 7,
        "url": PR_URL,
        "comments_url": COMMENTS_URL,
        "user": {"login": "dave"},
    },
}


class TestVerifyWebhookSignature:
    def test_valid(self) -> None:
        assert verify_webhook_signature(b"{}", sign(b"{}"), SECRET) is True

    def test_wrong_secret(self) -> None:
        assert verify_webhook_signature(b"{}", sign(b"{}", "other"), SECRET) is False

    def test_tampered_body(self) -> None:
        assert verify_webhook_signature(b"{ }", sign(b"{}"), SECRET) is False

    def test_missing_or_malformed(self) -> None:
        assert verify_webhook_signature(b"{}", "", SECRET) is False
        assert verify_webhook_signature(b"{}", "sha1=abc", SECRET) is False


class TestWebhookEndpoint:
    def test_health(self, client) -> None:
        assert client.get("/health").json() == {"status": "healthy"}

    def test_get_not_allowed(self, client) -> None:
        assert client.get("/webhook").status_code == 405

    def test_bad_signature(self, client, gateway) -> None:
        response = post(client, "pull_request", OPENED, signature="sha256=deadbeef")
        assert response.status_code == 401
        assert gateway.comments == []

    def test_missing_signature(self, client) -> None:
        response = post(client, "pull_request", OPENED, signature="")
        assert response.status_code == 401

    def test_invalid_json(self, client) -> None:
        assert post(client, "pull_request", b"not json").status_code == 400

    def test_missing_installation(self, client, gateway) -> None:
        payload = {k: v for k, v in OPENED.items() if k != "installation"}
        response = post(client, "pull_request", payload)
        assert response.status_code == 400
        assert gateway.comments == []

    def test_missing_required_url(self, client) -> None:
        payload = {
            "action": "submitted",
            "installation": {"id": 42},
            "pull_request": {"number": 7},
            "review": {"state": "approved", "user": {"login": "carol"}},
        }
        response = post(client, "pull_request_review", payload)
        assert response.status_code == 400

    def test_null_pull_request(self, client) -> None:
        payload = {
            "action": "submitted",
            "installation": {"id": 42},
            "pull_request": None,
            "review": {"state": "approved", "user": {"login": "carol"}},
        }
        assert post(client, "pull_request_review", payload).status_code == 400

    def test_ignored_event(self, client, gateway) -> None:
        response = post(client, "star", {"action": "created", "installation": {"id": 42}})
        assert response.status_code == 200
        assert response.json()["status"] == "ignored"
        assert gateway.comments == []

    def test_pull_request_opened(self, client, gateway) -> None:
        response = post(client, "pull_request", OPENED)
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "handled"
        assert body["workflow"] == "pull_request_opened"
        assert len(gateway.comments) == 1

    def test_merge_command(self, client, gateway) -> None:
        payload = {
            "action": "created",
            "installation": {"id": 42},
            "issue": {
                "number": 7,
                "comments_url": COMMENTS_URL,
                "user": {"login": "dave"},
                "pull_request": {"url": PR_URL},
            },
            "comment": {"body": "/merge", "user": {"login": "dave"}},
        }
        response = post(client, "issue_comment", payload)
        assert response.status_code == 200
        assert response.json()["outcome"] == "merged"
        assert len(gateway.merges) == 1

    def test_workflow_failure_is_500(self, client, gateway) -> None:
        async def broken(*args: Any) -> None:
            raise RuntimeError("boom")

        gateway.post_comment = broken
        response = post(client, "pull_request", OPENED)
        assert response.status_code == 500
        assert response.json() == {"detail": "Internal Server Error"}
