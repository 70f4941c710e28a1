"""Tests del notificador ntfy."""

from unittest.mock import MagicMock

import pytest
import requests

from common.errors import ConfigurationError, NotificationError
from ntfy_notifier import HTTPNotifier, Notification, TokenCredentialEnvProvider


@pytest.fixture
def session():
    session = MagicMock(spec=requests.Session)
    response = MagicMock()
    response.status_code = 200
    session.post.return_value = response
    return session


class TestNotification:

    def test_payload_omits_empty_optionals(self):
        payload = Notification(topic="t", title="Alert", message="m").to_payload()
        assert payload == {"topic": "t", "title": "Alert", "message": "m"}

    def test_payload_with_options(self):
        payload = Notification(
            topic="t", title="Alert", message="m", priority=4, tags=["battery"]
        ).to_payload()
        assert payload["priority"] == 4
        assert payload["tags"] == ["battery"]


class TestHTTPNotifier:

    def test_send_posts_json(self, session):
        notifier = HTTPNotifier("https://ntfy.sh", session=session)
        notifier.send(Notification(topic="t", title="Alert", message="m"))

        args, kwargs = session.post.call_args
        assert args == ("https://ntfy.sh",)
        assert kwargs["json"]["topic"] == "t"
        assert "Authorization" not in kwargs["headers"]

    def test_bearer_token(self, session, monkeypatch):
        monkeypatch.setenv("NTFY_TOKEN", "secret")
        notifier = HTTPNotifier(
            "https://ntfy.sh", session=session, credentials=TokenCredentialEnvProvider("NTFY_TOKEN")
        )
        notifier.send(Notification(topic="t", title="Alert", message="m"))

        assert session.post.call_args.kwargs["headers"]["Authorization"] == "Bearer secret"

    def test_missing_token_raises(self, session, monkeypatch):
        monkeypatch.delenv("NTFY_TOKEN", raising=False)
        notifier = HTTPNotifier(
            "https://ntfy.sh", session=session, credentials=TokenCredentialEnvProvider("NTFY_TOKEN")
        )
        with pytest.raises(ConfigurationError):
            notifier.send(Notification(topic="t", title="Alert", message="m"))

    def test_non_200_raises(self, session):
        session.post.return_value.status_code = 429
        with pytest.raises(NotificationError):
            HTTPNotifier("https://ntfy.sh", session=session).send(
                Notification(topic="t", title="Alert", message="m")
            )

    def test_network_error_raises(self, session):
        session.post.side_effect = requests.ConnectionError("down")
        with pytest.raises(NotificationError):
            HTTPNotifier("https://ntfy.sh", session=session).send(
                Notification(topic="t", title="Alert", message="m")
            )
