"""Tests for newsletter subscriptions and campaigns."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from siteapi.services.email import EmailDeliveryError
from siteapi.services.newsletter import (
    AlreadySubscribed,
    AlreadyUnsubscribed,
    UnknownSubscriber,
    subscribe,
    unsubscribe,
)


def _campaign(**overrides):
    data = {
        "title": "March Update",
        "subject": "What's new at Bahoju",
        "content": "Plain text body",
        "htmlContent": "<p>HTML body</p>",
        "category": "project-updates",
    }
    data.update(overrides)
    return data


@pytest.fixture
def mock_welcome(mocker):
    return mocker.patch(
        "siteapi.routers.newsletter.send_in_background", new_callable=AsyncMock
    )


@pytest.fixture
def mock_send_email(mocker):
    return mocker.patch(
        "siteapi.services.newsletter.send_email", new_callable=AsyncMock
    )


@pytest.fixture
async def client(mock_settings, fake_storage, mock_welcome, mock_send_email):
    from siteapi.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as c:
        yield c


class TestSubscriptions:
    """Service-level subscribe/unsubscribe state machine."""

    async def test_subscribe_new(self, fake_storage):
        subscriber, created = await subscribe("ada@acme.io")

        assert created is True
        assert subscriber.is_active
        assert subscriber.subscription_status == "active"
        assert len(fake_storage.blobs) == 1

    async def test_subscribe_twice(self, fake_storage):
        await subscribe("ada@acme.io")
        with pytest.raises(AlreadySubscribed):
            await subscribe("ada@acme.io")

    async def test_lookup_ignores_case(self, fake_storage):
        await subscribe("ada@acme.io")
        with pytest.raises(AlreadySubscribed):
            await subscribe("Ada@ACME.io")

    async def test_resubscribe_reactivates(self, fake_storage):
        await subscribe("ada@acme.io")
        await unsubscribe("ada@acme.io")

        subscriber, created = await subscribe("ada@acme.io")

        assert created is False
        assert subscriber.is_active
        assert subscriber.unsubscribed_at is None

    async def test_unsubscribe_unknown(self, fake_storage):
        with pytest.raises(UnknownSubscriber):
            await unsubscribe("ghost@acme.io")

    async def test_unsubscribe_twice(self, fake_storage):
        await subscribe("ada@acme.io")
        await unsubscribe("ada@acme.io")
        with pytest.raises(AlreadyUnsubscribed):
            await unsubscribe("ada@acme.io")


async def test_subscribe_endpoint(client, mock_welcome):
    response = await client.post(
        "/api/newsletter/subscribe", json={"email": "Ada@Acme.io"}
    )

    assert response.status_code == 201
    assert response.json()["subscriber"]["email"] == "ada@acme.io"
    mock_welcome.assert_called_once()
    assert mock_welcome.call_args.args[0] == "ada@acme.io"


async def test_subscribe_endpoint_duplicate(client):
    await client.post("/api/newsletter/subscribe", json={"email": "ada@acme.io"})
    response = await client.post(
        "/api/newsletter/subscribe", json={"email": "ada@acme.io"}
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Email is already subscribed to our newsletter"


async def test_reactivation_returns_200(client, mock_welcome):
    await client.post("/api/newsletter/subscribe", json={"email": "ada@acme.io"})
    await client.post("/api/newsletter/unsubscribe", json={"email": "ada@acme.io"})
    mock_welcome.reset_mock()

    response = await client.post(
        "/api/newsletter/subscribe", json={"email": "ada@acme.io"}
    )

    assert response.status_code == 200
    assert response.json()["message"].startswith("Welcome back")
    mock_welcome.assert_not_called()


async def test_subscribe_invalid_email(client):
    response = await client.post(
        "/api/newsletter/subscribe", json={"email": "not-an-email"}
    )
    assert response.status_code == 422


async def test_unsubscribe_endpoint_errors(client):
    response = await client.post(
        "/api/newsletter/unsubscribe", json={"email": "ghost@acme.io"}
    )
    assert response.status_code == 404

    await client.post("/api/newsletter/subscribe", json={"email": "ada@acme.io"})
    await client.post("/api/newsletter/unsubscribe", json={"email": "ada@acme.io"})
    response = await client.post(
        "/api/newsletter/unsubscribe", json={"email": "ada@acme.io"}
    )
    assert response.status_code == 400


async def test_list_subscribers_by_status(client, admin_headers):
    for email in ("a@acme.io", "b@acme.io", "c@acme.io"):
        await client.post("/api/newsletter/subscribe", json={"email": email})
    await client.post("/api/newsletter/unsubscribe", json={"email": "b@acme.io"})

    response = await client.get(
        "/api/newsletter/subscribers", params={"status": "active"},
        headers=admin_headers,
    )
    data = response.json()
    assert data["total"] == 2
    assert (data["active"], data["inactive"]) == (2, 1)
    assert {s["email"] for s in data["subscribers"]} == {"a@acme.io", "c@acme.io"}

    response = await client.get("/api/newsletter/subscribers")
    assert response.status_code == 403


async def test_send_without_subscribers(client, admin_headers):
    response = await client.post(
        "/api/newsletter/send", json=_campaign(), headers=admin_headers
    )
    assert response.status_code == 400


async def test_send_to_active_subscribers(client, admin_headers, mock_send_email):
    for email in ("a@acme.io", "b@acme.io", "c@acme.io"):
        await client.post("/api/newsletter/subscribe", json={"email": email})
    await client.post("/api/newsletter/unsubscribe", json={"email": "c@acme.io"})
    mock_send_email.side_effect = [None, EmailDeliveryError("bounced")]

    response = await client.post(
        "/api/newsletter/send", json=_campaign(), headers=admin_headers
    )

    assert response.status_code == 200
    post = response.json()["post"]
    assert post["status"] == "sent"
    assert post["recipients"] == {"total": 2, "sent": 1, "failed": 1}
    assert post["author"] == "Test Admin"
    assert response.json()["message"] == "Newsletter sent successfully to 1 subscribers"


async def test_all_deliveries_failing_marks_failed(
    client, admin_headers, mock_send_email
):
    await client.post("/api/newsletter/subscribe", json={"email": "a@acme.io"})
    mock_send_email.side_effect = EmailDeliveryError("smtp down")

    response = await client.post(
        "/api/newsletter/send", json=_campaign(), headers=admin_headers
    )

    assert response.json()["post"]["status"] == "failed"


async def test_schedule_and_stats(client, admin_headers, mock_send_email):
    response = await client.post(
        "/api/newsletter/send",
        json=_campaign(scheduledAt="2026-12-01T09:00:00Z"),
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["post"]["status"] == "scheduled"
    mock_send_email.assert_not_called()

    posts = (await client.get("/api/newsletter/posts", headers=admin_headers)).json()
    assert posts["total"] == 1

    stats = (await client.get("/api/newsletter/stats", headers=admin_headers)).json()
    assert stats["posts"]["scheduled"] == 1
    assert stats["posts"]["sent"] == 0
    assert stats["subscribers"] == {"total": 0, "active": 0, "inactive": 0}
