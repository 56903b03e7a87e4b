"""Tests for the Telegram and Supabase HTTP clients."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from labnotify.clients.supabase import SupabaseClient
from labnotify.clients.telegram import TelegramClient
from labnotify.exceptions import DataStoreError
from labnotify.models.telegram import ProviderFailure, ProviderSuccess
from labnotify.services.store import SupabaseDataStore


def telegram_client(handler) -> TelegramClient:
    return TelegramClient("123:secret", http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def supabase_client(handler) -> SupabaseClient:
    return SupabaseClient(
        "https://example.supabase.co/",
        "service-key",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestTelegramClient:
    """Tests for Bot API envelope handling."""

    @pytest.mark.asyncio
    async def test_send_message_success(self):
        """Test the request shape and the success result."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"ok": True, "result": {"message_id": 42, "chat": {"id": 1001}}})

        result = await telegram_client(handler).send_message(1001, "Hello")

        assert isinstance(result, ProviderSuccess)
        assert result.result["message_id"] == 42
        assert captured["path"] == "/bot123:secret/sendMessage"
        assert captured["body"] == {"chat_id": 1001, "text": "Hello", "parse_mode": "Markdown"}

    @pytest.mark.asyncio
    async def test_send_message_plain_text(self):
        """Test that parse_mode can be omitted."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"ok": True, "result": {"message_id": 1}})

        await telegram_client(handler).send_message(1001, "Hello", parse_mode=None)

        assert "parse_mode" not in captured["body"]

    @pytest.mark.asyncio
    async def test_provider_error_description(self):
        """Test that ok: false becomes a failure carrying the description."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400, json={"ok": False, "error_code": 400, "description": "Bad Request: chat not found"}
            )

        result = await telegram_client(handler).send_message(1001, "Hello")

        assert isinstance(result, ProviderFailure)
        assert result.description == "Bad Request: chat not found"
        assert result.error_code == 400

    @pytest.mark.asyncio
    async def test_network_error_hides_token(self):
        """Test that transport errors become failures without leaking the token."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(f"failed to connect to {request.url}", request=request)

        result = await telegram_client(handler).send_message(1001, "Hello")

        assert isinstance(result, ProviderFailure)
        assert "ConnectError" in result.description
        assert "secret" not in result.description

    @pytest.mark.asyncio
    async def test_non_json_response(self):
        """Test that an HTML error page becomes a failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        result = await telegram_client(handler).get_me()

        assert isinstance(result, ProviderFailure)
        assert result.error_code == 502

    @pytest.mark.asyncio
    async def test_get_me_and_set_webhook(self):
        """Test the identity and webhook registration calls."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.method, request.url.path))
            if request.url.path.endswith("/getMe"):
                return httpx.Response(200, json={"ok": True, "result": {"id": 7, "is_bot": True, "first_name": "Lab"}})
            return httpx.Response(200, json={"ok": True, "result": True, "description": "Webhook was set"})

        client = telegram_client(handler)
        me = await client.get_me()
        webhook = await client.set_webhook("https://example.org/telegram/webhook")

        assert me.result["first_name"] == "Lab"
        assert webhook.result is True
        assert calls == [("GET", "/bot123:secret/getMe"), ("POST", "/bot123:secret/setWebhook")]


class TestSupabaseClient:
    """Tests for PostgREST request building and error handling."""

    @pytest.mark.asyncio
    async def test_select_filters_and_ordering(self):
        """Test exact-match filters, ordering, limit and auth headers."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["request"] = request
            return httpx.Response(200, json=[{"id": "p1", "full_name": "Abebe Kebede"}])

        rows = await supabase_client(handler).select(
            "patients",
            {"phone": "+251911234567", "telegram_connected": True},
            order="updated_at",
            descending=True,
            limit=5,
        )

        request = captured["request"]
        assert rows == [{"id": "p1", "full_name": "Abebe Kebede"}]
        assert request.url.path == "/rest/v1/patients"
        assert request.url.params["phone"] == "eq.+251911234567"
        assert request.url.params["telegram_connected"] == "eq.true"
        assert request.url.params["order"] == "updated_at.desc"
        assert request.url.params["limit"] == "5"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["authorization"] == "Bearer service-key"

    @pytest.mark.asyncio
    async def test_null_filter(self):
        """Test that None filters use is.null."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["params"] = request.url.params
            return httpx.Response(200, json=[])

        await supabase_client(handler).select("patients", {"telegram_chat_id": None})

        assert captured["params"]["telegram_chat_id"] == "is.null"

    @pytest.mark.asyncio
    async def test_insert_returns_row(self):
        """Test that inserts ask for and return the stored row."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["prefer"] = request.headers["prefer"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(201, json=[{"id": "n1", **captured["body"]}])

        row = await supabase_client(handler).insert("notifications", {"patient_id": "p1", "status": "pending"})

        assert row["id"] == "n1"
        assert captured["prefer"] == "return=representation"
        assert captured["body"] == {"patient_id": "p1", "status": "pending"}

    @pytest.mark.asyncio
    async def test_error_response_raises(self):
        """Test that PostgREST errors raise DataStoreError with the message."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"message": 'column "phon" does not exist', "code": "42703"})

        with pytest.raises(DataStoreError, match="does not exist") as exc_info:
            await supabase_client(handler).select("patients", {"phon": "x"})

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        """Test that network failures raise DataStoreError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(DataStoreError, match="ReadTimeout"):
            await supabase_client(handler).select("patients")

    @pytest.mark.asyncio
    async def test_update_requires_filters(self):
        """Test that an unfiltered update is refused."""
        client = supabase_client(lambda request: httpx.Response(200, json=[]))

        with pytest.raises(ValueError, match="without filters"):
            await client.update("patients", {"telegram_connected": False}, {})


class TestSupabaseDataStore:
    """Tests for the Supabase-backed record store."""

    @pytest.mark.asyncio
    async def test_update_patient_serializes_datetimes(self):
        """Test that timestamps are sent as ISO strings and the row is parsed back."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["params"] = request.url.params
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json=[
                    {"id": "p1", "full_name": "Abebe Kebede", "telegram_chat_id": "1001", "telegram_connected": True}
                ],
            )

        store = SupabaseDataStore(supabase_client(handler))
        updated_at = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)
        patient = await store.update_patient("p1", {"telegram_connected": True, "updated_at": updated_at})

        assert patient.is_connected
        assert captured["method"] == "PATCH"
        assert captured["params"]["id"] == "eq.p1"
        assert captured["body"]["updated_at"] == "2024-03-01T08:00:00+00:00"

    @pytest.mark.asyncio
    async def test_get_patient_not_found(self):
        """Test that an empty result is None."""
        store = SupabaseDataStore(supabase_client(lambda request: httpx.Response(200, json=[])))

        assert await store.get_patient("missing") is None

    @pytest.mark.asyncio
    async def test_recent_notifications_query(self):
        """Test the newest-first, limited notification query."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["params"] = request.url.params
            return httpx.Response(
                200,
                json=[
                    {
                        "id": "n1",
                        "patient_id": "p1",
                        "notification_type": "lab_result",
                        "message": "Ready",
                        "status": "delivered",
                    }
                ],
            )

        notifications = await SupabaseDataStore(supabase_client(handler)).recent_notifications("p1", limit=10)

        assert notifications[0].status == "delivered"
        assert captured["params"]["order"] == "created_at.desc"
        assert captured["params"]["limit"] == "10"

    @pytest.mark.asyncio
    async def test_invalid_row_raises_data_store_error(self):
        """Test that a row failing model validation raises DataStoreError."""
        store = SupabaseDataStore(
            supabase_client(lambda request: httpx.Response(200, json=[{"id": "p1", "full_name": None}]))
        )

        with pytest.raises(DataStoreError, match="invalid row"):
            await store.find_patients(telegram_chat_id="1001")
