import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs

import httpx
import pytest
import pytz

from busdesk.config.settings import Settings
from busdesk.services.booking import BookingService, LifecycleClassifier

STORE_URL = "https://store.test/exec"
TIMEZONE = "Asia/Colombo"


class FakeRemoteStore:
    """In-memory stand-in for the spreadsheet endpoint, served through MockTransport."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {"pending": [], "active": [], "archive": []}
        self.requests: List[Tuple[str, Dict[str, str]]] = []
        self.search_payload: Dict[str, Any] = {}
        self.failing_stages = set()
        self.envelope = "bookings"
        self.unreachable = False
        self.latency = 0.01
        self.on_write: Optional[Callable[[], None]] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)

        if request.method == "GET":
            params = dict(request.url.params)
            self.requests.append(("GET", params))
            method = params.get("method")
            if method == "getAll":
                stage = params["type"]
                if stage in self.failing_stages:
                    return httpx.Response(500, text="Internal error")
                rows = self.tables[stage]
                if self.envelope == "allBookings":
                    return httpx.Response(200, json={"success": True, "allBookings": rows})
                return httpx.Response(200, json={"bookings": rows})
            if method == "search":
                return httpx.Response(200, json=self.search_payload)
            return httpx.Response(200, json={"success": True})

        body = parse_qs(request.content.decode(), keep_blank_values=True)
        self.requests.append(("POST", {key: values[0] for key, values in body.items()}))
        return httpx.Response(200, text="ok")

    async def slow_handler(self, request: httpx.Request) -> httpx.Response:
        """Same answers after a short delay, so concurrent calls interleave."""
        await asyncio.sleep(self.latency)
        if request.method == "POST" and self.on_write is not None:
            self.on_write()
        return self.handler(request)

    @property
    def reads(self) -> List[Dict[str, str]]:
        return [params for verb, params in self.requests if verb == "GET"]

    @property
    def writes(self) -> List[Dict[str, str]]:
        return [body for verb, body in self.requests if verb == "POST"]


class Confirmer:
    """Scripted operator answering confirmation prompts."""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.asked: List[Tuple[str, str]] = []

    async def __call__(self, title: str, text: str) -> bool:
        self.asked.append((title, text))
        return self.answer


def colombo(*args) -> datetime:
    return pytz.timezone(TIMEZONE).localize(datetime(*args))


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        REMOTE_STORE_URL=STORE_URL,
        TIMEZONE=TIMEZONE,
        ENVIRONMENT="test",
    )


@pytest.fixture
def now():
    return colombo(2025, 3, 10, 10, 0)


@pytest.fixture
def classifier(now):
    return LifecycleClassifier(TIMEZONE, clock=lambda: now)


@pytest.fixture
def fake_store():
    return FakeRemoteStore()


@pytest.fixture
def confirmer():
    return Confirmer()


@pytest.fixture
def service(settings, fake_store, confirmer, classifier):
    engine = BookingService(
        settings,
        confirm=confirmer,
        transport=httpx.MockTransport(fake_store.handler),
        classifier=classifier,
    )
    yield engine
    asyncio.run(engine.aclose())


@pytest.fixture
def make_record():
    """Sheet-style raw record as the remote store returns it."""

    def _make(
        booking_id: str = "",
        name: str = "Ayesha Fernando",
        phone: str = "0771234567",
        bus: str = "Sakeer Express",
        date: str = "2025-03-15",
        time: str = "9:00 PM",
        male: str = "2",
        female: str = "",
        total: Any = "5400",
        payment: str = "Pending",
        status: str = "Pending",
        **extra: Any,
    ) -> Dict[str, Any]:
        record = {
            "Booking ID": booking_id,
            "Name": name,
            "Phone": phone,
            "Bus": bus,
            "Date": date,
            "Time": time,
            "Pickup": "Colombo",
            "Destination": "Kattankudy",
            "Male Seat": male,
            "Female Seat": female,
            "Total": total,
            "Payment": payment,
            "Status": status,
        }
        record.update(extra)
        return record

    return _make
