import os

# Settings are read once at import time; fix them before the app is imported
os.environ["GCP_PROJECT"] = "test-project"
os.environ["TOPIC_NAME"] = "events-in"
os.environ["SNS_ARN"] = "arn:aws:sns:us-east-1:123456789012:events"
os.environ["TRACING_ENABLED"] = "false"
os.environ["DISCONNECT_POLL_S"] = "0.05"

import concurrent.futures

import httpx
import pytest
from fastapi.testclient import TestClient


class FakePublisher:
    """Stands in for pubsub_v1.PublisherClient; records every publish."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []
        self.stopped = False

    def topic_path(self, project, topic):
        return f"projects/{project}/topics/{topic}"

    def publish(self, topic, data, **attrs):
        self.calls.append({"topic": topic, "data": data, "attributes": attrs})
        future = concurrent.futures.Future()
        if self.error is not None:
            future.set_exception(self.error)
        else:
            future.set_result(f"pubsub-{len(self.calls)}")
        return future

    def stop(self):
        self.stopped = True


class FakeSNS:
    """httpx.MockTransport handler answering SubscribeURL requests."""

    def __init__(self, status_code=200, error=None):
        self.status_code = status_code
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text="<ConfirmSubscriptionResponse/>")


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def sns():
    return FakeSNS()


@pytest.fixture
def client(publisher, sns):
    from services.sns_relay.main import app

    # Lifespan is not run without a context manager; install the fakes directly
    app.state.publisher = publisher
    app.state.httpx_client = httpx.AsyncClient(transport=httpx.MockTransport(sns))
    return TestClient(app)
