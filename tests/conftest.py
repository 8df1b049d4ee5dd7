import httpx
import pytest

from replymux.client import ReplyGateway

from .payloads import UpstreamStub


@pytest.fixture
def upstream():
    return UpstreamStub()


@pytest.fixture
def http_client(upstream):
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def gateway(http_client):
    return ReplyGateway(http_client=http_client)


@pytest.fixture
def conversation():
    return [
        {"role": "user", "content": "[Alice]: What is TypeScript?"},
        {"role": "assistant", "content": "A typed superset of JavaScript."},
        {"role": "user", "content": "[Bob]: Is it worth learning?"},
    ]


@pytest.fixture
def image_conversation():
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "[Alice]: [Image] what is this"},
                {"type": "image", "media_type": "image/png", "data": "AQID"},
            ],
        },
    ]
