import pytest
from prometheus_client import CollectorRegistry

from address_exporter.exceptions import RPCError


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def rpc_error():
    return RPCError('execution reverted')
