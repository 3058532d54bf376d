"""Test configuration and fixtures."""

import logging
from typing import Generator

import pytest

from kconnect.client import ConnectClient, DummyConnectCluster

BASE_URL = "http://connect-api:8083"

FILE_SINK_CONFIG = {
    "connector.class": "FileStreamSink",
    "file": "/tmp/out",
    "topics": "t1",
}


def _close_loggers():
    """Close all loggers to release handlers added during a test."""
    for logger_name in list(logging.Logger.manager.loggerDict):
        if logger_name.startswith("kconnect."):
            logger = logging.getLogger(logger_name)
            for handler in logger.handlers[:]:
                handler.close()
                logger.removeHandler(handler)


@pytest.fixture
def cluster() -> DummyConnectCluster:
    """Provide an empty in-memory Connect cluster."""
    return DummyConnectCluster()


@pytest.fixture
def client(cluster: DummyConnectCluster) -> Generator[ConnectClient, None, None]:
    """Provide a client wired to the dummy cluster."""
    with ConnectClient(BASE_URL, transport=cluster.transport()) as connect_client:
        yield connect_client
    _close_loggers()
