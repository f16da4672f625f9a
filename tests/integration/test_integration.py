"""Integration tests against a running chipster installation.

Set CHIPSTER_SERVICE_LOCATOR, CHIPSTER_USERNAME and CHIPSTER_PASSWORD to run
them, otherwise they are skipped.
"""

import os
from pathlib import Path
from typing import Generator

import pytest

from chipster_client.exceptions import AuthenticationError, NotFoundError
from chipster_client.models import Dataset, Session
from chipster_client.rest_client import RestClient

SERVICE_LOCATOR = os.getenv("CHIPSTER_SERVICE_LOCATOR")
USERNAME = os.getenv("CHIPSTER_USERNAME", "chipster")
PASSWORD = os.getenv("CHIPSTER_PASSWORD", "chipster")

pytestmark = pytest.mark.skipif(
    not SERVICE_LOCATOR, reason="CHIPSTER_SERVICE_LOCATOR not set"
)


@pytest.fixture(scope="module")
def client() -> Generator[RestClient, None, None]:
    """Create a logged in client."""
    client = RestClient(True, None, SERVICE_LOCATOR, is_quiet=True, timeout=10)
    client.set_token(client.get_token(USERNAME, PASSWORD))
    yield client
    client.close()


@pytest.fixture
def session_id(client: RestClient) -> Generator[str, None, None]:
    """Create a session and delete it afterwards."""
    session_id = client.post_session(Session(name="integration-test"))
    yield session_id
    client.delete_session(session_id)


def test_wrong_password() -> None:
    """Test logging in with a wrong password."""
    with RestClient(True, None, SERVICE_LOCATOR, is_quiet=True) as client:
        with pytest.raises(AuthenticationError):
            client.get_token(USERNAME, PASSWORD + "-wrong")


def test_services(client: RestClient) -> None:
    """Test the main services are found."""
    roles = {service.role for service in client.get_services()}
    assert {"auth", "session-db", "file-broker", "toolbox"} <= roles


def test_session_lifecycle(client: RestClient) -> None:
    """Test creating, reading and deleting a session."""
    session_id = client.post_session(Session(name="lifecycle"))
    assert client.get_session(session_id).name == "lifecycle"
    assert session_id in {s.session_id for s in client.get_sessions()}

    client.delete_session(session_id)
    with pytest.raises(NotFoundError):
        client.get_session(session_id)


def test_file_roundtrip(client: RestClient, session_id: str, tmp_path: Path) -> None:
    """Test uploading and downloading dataset contents."""
    dataset_id = client.post_dataset(session_id, Dataset(name="data.txt"))
    upload = tmp_path / "upload.txt"
    upload.write_bytes(b"line 1\nline 2\n")

    client.upload_file(session_id, dataset_id, str(upload))

    download = tmp_path / "download.txt"
    client.download_file(session_id, dataset_id, str(download))
    assert download.read_bytes() == b"line 1\nline 2\n"
    assert client.get_file(session_id, dataset_id, 5) == "line 1"


def test_tools(client: RestClient) -> None:
    """Test the toolbox lists modules."""
    modules = client.get_tools()
    assert modules
    tool = modules[0].categories[0].tools[0]
    assert client.get_tool(tool["name"]["id"]).name.id == tool["name"]["id"]


def test_rules(client: RestClient, session_id: str) -> None:
    """Test the owner has a rule for a new session."""
    rules = client.get_rules(session_id)
    assert any(rule.username == USERNAME for rule in rules)
