import json

import pytest
from mongomock_motor import AsyncMongoMockClient

from delivery_api.admin_cli import build_parser, main, request_from_args
from tests.factories import make_settings


@pytest.fixture
def run(capsys):
    settings = make_settings()
    client = AsyncMongoMockClient()

    def invoke(*argv):
        code = main(list(argv), settings=settings, client=client)
        return code, capsys.readouterr()

    return invoke


def test_creates_admin_from_flags(run):
    code, out = run("--email=Root@X.com", "--password=Adm1nPass", "--permissions=view,edit")

    assert code == 0
    assert out.out.startswith("Admin user created successfully:")
    profile = json.loads(out.out.split("\n", 1)[1])
    assert profile["email"] == "root@x.com"
    assert profile["role"] == "admin"
    assert profile["permissions"] == ["view", "edit"]
    assert "password" not in out.out.lower()


def test_positional_arguments(run):
    code, out = run("ops@x.com", "Adm1nPass")

    assert code == 0
    assert json.loads(out.out.split("\n", 1)[1])["firstName"] == "Admin"


def test_duplicate_email_aborts(run):
    assert run("root@x.com", "Adm1nPass")[0] == 0

    code, out = run("root@x.com", "Adm1nPass")

    assert code == 1
    assert "already exists" in out.err


def test_missing_password_is_rejected(run, monkeypatch):
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)

    code, out = run("--email=root@x.com")

    assert code == 1
    assert "required" in out.err


def test_weak_password_is_rejected(run):
    code, out = run("root@x.com", "password")

    assert code == 1
    assert "letters and numbers" in out.err


def test_environment_defaults(monkeypatch):
    monkeypatch.setenv("ADMIN_EMAIL", "env@x.com")
    monkeypatch.setenv("ADMIN_PASSWORD", "Adm1nPass")
    monkeypatch.setenv("ADMIN_DEPARTMENT", "support")

    request = request_from_args(build_parser().parse_args([]))

    assert request.email == "env@x.com"
    assert request.department == "support"
    assert request.permissions == ["view"]


class ClosableMockClient(AsyncMongoMockClient):
    close_calls = 0

    def close(self):
        type(self).close_calls += 1


@pytest.fixture
def own_client(monkeypatch):
    """Make init_db build a ClosableMockClient instead of a real Motor client."""
    ClosableMockClient.close_calls = 0
    created = ClosableMockClient()
    monkeypatch.setattr("delivery_api.core.database.AsyncIOMotorClient", lambda url: created)
    return created


def test_client_it_created_is_closed(own_client, capsys):
    code = main(["root@x.com", "Adm1nPass"], settings=make_settings())

    assert code == 0
    assert ClosableMockClient.close_calls == 1


def test_client_is_closed_after_failure(own_client, capsys):
    settings = make_settings()
    assert main(["root@x.com", "Adm1nPass"], settings=settings) == 0

    assert main(["root@x.com", "Adm1nPass"], settings=settings) == 1
    assert ClosableMockClient.close_calls == 2


def test_caller_supplied_client_is_left_open(capsys):
    ClosableMockClient.close_calls = 0

    assert main(["root@x.com", "Adm1nPass"], settings=make_settings(), client=ClosableMockClient()) == 0
    assert ClosableMockClient.close_calls == 0
