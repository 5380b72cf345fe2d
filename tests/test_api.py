import logging

from fastapi.testclient import TestClient

from passpolicy.api import create_app


client = TestClient(create_app())


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_policies_lists_presets():
    body = client.get("/policies").json()
    assert body["default"] == "owasp"
    assert set(body["presets"]) == {"owasp", "strict", "relaxed"}


def test_evaluate_default_policy():
    body = client.post("/evaluate", json={"password": "weakpassword1234!"}).json()
    assert body["strong"] is False
    assert body["optionalTestsPassed"] == 3
    assert body["errors"] == ["The password must contain at least one uppercase letter."]
    assert body["config"]["min_length"] == 10


def test_evaluate_with_overrides_and_custom_rule():
    payload = {
        "password": "weakpassword1234!",
        "config": {"minLength": 12, "allowPassphrases": False, "minOptionalTestsToPass": 3},
    }
    assert client.post("/evaluate", json=payload).json()["strong"] is True

    payload["forbid"] = ["1234"]
    body = client.post("/evaluate", json=payload).json()
    assert body["strong"] is False
    assert body["customTestErrors"] == ['The password should not contain "1234".']


def test_overrides_do_not_leak_into_shared_engine():
    client.post("/evaluate", json={"password": "x", "config": {"min_length": 40}})
    body = client.post("/evaluate", json={"password": "Abcdefgh1!xy"}).json()
    assert body["strong"] is True
    assert body["config"]["min_length"] == 10


def test_invalid_config_is_422():
    r = client.post("/evaluate", json={"password": "x", "config": {"min_length": 50, "max_length": 20}})
    assert r.status_code == 422


def test_unknown_preset_is_422():
    r = client.post("/evaluate", json={"password": "x", "preset": "nope"})
    assert r.status_code == 422


def test_evaluate_with_hints_and_sequences():
    body = client.post("/evaluate", json={"password": "Alice#Smith9x", "hints": ["alice"]}).json()
    assert body["strong"] is False
    assert body["failuresByCategory"]["custom"] == [0]

    body = client.post("/evaluate", json={"password": "Xy!9abcdefQ", "no_sequences": True}).json()
    assert body["strong"] is False
    assert len(body["customTestErrors"]) == 1

    body = client.post("/evaluate", json={"password": "Xy!9aXcdXfQ", "no_sequences": True}).json()
    assert body["strong"] is True


def test_evaluate_does_not_log_password(caplog):
    caplog.set_level(logging.DEBUG, logger="passpolicy")
    client.post("/evaluate", json={"password": "S3cretHorse!xy", "config": {"min_length": 12}})
    assert "evaluate:" in caplog.text
    assert "S3cretHorse!xy" not in caplog.text
