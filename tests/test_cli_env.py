from typer.testing import CliRunner

from cloudcraft_client.cli import app

runner = CliRunner()


class DummyClient:
    captured: dict[str, object] = {}

    def __init__(self, **kwargs):
        DummyClient.captured = dict(kwargs)
        self.blueprints = type("B", (), {"list": lambda self: []})()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def test_cli_reads_settings_from_environment(monkeypatch):
    monkeypatch.setattr("cloudcraft_client.cli.CloudcraftClient", DummyClient)

    result = runner.invoke(
        app,
        ["blueprints", "list"],
        env={
            "CLOUDCRAFT_API_KEY": "from-env",
            "CLOUDCRAFT_BASE_URL": "https://proxy.example.com/cloudcraft/",
            "CLOUDCRAFT_VERIFY_SSL": "0",
            "CLOUDCRAFT_TIMEOUT": "5",
        },
    )

    assert result.exit_code == 0
    assert DummyClient.captured == {
        "token": "from-env",
        "base_url": "https://proxy.example.com/cloudcraft/",
        "verify_ssl": False,
        "timeout": 5.0,
    }


def test_cli_flags_override_environment(monkeypatch):
    monkeypatch.setattr("cloudcraft_client.cli.CloudcraftClient", DummyClient)

    result = runner.invoke(
        app,
        ["blueprints", "list", "--token", "from-flag", "--verify"],
        env={"CLOUDCRAFT_API_KEY": "from-env", "CLOUDCRAFT_VERIFY_SSL": "0"},
    )

    assert result.exit_code == 0
    assert DummyClient.captured["token"] == "from-flag"
    assert DummyClient.captured["verify_ssl"] is True
