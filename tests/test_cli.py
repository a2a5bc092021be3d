import json

from typer.testing import CliRunner

from cloudcraft_client.cli import app

runner = CliRunner()

BASE_URL = "https://api.cloudcraft.co"
AUTH = ["--token", "secret"]


def test_users_me_cli(requests_mock):
    matcher = requests_mock.get(f"{BASE_URL}/user/me", json={"id": "u1", "name": "Ada"})

    result = runner.invoke(app, ["users", "me", *AUTH])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["name"] == "Ada"
    assert matcher.last_request.headers["Authorization"] == "Bearer secret"


def test_blueprints_list_cli_renders_table(requests_mock):
    requests_mock.get(
        f"{BASE_URL}/blueprint",
        json={"blueprints": [{"id": "bp1", "name": "Production", "tags": ["prod"]}]},
    )

    result = runner.invoke(app, ["blueprints", "list", *AUTH])

    assert result.exit_code == 0
    assert "Production" in result.stdout
    assert "bp1" in result.stdout


def test_blueprints_list_cli_json_output(requests_mock):
    requests_mock.get(
        f"{BASE_URL}/blueprint",
        json={"blueprints": [{"id": "bp1", "name": "Production"}]},
    )

    result = runner.invoke(app, ["blueprints", "list", "--json", *AUTH])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload[0]["id"] == "bp1"


def test_blueprints_export_cli_writes_file(requests_mock, tmp_path):
    matcher = requests_mock.get(
        f"{BASE_URL}/blueprint/bp1/svg",
        content=b"<svg/>",
        headers={"Content-Type": "image/svg+xml"},
    )
    output = tmp_path / "diagram.svg"

    result = runner.invoke(
        app,
        [
            "blueprints",
            "export",
            "bp1",
            "--format",
            "svg",
            "--output",
            str(output),
            "--grid",
            "--width",
            "800",
            *AUTH,
        ],
    )

    assert result.exit_code == 0
    assert output.read_bytes() == b"<svg/>"
    assert matcher.last_request.url.endswith("svg?grid=true&width=800")


def test_accounts_snapshot_cli_passes_excludes(requests_mock, tmp_path):
    matcher = requests_mock.get(
        f"{BASE_URL}/aws/account/acc1/eu-west-1/png",
        content=b"\x89PNG",
    )
    output = tmp_path / "snapshot.png"

    result = runner.invoke(
        app,
        [
            "accounts",
            "snapshot",
            "acc1",
            "eu-west-1",
            "--output",
            str(output),
            "--exclude",
            "ec2",
            "--exclude",
            "s3",
            *AUTH,
        ],
    )

    assert result.exit_code == 0
    assert output.read_bytes() == b"\x89PNG"
    assert matcher.last_request.url.endswith("png?exclude=ec2%2Cs3")


def test_api_error_exits_non_zero(requests_mock):
    requests_mock.get(
        f"{BASE_URL}/blueprint/missing",
        status_code=404,
        json={"error": "Blueprint not found", "code": 404},
    )

    result = runner.invoke(app, ["blueprints", "get", "missing", *AUTH])

    assert result.exit_code == 1
    assert "Request failed (status 404): Blueprint not found" in result.stderr


def test_failed_export_leaves_no_output_file(requests_mock, tmp_path):
    requests_mock.get(
        f"{BASE_URL}/blueprint/missing/png",
        status_code=404,
        json={"error": "Blueprint not found", "code": 404},
    )
    output = tmp_path / "diagram.png"

    result = runner.invoke(
        app, ["blueprints", "export", "missing", "--output", str(output), *AUTH]
    )

    assert result.exit_code == 1
    assert not output.exists()
    assert list(tmp_path.iterdir()) == []


def test_failed_snapshot_keeps_existing_output_file(requests_mock, tmp_path):
    requests_mock.get(
        f"{BASE_URL}/aws/account/acc1/us-east-1/png",
        status_code=500,
        text="internal error",
    )
    output = tmp_path / "snapshot.png"
    output.write_bytes(b"previous")

    result = runner.invoke(
        app, ["accounts", "snapshot", "acc1", "us-east-1", "--output", str(output), *AUTH]
    )

    assert result.exit_code == 1
    assert output.read_bytes() == b"previous"
    assert list(tmp_path.iterdir()) == [output]


def test_missing_token_is_rejected():
    result = runner.invoke(app, ["users", "me"], env={"CLOUDCRAFT_API_KEY": ""})

    assert result.exit_code != 0
