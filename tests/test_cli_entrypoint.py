import pytest

import records_cli
from conftest import FakeResponse, FakeSession, fail, ok


@pytest.fixture
def cli_env(monkeypatch, tmp_path, http_with_refresh, settings):
    """Run the CLI against a fake LMS inside tmp_path."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(records_cli, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setattr(records_cli, "load_settings", lambda: settings)
    monkeypatch.setattr(records_cli, "_make_http", lambda: http_with_refresh)
    return http_with_refresh


def test_help_returns_zero(capsys):
    assert records_cli.main(["help"]) == 0
    assert "upload" in capsys.readouterr().out


def test_no_command_returns_one(capsys):
    assert records_cli.main([]) == 1


def test_upload_creates_every_record(cli_env, tmp_path, capsys):
    (tmp_path / "input.txt").write_text(
        "Lesson A\thttps://youtu.be/x\nLesson A\thttps://youtu.be/y\nUntitled\t\n\nTalk\thttps://docs.test/t\n",
        encoding="utf-8",
    )
    cli_env.add("/create", ok())

    assert records_cli.main(["upload", "123"]) == 0

    names = [c[2]["json"]["name"] for c in cli_env.calls_to("/create")]
    assert names == ["Tech skills: Lesson A (1)", "Tech skills: Lesson A (2)", "Soft skills: Talk"]
    out = capsys.readouterr().out
    assert 'Successfully uploaded lesson "Soft skills: Talk"' in out
    assert "Created: 2, removed: 0, failed: 0" in out


def test_upload_continues_after_item_failure_and_exits_nonzero(cli_env, tmp_path, capsys):
    (tmp_path / "input.txt").write_text("A\thttps://a.test\nB\thttps://b.test\n", encoding="utf-8")
    cli_env.add("/create", fail("Duplicate"), ok())

    assert records_cli.main(["-q", "upload", "1"]) == 1

    assert len(cli_env.calls_to("/create")) == 2
    captured = capsys.readouterr()
    assert "Successfully" not in captured.out
    assert "failed: 1" in captured.out
    assert "Duplicate" in captured.err


def test_upload_dry_run_does_not_touch_lms(monkeypatch, tmp_path, capsys, settings):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(records_cli, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setattr(records_cli, "load_settings", lambda: settings)
    http = FakeSession()
    monkeypatch.setattr(records_cli, "_make_http", lambda: http)
    (tmp_path / "input.txt").write_text("A\thttps://youtu.be/a\n", encoding="utf-8")

    assert records_cli.main(["upload", "1", "--dry-run"]) == 0
    assert http.calls == []
    assert "+ [video] Tech skills: A" in capsys.readouterr().out


def test_upload_missing_input_fails_before_auth(cli_env, capsys):
    assert records_cli.main(["upload", "1"]) == 1
    assert cli_env.calls == []
    assert "input.txt file not found" in capsys.readouterr().err


def test_remove_by_section(cli_env, capsys):
    cli_env.add("/list", ok(group=[{"id": 1, "name": "Tech skills: A"}, {"id": 2, "name": "Soft skills: B"}]))
    cli_env.add("/delete", ok())

    assert records_cli.main(["remove", "5", "--section", "soft"]) == 0
    assert [c[2]["json"] for c in cli_env.calls_to("/delete")] == [{"materialId": 2}]
    assert 'Successfully removed lesson "Soft skills: B"' in capsys.readouterr().out


def test_remove_all(cli_env):
    cli_env.add("/list", ok(group=[{"id": 1, "name": "A"}, {"id": 2, "name": "B"}]))
    cli_env.add("/delete", ok())
    assert records_cli.main(["remove", "5"]) == 0
    assert len(cli_env.calls_to("/delete")) == 2


def test_list_prints_records(cli_env, capsys):
    cli_env.add("/list", ok(group=[{"id": 7, "name": "Tech skills: A"}]))
    assert records_cli.main(["list", "5"]) == 0
    assert "7\tTech skills: A" in capsys.readouterr().out


def test_auth_failure_is_fatal(monkeypatch, tmp_path, capsys, settings):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(records_cli, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setattr(records_cli, "load_settings", lambda: settings)
    monkeypatch.setattr(records_cli, "_make_http", FakeSession)
    assert records_cli.main(["list", "5"]) == 1
    assert "log in first" in capsys.readouterr().err


def test_login_env_requires_credentials(monkeypatch, settings, capsys):
    monkeypatch.setattr(records_cli, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setattr(records_cli, "load_settings", lambda: settings)
    assert records_cli.main(["login-env"]) == 1
    assert "LMS_USERNAME" in capsys.readouterr().err


def test_login_env_uses_environment(monkeypatch, settings, capsys):
    http = FakeSession().add("/auth/login", ok(refreshToken="r-9"))
    creds = settings.model_copy(update={"username": "me@test", "password": "pw"})
    monkeypatch.setattr(records_cli, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setattr(records_cli, "load_settings", lambda: creds)
    monkeypatch.setattr(records_cli, "_make_http", lambda: http)

    assert records_cli.main(["login-env"]) == 0
    assert http.calls[0][2]["json"]["username"] == "me@test"
    assert "Successfully logged in" in capsys.readouterr().out


def test_upload_never_sends_the_same_material_name_twice(cli_env, tmp_path):
    (tmp_path / "input.txt").write_text("A\thttps://x.test/1 https://x.test/2\nA (1)\thttps://y.test/3\n", encoding="utf-8")
    cli_env.add("/create", ok())

    assert records_cli.main(["-q", "upload", "1"]) == 0

    names = [c[2]["json"]["name"] for c in cli_env.calls_to("/create")]
    assert names == ["Tech skills: A (1)", "Tech skills: A (2)", "Tech skills: A (1) (2)"]


def test_auth_failure_mid_upload_still_prints_what_was_done(cli_env, tmp_path, capsys):
    (tmp_path / "input.txt").write_text("A\thttps://a.test\nB\thttps://b.test\nC\thttps://c.test\n", encoding="utf-8")
    unauthorized = FakeResponse({"success": False, "error": "Unauthorized"}, 401)
    cli_env.add("/create", ok(), unauthorized, unauthorized)

    assert records_cli.main(["upload", "1"]) == 1

    assert len(cli_env.calls_to("/create")) == 3
    captured = capsys.readouterr()
    assert 'Successfully uploaded lesson "Tech skills: A"' in captured.out
    assert "Created: 1, removed: 0, failed: 0" in captured.out
    assert "log in again" in captured.err


def test_bad_numeric_setting_is_reported(monkeypatch, tmp_path, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(records_cli, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setenv("LMS_MODULE_ID", "abc")
    monkeypatch.setattr(records_cli, "_make_http", FakeSession)

    assert records_cli.main(["list", "5"]) == 1
    assert "LMS_MODULE_ID must be a number" in capsys.readouterr().err


def test_unexpected_value_error_is_not_swallowed(cli_env, monkeypatch):
    def broken(*a, **k):
        raise ValueError("bug in parsing")

    monkeypatch.setattr(records_cli, "parse_file", broken)
    with pytest.raises(ValueError, match="bug in parsing"):
        records_cli.main(["upload", "1"])
