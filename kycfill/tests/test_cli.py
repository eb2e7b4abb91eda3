import pytest
from click.testing import CliRunner

from kycfill.cli.main import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def db_args(tmp_path):
    return ["--db", str(tmp_path / "vault.db")]


def test_save_and_show_profile(runner, db_args, tmp_path):
    passport = tmp_path / "passport.png"
    passport.write_bytes(b"\x89PNG")

    saved = runner.invoke(
        cli,
        [*db_args, "save", "--first-name", "Ana", "--email", "a@x.com", "--passport", str(passport), "--passphrase", "pw1"],
    )
    assert saved.exit_code == 0, saved.output
    assert "saved" in saved.output

    masked = runner.invoke(cli, [*db_args, "show", "--passphrase", "pw1"])
    assert masked.exit_code == 0, masked.output
    assert "A*a" in masked.output
    assert "passport.png" in masked.output

    revealed = runner.invoke(cli, [*db_args, "show", "--passphrase", "pw1", "--reveal"])
    assert "a@x.com" in revealed.output


def test_keep_documents_preserves_existing_reference(runner, db_args, tmp_path):
    selfie = tmp_path / "selfie.jpg"
    selfie.write_bytes(b"jpeg")
    runner.invoke(cli, [*db_args, "save", "--selfie", str(selfie), "--passphrase", "pw1"])

    kept = runner.invoke(cli, [*db_args, "save", "--city", "London", "--keep-documents", "--passphrase", "pw1"])
    assert kept.exit_code == 0, kept.output
    assert "selfie.jpg" in runner.invoke(cli, [*db_args, "show", "--passphrase", "pw1"]).output

    dropped = runner.invoke(cli, [*db_args, "save", "--city", "London", "--passphrase", "pw1"])
    assert "Reclaimed" in dropped.output


def test_show_with_wrong_passphrase_exits_with_error(runner, db_args):
    runner.invoke(cli, [*db_args, "save", "--first-name", "Ana", "--passphrase", "pw1"])

    result = runner.invoke(cli, [*db_args, "show", "--passphrase", "pw2"])

    assert result.exit_code == 1
    assert "Decryption failed" in result.output


def test_show_without_saved_profile(runner, db_args):
    result = runner.invoke(cli, [*db_args, "show", "--passphrase", "pw1"])

    assert result.exit_code == 1
    assert "save your details first" in result.output


def test_config_shows_effective_settings(runner, db_args):
    result = runner.invoke(cli, [*db_args, "config"])

    assert result.exit_code == 0, result.output
    assert "Current Configuration" in result.output
    assert "Dropdown Attempts" in result.output
