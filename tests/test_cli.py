import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from locres.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_folder(tmp_path):
    folder = tmp_path / "config"
    folder.mkdir()
    (folder / "languages.cfg").write_text('"Languages"\n{\n\t"fr"\t"French"\n}\n', "utf-8")
    return str(folder)


@pytest.fixture
def project(tmp_path):
    source = tmp_path / "src"
    source.mkdir()
    (source / "Page.cs").write_text(
        'var a = Resources.Hello;\nvar b = _localizer["Goodbye"];\nvar c = Resources.Status_Active;\n'
        'var d = GetString("Welcome");\nvar e = Resources.Status_Disabled;\n',
        "utf-8",
    )
    return source


class TestCli:
    """Command line entry points."""

    def test_backends(self, runner):
        result = runner.invoke(cli, ["backends"])
        assert result.exit_code == 0
        assert result.stdout.split() == ["phrases", "resx", "json"]

    def test_scan_clean_project(self, runner, config_folder, resx_catalog, project):
        (project / "Legacy.cs").write_text("Resources.Legacy;", "utf-8")
        result = runner.invoke(
            cli,
            ["scan", "--config-folder", config_folder, "--resources", str(resx_catalog), "--source", str(project), "--format", "json"],
        )
        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["missing"] == []
        assert report["unused"] == []

    def test_scan_with_missing_keys_fails(self, runner, config_folder, resx_catalog, project):
        (project / "New.cs").write_text("Resources.Brand_New;", "utf-8")
        result = runner.invoke(
            cli,
            ["scan", "--config-folder", config_folder, "--resources", str(resx_catalog), "--source", str(project)],
        )
        assert result.exit_code == 1
        assert "`Brand_New`" in result.stdout

    def test_scan_writes_output_file(self, runner, config_folder, resx_catalog, project, tmp_path):
        output = tmp_path / "report.yml"
        result = runner.invoke(
            cli,
            [
                "scan", "--config-folder", config_folder, "--resources", str(resx_catalog),
                "--source", str(project), "--format", "yaml", "--output", str(output),
            ],
        )
        assert output.is_file()
        assert "Legacy" in output.read_text("utf-8")
        assert result.exit_code == 0

    def test_check(self, runner, config_folder, resx_catalog):
        result = runner.invoke(cli, ["check", "--config-folder", config_folder, "--resources", str(resx_catalog)])
        assert result.exit_code == 0
        assert "| `Status_Disabled` | Key missing |" in result.output

    def test_stats(self, runner, config_folder, resx_catalog):
        result = runner.invoke(cli, ["stats", "--config-folder", config_folder, "--resources", str(resx_catalog)])
        assert result.exit_code == 0
        assert "default: 5/5 (100.0%)" in result.output
        assert "French (fr): 4/5 (80.0%)" in result.output

    def test_add_and_remove_language(self, runner, config_folder, resx_catalog):
        args = ["--config-folder", config_folder, "--resources", str(resx_catalog)]
        result = runner.invoke(cli, ["add-language", *args, "--culture", "de"])
        assert result.exit_code == 0, result.output
        assert (resx_catalog / "Strings.de.resx").is_file()

        result = runner.invoke(cli, ["add-language", *args, "--culture", "de"])
        assert result.exit_code == 1

        result = runner.invoke(cli, ["remove-language", *args, "--culture", "de"])
        assert result.exit_code == 0
        assert not (resx_catalog / "Strings.de.resx").exists()

        result = runner.invoke(cli, ["remove-language", *args, "--culture", "de"])
        assert result.exit_code == 1

    def test_invalid_config_exits(self, runner, tmp_path, resx_catalog):
        (tmp_path / "config.yml").write_text("logging: [unclosed\n", "utf-8")
        result = runner.invoke(cli, ["stats", "--config-folder", str(tmp_path), "--resources", str(resx_catalog)])
        assert result.exit_code == 1

    def test_invalid_languages_cfg_exits(self, runner, config_folder, resx_catalog):
        (Path(config_folder) / "languages.cfg").write_text('"Languages"\n{\n\t"fr"\t"French"\n', "utf-8")
        result = runner.invoke(cli, ["stats", "--config-folder", config_folder, "--resources", str(resx_catalog)])
        assert result.exit_code == 1
        assert not isinstance(result.exception, SyntaxError)
