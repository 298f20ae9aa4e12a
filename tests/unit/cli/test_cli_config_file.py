import os
from unittest import TestCase
from unittest.mock import patch

from click.testing import CliRunner

from funcli.cli.cli_config_file import ConfigProvider
from funcli.cli.main import cli

CONFIG = """
[default.global.parameters]
verbose = true

[default.build.parameters]
use_docker = true
base_dir = "src"

[prod.build.parameters]
template = "prod.yml"
"""


class TestConfigProvider(TestCase):
    def test_missing_file(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            provider = ConfigProvider(section="parameters")

            self.assertEqual(provider(None, "default", ["build"]), {})

    def test_reads_command_section(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            with open("funconfig.toml", "w") as fp:
                fp.write(CONFIG)
            provider = ConfigProvider(section="parameters")

            self.assertEqual(
                provider(None, "default", ["build"]), {"verbose": True, "use_docker": True, "base_dir": "src"}
            )
            self.assertEqual(provider(os.path.abspath("funconfig.toml"), "prod", ["build"]), {"template": "prod.yml"})


@patch("funcli.commands.install.command.do_cli")
@patch("funcli.commands.build.command.do_cli")
class TestConfigurationOption(TestCase):
    def setUp(self):
        self.runner = CliRunner()

    def test_build_uses_config_values(self, build_do_cli_mock, install_do_cli_mock):
        with self.runner.isolated_filesystem():
            with open("funconfig.toml", "w") as fp:
                fp.write(CONFIG)

            result = self.runner.invoke(cli, ["build", "svc/fn"])

            self.assertEqual(result.exit_code, 0, result.output)
            build_do_cli_mock.assert_called_once_with("svc/fn", os.path.abspath("template.yml"), "src", True, True)

    def test_command_line_wins_over_config(self, build_do_cli_mock, install_do_cli_mock):
        with self.runner.isolated_filesystem():
            with open("funconfig.toml", "w") as fp:
                fp.write(CONFIG)

            result = self.runner.invoke(cli, ["build", "--base-dir", "code", "--template", "other.yml"])

            self.assertEqual(result.exit_code, 0, result.output)
            build_do_cli_mock.assert_called_once_with(None, os.path.abspath("other.yml"), "code", True, True)

    def test_config_env(self, build_do_cli_mock, install_do_cli_mock):
        with self.runner.isolated_filesystem():
            with open("funconfig.toml", "w") as fp:
                fp.write(CONFIG)

            result = self.runner.invoke(cli, ["build", "--config-env", "prod"])

            self.assertEqual(result.exit_code, 0, result.output)
            build_do_cli_mock.assert_called_once_with(None, os.path.abspath("prod.yml"), None, False, False)

    def test_global_parameters_apply_to_install(self, build_do_cli_mock, install_do_cli_mock):
        with self.runner.isolated_filesystem():
            with open("funconfig.toml", "w") as fp:
                fp.write(CONFIG)

            result = self.runner.invoke(cli, ["install", "-f", "fn"])

            self.assertEqual(result.exit_code, 0, result.output)
            install_do_cli_mock.assert_called_once_with("fn", os.path.abspath("template.yml"), False, True)

    def test_missing_config_file(self, build_do_cli_mock, install_do_cli_mock):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ["build", "--config-file", "missing.toml"])

            self.assertEqual(result.exit_code, 1)
            self.assertIn("Config file missing.toml does not exist or could not be read!", result.output)
            build_do_cli_mock.assert_not_called()

    def test_invalid_config_file(self, build_do_cli_mock, install_do_cli_mock):
        with self.runner.isolated_filesystem():
            with open("funconfig.toml", "w") as fp:
                fp.write("[default.build.parameters\n")

            result = self.runner.invoke(cli, ["build"])

            self.assertNotEqual(result.exit_code, 0)
            self.assertIn("Error reading configuration", result.output)
            build_do_cli_mock.assert_not_called()
