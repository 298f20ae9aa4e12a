import logging
from unittest import TestCase
from unittest.mock import patch

import click
from parameterized import parameterized
from rich.logging import RichHandler

from funcli.lib.utils.colors import Colored, Colors


class TestColored(TestCase):
    def setUp(self):
        self.msg = "function svc/fn built"

    @parameterized.expand([(Colors.SUCCESS, "green"), (Colors.FAILURE, "red"), (Colors.WARNING, "yellow")])
    def test_color_log_without_rich_handler(self, color, fg):
        with patch.object(logging.getLogger("funcli"), "handlers", []):
            colored = Colored()

        self.assertEqual(colored.color_log(self.msg, color), click.style(self.msg, fg=fg))

    def test_color_log_with_rich_handler(self):
        with patch.object(logging.getLogger("funcli"), "handlers", [RichHandler()]):
            colored = Colored()

        self.assertEqual(colored.color_log(self.msg, Colors.SUCCESS), f"[green]{self.msg}[/green]")
