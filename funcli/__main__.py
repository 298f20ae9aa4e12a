"""
Invokable Module for CLI

python -m funcli
"""

from funcli.cli.main import cli  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    # prog_name is pinned so that help text says "fun" instead of "__main__"
    cli(prog_name="fun")
