"""Entry point for ``python -m manindex``."""

from manindex.cli.main import cli

if __name__ == "__main__":
    cli()
