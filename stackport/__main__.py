"""Allows ``python -m stackport``; the generated import scripts rely on it."""

from stackport.cli.main import cli_main

if __name__ == "__main__":
    cli_main()
