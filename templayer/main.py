"""Main entry point for the templayer CLI application."""

from templayer.cli.interface import main_cli


def entrypoint():
    """Function to be called by the script defined in pyproject.toml."""
    main_cli(prog_name="templayer")

if __name__ == '__main__':
    entrypoint()
