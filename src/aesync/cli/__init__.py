"""
aesync CLI package.

Commands are registered on ``app`` by the submodules imported below.
"""

from __future__ import annotations

import typer

app = typer.Typer(
    name="ae-sync",
    help="Aeternity account synchronization",
    add_completion=False,
)


def main() -> None:
    """Entry point for the ``ae-sync`` console script."""
    app()


from aesync.cli import account_cmd, chain_cmd, config_cmd  # noqa: E402, F401

if __name__ == "__main__":
    main()
