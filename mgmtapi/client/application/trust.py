"""
Application layer: Trust decisions for unknown or changed server fingerprints.

A trust decision is any callable ``(server, stored, presented) -> bool``.
``stored`` is None when the trust file has no record of the server.
"""

from __future__ import annotations

import click


def prompt_trust_decision(server: str, stored: str | None, presented: str) -> bool:
    """Ask on the terminal whether to trust the presented fingerprint."""
    if stored is None:
        click.echo("You currently do not have a record of this server's fingerprint.", err=True)
    else:
        click.echo(
            "The server's fingerprint is different from your local record of this "
            "server's fingerprint.\nYou may be a victim of a Man-in-the-Middle attack, "
            "please beware.",
            err=True,
        )
    click.echo(f"Server's fingerprint: {presented}", err=True)
    return click.confirm("Do you accept this fingerprint?", default=False, err=True)


def accept_all(server: str, stored: str | None, presented: str) -> bool:  # noqa: ARG001
    return True


def reject_all(server: str, stored: str | None, presented: str) -> bool:  # noqa: ARG001
    return False
