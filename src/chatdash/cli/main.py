"""chatdash CLI — read and post chat messages, watch the room live.

Usage:
    chatdash login alice                 # Prints an access token
    chatdash messages                    # Current message list
    chatdash post "hello everyone"       # Post as the logged-in user
    chatdash clear                       # Clear the whole chat
    chatdash delete-mine                 # Delete your own messages
    chatdash watch                       # Live view (WebSocket + fallback poll)

Point it at a server with CHATDASH_API_URL and authenticate with
CHATDASH_TOKEN (or --token).
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import logging
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:5000"


def _api_url() -> str:
    return os.environ.get("CHATDASH_API_URL", DEFAULT_API_URL).rstrip("/")


def _token(token: Optional[str]) -> Optional[str]:
    return token or os.environ.get("CHATDASH_TOKEN")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the chatdash backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0, headers=headers)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require_token(token: Optional[str]) -> str:
    tok = _token(token)
    if not tok:
        click.secho(
            "Error: --token required (or set CHATDASH_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _check(r: httpx.Response) -> None:
    """Exit with the server's error detail on a non-2xx response."""
    if r.is_success:
        return
    try:
        detail = r.json().get("detail", r.text)
    except ValueError:
        detail = r.text
    click.secho(f"Error {r.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


def _print_messages(messages: list[dict]) -> None:
    if not messages:
        click.echo("No messages.")
        return
    for m in messages:
        stamp = str(m.get("created_at", ""))[:19].replace("T", " ")
        author = click.style(f"user#{m.get('author_id')}", fg="cyan")
        click.echo(f"  [{stamp}] {author}: {m.get('content', '')}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="chatdash")
def main():
    """chatdash — chat room with live updates."""


# ---------------------------------------------------------------------------
# chatdash login
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@click.password_option(confirmation_prompt=False)
def login(username: str, password: str):
    """Log in and print an access token (export it as CHATDASH_TOKEN)."""
    _run(_login_impl(username, password))


async def _login_impl(username: str, password: str):
    async with _client() as c:
        r = await c.post("/api/v1/auth/login", json={
            "username": username,
            "password": password,
        })
        _check(r)
        click.echo(r.json()["access_token"])


# ---------------------------------------------------------------------------
# chatdash messages
# ---------------------------------------------------------------------------


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def messages(as_json: bool):
    """List chat messages, oldest first."""
    _run(_messages_impl(as_json))


async def _messages_impl(as_json: bool):
    async with _client() as c:
        r = await c.get("/api/v1/chat")
        _check(r)
        data = r.json()
        if as_json:
            click.echo(json.dumps(data, indent=2, default=str))
        else:
            _print_messages(data)


# ---------------------------------------------------------------------------
# chatdash post / clear / delete-mine
# ---------------------------------------------------------------------------


@main.command()
@click.argument("content")
@click.option("--token", help="Access token (or set CHATDASH_TOKEN)")
def post(content: str, token: Optional[str]):
    """Post a message."""
    _run(_post_impl(content, _require_token(token)))


async def _post_impl(content: str, token: str):
    async with _client(token) as c:
        r = await c.post("/api/v1/chat", json={"content": content})
        _check(r)
        msg = r.json()
        click.secho(f"Message #{msg['id']} posted", fg="green")


@main.command()
@click.option("--token", help="Access token (or set CHATDASH_TOKEN)")
@click.confirmation_option(prompt="Delete every message in the chat?")
def clear(token: Optional[str]):
    """Delete all messages."""
    _run(_delete_impl("/api/v1/chat", _require_token(token)))


@main.command("delete-mine")
@click.option("--token", help="Access token (or set CHATDASH_TOKEN)")
def delete_mine(token: Optional[str]):
    """Delete your own messages."""
    _run(_delete_impl("/api/v1/chat/user", _require_token(token)))


async def _delete_impl(path: str, token: str):
    async with _client(token) as c:
        r = await c.delete(path)
        _check(r)
        click.secho(r.json().get("message", "Done"), fg="green")


# ---------------------------------------------------------------------------
# chatdash watch
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", help="Access token (or set CHATDASH_TOKEN)")
@click.option("--poll-interval", type=float, default=5.0, show_default=True,
              help="Fallback poll interval in seconds (0 disables)")
@click.option("--reconnect-delay", type=float, default=3.0, show_default=True)
@click.option("--verbose", "-v", is_flag=True, help="Log channel activity")
def watch(token: Optional[str], poll_interval: float, reconnect_delay: float, verbose: bool):
    """Follow the chat live until Ctrl-C."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    try:
        _run(_watch_impl(_token(token), poll_interval or None, reconnect_delay))
    except KeyboardInterrupt:
        click.echo()


async def _watch_impl(token: Optional[str], poll_interval: Optional[float],
                      reconnect_delay: float):
    from chatdash.client.agent import AgentConfig, ChatSyncAgent

    seen: set[int] = set()

    def show(messages: list[dict]) -> None:
        current = {m["id"] for m in messages}
        if seen and not current:
            click.secho("  (chat cleared)", fg="yellow")
        fresh = [m for m in messages if m["id"] not in seen]
        if fresh:
            _print_messages(fresh)
        seen.clear()
        seen.update(current)

    agent = ChatSyncAgent(
        AgentConfig(
            base_url=_api_url(),
            token=token,
            poll_interval=poll_interval,
            reconnect_delay=reconnect_delay,
        ),
        on_messages=show,
    )
    click.secho(f"Watching {_api_url()} (Ctrl-C to stop)", bold=True)
    await agent.run()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
