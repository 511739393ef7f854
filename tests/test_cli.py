"""CLI 契约测试。"""

import json
from argparse import Namespace

import pytest

from coinboard.cli import build_parser, cmd_watch


def test_markets_cli_defaults() -> None:
    parser = build_parser()
    args = parser.parse_args(["markets"])
    assert args.command == "markets"
    assert args.page == 1
    assert args.per_page == 50
    assert args.search == ""

    args = parser.parse_args(["markets", "--page", "3", "--per-page", "100", "--search", "btc"])
    assert args.page == 3
    assert args.per_page == 100
    assert args.search == "btc"


def test_watch_cli_requires_known_action() -> None:
    parser = build_parser()
    args = parser.parse_args(["watch", "--action", "toggle", "--id", "bitcoin"])
    assert args.command == "watch"
    assert args.action == "toggle"
    assert args.id == "bitcoin"

    with pytest.raises(SystemExit):
        parser.parse_args(["watch", "--action", "purge"])


def test_serve_cli_overrides() -> None:
    args = build_parser().parse_args(["serve", "--host", "0.0.0.0", "--port", "9000"])
    assert args.host == "0.0.0.0"
    assert args.port == 9000


@pytest.mark.asyncio
async def test_watch_toggle_writes_file(temp_dir, capsys) -> None:
    path = temp_dir / "watchlist.json"

    await cmd_watch(Namespace(action="toggle", id="bitcoin", file=str(path)))
    out = json.loads(capsys.readouterr().out)

    assert out["watched"] is True
    assert out["watchlist"] == ["bitcoin"]

    await cmd_watch(Namespace(action="list", id=None, file=str(path)))
    assert json.loads(capsys.readouterr().out) == {"watchlist": ["bitcoin"]}


@pytest.mark.asyncio
async def test_watch_add_without_id_exits(temp_dir, capsys) -> None:
    with pytest.raises(SystemExit):
        await cmd_watch(Namespace(action="add", id=None, file=str(temp_dir / "w.json")))
    assert "error" in json.loads(capsys.readouterr().out)
