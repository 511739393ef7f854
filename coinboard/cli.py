"""
行情看板 CLI

所有命令输出结构化 JSON，方便脚本解析结果。

用法:
    python -m coinboard.cli serve --host 0.0.0.0 --port 8000
    python -m coinboard.cli markets --page 1 --per-page 50
    python -m coinboard.cli markets --per-page 100 --search btc
    python -m coinboard.cli watch --action list
    python -m coinboard.cli watch --action toggle --id bitcoin
"""

import argparse
import asyncio
import json
import sys
from typing import Any


def _json_out(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2, default=str))


async def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    from coinboard.core.config import get_config

    config = get_config()
    host = args.host or config.get("server.host", "127.0.0.1")
    port = args.port or int(config.get("server.port", 8000))

    server = uvicorn.Server(uvicorn.Config("web.api:app", host=host, port=port))
    await server.serve()


async def cmd_markets(args: argparse.Namespace) -> None:
    from coinboard.core.config import get_config
    from coinboard.core.error_handler import MarketDataError
    from coinboard.modules.markets.proxy import MarketProxyCache
    from coinboard.modules.markets.search import filter_coins

    proxy = MarketProxyCache.from_config(get_config())
    try:
        result = await proxy.get_markets(page=args.page, per_page=args.per_page)
    except MarketDataError as e:
        _json_out({"error": e.message, "code": e.code, "status_code": e.status_code})
        sys.exit(1)
    finally:
        await proxy.upstream.close()

    data = result.to_dict()
    if args.search:
        data["coins"] = filter_coins(result.coins, args.search)
        data["count"] = len(data["coins"])
        data["search"] = args.search
    _json_out(data)


async def cmd_watch(args: argparse.Namespace) -> None:
    from coinboard.core.config import get_config
    from coinboard.modules.markets.watchlist import WatchlistStore

    path = args.file or get_config().get("watchlist.path", "data/watchlist.json")
    store = WatchlistStore(path)

    if args.action == "list":
        _json_out({"watchlist": store.ids()})
        return

    if not args.id:
        _json_out({"error": "Specify --id"})
        sys.exit(1)

    if args.action == "add":
        changed = store.add(args.id)
        _json_out({"action": "add", "id": args.id, "changed": changed, "watchlist": store.ids()})
    elif args.action == "remove":
        changed = store.remove(args.id)
        _json_out({"action": "remove", "id": args.id, "changed": changed, "watchlist": store.ids()})
    else:
        watched = store.toggle(args.id)
        _json_out({"action": "toggle", "id": args.id, "watched": watched, "watchlist": store.ids()})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="coinboard", description="加密货币行情看板 CLI")
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("serve", help="启动行情代理 HTTP 服务")
    p.add_argument("--host", default=None, help="监听地址")
    p.add_argument("--port", type=int, default=None, help="监听端口")

    p = sub.add_parser("markets", help="拉取一页行情")
    p.add_argument("--page", type=int, default=1, help="页码")
    p.add_argument("--per-page", type=int, default=50, help="每页条数")
    p.add_argument("--search", default="", help="按名称或代码过滤")

    p = sub.add_parser("watch", help="管理自选列表")
    p.add_argument("--action", required=True, choices=["list", "add", "remove", "toggle"])
    p.add_argument("--id", help="币种 ID，如 bitcoin")
    p.add_argument("--file", default=None, help="自选列表文件路径")

    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    dispatch = {
        "serve": cmd_serve,
        "markets": cmd_markets,
        "watch": cmd_watch,
    }

    handler = dispatch.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(handler(args))
    except KeyboardInterrupt:
        pass
    except Exception as e:
        _json_out({"error": str(e)})
        sys.exit(1)


if __name__ == "__main__":
    main()
