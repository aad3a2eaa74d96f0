"""
pandorakit - 命令行入口

用法:
    pandorakit login user@example.com --password secret
    pandorakit call station/getStations --content '{"pageSize": 10}'
    pandorakit call sod/search --version v3 --content '{"query": "jazz", "count": 5}'

未提供的账号密码从 PANDORAKIT_USERNAME / PANDORAKIT_PASSWORD 读取。
"""

import argparse
import json
import logging
import os
import sys

from .errors import PandoraError
from .http import DEFAULT_METHOD, DEFAULT_VERSION
from .session import Session

logger = logging.getLogger("pandorakit")


def _parse_query(pairs: list[str] | None) -> dict[str, str]:
    query = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"无效 query 参数: {pair} (应为 key=value)")
        query[key] = value
    return query


def _credentials(args) -> tuple[str, str]:
    username = args.username or os.getenv("PANDORAKIT_USERNAME", "")
    password = args.password or os.getenv("PANDORAKIT_PASSWORD", "")
    if not username or not password:
        raise ValueError("需要账号和密码 (参数或 PANDORAKIT_USERNAME / PANDORAKIT_PASSWORD)")
    return username, password


def _print_response(res, as_json: bool) -> None:
    if as_json:
        try:
            body = res.json()
        except ValueError:
            body = res.body
        print(json.dumps({"status": res.status_code, "body": body}, ensure_ascii=False, indent=2))
    else:
        print(f"HTTP {res.status_code}")
        if res.body:
            print(res.body)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pandorakit",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="详细日志")
    parser.add_argument("--json", "-j", action="store_true", help="JSON 格式输出")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="获取 csrftoken 并登录")
    login.add_argument("username", nargs="?", help="账号")
    login.add_argument("--password", "-p", help="密码")

    call = sub.add_parser("call", help="登录后调用任意 API 端点")
    call.add_argument("endpoint", help="端点路径, 如 station/getStations")
    call.add_argument("--username", "-u", help="账号")
    call.add_argument("--password", "-p", help="密码")
    call.add_argument("--version", default=DEFAULT_VERSION, help=f"API 版本 (默认 {DEFAULT_VERSION})")
    call.add_argument("--method", "-X", default=DEFAULT_METHOD, help=f"HTTP 方法 (默认 {DEFAULT_METHOD})")
    call.add_argument("--query", "-q", action="append", metavar="KEY=VALUE", help="查询参数，可重复")
    call.add_argument("--content", "-d", help="JSON 请求体")
    return parser


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
    if args.verbose:
        logging.getLogger("pandorakit").setLevel(logging.DEBUG)

    username, password = _credentials(args)
    with Session() as session:
        res = session.login(username, password)
        if args.command == "login" or not res.ok:
            _print_response(res, args.json)
            return 0 if res.ok else 1

        content = json.loads(args.content) if args.content else None
        res = session.call(
            args.endpoint,
            version=args.version,
            method=args.method,
            query=_parse_query(args.query),
            content=content,
        )
        _print_response(res, args.json)
        return 0 if res.ok else 1


def main():
    try:
        code = run()
    except (PandoraError, ValueError) as e:
        # json.JSONDecodeError is a ValueError too.
        print(f"ERROR: {e}", file=sys.stderr)
        raise SystemExit(1)
    raise SystemExit(code)
