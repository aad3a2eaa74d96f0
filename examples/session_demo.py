#!/usr/bin/env python3
# /// script
# dependencies = ["httpx"]
# ///
"""
会话示例 - 登录后批量调用端点

用法:
    PANDORAKIT_USERNAME=... PANDORAKIT_PASSWORD=... uv run examples/session_demo.py endpoints.txt

endpoints.txt 每行一个端点，可选 "版本 端点"，例如:
    station/getStations
    v3 sod/search
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pandorakit import PandoraError, Session
import json
import argparse


def main():
    parser = argparse.ArgumentParser(description="登录后批量调用 API 端点")
    parser.add_argument("file", help="端点文件（每行一个）")
    parser.add_argument("--content", "-d", default="{}", help="每个请求使用的 JSON 请求体")
    args = parser.parse_args()

    with open(args.file) as f:
        lines = [line.split() for line in f if line.strip() and not line.startswith("#")]

    content = json.loads(args.content)
    ok = 0
    with Session() as session:
        res = session.login(os.environ["PANDORAKIT_USERNAME"], os.environ["PANDORAKIT_PASSWORD"])
        print(f"🔑 登录: HTTP {res.status_code}", file=sys.stderr)

        for i, parts in enumerate(lines, 1):
            version, endpoint = parts if len(parts) == 2 else ("v1", parts[0])
            print(f"[{i}/{len(lines)}] {version}/{endpoint}", file=sys.stderr)
            try:
                res = session.call(endpoint, version=version, content=content)
            except PandoraError as e:
                print(f"  ❌ {e}", file=sys.stderr)
                continue
            print(res.body)
            ok += res.ok

    print(f"\n✅ 完成: {ok}/{len(lines)} 成功", file=sys.stderr)


if __name__ == "__main__":
    main()
