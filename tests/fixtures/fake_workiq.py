"""
Minimal stand-in for ``workiq mcp``: newline-delimited JSON-RPC on stdio.

Usage: fake_workiq.py <mode>

Modes:
    ok          normal handshake and answer
    noise       log lines on stdout before the JSON-RPC traffic
    fuzzy-tool  ask tool is only discoverable by substring
    no-tool     no ask tool is listed
    error       tools/call returns a JSON-RPC error
    exit        exits right after receiving initialize
    hang        reads requests and never answers
"""

import json
import sys

MODE = sys.argv[1] if len(sys.argv) > 1 else "ok"


def send(msg):
    sys.stdout.write(json.dumps(msg) + "\n")
    sys.stdout.flush()


def tools_for_mode():
    if MODE == "no-tool":
        return [{"name": "search"}, {"name": "list_files"}]
    if MODE == "fuzzy-tool":
        return [{"name": "search"}, {"name": "m365_ask_copilot"}]
    return [{"name": "search"}, {"name": "workiq_ask"}]


def main():
    if MODE == "noise":
        sys.stdout.write("Work IQ MCP server starting...\n")
        sys.stdout.write("{not json either\n")
        sys.stdout.flush()

    while True:
        line = sys.stdin.readline()
        if not line:
            return 0
        line = line.strip()
        if not line:
            continue

        request = json.loads(line)
        method = request.get("method")
        msg_id = request.get("id")

        if MODE == "hang":
            continue

        if method == "initialize":
            if MODE == "exit":
                sys.stderr.write("authentication required\n")
                sys.stderr.flush()
                return 3
            send({
                "jsonrpc": "2.0",
                "id": msg_id,
                "result": {
                    "protocolVersion": request["params"]["protocolVersion"],
                    "capabilities": {"tools": {}},
                    "serverInfo": {"name": "fake-workiq", "version": "0.0.1"},
                },
            })
        elif method == "tools/list":
            send({"jsonrpc": "2.0", "id": msg_id, "result": {"tools": tools_for_mode()}})
        elif method == "tools/call":
            if MODE == "error":
                send({"jsonrpc": "2.0", "id": msg_id, "error": {"code": -32000, "message": "Access denied"}})
                continue
            params = request["params"]
            send({
                "jsonrpc": "2.0",
                "id": msg_id,
                "result": {
                    "content": [
                        {"type": "text", "text": f"You asked: {params['arguments']['question']}"},
                        {"type": "image", "data": "aGVsbG8=", "mimeType": "image/png"},
                        {"type": "text", "text": f"tool={params['name']}"},
                    ]
                },
            })


if __name__ == "__main__":
    sys.exit(main())
