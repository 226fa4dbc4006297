"""
CLI client for the chat room service.

Supports:
- WebSocket chat:   /ws/chat/
- HTTP roster:      GET /api/roster/

WebSocket protocol (`ChatConsumer`):
- Connect: /ws/chat/ (pass ?api_key=<CHAT_AUTH_API_KEY> or X-API-KEY header when required)
- Client sends:
  - {"type":"join","name":"alice"}
  - {"type":"chat-message","message":"..."}
  - {"type":"typing","isTyping":true|false}
- Server sends:
  - {"type":"connected","session_id":...}
  - {"type":"user-joined","name":...} / {"type":"user-left","name":...}
  - {"type":"user-list","users":[...]}
  - {"type":"chat-message","name":...,"message":...,"timestamp":...}
  - {"type":"typing","name":...,"isTyping":...}
  - {"type":"error","message":"..."}

Messages arrive HTML-escaped (the server targets browsers); this client unescapes
them for the terminal.
"""

from __future__ import annotations

import argparse
import asyncio
import html
import json
import sys
import urllib.parse
from typing import Any, Dict, Optional

import aiohttp
import websockets


def _rstrip_slash(s: str) -> str:
    return s[:-1] if s.endswith("/") else s


def _ws_chat_url(ws_base: str, api_key: Optional[str]) -> str:
    url = f"{_rstrip_slash(ws_base)}/ws/chat/"
    if api_key:
        url += "?" + urllib.parse.urlencode({"api_key": api_key})
    return url


def _http_url(http_base: str, path: str) -> str:
    return f"{_rstrip_slash(http_base)}{path}"


async def _stdin_lines() -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, sys.stdin.readline)


def format_event(msg: Dict[str, Any]) -> Optional[str]:
    """Render one server frame as a terminal line (None for frames we don't show)."""
    t = msg.get("type")
    if t == "chat-message":
        return f"[{msg.get('timestamp', '')}] {html.unescape(msg.get('name', ''))}: {html.unescape(msg.get('message', ''))}"
    if t == "user-joined":
        return f"* {html.unescape(msg.get('name', ''))} joined the chat"
    if t == "user-left":
        return f"* {html.unescape(msg.get('name', ''))} left the chat"
    if t == "user-list":
        users = ", ".join(html.unescape(u) for u in msg.get("users") or [])
        return f"* online: {users}"
    if t == "typing":
        if msg.get("isTyping"):
            return f"* {html.unescape(msg.get('name', ''))} is typing..."
        return None
    if t == "error":
        return f"! {msg.get('message')}"
    return None


async def ws_chat(*, ws_base: str, api_key: Optional[str], origin: Optional[str], name: str) -> int:
    ws_url = _ws_chat_url(ws_base, api_key)
    extra_headers = []
    if origin:
        extra_headers.append(("Origin", origin))

    async with websockets.connect(ws_url, additional_headers=extra_headers or None) as ws:
        await ws.send(json.dumps({"type": "join", "name": name}, separators=(",", ":")))

        async def _print_incoming() -> None:
            async for raw in ws:
                try:
                    msg = json.loads(raw)
                except json.JSONDecodeError:
                    continue
                line = format_event(msg)
                if line:
                    sys.stdout.write(line + "\n")
                    sys.stdout.flush()

        reader = asyncio.create_task(_print_incoming())
        sys.stderr.write("Type a line and press Enter to send. Ctrl+D to quit.\n")
        sys.stderr.flush()
        try:
            while not reader.done():
                line = await _stdin_lines()
                if not line:
                    break
                text = line.rstrip("\n")
                if not text.strip():
                    continue
                await ws.send(json.dumps({"type": "typing", "isTyping": True}))
                await ws.send(json.dumps({"type": "chat-message", "message": text}, ensure_ascii=False))
                await ws.send(json.dumps({"type": "typing", "isTyping": False}))
        finally:
            reader.cancel()
    return 0


async def fetch_roster(*, http_base: str, api_key: Optional[str]) -> Dict[str, Any]:
    headers = {"X-API-KEY": api_key} if api_key else None
    async with aiohttp.ClientSession() as session:
        async with session.get(_http_url(http_base, "/api/roster/"), headers=headers) as resp:
            text = await resp.text()
            try:
                data = json.loads(text) if text else {}
            except json.JSONDecodeError:
                raise RuntimeError(f"Non-JSON response from /api/roster/: {resp.status} {text}")
            if resp.status >= 400:
                raise RuntimeError(f"HTTP {resp.status}: {data}")
            return data


async def main() -> int:
    parser = argparse.ArgumentParser(description="CLI client for the chat room service")
    parser.add_argument("--http", default="http://localhost:8000", help="HTTP base, e.g. http://localhost:8000")
    parser.add_argument("--ws", default="ws://localhost:8000", help="WS base, e.g. ws://localhost:8000")
    parser.add_argument("--api-key", help="API key (must match CHAT_AUTH_API_KEY)")
    parser.add_argument("--origin", help="Optional Origin header for WebSocket handshake")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_chat = sub.add_parser("chat", help="Join the room and chat over WebSocket")
    p_chat.add_argument("--name", required=True, help="Display name (2-20 letters, digits, underscore)")

    sub.add_parser("roster", help="Print who is in the room (HTTP)")

    args = parser.parse_args()

    if args.cmd == "chat":
        return await ws_chat(ws_base=args.ws, api_key=args.api_key, origin=args.origin, name=args.name)

    if args.cmd == "roster":
        data = await fetch_roster(http_base=args.http, api_key=args.api_key)
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
