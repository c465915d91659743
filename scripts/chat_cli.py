"""Terminal chat with a running fishing assistant server.

Usage:
    uvicorn fishing_assistant.main:app
    python scripts/chat_cli.py [base_url]
"""

import sys

import httpx

from fishing_assistant.client import ChatSession

base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

with httpx.Client(base_url=base_url, timeout=httpx.Timeout(10.0, read=120.0)) as http:
    session = ChatSession(http)
    state = session.open()
    print(f"assistant> {state.messages[0].content}\n")

    while True:
        try:
            text = input("you> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if text.strip() in ("/quit", "/exit"):
            break

        print("assistant> ", end="", flush=True)
        state = session.send(text, on_delta=lambda delta: print(delta, end="", flush=True))
        print()
        if state.error:
            print(f"[error] {state.error}")
        print()
