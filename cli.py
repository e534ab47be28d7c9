# Role: Local developer CLI to talk to the FlowController without the web UI.
# Useful for walking through multi-turn dialogs and seeing debug traces in the terminal.

from __future__ import annotations
import uuid

import campus_bot.config
campus_bot.config.load_env()

from campus_bot.core.flow_controller import FlowController


def _new_session_id() -> str:
    return str(uuid.uuid4())


def main() -> None:
    # 1) Create FlowController
    # 2) Maintain a session_id across turns
    # 3) Route user input -> FlowController -> print every outgoing message
    print("Campus Assistant CLI")
    print("Commands: /new (new session), /session (show session_id), /exit")
    print("In a conversation you can always say 'help' or 'cancel'.")
    print("-" * 50)

    flow = FlowController()
    session_id = _new_session_id()
    print(f"session_id: {session_id}")

    while True:
        try:
            user_message = input("\nYou: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not user_message:
            continue

        cmd = user_message.lower()

        if cmd in {"/exit", "exit", "/quit"}:
            print("Bye!")
            return

        if cmd in {"/new", "new"}:
            session_id = _new_session_id()
            print(f"New session_id: {session_id}")
            continue

        if cmd in {"/session", "session"}:
            print(f"session_id: {session_id}")
            continue

        result = flow.handle_turn(session_id, user_message)
        for reply in result.messages:
            print(f"\nAssistant: {reply.text}")
            if reply.suggested_replies:
                print("  [" + " | ".join(reply.suggested_replies) + "]")


if __name__ == "__main__":
    main()
