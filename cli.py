# Role: Local developer CLI to interact with FlowController without the HTTP layer.
# Useful for manual testing in any of the supported languages and seeing logs in the terminal.

from __future__ import annotations

from typing import Optional

import spot_assistant.config
spot_assistant.config.load_env()

from spot_assistant.core.flow_controller import FlowController, new_session_id
from spot_assistant.logging_setup import configure_logging
from spot_assistant.models.intent import Location
from spot_assistant.utils.lexicons import normalize_language


def parse_location(raw: str) -> Optional[Location]:
    # Role: "/loc 6.5244,3.3792" -> Location; anything unparsable -> None.
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 2:
        return None
    try:
        return Location(latitude=float(parts[0]), longitude=float(parts[1]))
    except ValueError:
        return None


def main() -> None:
    # 1) Create FlowController
    # 2) Maintain session_id, location and language across turns
    # 3) Route user input -> FlowController -> print assistant output
    configure_logging()
    print("Spot Assistant CLI")
    print("Commands: /new (new session), /session (show session_id), /loc lat,lon, /lang en|pcm|yo, /exit")
    print("-" * 50)

    flow = FlowController()
    session_id = new_session_id()
    location: Optional[Location] = None
    language: Optional[str] = None
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

        if cmd in {"/exit", "exit", "quit", "/quit"}:
            print("Bye!")
            return

        if cmd in {"/new", "new"}:
            session_id = new_session_id()
            print(f"New session_id: {session_id}")
            continue

        if cmd in {"/session", "session"}:
            snapshot = flow.session_snapshot(session_id)
            count = snapshot.interaction_count if snapshot else 0
            print(f"session_id: {session_id} (interactions: {count}, location: {location}, language: {language})")
            continue

        if cmd.startswith("/loc"):
            parsed = parse_location(user_message[len("/loc"):])
            if parsed is None:
                print("Usage: /loc 6.5244,3.3792")
            else:
                location = parsed
                print(f"Location set to {location}")
            continue

        if cmd.startswith("/lang"):
            code = normalize_language(user_message[len("/lang"):])
            if code is None:
                print("Usage: /lang en | pcm | yo")
            else:
                language = code
                print(f"Language set to {language}")
            continue

        result = flow.process_text(user_message, session_id=session_id, location=location, language=language)
        print(f"\nAssistant: {result.text}")


if __name__ == "__main__":
    main()
