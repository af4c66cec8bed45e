"""
Interactive CLI adapter for Kisaan Sahayak.

Architectural role:
- Exposes terminal interaction over the orchestrator as a guest session.
- Keeps the previous answer locally so short follow-ups ("more", "explain")
  expand it, mirroring how the web client passes it back.
- Delegates all routing and generation to `Orchestrator.process_message`.

Request lifecycle (per user turn, CLI):
1. Read stdin.
2. Handle local control commands (`exit`/`quit`, `empty chat`/`clear chat`,
   `/lang`, `/location`).
3. Route normal text to the orchestrator with the session language/location
   and the previous answer.
4. Print the reply with its provenance line.

Input validation behavior:
- Empty input is ignored.
- `/lang` validates the requested language against the supported set.
- Core validation failures are printed and the loop continues.

Error handling strategy:
- Provider and configuration failures are reported per turn without exiting.
- EOF and keyboard interrupts terminate the loop without traceback output.

Side effects:
- Loads environment variables at import time via `load_dotenv()`.
- Writes to stdout for operator feedback.
"""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import logging
import os
import sys

from sahayak.core.engine import build_orchestrator
from sahayak.core.errors import ConfigurationError, InputValidationError, ProviderError
from sahayak.core.routing_types import LANGUAGES


logger = logging.getLogger(__name__)


# =========================================================
# UTF-8 SAFE OUTPUT
# Indic replies need a UTF-8 capable stdout.
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except (OSError, ValueError):
        pass


# =========================================================
# MAIN
# =========================================================

def main():
    """
    Run the CLI loop with session controls.

    Session state:
    - `language`: requested reply language, `auto` by default.
    - `location`: optional free-text location.
    - `previous_answer`: last reply, cleared by `clear chat`.
    """
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        orchestrator = build_orchestrator()
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return

    language = "auto"
    location = ""
    previous_answer = ""

    print("Kisaan Sahayak started. (Type 'exit' to quit)")
    print(f"Mode: {orchestrator.mode.value}")
    print(f"Models: {', '.join(orchestrator.general.models)}")
    print("Commands: /lang <language>, /location <place>, clear chat")
    print("-" * 60)

    while True:

        try:
            question = input("Question: ").strip()

        except EOFError:
            print("\nSession ended (EOF received).")
            break

        except KeyboardInterrupt:
            print("\nOperation cancelled by user.")
            break

        if not question:
            continue

        lowered = question.lower()

        # EXIT
        if lowered in ("exit", "quit"):
            print("Shutting down.")
            break

        # CLEAR CHAT
        if lowered in ("empty chat", "clear chat"):
            previous_answer = ""
            print("Chat cleared.")
            continue

        # LANGUAGE
        if lowered.startswith("/lang"):
            parts = lowered.split()
            if len(parts) == 1 or parts[1] not in LANGUAGES:
                print(f"\nUsage: /lang <{'|'.join(LANGUAGES)}>")
                print(f"Current language: {language}\n")
                continue
            language = parts[1]
            print(f"\nReply language: {language}\n")
            continue

        # LOCATION
        if lowered.startswith("/location"):
            location = question[len("/location"):].strip()
            print(f"\nLocation: {location or 'not set'}\n")
            continue

        # NORMAL QUESTION FLOW

        try:
            result = asyncio.run(
                orchestrator.process_message(
                    question,
                    language=language,
                    location=location,
                    previous_answer=previous_answer,
                )
            )
        except InputValidationError as e:
            details = f" ({'; '.join(e.details)})" if e.details else ""
            print(f"\nInput rejected: {e.reason}{details}\n")
            continue
        except (ConfigurationError, ProviderError) as e:
            logger.debug("Turn failed", exc_info=True)
            print(f"\nCould not answer right now: {e}\n")
            continue

        previous_answer = result.reply

        print("\nResponse:\n")
        print(result.reply)
        print(f"\n[{result.provider} | {result.model_id or '-'} | {result.language}]")
        print("\n" + "-" * 60 + "\n")


if __name__ == "__main__":
    main()
