"""Interactive console group chat.

Usage:
    python -m groupchat.main [--config PATH]

Type a message to start a turn. ``/reset`` clears the conversation,
``/quit`` exits.
"""

import argparse
import asyncio
import logging

from dotenv import load_dotenv

load_dotenv()

from groupchat.api.config import settings
from groupchat.api.logging_config import setup_logging
from groupchat.api.services.group_chat_config_service import GroupChatConfigService
from groupchat.api.services.group_chat_service import GroupChatService

logger = logging.getLogger(__name__)


def _make_printer(service: GroupChatService):
    def print_event(event):
        persona = service.store.get_participant(event.get("persona_id", ""))
        name = persona.name if persona else event.get("persona_id", "?")
        event_type = event.get("type")
        if event_type == "persona_typing":
            print(f"  ... {name} is typing")
        elif event_type == "persona_message":
            print(f"{name}: {event['content']}")
        elif event_type == "persona_error":
            print(f"  [!] {name} could not reply ({event['kind']})")
        elif event_type == "turn_done" and event.get("reason") == "epoch_changed":
            print("  [turn cancelled]")

    return print_event


async def run_console(config_path: str) -> None:
    config = GroupChatConfigService(config_path).config
    api_key = settings.openai_api_key if config.reply.protocol == "openai" else settings.google_api_key
    service = GroupChatService.from_config(config, api_key=api_key)
    service.add_listener(_make_printer(service))

    names = ", ".join(p.name for p in service.store.participants if not p.is_user)
    print("=" * 60)
    print(f"Group chat with: {names}")
    print("Commands: /reset, /quit")
    print("=" * 60)

    try:
        while True:
            line = await asyncio.to_thread(input, "> ")
            command = line.strip()
            if not command:
                continue
            if command == "/quit":
                break
            if command == "/reset":
                service.reset()
                print("[conversation cleared]")
                continue
            await service.on_human_message(command)
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        await service.shutdown()


def main() -> None:
    parser = argparse.ArgumentParser(description="Console group chat with AI personas")
    parser.add_argument(
        "--config",
        default=str(settings.group_chat_config_path),
        help="Path to the group chat YAML config",
    )
    args = parser.parse_args()

    setup_logging(settings.log_level, settings.log_dir)
    # Keep the console readable: only warnings reach stderr.
    logging.getLogger().handlers[0].setLevel(logging.WARNING)
    asyncio.run(run_console(args.config))


if __name__ == "__main__":
    main()
