from __future__ import annotations

import argparse
import asyncio
import logging

from backend.src import config
from backend.src.app.schemas.messages import Message
from backend.src.services.notifier import ChangeNotifier
from backend.src.services.supabase_client import SupabaseClientProvider

logger = logging.getLogger("listen_messages")


def _log_message(message: Message) -> None:
    logger.info("New message: %s", message.model_dump_json())


async def _run(conversation_id: str) -> None:
    provider = SupabaseClientProvider(config.SUPABASE_URL, config.SUPABASE_KEY, schema=config.SUPABASE_SCHEMA)
    notifier = ChangeNotifier(provider)
    try:
        async with await notifier.subscribe(conversation_id) as subscription:
            logger.info("Listening for messages in %s (Ctrl+C to stop)", conversation_id)
            async for message in subscription:
                _log_message(message)
    finally:
        await provider.aclose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Print messages inserted into a conversation as they arrive.")
    parser.add_argument("conversation_id")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s - %(levelname)s - %(message)s")
    try:
        asyncio.run(_run(args.conversation_id))
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
