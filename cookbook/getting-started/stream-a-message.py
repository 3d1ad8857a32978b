#!/usr/bin/env python3
"""Recipe: Stream a Messages API reply as it is generated.

When you need to: Show text to the user while the model is still writing,
and still end up with the complete response.

Ingredients:
- Nothing for mock mode; `ANTHROPIC_API_KEY` for `--no-mock`

What you'll learn:
- Consume `EventStream` items and check `item.ok`
- Print text deltas incrementally
- Stop a stream early with `--stop-after`
"""

from __future__ import annotations

import argparse
import asyncio

from claudius import Client, Config
from claudius.types import ContentBlockDeltaEvent, MessageDeltaEvent, TextDelta
from cookbook.utils.presentation import print_header, print_kv_rows, print_section
from cookbook.utils.runtime import add_runtime_args, build_config_or_exit


async def main_async(config: Config, prompt: str, stop_after: int | None) -> None:
    async with Client(config) as client:
        request = client.messages_builder().user(prompt).max_tokens(512).build()
        deltas = 0
        stop_reason = None

        print_section("Streaming")
        async with client.stream_messages(request) as stream:
            async for item in stream:
                if not item.ok:
                    print(f"\n[stream failed: {item.error}]")
                    return
                event = item.fragment
                if isinstance(event, ContentBlockDeltaEvent) and isinstance(event.delta, TextDelta):
                    print(event.delta.text, end="", flush=True)
                    deltas += 1
                    if stop_after is not None and deltas >= stop_after:
                        print("\n[stopped early]")
                        break
                elif isinstance(event, MessageDeltaEvent):
                    stop_reason = event.stop_reason
        print()

    print_kv_rows(
        [
            ("text deltas", deltas),
            ("stop reason", stop_reason.value if stop_reason else None),
        ]
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Stream a message reply")
    parser.add_argument("--prompt", default="Tell me about the sea in a few words")
    parser.add_argument("--stop-after", type=int, default=None, help="Close after N text deltas")
    add_runtime_args(parser)
    args = parser.parse_args()

    config = build_config_or_exit(args)
    print_header("Stream a message", config=config)
    asyncio.run(main_async(config, args.prompt, args.stop_after))


if __name__ == "__main__":
    main()
