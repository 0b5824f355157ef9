"""Example usage of the Nanoleaf API client."""
import asyncio
import logging
from datetime import timedelta

from nanoleaf_api import Color, Context, NanoleafError, connect

# Configure logging
logging.basicConfig(level=logging.DEBUG)
_LOGGER = logging.getLogger(__name__)

HOST = "192.168.51.202"
AUTH_TOKEN = "replace-with-your-token"


def tracef(ctx, fmt, *args):
    """Print trace lines with the time left on the call."""
    remaining = ctx.remaining()
    prefix = f"[{remaining:.2f}s left]" if remaining is not None else "[no deadline]"
    print(prefix, fmt % args)


async def example_basic_usage():
    """Example of basic usage with the default timeout."""
    controller = connect(HOST, AUTH_TOKEN)
    try:
        state = await controller.state()
        print(f"Device: {state.name} ({state.serial}), firmware {state.firmware_version}")
        print(f"Current effect: {state.effects.selected}")
        print(f"Available effects: {', '.join(state.effects.effects_list)}")

        await controller.on()
        await controller.set_brightness(60, timedelta(seconds=2))
    except NanoleafError as e:
        print(f"❌ Error: {e}")


async def example_deadline_usage():
    """Example of several calls sharing one deadline."""
    controller = connect(HOST, AUTH_TOKEN, tracef=tracef)

    with Context.background().with_timeout(3.0) as ctx:
        try:
            await controller.set_color(Color(hue=240, saturation=80, brightness=50), ctx)
            await controller.set_effect("Northern Lights", ctx)
        except NanoleafError as e:
            print(f"❌ Error: {e}")


async def main():
    """Run all examples."""
    print("=== Basic Usage ===")
    await example_basic_usage()

    print("\n=== Shared Deadline ===")
    await example_deadline_usage()


if __name__ == "__main__":
    asyncio.run(main())
