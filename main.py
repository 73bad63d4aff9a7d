#!/usr/bin/env python3
import asyncio, logging, sys
from config.logging_config import configure
from config.app_config import settings
from canelink import DeviceClient, EventCategory

log = logging.getLogger("monitor")

def log_event(event):
    log.info(f"{event.category.value:<10} {event}")

async def async_main():
    configure()
    client = DeviceClient.from_settings(settings)
    for category in EventCategory:
        client.subscribe(category, log_event)

    async with client:
        # keep process alive; the client reconnects on its own
        while True:
            await asyncio.sleep(3600)

if __name__ == "__main__":
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        sys.exit("🌙  graceful shutdown")
