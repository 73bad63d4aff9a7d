#!/usr/bin/env python3
"""
Reachability check for the cane.

    python check_connection.py [HOST]

Hits ``GET /`` and ``GET /status`` on the command port and prints what came
back. Exits non-zero when either step fails.
"""
import asyncio, sys
from rich.console import Console
from config.logging_config import configure
from config.app_config import settings
from canelink import DeviceClient

console = Console()

async def main(host: str) -> int:
    client = DeviceClient.from_settings(settings)
    client.set_endpoint(host)
    console.print("==== CaneLink connection check ====")
    console.print(f"Target: {client.endpoint.command_url}\n")

    report = await client.check_connection()

    console.print(f"GET /        {'✅' if report.root_ok else '❌'}")
    console.print(f"GET /status  {'✅' if report.status_ok else '❌'}")
    if report.system_status:
        console.print(report.system_status)
    for error in report.errors:
        console.print(error, style="red", markup=False)

    if report.ok:
        console.print(f"\nAll checks passed. Set CANE_HOST={host} to use this device.")
        return 0

    console.print("\nSome checks failed. Verify that:")
    console.print("1. The cane is powered on and joined to the WiFi network")
    console.print("2. This machine is on the same network")
    console.print("3. The IP matches the one printed on the device's serial monitor")
    console.print(f"4. You can ping {host}")
    return 1

if __name__ == "__main__":
    configure("WARNING")
    sys.exit(asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else settings.CANE_HOST)))
