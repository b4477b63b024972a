#!/usr/bin/env python3
"""Example: Print the microphone noise level.

This example shows how to use the NoiseLevelMonitor directly, without the
command bridge.
"""

import logging
import time

from nightshield import NoiseLevelMonitor, AudioConfig

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%H:%M:%S"
)


def on_level(level: float):
    """Callback when a window closes."""
    print(f"  {level:6.2f} dB  " + "#" * int(level))


def main():
    monitor = NoiseLevelMonitor(audio_config=AudioConfig(), on_level=on_level)

    print("🎤 Starting audio capture...")
    print("   Press Ctrl+C to stop\n")

    monitor.start(500.0)
    try:
        while monitor.is_listening:
            time.sleep(0.2)
    except KeyboardInterrupt:
        print("\n👋 Stopping...")
    finally:
        monitor.stop()
        monitor.wait_stopped()


if __name__ == "__main__":
    main()
