"""Command line noise watcher.

Usage: nightshield --window-ms 1000 --threshold-db 40
"""

import argparse
import logging
import time
from typing import List, Optional

from nightshield.alarm import AlarmPlayer
from nightshield.bridge import CommandBridge
from nightshield.capabilities import HeadlessCapabilities
from nightshield.config import GlobalConfig, SystemConfig, configure_logging
from nightshield.errors import NightShieldError
from nightshield.monitor import NoiseLevelMonitor

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nightshield",
        description="Listen to the microphone and raise an alarm on loud noise.",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--window-ms", type=float, help="Averaging window in milliseconds")
    parser.add_argument("--threshold-db", type=float, help="Alarm threshold in dB")
    parser.add_argument(
        "--poll-interval", type=float, default=0.5, help="Seconds between level checks"
    )
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--silent", action="store_true", help="Do not play the alarm tone")
    return parser


def watch(bridge: CommandBridge, window_ms: float, threshold_db: float, poll_interval: float) -> None:
    """Poll the audio level and raise or clear the alarm until interrupted."""
    bridge.handle("startListening", {"recordTime": window_ms})
    alarm_active = False

    try:
        while bridge.monitor.is_listening:
            level = bridge.handle("getAudioLevel")
            if level > threshold_db and not alarm_active:
                logger.critical("=" * 60)
                logger.critical(f"🚨 NOISE DETECTED: {level:.1f} dB (threshold {threshold_db:.1f} dB) 🚨")
                logger.critical("=" * 60)
                bridge.handle("playAlarm")
                bridge.handle("enableFlashLight")
                bridge.handle(
                    "sendNotification",
                    {
                        "title": bridge.alert_config.notification_title,
                        "message": f"Noise detected: {level:.1f} dB",
                    },
                )
                alarm_active = True
            elif level <= threshold_db and alarm_active:
                logger.info(f"Level back to {level:.1f} dB, clearing alarm")
                bridge.handle("stopAlarm")
                bridge.handle("disableFlashLight")
                alarm_active = False
            time.sleep(poll_interval)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        if alarm_active:
            bridge.handle("stopAlarm")
            bridge.handle("disableFlashLight")
        bridge.handle("endListening")
        bridge.monitor.wait_stopped()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = GlobalConfig.load(args.config) if args.config else GlobalConfig()
    except NightShieldError as e:
        configure_logging(SystemConfig())
        logger.error(f"❌ Invalid configuration: {e}")
        return 1

    if args.log_level:
        config.system.log_level = args.log_level.upper()
    configure_logging(config.system)

    window_ms = args.window_ms if args.window_ms is not None else config.monitor.window_duration_ms
    threshold_db = (
        args.threshold_db if args.threshold_db is not None else config.alerts.threshold_db
    )

    monitor = NoiseLevelMonitor(
        audio_config=config.audio,
        stop_timeout_blocks=config.monitor.stop_timeout_blocks,
    )
    player = None if args.silent else AlarmPlayer(config.audio.sample_rate)
    bridge = CommandBridge(monitor, HeadlessCapabilities(player=player), config.alerts)

    try:
        watch(bridge, window_ms, threshold_db, args.poll_interval)
    except NightShieldError as e:
        logger.error(f"❌ {e}")
        return 1
    return 0
