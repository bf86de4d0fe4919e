"""Command-line entry point: load settings, build the backends and run the monitor."""

import argparse
import asyncio
import logging
import signal
from dataclasses import replace

from .actuators import build_actuator
from .config import DEFAULT_CONFIG_FILE, ConfigurationError, load_config
from .log import setup_logging
from .monitor import ProximityMonitor
from .sources import build_source

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="blueproximity",
        description="Lock and unlock the desktop session based on Bluetooth proximity.",
    )
    parser.add_argument("-c", "--config", default=DEFAULT_CONFIG_FILE,
                        help="settings file, created with defaults if missing (default: %(default)s)")
    parser.add_argument("--address", help="Bluetooth address of the device to track")
    parser.add_argument("--interval", type=float, help="seconds between samples")
    parser.add_argument("--timeout", type=float, help="session timeout in seconds, 0 disables")
    parser.add_argument("--source", choices=["hcitool", "scan"], help="signal-strength backend")
    parser.add_argument("--desktop-env", help="LOGINCTL, KDE, GNOME, GNOME_DBUS, XSCREENSAVER, MATE or CINNAMON")
    parser.add_argument("--debounce", action="store_true", default=None,
                        help="require check_repeat consecutive verdicts before locking or unlocking")
    parser.add_argument("--debug", action="store_true", default=None, help="verbose logging")
    parser.add_argument("--log-dir", help="also write a daily-rotated log file to this directory")
    return parser


def apply_overrides(config, args):
    overrides = {
        "bluetooth_device_address": args.address,
        "check_interval": args.interval,
        "session_timeout": args.timeout,
        "source": args.source,
        "desktop_env": args.desktop_env,
        "debounce": args.debounce,
        "debug": args.debug,
    }
    return replace(config, **{k: v for k, v in overrides.items() if v is not None})


async def run_monitor(monitor):
    loop = asyncio.get_running_loop()
    task = monitor.start()

    def request_stop(signum):
        logger.info(f"Received signal {signum}, shutting down...")
        task.cancel()

    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, request_stop, signum)
    try:
        await task
    except asyncio.CancelledError:
        pass
    finally:
        await monitor.stop()


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        config = apply_overrides(load_config(args.config), args)
        setup_logging(config.debug, args.log_dir)
        config.validate()
        source = build_source(config.source)
        actuator = build_actuator(config.desktop_env)
    except ConfigurationError as e:
        setup_logging(False, args.log_dir)
        logger.error(f"Configuration error: {e}")
        return 2

    logger.info(f"Desktop environment: {config.desktop_env} | Source: {config.source}")
    logger.info("Bluetooth-Unlock is now active!")
    asyncio.run(run_monitor(ProximityMonitor(config, source, actuator)))
    return 0
