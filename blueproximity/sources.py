"""Signal-strength backends. Each one turns a sample attempt into a ProximityReading."""

import asyncio
import logging
import subprocess
from typing import Protocol

from bleak import BleakScanner
from bleak.exc import BleakError

from .config import ConfigurationError
from .readings import InRange, OutOfRange, ProximityReading, SamplingFailed

logger = logging.getLogger(__name__)

RSSI_MARKER = "RSSI return value:"
NOT_CONNECTED_MARKER = "Not connected"


class ProximitySource(Protocol):
    async def sample(self, address: str) -> ProximityReading:
        ...


def parse_hcitool_output(returncode, output):
    """Interpret the result of `hcitool rssi <address>`."""
    if returncode != 0:
        if NOT_CONNECTED_MARKER in output:
            return OutOfRange()
        return SamplingFailed(f"hcitool exited with {returncode}: {output.strip()}")
    if RSSI_MARKER not in output:
        return OutOfRange()
    value = output.split(RSSI_MARKER, 1)[1].strip().split()
    try:
        return InRange(int(value[0]))
    except (IndexError, ValueError):
        return SamplingFailed(f"Unexpected hcitool output: {output.strip()!r}")


class HcitoolSource:
    """Reads the RSSI of an existing connection with the legacy hcitool."""

    def __init__(self, timeout=4):
        self.timeout = timeout

    def _run(self, address):
        try:
            result = subprocess.run(
                ["hcitool", "rssi", address],
                capture_output=True, text=True, timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            return SamplingFailed(f"hcitool timed out after {self.timeout}s")
        except OSError as e:
            return SamplingFailed(f"hcitool could not be run: {e}")
        reading = parse_hcitool_output(result.returncode, result.stdout + result.stderr)
        logger.debug(f"hcitool RSSI for {address}: {reading}")
        return reading

    async def sample(self, address):
        return await asyncio.to_thread(self._run, address)


class BleakScanSource:
    """Runs an active BLE scan and reports the device's advertised RSSI."""

    def __init__(self, scan_window=5.0):
        self.scan_window = scan_window

    async def sample(self, address):
        target = address.upper()
        found = asyncio.Event()
        rssi = None

        def detection_callback(device, advertisement_data):
            nonlocal rssi
            if device.address.upper() == target:
                logger.debug(f"Device found: {device.address} | RSSI: {advertisement_data.rssi}")
                rssi = advertisement_data.rssi
                found.set()

        try:
            async with BleakScanner(detection_callback=detection_callback):
                try:
                    await asyncio.wait_for(found.wait(), timeout=self.scan_window)
                except asyncio.TimeoutError:
                    pass
        except (BleakError, OSError) as e:
            return SamplingFailed(f"BLE scan failed: {e}")

        if rssi is None:
            return OutOfRange()
        return InRange(int(rssi))


def build_source(name, scan_window=5.0):
    if name == "hcitool":
        return HcitoolSource()
    if name == "scan":
        return BleakScanSource(scan_window=scan_window)
    raise ConfigurationError(f"Unknown source {name!r}, expected 'hcitool' or 'scan'")
