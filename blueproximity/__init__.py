"""
BlueProximity - lock and unlock the desktop session by Bluetooth proximity.

Samples the RSSI of a paired phone or beacon, unlocks when it comes near,
locks when it goes away or when an unlocked session lasts too long.
"""

from .config import ConfigurationError, MonitorConfig, load_config
from .monitor import Action, MonitorState, ProximityMonitor
from .readings import InRange, LockState, OutOfRange, ProximityReading, SamplingFailed, Verdict

__all__ = [
    "Action",
    "ConfigurationError",
    "InRange",
    "LockState",
    "MonitorConfig",
    "MonitorState",
    "OutOfRange",
    "ProximityMonitor",
    "ProximityReading",
    "SamplingFailed",
    "Verdict",
    "load_config",
]
