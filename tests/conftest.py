import pytest

from blueproximity.config import MonitorConfig
from blueproximity.monitor import ProximityMonitor, run_inline

from fakes import FakeClock, RecordingActuator, ScriptedSource


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def actuator():
    return RecordingActuator()


@pytest.fixture
def make_config():
    def _make(**overrides):
        values = {
            "bluetooth_device_address": "78:02:8B:CE:F6:DF",
            "check_interval": 5,
            "lock_rssi": -14,
            "unlock_rssi": -14,
            "session_timeout": 0,
        }
        values.update(overrides)
        return MonitorConfig(**values)
    return _make


@pytest.fixture
def make_monitor(make_config, actuator, clock):
    def _make(source=None, **overrides):
        return ProximityMonitor(
            make_config(**overrides),
            source or ScriptedSource(),
            actuator,
            clock=clock,
            dispatch=run_inline,
        )
    return _make
