import logging
import subprocess
from unittest.mock import patch

import pytest

from blueproximity import actuators
from blueproximity.actuators import CommandActuator, build_actuator
from blueproximity.config import ConfigurationError


def completed(returncode=0, stderr=""):
    return subprocess.CompletedProcess([], returncode, stdout="", stderr=stderr)


class TestCommandActuator:
    @pytest.mark.parametrize("env,lock_cmd,unlock_cmd", [
        ("LOGINCTL", ["loginctl", "lock-session"], ["loginctl", "unlock-session"]),
        ("KDE", ["loginctl", "lock-session"], ["loginctl", "unlock-session"]),
        ("GNOME", ["gnome-screensaver-command", "-l"], ["gnome-screensaver-command", "-d"]),
        ("XSCREENSAVER", ["xscreensaver-command", "-lock"], ["pkill", "xscreensaver"]),
        ("MATE", ["mate-screensaver-command", "-l"], ["mate-screensaver-command", "-d"]),
        ("cinnamon", ["cinnamon-screensaver-command", "-l"], ["cinnamon-screensaver-command", "-d"]),
    ])
    def test_commands_per_desktop(self, env, lock_cmd, unlock_cmd):
        actuator = CommandActuator(env)
        with patch.object(actuators.subprocess, "run", return_value=completed()) as run:
            actuator.lock()
            actuator.unlock()
        assert [c.args[0] for c in run.call_args_list] == [lock_cmd, unlock_cmd]
        assert all(c.kwargs["timeout"] == actuator.timeout for c in run.call_args_list)

    def test_unknown_desktop(self):
        with pytest.raises(ConfigurationError):
            CommandActuator("WINDOWS")

    def test_failures_are_logged_not_raised(self, caplog):
        actuator = CommandActuator("GNOME")
        with caplog.at_level(logging.ERROR, logger="blueproximity.actuators"):
            with patch.object(actuators.subprocess, "run", return_value=completed(1, "no screensaver")):
                actuator.lock()
            with patch.object(actuators.subprocess, "run", side_effect=FileNotFoundError("gnome-screensaver-command")):
                actuator.unlock()
            with patch.object(actuators.subprocess, "run", side_effect=subprocess.TimeoutExpired("loginctl", 10)):
                actuator.lock()
        assert len(caplog.records) == 3


class TestBuildActuator:
    def test_command_actuator(self):
        actuator = build_actuator("mate")
        assert isinstance(actuator, CommandActuator)
        assert actuator.desktop_env == "MATE"

    def test_unknown(self):
        with pytest.raises(ConfigurationError):
            build_actuator("AMIGA")


class TestDBusScreenSaverActuator:
    @pytest.fixture
    def screensaver(self):
        dbus_actuator = pytest.importorskip("blueproximity.dbus_actuator")
        with patch.object(dbus_actuator, "DBusGMainLoop"), \
                patch.object(dbus_actuator.dbus, "SessionBus") as session_bus:
            actuator = dbus_actuator.DBusScreenSaverActuator()
        obj = session_bus.return_value.get_object.return_value
        return actuator, obj

    def test_lock_when_inactive(self, screensaver):
        actuator, obj = screensaver
        obj.GetActive.return_value = False
        actuator.lock()
        obj.Lock.assert_called_once_with(dbus_interface="org.gnome.ScreenSaver")

    def test_lock_skipped_when_active(self, screensaver):
        actuator, obj = screensaver
        obj.GetActive.return_value = True
        actuator.lock()
        obj.Lock.assert_not_called()

    def test_unlock_deactivates(self, screensaver):
        actuator, obj = screensaver
        obj.GetActive.return_value = True
        actuator.unlock()
        obj.SetActive.assert_called_once_with(False, dbus_interface="org.gnome.ScreenSaver")
