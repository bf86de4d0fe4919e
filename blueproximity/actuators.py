import logging
import subprocess
from typing import Protocol

from .config import ConfigurationError

logger = logging.getLogger(__name__)

# desktop_env -> (lock command, unlock command)
SESSION_COMMANDS = {
    "LOGINCTL": (["loginctl", "lock-session"], ["loginctl", "unlock-session"]),
    "KDE": (["loginctl", "lock-session"], ["loginctl", "unlock-session"]),
    "GNOME": (["gnome-screensaver-command", "-l"], ["gnome-screensaver-command", "-d"]),
    "XSCREENSAVER": (["xscreensaver-command", "-lock"], ["pkill", "xscreensaver"]),
    "MATE": (["mate-screensaver-command", "-l"], ["mate-screensaver-command", "-d"]),
    "CINNAMON": (["cinnamon-screensaver-command", "-l"], ["cinnamon-screensaver-command", "-d"]),
}

DBUS_ENV = "GNOME_DBUS"


class SessionActuator(Protocol):
    def lock(self) -> None:
        ...

    def unlock(self) -> None:
        ...


class CommandActuator:
    """Locks and unlocks the session by running the desktop's screensaver command."""

    def __init__(self, desktop_env, timeout=10):
        env = desktop_env.upper()
        if env not in SESSION_COMMANDS:
            raise ConfigurationError(
                f"Unsupported desktop_env {desktop_env!r}, expected one of "
                f"{', '.join(sorted(SESSION_COMMANDS) + [DBUS_ENV])}"
            )
        self.desktop_env = env
        self.timeout = timeout
        self._lock_cmd, self._unlock_cmd = SESSION_COMMANDS[env]

    def _run(self, cmd):
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            logger.error(f"{' '.join(cmd)} timed out after {self.timeout}s")
            return False
        except OSError as e:
            logger.error(f"Failed to run {' '.join(cmd)}: {e}")
            return False
        if result.returncode != 0:
            logger.error(f"{' '.join(cmd)} exited with {result.returncode}: {result.stderr.strip()}")
            return False
        return True

    def lock(self):
        if self._run(self._lock_cmd):
            logger.info("System locked.")

    def unlock(self):
        if self._run(self._unlock_cmd):
            logger.info("System unlocked.")


def build_actuator(desktop_env):
    if desktop_env.upper() == DBUS_ENV:
        from .dbus_actuator import DBusScreenSaverActuator
        return DBusScreenSaverActuator()
    return CommandActuator(desktop_env)
