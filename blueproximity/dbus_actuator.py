"""Session actuator talking to the GNOME screensaver over the D-Bus session bus."""

import logging

import dbus
from dbus.mainloop.glib import DBusGMainLoop

from .config import ConfigurationError

logger = logging.getLogger(__name__)

GNOME_SCREENSAVER = ("org.gnome.ScreenSaver", "/org/gnome/ScreenSaver")
# Cinnamon: ('org.cinnamon.ScreenSaver', '/org/cinnamon/ScreenSaver')
# MATE: ('org.mate.ScreenSaver', '/org/mate/ScreenSaver')


class DBusScreenSaverActuator:
    def __init__(self, service=GNOME_SCREENSAVER[0], path=GNOME_SCREENSAVER[1]):
        self.service = service
        self.path = path
        try:
            DBusGMainLoop(set_as_default=True)
            self.session_bus = dbus.SessionBus()
            logger.info("D-Bus session initialized successfully")
        except dbus.exceptions.DBusException as e:
            raise ConfigurationError(f"Failed to initialize D-Bus: {e}") from e

    def _screensaver(self):
        return self.session_bus.get_object(self.service, self.path)

    def is_screen_locked(self):
        try:
            return bool(self._screensaver().GetActive(dbus_interface=self.service))
        except dbus.exceptions.DBusException as e:
            logger.debug(f"Failed to check screen lock status: {e}")
            return False  # Assume not locked if status check fails

    def lock(self):
        if self.is_screen_locked():
            return
        try:
            self._screensaver().Lock(dbus_interface=self.service)
            logger.info("Screen locked successfully.")
        except dbus.exceptions.DBusException as e:
            logger.error(f"Failed to lock screen: {e}")

    def unlock(self):
        # This deactivates the screensaver; the password prompt may still be shown.
        if not self.is_screen_locked():
            return
        try:
            self._screensaver().SetActive(False, dbus_interface=self.service)
            logger.info("Screen unlock attempted (woke screen).")
        except dbus.exceptions.DBusException as e:
            logger.error(f"Failed to unlock screen: {e}")
