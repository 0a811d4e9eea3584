"""Desktop notification sink."""

import logging

from plyer import notification as plyer_notification
from plyer import vibrator as plyer_vibrator
from plyer.utils import platform

from ramadan_timer.services.ports import NotificationMessage, NotificationSinkPort

logger = logging.getLogger(__name__)

APP_NAME = "Ramadan Timer"
SUPPORTED_PLATFORMS = frozenset({"linux", "win", "macosx", "android"})


class PlyerNotificationSink(NotificationSinkPort):
    """Cross-platform desktop notifications through plyer."""

    def __init__(self, app_name: str = APP_NAME, timeout: int = 15, app_icon: str = "") -> None:
        """
        Initialize sink.

        Args:
            app_name: Shown as the notification source
            timeout: Seconds the notification stays up
            app_icon: Icon file used when a message carries none
        """
        self._app_name = app_name
        self._timeout = timeout
        self._app_icon = app_icon
        self._current: dict[str, NotificationMessage] = {}

    @property
    def current(self) -> dict[str, NotificationMessage]:
        """Latest message per tag."""
        return dict(self._current)

    def is_supported(self) -> bool:
        return str(platform) in SUPPORTED_PLATFORMS

    async def request_permission(self) -> bool:
        # Desktop notifications need no interactive grant
        return self.is_supported()

    def send(self, message: NotificationMessage) -> bool:
        if not self.is_supported():
            logger.error("Notifications are not supported on this platform")
            return False

        # One notification per tag: a newer message replaces the older one
        self._current[message.tag] = message
        kwargs = dict(
            title=message.title,
            message=message.body,
            app_name=self._app_name,
            ticker=message.tag,
            timeout=self._timeout,
        )
        icon = message.icon or self._app_icon
        if icon:
            kwargs["app_icon"] = icon
        try:
            plyer_notification.notify(**kwargs)
        except Exception as e:
            logger.error(f"Error sending notification: {e}")
            return False

        if str(platform) == "android" and message.vibrate:
            self._vibrate(message.vibrate)
        return True

    @staticmethod
    def _vibrate(pattern_ms: tuple[int, ...]) -> None:
        try:
            plyer_vibrator.pattern(pattern=[ms / 1000 for ms in pattern_ms], repeat=-1)
        except Exception as e:
            logger.warning(f"Vibration failed: {e}")
