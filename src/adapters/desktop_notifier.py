"""Native desktop notification adapter — implements DesktopNotifierPort.

Linux: notify-send for the popup, paplay/aplay for the bell.
macOS: osascript for the popup, afplay for the bell.
Windows: a PowerShell toast for the popup, SoundPlayer for the bell.

"Permission" means the platform tools are installed; anything else
(headless boxes, missing tools) reports not permitted and the dispatcher
falls back to the in-app feed only.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import sys
from pathlib import Path
from xml.sax.saxutils import escape

logger = logging.getLogger(__name__)

_TIMEOUT_SECONDS = 5
_APP_NAME = "Tiger"

_WINDOWS_TOAST_SCRIPT = """
[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null
[Windows.Data.Xml.Dom.XmlDocument, Windows.Data.Xml.Dom.XmlDocument, ContentType = WindowsRuntime] | Out-Null
$xml = New-Object Windows.Data.Xml.Dom.XmlDocument
$xml.LoadXml('{template}')
$toast = New-Object Windows.UI.Notifications.ToastNotification $xml
[Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier('{app}').Show($toast)
"""

_WINDOWS_SOUND_SCRIPT = """
$sound = New-Object System.Media.SoundPlayer
$sound.SoundLocation = '{path}'
$sound.PlaySync()
"""


class DesktopCommandError(RuntimeError):
    """Raised when a notification or sound command fails."""


def _escape_applescript(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _escape_powershell(text: str) -> str:
    """Escape for a single-quoted PowerShell string."""
    return text.replace("'", "''")


def _windows_toast_script(title: str, message: str) -> str:
    template = (
        '<toast><visual><binding template="ToastText02">'
        f'<text id="1">{escape(title)}</text>'
        f'<text id="2">{escape(message[:200])}</text>'
        "</binding></visual></toast>"
    )
    return _WINDOWS_TOAST_SCRIPT.format(template=_escape_powershell(template), app=_APP_NAME)


class DesktopNotifier:
    """OS-native implementation of DesktopNotifierPort."""

    def __init__(self, sound_path: str | None = None, platform: str | None = None) -> None:
        if sound_path is None:
            from src.config import settings

            sound_path = settings.SOUND_PATH

        self._sound_path = Path(sound_path) if sound_path else None
        self._platform = platform or sys.platform

    def _notify_command(self, title: str, message: str) -> list[str] | None:
        if self._platform.startswith("linux") and shutil.which("notify-send"):
            return ["notify-send", "--app-name", _APP_NAME, title, message]
        if self._platform == "darwin" and shutil.which("osascript"):
            script = (
                f'display notification "{_escape_applescript(message)}" '
                f'with title "{_escape_applescript(title)}"'
            )
            return ["osascript", "-e", script]
        if self._platform == "win32" and shutil.which("powershell"):
            return ["powershell", "-NoProfile", "-Command", _windows_toast_script(title, message)]
        return None

    def _sound_command(self) -> list[str] | None:
        if self._sound_path is None:
            return None
        if self._platform.startswith("linux"):
            for player in ("paplay", "aplay"):
                if shutil.which(player):
                    return [player, str(self._sound_path)]
        if self._platform == "darwin" and shutil.which("afplay"):
            return ["afplay", str(self._sound_path)]
        if self._platform == "win32" and shutil.which("powershell"):
            script = _WINDOWS_SOUND_SCRIPT.format(
                path=_escape_powershell(str(self._sound_path.resolve())),
            )
            return ["powershell", "-NoProfile", "-Command", script]
        return None

    def is_permitted(self) -> bool:
        return self._notify_command("", "") is not None

    async def _run(self, cmd: list[str]) -> None:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=_TIMEOUT_SECONDS)
        except asyncio.TimeoutError as exc:
            proc.kill()
            raise DesktopCommandError(f"{cmd[0]} timed out") from exc
        if proc.returncode != 0:
            raise DesktopCommandError(
                f"{cmd[0]} exited with {proc.returncode}: {stderr.decode(errors='replace').strip()}"
            )

    async def show(self, title: str, message: str) -> None:
        cmd = self._notify_command(title, message)
        if cmd is None:
            raise DesktopCommandError("No desktop notification tool available")
        await self._run(cmd)

    async def play_sound(self) -> None:
        if self._sound_path is None or not self._sound_path.exists():
            raise DesktopCommandError(f"Notification sound not found: {self._sound_path}")
        cmd = self._sound_command()
        if cmd is None:
            raise DesktopCommandError("No audio player available")
        await self._run(cmd)
