"""
Tests for hosting, update checks and the command line

Covers:
- Console run with an injected scheduler and finite tick source
- Invalid schedule exits with status 1
- Supervisor service start/stop/status
- GitHub release check (mocked session)
- CLI commands
"""

import logging
import sys
import threading
import time
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import start
from rest_reminder import __version__
from rest_reminder.config import AppConfig, UpdatesConfig
from rest_reminder.core import (
    Notifier,
    ReminderConfig,
    Scheduler,
    SoundPlayer,
    SystemTicker,
    UpdateCheckError,
    VirtualTicker,
)
from rest_reminder.service import ReminderService, build_scheduler, run_console
from rest_reminder.updater import Release, check_for_update, parse_version

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class SilentPlayer(SoundPlayer):
    def __init__(self):
        self.play_count = 0

    def play(self):
        self.play_count += 1

    def stop(self):
        pass


class SilentNotifier(Notifier):
    def __init__(self):
        self.notify_count = 0

    def notify(self):
        self.notify_count += 1


def offline_config(interval: str = "30m") -> AppConfig:
    return AppConfig(
        reminder=ReminderConfig(interval=interval),
        updates=UpdatesConfig(check_on_start=False)
    )


def fake_response(status_code: int = 200, payload=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload or {}
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    return resp


# ---------------------------------------------------------------------------
# Console host
# ---------------------------------------------------------------------------

def test_run_console_virtual_clock():
    """Console run over a finite tick source fires once and exits 0"""
    print("\n" + "="*70)
    print("TEST 1: Console Run")
    print("="*70)

    player = SilentPlayer()
    notifier = SilentNotifier()
    created = []

    def factory(config):
        scheduler = Scheduler(
            config.reminder,
            player,
            notifier,
            ticker=VirtualTicker.between(
                datetime(2023, 1, 1, 9, 59, 58),
                datetime(2023, 1, 1, 10, 0, 2)
            )
        )
        created.append(scheduler)
        return scheduler

    code = run_console(offline_config(), scheduler_factory=factory, install_signal_handlers=False)

    assert code == 0
    assert created[0].fire_count == 1
    assert created[0].wait_for_dispatches(timeout=2)
    assert player.play_count == 1
    assert notifier.notify_count == 1
    print("✓ One fire at 10:00, exit code 0")

    print("\n✅ Console run test PASSED")


def test_run_console_invalid_interval():
    def factory(config):
        return Scheduler(config.reminder, SilentPlayer(), SilentNotifier(), ticker=VirtualTicker([]))

    code = run_console(offline_config("abc"), scheduler_factory=factory, install_signal_handlers=False)
    assert code == 1


@pytest.mark.parametrize("interval", ["99999999999h", "9" * 30 + "m"])
def test_run_console_out_of_range_interval(interval):
    def factory(config):
        return Scheduler(config.reminder, SilentPlayer(), SilentNotifier(), ticker=VirtualTicker([]))

    code = run_console(offline_config(interval), scheduler_factory=factory, install_signal_handlers=False)
    assert code == 1


def test_run_console_cancelled():
    cancel = threading.Event()

    def factory(config):
        return Scheduler(config.reminder, SilentPlayer(), SilentNotifier(), ticker=SystemTicker(period=0.05))

    threading.Timer(0.2, cancel.set).start()
    start_time = time.monotonic()
    code = run_console(
        offline_config(),
        scheduler_factory=factory,
        cancel_event=cancel,
        install_signal_handlers=False
    )

    assert code == 0
    assert time.monotonic() - start_time < 2.0


def test_run_console_starts_update_check():
    config = AppConfig(
        reminder=ReminderConfig(interval="30m"),
        updates=UpdatesConfig(repo="owner/name", check_on_start=True)
    )

    def factory(config):
        return Scheduler(config.reminder, SilentPlayer(), SilentNotifier(), ticker=VirtualTicker([]))

    with patch("rest_reminder.service._check_updates_in_background") as check:
        run_console(config, scheduler_factory=factory, install_signal_handlers=False)

    # Desktop notifications are off by default: log only
    check.assert_called_once_with("owner/name", None)


def test_background_update_check_alerts():
    from rest_reminder.service import _check_updates_in_background

    notifier = MagicMock()
    release = Release(version="2.0.0", url="https://example.invalid/release")
    with patch("rest_reminder.service.check_for_update", return_value=release):
        thread = _check_updates_in_background("owner/name", notifier)
        thread.join(timeout=2)

    title, message = notifier.alert.call_args[0]
    assert title == "Update Available"
    assert "2.0.0" in message


def test_background_update_check_failure_is_quiet():
    from rest_reminder.service import _check_updates_in_background

    notifier = MagicMock()
    with patch("rest_reminder.service.check_for_update", side_effect=UpdateCheckError("offline")):
        thread = _check_updates_in_background("owner/name", notifier)
        thread.join(timeout=2)

    notifier.alert.assert_not_called()


def test_build_scheduler_wires_collaborators():
    scheduler = build_scheduler(offline_config("45m"), ticker=VirtualTicker([]))
    assert scheduler.config.interval == "45m"
    assert isinstance(scheduler.ticker, VirtualTicker)


# ---------------------------------------------------------------------------
# Supervisor service
# ---------------------------------------------------------------------------

def test_service_start_stop():
    """start() returns immediately; stop() ends the tick loop"""
    print("\n" + "="*70)
    print("TEST 2: Service Lifecycle")
    print("="*70)

    def factory(config):
        return Scheduler(config.reminder, SilentPlayer(), SilentNotifier(), ticker=SystemTicker(period=0.05))

    service = ReminderService(offline_config(), scheduler_factory=factory)
    assert service.status() == "stopped"

    print("\n[2.1] Starting...")
    service.start()
    assert service.status() == "running"
    print("✓ Running")

    print("\n[2.2] Double start rejected...")
    with pytest.raises(RuntimeError):
        service.start()
    print("✓ RuntimeError")

    print("\n[2.3] Stopping...")
    assert service.stop(timeout=2.0)
    assert service.status() == "stopped"
    assert service.last_error is None
    print("✓ Stopped")

    print("\n[2.4] Restart...")
    service.start()
    assert service.status() == "running"
    assert service.stop(timeout=2.0)
    print("✓ Restarted and stopped")

    print("\n✅ Service lifecycle test PASSED")


def test_service_records_invalid_schedule():
    def factory(config):
        return Scheduler(config.reminder, SilentPlayer(), SilentNotifier(), ticker=SystemTicker())

    service = ReminderService(offline_config("0"), scheduler_factory=factory)
    service.start()

    assert service.wait(timeout=2.0)
    assert service.status() == "stopped"
    assert "positive" in str(service.last_error)


def test_service_stop_before_start():
    service = ReminderService(offline_config())
    assert service.stop()
    assert service.wait()


# ---------------------------------------------------------------------------
# Update check
# ---------------------------------------------------------------------------

def test_parse_version():
    assert parse_version("v1.2.3") == (1, 2, 3)
    assert parse_version("1.2.0") == parse_version("1.2")
    assert parse_version("2.0.0-beta") == (2,)
    with pytest.raises(ValueError):
        parse_version("latest")


def test_update_available():
    session = MagicMock()
    session.get.return_value = fake_response(payload={
        "tag_name": "v1.3.0",
        "html_url": "https://github.com/owner/name/releases/tag/v1.3.0",
        "body": "Bug fixes",
    })

    release = check_for_update("1.2.0", "owner/name", session=session)

    assert release == Release(
        version="1.3.0",
        url="https://github.com/owner/name/releases/tag/v1.3.0",
        notes="Bug fixes"
    )
    url = session.get.call_args[0][0]
    assert url == "https://api.github.com/repos/owner/name/releases/latest"


@pytest.mark.parametrize("tag", ["v1.2.0", "1.2", "v1.1.9"])
def test_no_update_when_not_newer(tag):
    session = MagicMock()
    session.get.return_value = fake_response(payload={"tag_name": tag})
    assert check_for_update("1.2.0", "owner/name", session=session) is None


def test_no_releases_published():
    session = MagicMock()
    session.get.return_value = fake_response(status_code=404)
    assert check_for_update("1.2.0", "owner/name", session=session) is None


def test_update_check_failures():
    session = MagicMock()

    session.get.side_effect = requests.ConnectionError("network down")
    with pytest.raises(UpdateCheckError, match="network down"):
        check_for_update("1.2.0", "owner/name", session=session)

    session.get.side_effect = None
    session.get.return_value = fake_response(status_code=500)
    with pytest.raises(UpdateCheckError):
        check_for_update("1.2.0", "owner/name", session=session)

    resp = fake_response()
    resp.json.side_effect = ValueError("Expecting value")
    session.get.return_value = resp
    with pytest.raises(UpdateCheckError, match="invalid release response"):
        check_for_update("1.2.0", "owner/name", session=session)

    session.get.return_value = fake_response(payload={"tag_name": ""})
    with pytest.raises(UpdateCheckError, match="invalid release tag"):
        check_for_update("1.2.0", "owner/name", session=session)

    # A list from a proxy or mirror instead of a release object
    session.get.return_value = fake_response(payload=[{"tag_name": "v9.0.0"}])
    with pytest.raises(UpdateCheckError, match="expected an object"):
        check_for_update("1.2.0", "owner/name", session=session)


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def test_parser_flags():
    args = start.build_parser().parse_args(["-c", "my.yaml", "-i", "45m", "-s", "gong.wav", "-v", "service"])
    assert args.config == "my.yaml"
    assert args.interval == "45m"
    assert args.sound == "gong.wav"
    assert args.verbose
    assert args.command == "service"

    assert start.build_parser().parse_args([]).command is None


def test_main_version(capsys):
    release = Release(version="9.9.9", url="https://example.invalid/release")
    with patch("start.load_config", return_value=offline_config()), \
            patch("start.setup_logging"), \
            patch("start.check_for_update", return_value=release):
        code = start.main(["version"])

    out = capsys.readouterr().out
    assert code == 0
    assert f"RestTimeReminder {__version__}" in out
    assert "Update available: 9.9.9" in out


def test_main_check_update_latest(capsys):
    with patch("start.load_config", return_value=offline_config()), \
            patch("start.setup_logging"), \
            patch("start.check_for_update", return_value=None):
        code = start.main(["check-update"])

    assert code == 0
    assert "is the latest version" in capsys.readouterr().out


def test_main_check_update_failure():
    with patch("start.load_config", return_value=offline_config()), \
            patch("start.setup_logging"), \
            patch("start.check_for_update", side_effect=UpdateCheckError("offline")):
        assert start.main(["check-update"]) == 1


def test_main_applies_cli_overrides():
    with patch("start.load_config", return_value=offline_config()), \
            patch("start.setup_logging"), \
            patch("start.run_console", return_value=0) as run:
        code = start.main(["-i", "45m", "-s", "/tmp/gong.wav"])

    assert code == 0
    config = run.call_args[0][0]
    assert config.reminder.interval == "45m"
    assert config.sound.file == "/tmp/gong.wav"


def test_main_config_error():
    from rest_reminder.core import ConfigLoadError

    with patch("start.load_config", side_effect=ConfigLoadError("bad yaml")), \
            patch("start.setup_logging"):
        assert start.main([]) == 1


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
