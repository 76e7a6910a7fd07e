"""
Rest Reminder Sound Player - Bell Playback via pygame.mixer

Responsibilities:
- Play the configured sound file, or the built-in bell when none is set
- Fall back to the built-in bell when the custom file cannot be loaded
- Apply the configured volume
- Serialize playback: only one sound plays at a time

play() blocks until the sound has finished, so it must run on a dispatch
thread, never on the scheduler's tick loop.
"""

import logging
import math
import os
import threading
import time
from array import array
from pathlib import Path
from typing import Optional

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
from pygame import mixer  # noqa: E402

from rest_reminder.config.settings import NotificationConfig, SoundConfig
from rest_reminder.core.errors import PlaybackError
from rest_reminder.core.scheduler import SoundPlayer

from .voice_player import VoicePlayer

logger = logging.getLogger(__name__)

# Built-in bell parameters
BELL_SAMPLE_RATE = 44100
BELL_DURATION = 1.6         # seconds
BELL_FUNDAMENTAL = 880.0    # Hz
BELL_PARTIALS = ((1.0, 1.0), (2.76, 0.5), (5.4, 0.25), (8.93, 0.12))
BELL_DECAY = 3.2

POLL_INTERVAL = 0.05        # seconds between "still playing?" checks


def synthesize_bell(
    sample_rate: int = BELL_SAMPLE_RATE,
    duration: float = BELL_DURATION,
    channels: int = 1
) -> bytes:
    """
    Generate a 16-bit bell tone.

    A few inharmonic partials with exponential decay, in native byte order
    (the layout pygame.mixer expects for size=-16).

    Args:
        sample_rate: Samples per second
        duration: Length in seconds
        channels: 1 = mono, 2 = same signal on both channels

    Returns:
        Interleaved PCM bytes
    """
    count = int(sample_rate * duration)
    norm = sum(weight for _, weight in BELL_PARTIALS)
    peak = 32767 * 0.8

    samples = array('h')
    for i in range(count):
        t = i / sample_rate
        envelope = math.exp(-BELL_DECAY * t)
        # 5 ms attack to avoid a click
        if t < 0.005:
            envelope *= t / 0.005
        value = sum(
            weight * math.sin(2 * math.pi * BELL_FUNDAMENTAL * ratio * t)
            for ratio, weight in BELL_PARTIALS
        ) / norm
        sample = int(peak * envelope * value)
        for _ in range(channels):
            samples.append(sample)

    return samples.tobytes()


class BellPlayer(SoundPlayer):
    """
    Sound player backed by pygame.mixer.

    Design:
    - Mixer is initialized lazily on first play (once per process)
    - Built-in bell is synthesized once and cached
    - Custom files are re-read on every play (the user may swap them)
    - A lock ensures overlapping dispatches play one after another
    """

    def __init__(self, config: SoundConfig):
        """
        Initialize player.

        Args:
            config: Sound settings (enabled, file, volume)
        """
        self.config = config
        self._lock = threading.Lock()
        self._builtin = None
        self._channel = None

        logger.info(
            f"BellPlayer initialized (enabled={config.enabled}, "
            f"file={config.file or 'built-in'}, volume={config.volume})"
        )

    def play(self):
        if not self.config.enabled:
            logger.debug("Sound is disabled, skipping playback")
            return

        if self.config.volume <= 0:
            logger.debug("Volume is 0, skipping playback")
            return

        with self._lock:
            self._ensure_mixer()

            sound = None
            if not self.config.uses_builtin_sound:
                try:
                    sound = self._load_file(Path(self.config.file))
                except PlaybackError as e:
                    logger.warning(f"Failed to load custom sound, falling back to default: {e}")

            if sound is None:
                sound = self._load_builtin()

            try:
                sound.set_volume(self.config.volume)
                self._channel = sound.play()
                while self._channel is not None and self._channel.get_busy():
                    time.sleep(POLL_INTERVAL)
            except Exception as e:
                raise PlaybackError(f"Failed to play sound: {e}") from e
            finally:
                self._channel = None

        logger.debug("Sound playback completed")

    def stop(self):
        try:
            if mixer.get_init():
                mixer.stop()
        except Exception as e:
            logger.warning(f"Failed to stop playback: {e}")

    def _ensure_mixer(self):
        """
        Initialize the audio device if needed.

        Raises:
            PlaybackError: If no audio device can be opened
        """
        if mixer.get_init():
            return
        try:
            mixer.init(frequency=BELL_SAMPLE_RATE, size=-16, channels=1)
            logger.debug(f"Mixer initialized: {mixer.get_init()}")
        except Exception as e:
            raise PlaybackError(f"failed to initialize audio device: {e}") from e

    def _load_builtin(self):
        if self._builtin is None:
            frequency, _, channels = mixer.get_init()
            pcm = synthesize_bell(sample_rate=frequency, channels=channels)
            self._builtin = mixer.Sound(buffer=pcm)
        return self._builtin

    def _load_file(self, path: Path):
        """
        Load a sound file (WAV or OGG).

        Raises:
            PlaybackError: If the file is missing or cannot be decoded
        """
        resolved = path.expanduser().resolve()
        if not resolved.is_file():
            raise PlaybackError(f"sound file {str(path)!r} not found")
        try:
            return mixer.Sound(file=str(resolved))
        except Exception as e:
            raise PlaybackError(f"cannot decode sound file {str(path)!r}: {e}") from e


def build_player(sound: SoundConfig, notification: NotificationConfig) -> SoundPlayer:
    """
    Pick the sound player for the configuration.

    voice=True speaks the notification message; otherwise the bell plays.
    """
    if sound.voice:
        return VoicePlayer(sound, notification.message)
    return BellPlayer(sound)
