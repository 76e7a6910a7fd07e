"""
Rest Reminder Voice Player - Spoken Reminders via pyttsx3

Speaks the reminder message instead of ringing the bell.

Design:
- Engine is created inside play(), on the calling dispatch thread
  (pyttsx3 engines are not shared across threads)
- A lock serializes speech, so overlapping reminders queue up
- stop() interrupts the engine that is currently speaking
"""

import logging
import threading
from typing import Optional

import pyttsx3

from rest_reminder.config.settings import SoundConfig
from rest_reminder.core.errors import PlaybackError
from rest_reminder.core.scheduler import SoundPlayer

logger = logging.getLogger(__name__)


class VoicePlayer(SoundPlayer):
    """Text-to-speech sound player"""

    def __init__(self, config: SoundConfig, text: str):
        """
        Args:
            config: Sound settings (enabled, volume, voice_rate)
            text: Sentence spoken on every reminder
        """
        self.config = config
        self.text = text
        self._lock = threading.Lock()
        self._engine = None

        logger.info(f"VoicePlayer initialized (rate={config.voice_rate})")

    def play(self):
        if not self.config.enabled:
            logger.debug("Sound is disabled, skipping speech")
            return

        if not self.text or not self.text.strip():
            return

        with self._lock:
            try:
                engine = pyttsx3.init()
                engine.setProperty('rate', self.config.voice_rate)
                engine.setProperty('volume', self.config.volume)
                self._engine = engine

                logger.info(f"Speaking: {self.text}")
                engine.say(self.text)
                engine.runAndWait()
            except Exception as e:
                raise PlaybackError(f"Text-to-speech failed: {e}") from e
            finally:
                self._engine = None

    def stop(self):
        engine: Optional[object] = self._engine
        if engine is None:
            return
        try:
            engine.stop()
        except Exception as e:
            logger.warning(f"Failed to stop speech: {e}")
