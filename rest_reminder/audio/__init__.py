"""
Rest Reminder Audio

Sound players used when a reminder fires.
"""

from .player import BellPlayer, build_player, synthesize_bell
from .voice_player import VoicePlayer

__all__ = [
    'BellPlayer',
    'VoicePlayer',
    'build_player',
    'synthesize_bell',
]
