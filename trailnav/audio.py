"""Audio/Text-to-speech module for TrailNav."""

import subprocess
from typing import Callable, Optional

from .config import CONFIG


class Audio:
    """Text-to-speech for guidance prompts"""

    def __init__(self, rate: Optional[int] = None, muted: bool = False,
                 callback: Optional[Callable[[str], None]] = None):
        self.rate = rate or CONFIG["speech_rate"]
        self.muted = muted
        self.callback = callback
        self._engine = None

    def speak(self, text: str):
        """Speak text using espeak (available in Termux), falling back to pyttsx3"""
        if self.callback:
            self.callback(text)
        if self.muted:
            print(f"[AUDIO] {text}")
            return

        try:
            subprocess.run(
                ["espeak", "-s", str(self.rate), text],
                capture_output=True,
                timeout=10
            )
        except FileNotFoundError:
            self._speak_pyttsx3(text)
        except subprocess.SubprocessError as e:
            print(f"Audio error: {e}")
            print(f"[AUDIO] {text}")

    def _speak_pyttsx3(self, text: str):
        try:
            if self._engine is None:
                import pyttsx3
                self._engine = pyttsx3.init()
                self._engine.setProperty("rate", self.rate)
            self._engine.say(text)
            self._engine.runAndWait()
        except Exception:
            # No speech driver on this machine
            print(f"[AUDIO] {text}")
