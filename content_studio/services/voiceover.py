import logging
import math
import re
from dataclasses import dataclass
from typing import Optional

import openai
from openai import AsyncOpenAI

from content_studio.core.config import Settings, get_settings
from content_studio.core.errors import UpstreamTransportError

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 150
MIN_CUE_SECONDS = 1.2
VOICES = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")


@dataclass
class VoiceoverOptions:
    voice: str = "alloy"
    speed: float = 1.0
    target_seconds: int = 30


@dataclass
class VoiceoverResult:
    audio: bytes
    srt: str
    optimized_text: str


def optimize_text_for_voiceover(text: str, target_seconds: float) -> str:
    """Trim a script to what fits in `target_seconds` at 150 words per minute."""
    target_words = math.floor(target_seconds / 60 * WORDS_PER_MINUTE)
    words = text.split()
    if len(words) <= target_words:
        return text.strip()

    truncated = " ".join(words[:target_words])
    last_sentence_end = max(truncated.rfind("."), truncated.rfind("?"), truncated.rfind("!"))
    if last_sentence_end > len(truncated) * 0.7:
        return truncated[: last_sentence_end + 1].strip()
    return truncated + "..."


def format_timestamp(seconds: float) -> str:
    """SRT timestamp, HH:MM:SS,mmm."""
    total_ms = int(seconds * 1000)
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"


def build_srt(text: str, wpm: float = WORDS_PER_MINUTE) -> str:
    """One caption cue per sentence, timed by word count."""
    seconds_per_word = 60 / wpm
    sentences = [s.strip() for s in re.findall(r"[^.!?]+[.!?]?", text)] or [text]

    blocks = []
    current = 0.0
    for index, sentence in enumerate((s for s in sentences if s), start=1):
        duration = max(MIN_CUE_SECONDS, len(sentence.split()) * seconds_per_word)
        blocks.append(f"{index}\n{format_timestamp(current)} --> {format_timestamp(current + duration)}\n{sentence}\n")
        current += duration
    return "\n".join(blocks)


class VoiceoverGenerator:
    def __init__(self, client: Optional[AsyncOpenAI] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.settings.openai_api_key or None)
        return self._client

    async def generate_voiceover(self, text: str, options: Optional[VoiceoverOptions] = None) -> VoiceoverResult:
        options = options or VoiceoverOptions()
        optimized = optimize_text_for_voiceover(text, options.target_seconds)
        logger.info(f"Generating voiceover with voice: {options.voice}, speed: {options.speed}")

        try:
            response = await self.client.audio.speech.create(
                model=self.settings.tts_model,
                input=optimized,
                voice=options.voice,
                speed=options.speed,
                response_format="wav",
            )
        except openai.APIStatusError as e:
            body = e.response.text if e.response is not None else str(e)
            logger.error(f"OpenAI TTS API error: {e.status_code} - {body[:500]}")
            raise UpstreamTransportError(f"OpenAI TTS API error: {e.status_code} - {body}", e.status_code, body) from e

        srt = build_srt(optimized, WORDS_PER_MINUTE * options.speed)
        return VoiceoverResult(audio=response.content, srt=srt, optimized_text=optimized)
