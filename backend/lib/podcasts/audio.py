"""
Audio generation and processing for podcasts.

Handles chunked Gemini TTS and joining the chunks into a single clip.
Two concatenation strategies exist; the one to use is picked once at
startup depending on whether ffmpeg is installed.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydub import AudioSegment
from pydub.utils import which

from ..core.errors import MalformedResponse, ProviderUnavailable
from ..core.gemini_client import translate_api_error
from ..core.retry import RetryPolicy, is_provider_error
from .script import MAX_TTS_CHARS, chunk_script, clean_for_speech

logger = logging.getLogger(__name__)

# Gemini TTS returns PCM, 24000 Hz, mono, 16-bit
PCM_SAMPLE_WIDTH = 2
PCM_FRAME_RATE = 24000
PCM_CHANNELS = 1

TTS_TIMEOUT_SECONDS = 60.0
CHUNK_DELAY_SECONDS = 0.5


@dataclass(frozen=True)
class AudioClip:
    data: bytes
    mime_type: str
    extension: str
    strategy: str


def _pcm_segment(pcm: bytes) -> AudioSegment:
    return AudioSegment.from_raw(
        io.BytesIO(pcm),
        sample_width=PCM_SAMPLE_WIDTH,
        frame_rate=PCM_FRAME_RATE,
        channels=PCM_CHANNELS
    )


# ==================== Speech Synthesis ====================

class GeminiSpeechSynthesizer:
    """
    Text-to-speech through Gemini's audio response modality.

    Args:
        client: Gemini client
        model: TTS model name
        voice: Prebuilt voice name
        retry_policy: Defaults to 3 attempts retrying every provider error
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        client: genai.Client,
        model: str = "gemini-2.5-flash-preview-tts",
        voice: str = "Kore",
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = TTS_TIMEOUT_SECONDS
    ):
        self.client = client
        self.model = model
        self.voice = voice
        self.retry_policy = retry_policy or RetryPolicy(max_attempts=3, retryable=is_provider_error)
        self.timeout = timeout

    async def _request(self, text: str) -> bytes:
        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=self.voice)
                )
            )
        )

        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.model,
                    contents=text,
                    config=config
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            raise ProviderUnavailable(f"TTS timed out after {self.timeout:.0f}s")
        except (genai_errors.APIError, httpx.HTTPError) as e:
            raise translate_api_error(e, "TTS request") from e

        audio_data = b""
        if response.candidates and response.candidates[0].content:
            for part in response.candidates[0].content.parts or []:
                if getattr(part, "inline_data", None) and part.inline_data.data:
                    audio_data += part.inline_data.data

        if not audio_data:
            raise MalformedResponse("No audio data generated")
        return audio_data

    async def synthesize(self, text: str) -> bytes:
        """
        Generate speech for one chunk of text.

        Args:
            text: Text no longer than the TTS input limit

        Returns:
            Raw PCM audio
        """
        audio = await self.retry_policy.run(self._request, text, description="TTS request")
        logger.info(f"Audio generated: {len(audio)} bytes")
        return audio


# ==================== Concatenation Strategies ====================

class FfmpegConcatenator:
    """Joins PCM chunks with pydub and encodes MP3 (needs ffmpeg)."""

    name = "ffmpeg"
    mime_type = "audio/mpeg"
    extension = "mp3"

    def __init__(self, bitrate: str = "192k"):
        self.bitrate = bitrate

    def concatenate(self, pcm_chunks: List[bytes]) -> bytes:
        combined = AudioSegment.empty()
        for chunk in pcm_chunks:
            combined += _pcm_segment(chunk)

        mp3_buffer = io.BytesIO()
        combined.export(mp3_buffer, format="mp3", bitrate=self.bitrate)
        return mp3_buffer.getvalue()


class ByteConcatenator:
    """Joins raw PCM bytes and wraps them in a WAV container (no ffmpeg needed)."""

    name = "bytes"
    mime_type = "audio/wav"
    extension = "wav"

    def concatenate(self, pcm_chunks: List[bytes]) -> bytes:
        segment = _pcm_segment(b"".join(pcm_chunks))
        wav_buffer = io.BytesIO()
        segment.export(wav_buffer, format="wav")
        return wav_buffer.getvalue()


def ffmpeg_available() -> bool:
    return which("ffmpeg") is not None


def select_concatenator(has_ffmpeg: Callable[[], bool] = ffmpeg_available):
    """
    Pick the concatenation strategy for this process.

    Args:
        has_ffmpeg: Returns True when ffmpeg is installed

    Returns:
        FfmpegConcatenator or ByteConcatenator
    """
    if has_ffmpeg():
        logger.info("✅ ffmpeg found, audio will be encoded as MP3")
        return FfmpegConcatenator()
    logger.warning("⚠️ ffmpeg not found, audio will be joined as raw PCM in a WAV container")
    return ByteConcatenator()


# ==================== Renderer ====================

class AudioRenderer:
    """
    Turns scripts into a single audio clip.

    Args:
        synthesizer: Object with async synthesize(text) -> PCM bytes
        concatenator: Concatenation strategy
        chunk_delay: Seconds to wait between TTS requests
        max_chars: TTS input limit per chunk
        sleep: Async sleep (tests pass a fake)
    """

    def __init__(
        self,
        synthesizer: Any,
        concatenator: Any,
        chunk_delay: float = CHUNK_DELAY_SECONDS,
        max_chars: int = MAX_TTS_CHARS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.synthesizer = synthesizer
        self.concatenator = concatenator
        self.chunk_delay = chunk_delay
        self.max_chars = max_chars
        self.sleep = sleep

    @property
    def strategy(self) -> str:
        return self.concatenator.name

    async def _synthesize_chunks(self, chunks: List[str]) -> List[bytes]:
        pcm_chunks = []
        for idx, chunk in enumerate(chunks):
            if idx > 0 and self.chunk_delay > 0:
                await self.sleep(self.chunk_delay)
            logger.info(f"Synthesizing chunk {idx + 1}/{len(chunks)} ({len(chunk)} chars)")
            pcm_chunks.append(await self.synthesizer.synthesize(chunk))
        return pcm_chunks

    async def render_scripts(self, scripts: List[str]) -> AudioClip:
        """
        Render several scripts, in order, into one clip.

        Raises:
            ValueError: Nothing speakable in the scripts
            ProviderUnavailable: TTS failed after retries
        """
        chunks: List[str] = []
        for script in scripts:
            chunks.extend(chunk_script(clean_for_speech(script), self.max_chars))
        if not chunks:
            raise ValueError("No script text to synthesize")

        pcm_chunks = await self._synthesize_chunks(chunks)
        data = await asyncio.to_thread(self.concatenator.concatenate, pcm_chunks)

        logger.info(f"✅ Rendered {len(chunks)} chunk(s) into {len(data)} bytes ({self.concatenator.name})")
        return AudioClip(
            data=data,
            mime_type=self.concatenator.mime_type,
            extension=self.concatenator.extension,
            strategy=self.concatenator.name
        )

    async def render(self, script: str) -> AudioClip:
        return await self.render_scripts([script])
