"""
Tests for speech synthesis, concatenation strategies and the audio renderer.
"""

from typing import List

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from conftest import no_sleep
from lib.core.errors import MalformedResponse, ProviderUnavailable
from lib.core.retry import RetryPolicy, is_provider_error
from lib.podcasts.audio import (
    AudioRenderer,
    ByteConcatenator,
    FfmpegConcatenator,
    GeminiSpeechSynthesizer,
    ffmpeg_available,
    select_concatenator,
)

# 0.1s of 24 kHz 16-bit mono silence
PCM_CHUNK = b"\x00\x00" * 2400


def _audio_response(*blobs: bytes) -> types.GenerateContentResponse:
    parts = [types.Part(inline_data=types.Blob(data=b, mime_type="audio/L16;rate=24000")) for b in blobs]
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=parts))]
    )


class FakeSynthesizer:
    def __init__(self):
        self.texts: List[str] = []

    async def synthesize(self, text):
        self.texts.append(text)
        return PCM_CHUNK


class FakeConcatenator:
    name = "fake"
    mime_type = "audio/fake"
    extension = "fake"

    def __init__(self):
        self.received = None

    def concatenate(self, pcm_chunks):
        self.received = list(pcm_chunks)
        return b"".join(pcm_chunks)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class TestSelectConcatenator:
    """Tests for strategy selection."""

    def test_ffmpeg_present(self):
        concatenator = select_concatenator(has_ffmpeg=lambda: True)

        assert isinstance(concatenator, FfmpegConcatenator)
        assert concatenator.name == "ffmpeg"
        assert concatenator.mime_type == "audio/mpeg"

    def test_ffmpeg_missing(self):
        concatenator = select_concatenator(has_ffmpeg=lambda: False)

        assert isinstance(concatenator, ByteConcatenator)
        assert concatenator.name == "bytes"
        assert concatenator.extension == "wav"


class TestConcatenators:
    """Tests for the two concatenation strategies."""

    def test_byte_concatenation_is_wav(self):
        data = ByteConcatenator().concatenate([PCM_CHUNK, PCM_CHUNK])

        assert data[:4] == b"RIFF"
        assert data[8:12] == b"WAVE"
        assert len(data) == 44 + 2 * len(PCM_CHUNK)

    @pytest.mark.skipif(not ffmpeg_available(), reason="ffmpeg not installed")
    def test_ffmpeg_concatenation_is_mp3(self):
        data = FfmpegConcatenator().concatenate([PCM_CHUNK, PCM_CHUNK])

        assert len(data) > 0
        assert data[:3] == b"ID3" or data[0] == 0xFF


class TestAudioRenderer:
    """Tests for AudioRenderer."""

    @pytest.mark.asyncio
    async def test_single_short_script(self):
        synth, concat = FakeSynthesizer(), FakeConcatenator()
        renderer = AudioRenderer(synth, concat, sleep=no_sleep)

        clip = await renderer.render("**Big news** today.")

        assert synth.texts == ["Big news today."]
        assert clip.data == PCM_CHUNK
        assert clip.strategy == "fake"
        assert clip.mime_type == "audio/fake"

    @pytest.mark.asyncio
    async def test_long_script_is_chunked_with_delays(self):
        synth, concat = FakeSynthesizer(), FakeConcatenator()
        sleep = RecordingSleep()
        renderer = AudioRenderer(synth, concat, chunk_delay=0.5, max_chars=50, sleep=sleep)
        script = " ".join(f"Sentence {i} is short." for i in range(10))

        await renderer.render(script)

        assert len(synth.texts) > 1
        assert all(len(t) <= 50 for t in synth.texts)
        assert sleep.delays == [0.5] * (len(synth.texts) - 1)
        assert len(concat.received) == len(synth.texts)

    @pytest.mark.asyncio
    async def test_scripts_rendered_in_order(self):
        synth = FakeSynthesizer()
        renderer = AudioRenderer(synth, FakeConcatenator(), sleep=no_sleep)

        await renderer.render_scripts(["First story.", "Second story."])

        assert synth.texts == ["First story.", "Second story."]

    @pytest.mark.asyncio
    async def test_empty_scripts_rejected(self):
        renderer = AudioRenderer(FakeSynthesizer(), FakeConcatenator(), sleep=no_sleep)

        with pytest.raises(ValueError):
            await renderer.render_scripts(["  ", "**"])

    @pytest.mark.asyncio
    async def test_tts_failure_propagates(self):
        class FailingSynthesizer:
            async def synthesize(self, text):
                raise ProviderUnavailable("TTS down", 503)

        renderer = AudioRenderer(FailingSynthesizer(), FakeConcatenator(), sleep=no_sleep)

        with pytest.raises(ProviderUnavailable):
            await renderer.render("Hello there.")

    def test_strategy_reports_concatenator(self):
        assert AudioRenderer(FakeSynthesizer(), ByteConcatenator()).strategy == "bytes"


class TestGeminiSpeechSynthesizer:
    """Tests for GeminiSpeechSynthesizer."""

    def _synthesizer(self, client):
        return GeminiSpeechSynthesizer(
            client,
            voice="Puck",
            retry_policy=RetryPolicy(max_attempts=3, retryable=is_provider_error, sleep=no_sleep)
        )

    @pytest.mark.asyncio
    async def test_collects_inline_audio(self, mock_genai_client):
        mock_genai_client.aio.models.generate_content.return_value = _audio_response(b"\x01\x02", b"\x03\x04")

        audio = await self._synthesizer(mock_genai_client).synthesize("Hello")

        assert audio == b"\x01\x02\x03\x04"
        kwargs = mock_genai_client.aio.models.generate_content.call_args.kwargs
        assert kwargs["contents"] == "Hello"
        assert kwargs["config"].response_modalities == ["AUDIO"]
        voice = kwargs["config"].speech_config.voice_config.prebuilt_voice_config.voice_name
        assert voice == "Puck"

    @pytest.mark.asyncio
    async def test_rate_limit_retried(self, mock_genai_client):
        mock_genai_client.aio.models.generate_content.side_effect = [
            genai_errors.ClientError(429, {"error": {"code": 429, "message": "quota", "status": "RESOURCE_EXHAUSTED"}}),
            _audio_response(b"\x05\x06"),
        ]

        audio = await self._synthesizer(mock_genai_client).synthesize("Hello")

        assert audio == b"\x05\x06"
        assert mock_genai_client.aio.models.generate_content.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_three_attempts(self, mock_genai_client):
        mock_genai_client.aio.models.generate_content.side_effect = genai_errors.ServerError(
            500, {"error": {"code": 500, "message": "internal", "status": "INTERNAL"}}
        )

        with pytest.raises(ProviderUnavailable):
            await self._synthesizer(mock_genai_client).synthesize("Hello")
        assert mock_genai_client.aio.models.generate_content.await_count == 3

    @pytest.mark.asyncio
    async def test_no_audio_is_malformed(self, mock_genai_client):
        mock_genai_client.aio.models.generate_content.return_value = types.GenerateContentResponse(
            candidates=[types.Candidate(content=types.Content(role="model", parts=[types.Part(text="no audio")]))]
        )

        with pytest.raises(MalformedResponse, match="No audio data generated"):
            await self._synthesizer(mock_genai_client).synthesize("Hello")
        assert mock_genai_client.aio.models.generate_content.await_count == 1
