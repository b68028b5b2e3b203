"""
Podcast generation system - Agent-centric architecture.

Scripts are written by an agent with news research tools, spoken with
Gemini TTS and published as per-story audio clips.
"""

from .agent import PodcastAgent, ScriptBundle
from .audio import AudioClip, AudioRenderer, GeminiSpeechSynthesizer, select_concatenator
from .episode import EpisodeGenerator, StoryResult, run_daily_podcast
from .script import chunk_script, clean_for_speech

__all__ = [
    'PodcastAgent',
    'ScriptBundle',
    'AudioClip',
    'AudioRenderer',
    'GeminiSpeechSynthesizer',
    'select_concatenator',
    'EpisodeGenerator',
    'StoryResult',
    'run_daily_podcast',
    'chunk_script',
    'clean_for_speech',
]
