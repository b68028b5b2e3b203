"""
Tests for the standalone headline refresh script.
"""

import json
from unittest.mock import AsyncMock, Mock, patch

import refresh_headlines
from lib.core.errors import ConfigurationMissing, MalformedResponse

HEADLINES = ["**OpenAI ships GPT-5** (Jan 15, 2026)", "**NVIDIA posts record quarter** (Jan 14, 2026)"]


def _curator(result):
    curator = Mock()
    curator.strategy = "gemini-agent"
    if isinstance(result, Exception):
        curator.fetch_headlines = AsyncMock(side_effect=result)
    else:
        curator.fetch_headlines = AsyncMock(return_value=result)
    return curator


class TestRefreshCli:
    """Tests for refresh_headlines.main."""

    def test_writes_snapshot_file(self, tmp_path, capsys):
        output = tmp_path / "headlines.json"

        with patch("refresh_headlines.build_curator", return_value=_curator(HEADLINES)):
            code = refresh_headlines.main(["--output", str(output), "--print"])

        assert code == 0
        data = json.loads(output.read_text())
        assert data["headlines"] == HEADLINES
        assert data["strategy"] == "gemini-agent"
        assert "lastFetch" in data
        assert "1. **OpenAI ships GPT-5** (Jan 15, 2026)" in capsys.readouterr().out

    def test_model_override(self, tmp_path):
        with patch("refresh_headlines.build_curator", return_value=_curator(HEADLINES)) as build:
            refresh_headlines.main(["-o", str(tmp_path / "h.json"), "--model", "gemini-2.5-pro"])

        assert build.call_args.args[0].gemini_model == "gemini-2.5-pro"

    def test_missing_configuration(self, tmp_path):
        with patch("refresh_headlines.build_curator", side_effect=ConfigurationMissing("BRAVE_API_KEY")):
            code = refresh_headlines.main(["-o", str(tmp_path / "h.json")])

        assert code == 2

    def test_curation_failure(self, tmp_path):
        output = tmp_path / "h.json"

        with patch("refresh_headlines.build_curator", return_value=_curator(MalformedResponse("no headlines"))):
            code = refresh_headlines.main(["-o", str(output)])

        assert code == 1
        assert not output.exists()
