"""
Tests for the command-line runner.
"""
from unittest.mock import patch

import pytest

from marketlens.core import cli_runner
from marketlens.services.text_extractor import DOCX_MIME
from marketlens.utils.llm_client import LLMGateway


def test_guess_mime_type(tmp_path):
    assert cli_runner.guess_mime_type(tmp_path / "notes.txt") == "text/plain"
    assert cli_runner.guess_mime_type(tmp_path / "Report.DOCX") == DOCX_MIME
    assert cli_runner.guess_mime_type(tmp_path / "data.bin") == "application/octet-stream"


def test_read_corpus_skips_unreadable_files(tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("Commuters want range.", encoding="utf-8")
    image = tmp_path / "logo.png"
    image.write_bytes(b"\x89PNG")

    corpus = cli_runner.read_corpus([notes, image])

    assert corpus == "Document: notes.txt\nCommuters want range."


def test_read_corpus_skips_missing_files(tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("Commuters want range.", encoding="utf-8")

    corpus = cli_runner.read_corpus([tmp_path / "missing.txt", tmp_path, notes])

    assert corpus == "Document: notes.txt\nCommuters want range."


def test_parser_requires_industry():
    with pytest.raises(SystemExit):
        cli_runner.build_parser().parse_args([])


async def test_run_prints_segments_and_focus_group(tmp_path, settings, mock_agent_cls, ev_completion,
                                                   focus_group_completion, capsys):
    notes = tmp_path / "survey.txt"
    notes.write_text("62% cite charging access.", encoding="utf-8")
    outputs = [ev_completion, focus_group_completion]

    gateway = LLMGateway(settings, agent_factory=lambda *args: mock_agent_cls(output=outputs.pop(0)))
    args = cli_runner.build_parser().parse_args([
        str(notes), "--industry", "Electric Vehicles", "--focus-group", "eco-conscious professionals",
    ])

    with patch.object(cli_runner, "LLMGateway", return_value=gateway):
        exit_code = await cli_runner.run(args)

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "## Eco-Conscious Professionals" in out
    assert "Pain points: High upfront cost" in out
    assert "Focus group: Eco-Conscious Professionals (3 participants)" in out
    assert "Jennifer: Incentives, definitely." in out


async def test_run_reports_vendor_outage(settings, mock_agent_cls):
    gateway = LLMGateway(settings, agent_factory=lambda *args: mock_agent_cls(error=Exception("503")))
    args = cli_runner.build_parser().parse_args(["--industry", "Coffee"])

    with patch.object(cli_runner, "LLMGateway", return_value=gateway):
        assert await cli_runner.run(args) == 1
