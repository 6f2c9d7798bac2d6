"""Tests for resume → instruction training and the instruction cache."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from autoapply.oracle.providers.base import LLMProvider
from autoapply.oracle.trainer import (
    INSTRUCTION_MAX_TOKENS,
    build_instruction,
    extract_text_from_pdf,
    load_cached_instruction,
    prepare_instruction,
    save_instruction,
)

RESUME_TEXT = "Alice Example\nSenior Python Developer, 6 years\nSkills: Python, Django"


def _provider(reply: str = "You are Alice, a senior Python developer.") -> MagicMock:
    provider = MagicMock(spec=LLMProvider)
    provider.provider_id = "mock"
    provider.complete.return_value = reply
    return provider


class TestExtractTextFromPdf:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="PDF file not found"):
            extract_text_from_pdf(tmp_path / "nope.pdf")

    def test_missing_sdk(self, tmp_path: Path) -> None:
        pdf = tmp_path / "resume.pdf"
        pdf.write_bytes(b"%PDF-1.4")
        with (
            patch.dict("sys.modules", {"pymupdf": None}),
            pytest.raises(ImportError, match="pymupdf is required"),
        ):
            extract_text_from_pdf(pdf)

    def test_joins_pages(self, tmp_path: Path) -> None:
        pdf = tmp_path / "resume.pdf"
        pdf.write_bytes(b"%PDF-1.4")
        pages = [MagicMock(), MagicMock()]
        pages[0].get_text.return_value = "page one"
        pages[1].get_text.return_value = "page two"
        doc = MagicMock()
        doc.__enter__.return_value = doc
        doc.__iter__.return_value = iter(pages)
        mock_pymupdf = MagicMock()
        mock_pymupdf.open.return_value = doc

        with patch.dict("sys.modules", {"pymupdf": mock_pymupdf}):
            assert extract_text_from_pdf(pdf) == "page one\npage two"


class TestInstructionCache:
    def test_round_trip(self, tmp_path: Path) -> None:
        cache = tmp_path / "cache" / "system-instruction.json"
        save_instruction(cache, "You are Alice.")
        assert json.loads(cache.read_text()) == {"system_instruction": "You are Alice."}
        assert load_cached_instruction(cache) == "You are Alice."

    def test_missing_cache(self, tmp_path: Path) -> None:
        assert load_cached_instruction(tmp_path / "none.json") is None

    def test_corrupt_cache(self, tmp_path: Path) -> None:
        cache = tmp_path / "bad.json"
        cache.write_text("{not json")
        assert load_cached_instruction(cache) is None

    def test_blank_instruction_ignored(self, tmp_path: Path) -> None:
        cache = tmp_path / "blank.json"
        cache.write_text(json.dumps({"system_instruction": "  "}))
        assert load_cached_instruction(cache) is None


class TestBuildInstruction:
    def test_prompt_contains_resume_and_rule(self) -> None:
        provider = _provider('"You are Alice."')
        with patch("autoapply.oracle.trainer.extract_text_from_pdf", return_value=RESUME_TEXT):
            instruction = build_instruction("resume.pdf", provider, "gpt-4o")

        assert instruction == "You are Alice."
        prompt, model = provider.complete.call_args.args
        assert RESUME_TEXT in prompt
        assert "short, crisp, one-line responses" in prompt
        assert model == "gpt-4o"
        assert provider.complete.call_args.kwargs["max_tokens"] == INSTRUCTION_MAX_TOKENS

    def test_empty_resume_rejected(self) -> None:
        with (
            patch("autoapply.oracle.trainer.extract_text_from_pdf", return_value="  \n "),
            pytest.raises(ValueError, match="No text could be extracted"),
        ):
            build_instruction("resume.pdf", _provider())

    def test_empty_reply_rejected(self) -> None:
        with (
            patch("autoapply.oracle.trainer.extract_text_from_pdf", return_value=RESUME_TEXT),
            pytest.raises(ValueError, match="empty instruction"),
        ):
            build_instruction("resume.pdf", _provider(""))


class TestPrepareInstruction:
    def test_uses_cache_when_present(self, tmp_path: Path) -> None:
        cache = tmp_path / "instruction.json"
        save_instruction(cache, "Cached Alice.")
        provider = _provider()
        assert prepare_instruction(cache, "resume.pdf", provider) == "Cached Alice."
        provider.complete.assert_not_called()

    def test_builds_and_caches_when_missing(self, tmp_path: Path) -> None:
        cache = tmp_path / "instruction.json"
        provider = _provider()
        with patch("autoapply.oracle.trainer.extract_text_from_pdf", return_value=RESUME_TEXT):
            instruction = prepare_instruction(cache, "resume.pdf", provider)
        assert instruction == "You are Alice, a senior Python developer."
        assert load_cached_instruction(cache) == instruction

    def test_refresh_rebuilds(self, tmp_path: Path) -> None:
        cache = tmp_path / "instruction.json"
        save_instruction(cache, "Stale Alice.")
        with patch("autoapply.oracle.trainer.extract_text_from_pdf", return_value=RESUME_TEXT):
            instruction = prepare_instruction(cache, "resume.pdf", _provider(), refresh=True)
        assert instruction != "Stale Alice."
        assert load_cached_instruction(cache) == instruction
