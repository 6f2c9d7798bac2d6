"""Profile instruction builder: resume PDF → cached oracle system instruction."""

import json
import logging
from pathlib import Path

from autoapply.oracle.providers import LLMProvider, clean_response

logger = logging.getLogger(__name__)

TRAINER_SYSTEM_PROMPT = (
    "You write system instructions for an assistant that fills in job "
    "application screening questions on behalf of a candidate."
)

_INSTRUCTION_PROMPT = (
    "Based on the resume below, write a system instruction that makes an "
    "assistant answer job application questions as this candidate. Describe "
    "the candidate in the second person (\"You are ...\"): name, current role, "
    "total years of experience, key skills with years, notice period, current "
    "and expected salary if stated, and preferred locations. If a fact is not "
    "in the resume, tell the assistant to give a reasonable, honest answer.\n"
    "End with exactly this line:\n"
    "Always answer in short, crisp, one-line responses like a real applicant.\n\n"
    "Resume:\n{resume}"
)

INSTRUCTION_MAX_TOKENS = 1024


def extract_text_from_pdf(path: str | Path) -> str:
    """Extract plain text from a PDF file.

    Raises:
        FileNotFoundError: If the PDF file does not exist.
        ImportError: If pymupdf is not installed.
    """
    path = Path(path)
    if not path.exists():
        msg = f"PDF file not found: {path}"
        raise FileNotFoundError(msg)

    try:
        import pymupdf
    except ImportError:
        msg = (
            "pymupdf is required for resume extraction. "
            "Install with: pip install 'autoapply-engine[profile]'"
        )
        raise ImportError(msg) from None

    with pymupdf.open(str(path)) as doc:
        return "\n".join(page.get_text() for page in doc)


def load_cached_instruction(path: str | Path) -> str | None:
    """Return the cached instruction, or None when absent or unreadable."""
    cache = Path(path)
    if not cache.exists():
        return None
    try:
        data = json.loads(cache.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable instruction cache %s: %s", cache, e)
        return None
    instruction = data.get("system_instruction") if isinstance(data, dict) else None
    if not isinstance(instruction, str) or not instruction.strip():
        return None
    return instruction


def save_instruction(path: str | Path, instruction: str) -> None:
    cache = Path(path)
    cache.parent.mkdir(parents=True, exist_ok=True)
    cache.write_text(json.dumps({"system_instruction": instruction}, indent=2))


def build_instruction(
    resume_path: str | Path,
    provider: LLMProvider,
    model: str | None = None,
) -> str:
    """Ask the provider to turn a resume into an applicant instruction."""
    resume_text = extract_text_from_pdf(resume_path)
    if not resume_text.strip():
        msg = f"No text could be extracted from {resume_path}"
        raise ValueError(msg)

    logger.info("Extracted %d characters from %s", len(resume_text), resume_path)
    raw = provider.complete(
        _INSTRUCTION_PROMPT.format(resume=resume_text),
        model,
        system=TRAINER_SYSTEM_PROMPT,
        max_tokens=INSTRUCTION_MAX_TOKENS,
    )
    instruction = clean_response(raw)
    if not instruction:
        msg = f"{provider.provider_id} returned an empty instruction"
        raise ValueError(msg)
    return instruction


def prepare_instruction(
    cache_path: str | Path,
    resume_path: str | Path,
    provider: LLMProvider,
    model: str | None = None,
    *,
    refresh: bool = False,
) -> str:
    """Return the cached instruction, building and caching it when missing."""
    if not refresh:
        cached = load_cached_instruction(cache_path)
        if cached is not None:
            logger.info("Using cached instruction from %s", cache_path)
            return cached

    instruction = build_instruction(resume_path, provider, model)
    save_instruction(cache_path, instruction)
    logger.info("Instruction cached to %s", cache_path)
    return instruction
