"""
Two-pass transcription agent.

Pass 1 asks for a verbatim transcript in which every doubtful word is wrapped
in %%markers%% and listed with alternatives. Pass 2 re-examines each flagged
word in a focused request and swaps the correction in.
"""
import logging
from typing import List, Optional, Sequence

from pydantic import ValidationError

from ..constants import LLM_TEMP_TRANSCRIPTION
from ..models import LowConfidenceWord
from ..prompts import JSON_OUTPUT_STRICT, NUMBERS_AS_DIGITS_INSTRUCTION, language_name
from ..utils.api_helpers import APIError
from ..utils.llm import chat_json, chat_text, transcribe_audio, user_content
from ..utils.media import Frame

logger = logging.getLogger(__name__)

MARKER = "%%"

# ============================================================================
# PROMPTS
# ============================================================================

FIRST_PASS_SYSTEM_PROMPT = (
    "You are a specialized speech-to-text engine that produces verbatim transcripts and "
    "flags ambiguous words for verification. Your output is always valid JSON in {language_name}."
)

FIRST_PASS_PROMPT = """You are a highly specialized transcriptionist. Produce a precise, verbatim
transcript of the video advertisement in {language_name}, using the attached keyframes and the raw
speech-to-text output below.

**Raw speech-to-text (may contain mishearings):**
---
{raw_speech}
---

**Follow this strict decision-making hierarchy:**
1. **Clear on-screen text is the source of truth.** If text is clearly legible on screen, use it and
   override ambiguous audio. If the text is animated, skewed or stylised, rely more on audio and context.
2. **Clear audio comes next.** Transcribe clear speech verbatim. Do not "correct" what you hear into
   something more common. Preserve brand names, store names and unique phrases. Keep filler words and
   repetitions exactly as spoken.
3. **Semantic context only breaks ties.** Use it only when the audio is genuinely phonetically ambiguous
   and no on-screen text confirms the word.

**Self-doubt triggers (CRITICAL):**
- Phrases that are phonetically plausible but make no sense in the video's context are likely
  mishearings and MUST be flagged.
- Short modifiers are easily dropped or inserted in fast speech. If a phrase feels incomplete, flag it.
- Do not fix grammar or simplify phrases.
{numbers}
**Output:**
- "transcript": the full transcript. Wrap every word or phrase you have even slight doubt about in
  %%double percent markers%%. Flagging a correct word is better than confidently outputting a wrong one.
- "lowConfidence": one object per marked word: {{"suspectedWord": "...", "reason": "...",
  "alternatives": ["..."]}}. "suspectedWord" is the text between the markers.
{json_rules}"""

FALLBACK_SYSTEM_PROMPT = "You are a verbatim transcriptionist. Output only the transcript text."

FALLBACK_PROMPT = """Transcribe this video advertisement verbatim in {language_name}, using Arabic
numerals for all numbers. Raw speech-to-text for reference:
{raw_speech}"""

VERIFICATION_SYSTEM_PROMPT = (
    "You are an expert linguistic auditor. Your sole job is to resolve ambiguity in transcripts. "
    "Provide only the corrected word in JSON."
)

VERIFICATION_PROMPT = """This is a focused verification task for a video transcript.
A previous pass transcribed the word "{suspected_word}" with low confidence.
Reason for uncertainty: "{reason}".
Plausible alternatives: {alternatives}.

Raw speech-to-text for reference:
{raw_speech}

Re-examine the keyframes and the speech closely and decide the single most accurate transcription
of this word, in this order of authority:
1. On-screen text: is the word clearly visible?
2. Phonetics: what does the speech actually say?
3. Semantic context: which word makes sense in the sentence and in the ad?

Respond with ONLY a JSON object: {{"correctedWord": "..."}}"""

NO_SPEECH = "(no audio track)"


# ============================================================================
# MARKER HELPERS
# ============================================================================

def strip_markers(transcript: str) -> str:
    return transcript.replace(MARKER, "")


def apply_correction(transcript: str, suspected_word: str, corrected_word: str) -> str:
    """Replaces the first %%suspected_word%% occurrence only."""
    return transcript.replace(f"{MARKER}{suspected_word}{MARKER}", corrected_word, 1)


def _parse_low_confidence(items) -> List[LowConfidenceWord]:
    if not isinstance(items, list):
        return []
    words = []
    for item in items:
        try:
            words.append(LowConfidenceWord.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Ignoring malformed low-confidence entry {item!r}: {e}")
    return words


# ============================================================================
# AGENT
# ============================================================================

def _raw_speech(wav_bytes: Optional[bytes], language: str) -> Optional[str]:
    if not wav_bytes:
        return None
    try:
        return transcribe_audio(wav_bytes, language)
    except APIError as e:
        logger.warning(f"Raw speech-to-text failed, continuing with keyframes only: {e}")
        return None


def generate_transcript(
    frames: Sequence[Frame],
    wav_bytes: Optional[bytes],
    model: str,
    language: str
) -> str:
    """
    Produces a verified transcript from keyframes and the audio track.

    Args:
        frames: Keyframes (on-screen text is the primary source of truth)
        wav_bytes: Mono WAV of the audio track, None when the video is silent
        model: Chat model id
        language: Output language code

    Returns:
        Transcript with every %% marker removed
    """
    lang = language_name(language)
    raw_speech = _raw_speech(wav_bytes, language) or NO_SPEECH

    # Pass 1: transcript with self-flagged doubtful words
    first_pass_prompt = FIRST_PASS_PROMPT.format(
        language_name=lang,
        raw_speech=raw_speech,
        numbers=NUMBERS_AS_DIGITS_INSTRUCTION,
        json_rules=JSON_OUTPUT_STRICT,
    )
    try:
        first_pass = chat_json(
            model,
            FIRST_PASS_SYSTEM_PROMPT.format(language_name=lang),
            user_content(first_pass_prompt, frames),
            LLM_TEMP_TRANSCRIPTION,
        )
    except APIError as e:
        logger.error(f"Transcription pass 1 failed, falling back to plain transcription: {e}")
        fallback = chat_text(
            model,
            FALLBACK_SYSTEM_PROMPT,
            user_content(FALLBACK_PROMPT.format(language_name=lang, raw_speech=raw_speech), frames),
            LLM_TEMP_TRANSCRIPTION,
        )
        return strip_markers(fallback)

    transcript = first_pass.get("transcript")
    transcript = transcript if isinstance(transcript, str) else ""
    low_confidence = _parse_low_confidence(first_pass.get("lowConfidence"))

    if not low_confidence:
        return strip_markers(transcript)

    logger.info(f"Verifying {len(low_confidence)} low-confidence word(s)")

    # Pass 2: one focused request per flagged word
    for word in low_confidence:
        verification_prompt = VERIFICATION_PROMPT.format(
            suspected_word=word.suspected_word,
            reason=word.reason,
            alternatives=", ".join(word.alternatives) or "none given",
            raw_speech=raw_speech,
        )
        try:
            result = chat_json(
                model,
                VERIFICATION_SYSTEM_PROMPT,
                user_content(verification_prompt, frames),
                LLM_TEMP_TRANSCRIPTION,
            )
            corrected = result.get("correctedWord")
            if not isinstance(corrected, str) or not corrected.strip():
                corrected = word.suspected_word
        except APIError as e:
            logger.warning(f"Verification for '{word.suspected_word}' failed, keeping original: {e}")
            corrected = word.suspected_word

        transcript = apply_correction(transcript, word.suspected_word, corrected.strip())

    return strip_markers(transcript)
