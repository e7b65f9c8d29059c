import pytest

from app.agents import transcription
from app.agents.transcription import NO_SPEECH, apply_correction, generate_transcript, strip_markers
from app.utils.api_helpers import PermanentAPIError, TransientAPIError
from app.utils.media import Frame

FRAMES = [Frame(timestamp=1.0, base64_data="aaa"), Frame(timestamp=2.0, base64_data="bbb")]


class ScriptedChat:
    """Returns (or raises) the scripted responses in order and records every prompt."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    def __call__(self, model, system_prompt, content, temperature):
        self.prompts.append(content)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def speech(monkeypatch):
    calls = []

    def fake_transcribe(wav_bytes, language=None):
        calls.append(language)
        return "buy one get one free"

    monkeypatch.setattr(transcription, "transcribe_audio", fake_transcribe)
    return calls


def _prompt_text(content):
    return content[0]["text"] if isinstance(content, list) else content


def test_strip_markers():
    assert strip_markers("Only %%799%% today") == "Only 799 today"


def test_apply_correction_replaces_first_occurrence_only():
    transcript = "%%fresh%% milk and %%fresh%% bread"

    assert apply_correction(transcript, "fresh", "frech") == "frech milk and %%fresh%% bread"


def test_transcript_without_doubts(monkeypatch, speech):
    chat = ScriptedChat({"transcript": "Buy one, get one free", "lowConfidence": []})
    monkeypatch.setattr(transcription, "chat_json", chat)

    assert generate_transcript(FRAMES, b"wav", "gpt-4o", "zh-TW") == "Buy one, get one free"
    assert speech == ["zh-TW"]
    assert "buy one get one free" in _prompt_text(chat.prompts[0])


def test_doubtful_words_are_verified(monkeypatch, speech):
    chat = ScriptedChat(
        {
            "transcript": "Only %%seven ninety nine%% at %%Bed Bath%% today",
            "lowConfidence": [
                {"suspectedWord": "seven ninety nine", "reason": "number", "alternatives": ["799"]},
                {"suspectedWord": "Bed Bath", "reason": "brand name"},
            ],
        },
        {"correctedWord": "799"},
        PermanentAPIError("rejected"),
    )
    monkeypatch.setattr(transcription, "chat_json", chat)

    result = generate_transcript(FRAMES, b"wav", "gpt-4o", "en")

    assert result == "Only 799 at Bed Bath today"
    assert len(chat.prompts) == 3
    assert '"Bed Bath"' in _prompt_text(chat.prompts[2])


def test_empty_correction_keeps_original(monkeypatch, speech):
    chat = ScriptedChat(
        {"transcript": "Try %%Glowy%% now", "lowConfidence": [{"suspectedWord": "Glowy"}]},
        {"correctedWord": "  "},
    )
    monkeypatch.setattr(transcription, "chat_json", chat)

    assert generate_transcript(FRAMES, b"wav", "gpt-4o", "en") == "Try Glowy now"


def test_malformed_low_confidence_entries_are_ignored(monkeypatch, speech):
    chat = ScriptedChat({"transcript": "Hello %%there%%", "lowConfidence": [{"reason": "no word"}, "junk"]})
    monkeypatch.setattr(transcription, "chat_json", chat)

    assert generate_transcript(FRAMES, b"wav", "gpt-4o", "en") == "Hello there"
    assert len(chat.prompts) == 1


def test_first_pass_failure_falls_back_to_plain_transcription(monkeypatch, speech):
    monkeypatch.setattr(transcription, "chat_json", ScriptedChat(TransientAPIError("timeout")))
    fallback = ScriptedChat("Buy %%one%% get one free")
    monkeypatch.setattr(transcription, "chat_text", fallback)

    assert generate_transcript(FRAMES, b"wav", "gpt-4o", "en") == "Buy one get one free"
    assert "buy one get one free" in _prompt_text(fallback.prompts[0])


def test_silent_video_skips_speech_to_text(monkeypatch, speech):
    chat = ScriptedChat({"transcript": "SALE 50% OFF"})
    monkeypatch.setattr(transcription, "chat_json", chat)

    assert generate_transcript(FRAMES, None, "gpt-4o", "en") == "SALE 50% OFF"
    assert speech == []
    assert NO_SPEECH in _prompt_text(chat.prompts[0])


def test_speech_to_text_failure_continues_with_frames(monkeypatch):
    def broken_transcribe(wav_bytes, language=None):
        raise PermanentAPIError("unsupported audio")

    monkeypatch.setattr(transcription, "transcribe_audio", broken_transcribe)
    chat = ScriptedChat({"transcript": "On-screen text only"})
    monkeypatch.setattr(transcription, "chat_json", chat)

    assert generate_transcript(FRAMES, b"wav", "gpt-4o", "en") == "On-screen text only"
    assert NO_SPEECH in _prompt_text(chat.prompts[0])
