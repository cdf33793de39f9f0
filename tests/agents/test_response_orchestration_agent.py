import pytest
from dataclasses import replace
from unittest.mock import AsyncMock, patch

from langdetect.language import Language

from supportwise.agents import ResponseOrchestrationAgent, validate_chat_message
from supportwise.agents.response_orchestration_agent import (
    GROUNDED_COMPLETION, MATH_SHORTCUT, SOMETHING_WENT_WRONG_TEXT, TECHNICAL_ISSUES_TEXT,
    UNAVAILABLE_TEXT, UNGROUNDED_FALLBACK, UNKNOWN_BUSINESS_GREETING,
)
from supportwise.agents.suggestion_agent import RETRY_SUGGESTIONS
from supportwise.arithmetic import CALCULATION_ERROR_TEXT
from supportwise.exceptions import NotFoundError, UpstreamError, ValidationError


def _chat_calls(completion):
    # Only chat prompts carry the business contact directive
    return [c for c in completion.calls if "Contact information" in c["system_prompt"]]

@pytest.mark.asyncio
async def test_math_shortcut_skips_completion(settings, acme_datastore, fake_completion):
    completion = fake_completion(replies=["should not be used for chat"])
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore, completion_service=completion)

    result = await orchestrator.respond("12 + 5", "acme", "s1")
    assert "17" in result.response
    assert result.response == "12 + 5 = 17"
    assert result.debug.path == MATH_SHORTCUT
    assert _chat_calls(completion) == []

@pytest.mark.asyncio
async def test_division_by_zero_degrades_to_calculation_error(settings, acme_datastore):
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore)
    result = await orchestrator.respond("9 / 0", "acme", "s1")
    assert result.response == CALCULATION_ERROR_TEXT
    assert result.error is None

@pytest.mark.asyncio
async def test_no_completion_gives_fixed_apology_and_tracks_first_turn(settings, acme_datastore):
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore)

    first = await orchestrator.respond("what time do you open", "acme", "s1")
    assert first.response == UNAVAILABLE_TEXT
    assert first.debug.path == UNGROUNDED_FALLBACK
    assert first.debug.has_ai is False
    assert first.debug.context_found == 1
    assert first.debug.max_score >= 0.2
    assert first.is_new_conversation is True
    assert first.initial_message == "Welcome to Acme!"
    assert 0 <= len(first.suggestions) <= 3

    second = await orchestrator.respond("thanks", "acme", "s1")
    assert second.is_new_conversation is False
    assert second.initial_message is None

    history = orchestrator.session_agent.get("acme_s1")
    assert [t.role for t in history] == ["user", "assistant", "user", "assistant"]
    assert history[1].content == UNAVAILABLE_TEXT

@pytest.mark.asyncio
async def test_grounded_completion_uses_context_contact_and_recent_turns(settings, acme_datastore, fake_completion):
    completion = fake_completion(replies=["  We are open 9-5 Mon-Fri.  "])
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore, completion_service=completion)

    for i in range(4):
        await orchestrator.respond(f"can you help with thing {i}", "acme", "s1")
    result = await orchestrator.respond("what time do you open", "acme", "s1")

    assert result.response == "We are open 9-5 Mon-Fri."
    assert result.debug.path == GROUNDED_COMPLETION
    assert result.debug.has_ai is True
    assert result.debug.context_found == 1

    call = _chat_calls(completion)[-1]
    assert "9-5 Mon-Fri" in call["system_prompt"]
    assert "Phone: +1 555 0100" in call["system_prompt"]
    assert "professional business assistant" in call["system_prompt"]
    assert len(call["prior_turns"]) == settings.history_prompt_turns
    assert call["prior_turns"][-1] == {"role": "user", "content": "what time do you open"}
    assert call["sampling"].temperature == settings.temperature

@pytest.mark.asyncio
async def test_business_system_message_overrides_default(settings, make_datastore, acme_datastore, fake_completion):
    record = dict(acme_datastore.businesses["acme"], system_message="You are Acme's pirate assistant.")
    completion = fake_completion(replies=["Arr, 9-5."])
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=make_datastore({"acme": record}), completion_service=completion)

    await orchestrator.respond("what time do you open", "acme", "s1")
    prompt = _chat_calls(completion)[-1]["system_prompt"]
    assert prompt.startswith("You are Acme's pirate assistant.")
    assert "professional business assistant" not in prompt

@pytest.mark.asyncio
async def test_completion_timeout_falls_back(settings, acme_datastore, fake_completion):
    fast_timeout = replace(settings, completion_timeout=0.05)
    orchestrator = ResponseOrchestrationAgent.from_settings(
        fast_timeout, datastore=acme_datastore, completion_service=fake_completion(delay=0.5)
    )
    result = await orchestrator.respond("what time do you open", "acme", "s1")
    assert result.response == UNAVAILABLE_TEXT
    assert result.debug.path == UNGROUNDED_FALLBACK

@pytest.mark.asyncio
async def test_upstream_error_gives_technical_issues_text(settings, acme_datastore, fake_completion):
    completion = fake_completion(error=UpstreamError("Completion service failed", details="503"))
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore, completion_service=completion)
    result = await orchestrator.respond("what time do you open", "acme", "s1")
    assert result.response == TECHNICAL_ISSUES_TEXT
    assert orchestrator.session_agent.get("acme_s1")[-1].content == TECHNICAL_ISSUES_TEXT

@pytest.mark.asyncio
async def test_unexpected_error_is_caught_at_boundary(settings, acme_datastore):
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore)
    orchestrator.scorer.score = AsyncMock(side_effect=RuntimeError("index exploded"))

    result = await orchestrator.respond("what time do you open", "acme", "s1")
    assert result.response == SOMETHING_WENT_WRONG_TEXT
    assert result.suggestions == RETRY_SUGGESTIONS
    assert result.error == "index exploded"
    history = orchestrator.session_agent.get("acme_s1")
    assert [t.content for t in history] == ["what time do you open", SOMETHING_WENT_WRONG_TEXT]

@pytest.mark.asyncio
async def test_error_detail_hidden_outside_development(settings, acme_datastore):
    orchestrator = ResponseOrchestrationAgent.from_settings(replace(settings, app_env="production"), datastore=acme_datastore)
    orchestrator.scorer.score = AsyncMock(side_effect=RuntimeError("index exploded"))
    result = await orchestrator.respond("hello there", "acme", "s1")
    assert result.error is None
    assert "error" not in result.to_dict()

@pytest.mark.asyncio
async def test_validation_happens_before_history(settings, acme_datastore):
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore)
    with pytest.raises(ValidationError):
        await orchestrator.respond("   ", "acme", "s1")
    with pytest.raises(ValidationError):
        await orchestrator.respond("x" * 1001, "acme", "s1")
    assert not orchestrator.session_agent.exists("acme_s1")
    assert acme_datastore.config_fetches == 0

def test_validate_chat_message_trims():
    assert validate_chat_message("  hi  ") == "hi"
    assert validate_chat_message("x" * 1000) == "x" * 1000

@pytest.mark.asyncio
async def test_unknown_business_raises_not_found(settings, acme_datastore):
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore)
    with pytest.raises(NotFoundError):
        await orchestrator.respond("hello", "ghost", "s1")

@pytest.mark.asyncio
async def test_process_reports_success_and_failure(settings, acme_datastore):
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore)

    ok = await orchestrator.process({"message": "2 * 3", "business_id": "acme", "session_id": "s9"})
    assert ok["status"] == "success"
    assert ok["response"] == "2 * 3 = 6"
    assert ok["debug"]["path"] == MATH_SHORTCUT

    missing = await orchestrator.process({"message": "hello", "business_id": "ghost", "session_id": "s9"})
    assert missing == {"status": "failure", "error_code": "NOT_FOUND", "error": "Business not found"}

    empty = await orchestrator.process({"message": "", "business_id": "acme", "session_id": "s9"})
    assert empty["error_code"] == "VALIDATION_ERROR"

@pytest.mark.asyncio
async def test_debug_retrieval_reports_raw_scores(settings, acme_datastore):
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore)
    report = await orchestrator.debug_retrieval("what time do you open", "acme")
    assert report["total_entries"] == 1
    assert len(report["scores"]) == 1
    assert report["selected"][0]["answer"] == "9-5 Mon-Fri"
    assert "9-5 Mon-Fri" in report["context"]
    assert report["translation"]["was_translated"] is False

@pytest.mark.asyncio
async def test_initial_message_for_known_and_unknown_business(settings, acme_datastore):
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore)
    known = await orchestrator.initial_message("acme")
    assert known["message"] == "Welcome to Acme!"
    assert known["business_name"] == "Acme Bikes"
    assert len(known["suggestions"]) == 3

    unknown = await orchestrator.initial_message("ghost")
    assert unknown["message"] == UNKNOWN_BUSINESS_GREETING
    assert "business_name" not in unknown

@pytest.mark.asyncio
async def test_stats_and_clear_history(settings, acme_datastore):
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore)
    await orchestrator.respond("1 + 1", "acme", "a")
    await orchestrator.respond("1 + 1", "acme", "b")
    assert orchestrator.get_stats()["active_sessions"] == 2

    orchestrator.clear_history("acme_a")
    assert orchestrator.get_stats()["active_sessions"] == 1
    orchestrator.clear_history()
    assert orchestrator.get_stats()["active_sessions"] == 0

@pytest.mark.asyncio
async def test_english_keyword_query_is_not_treated_as_foreign(settings, acme_datastore, fake_completion):
    completion = fake_completion(replies=["Our prices are on the website."])
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore, completion_service=completion)

    for query in ["pricing", "delivery options"]:
        result = await orchestrator.respond(query, "acme", "s1")
        assert result.debug.was_translated is False
        assert result.debug.original_language == "en"

    assert not any("Translate the user's message" in c["system_prompt"] for c in completion.calls)
    assert not any("Reply in the customer's language" in c["system_prompt"] for c in completion.calls)

@pytest.mark.asyncio
@patch("supportwise.services.translation_service.detect_langs", return_value=[Language("es", 0.99)])
async def test_debug_retrieval_translates_once(mock_detect_langs, settings, acme_datastore, fake_completion):
    completion = fake_completion(replies=["What time do you open?"])
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=acme_datastore, completion_service=completion)

    report = await orchestrator.debug_retrieval("¿A qué hora abren?", "acme")

    translation_calls = [c for c in completion.calls if "Translate the user's message" in c["system_prompt"]]
    assert len(translation_calls) == 1
    assert report["translation"]["was_translated"] is True
    assert report["selected"][0]["answer"] == "9-5 Mon-Fri"
