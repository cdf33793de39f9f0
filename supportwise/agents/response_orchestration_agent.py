from .base_agent import BaseAgent
from .session_context_agent import SessionContextAgent
from .suggestion_agent import RETRY_SUGGESTIONS, SuggestionAgent
import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from supportwise.arithmetic import format_math_response, is_math_query
from supportwise.cache import KnowledgeBaseCache
from supportwise.config import Settings
from supportwise.data_models import BusinessContext, ChatResult, ConversationTurn, DebugInfo, RetrievalResult
from supportwise.datastore import BusinessDataStore, JsonBusinessDataStore
from supportwise.datastore.json_datastore import DEFAULT_DATA_PATH
from supportwise.exceptions import NotFoundError, SupportWiseError, UpstreamError, ValidationError
from supportwise.retrieval import RelevanceScorer, assemble, build_contact_info_message
from supportwise.services import CompletionService, SamplingConfig, TranslationService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MATH_SHORTCUT = "MATH_SHORTCUT"
GROUNDED_COMPLETION = "GROUNDED_COMPLETION"
UNGROUNDED_FALLBACK = "UNGROUNDED_FALLBACK"

UNAVAILABLE_TEXT = "I apologize, but I'm currently unable to provide a response. Could you please try again?"
TECHNICAL_ISSUES_TEXT = "I'm currently experiencing technical issues. Please try again shortly."
SOMETHING_WENT_WRONG_TEXT = "Sorry, something went wrong. Could you try again?"
UNKNOWN_BUSINESS_GREETING = "Hey! What's up?"

DEFAULT_SYSTEM_MESSAGE = """You are a professional business assistant.

RESPONSE LENGTH RULES:
- Keep responses CONCISE: 1-3 sentences maximum
- Be direct and to the point
- If you need more info, ask ONE short question
- If you don't know, say "I don't know" and suggest contacting support
- Complete your thoughts, don't cut off mid-sentence

TONE:
- Friendly but brief
- Professional but casual

AVOID:
- Long paragraphs (keep under 3 sentences)
- Multiple options in one response
- Step-by-step processes unless specifically asked
- Filler words or unnecessary details"""


def validate_chat_message(message: Optional[str], max_length: int = 1000) -> str:
    """Reject empty or oversized messages before any retrieval work. Returns the trimmed message."""
    if message is None or not str(message).strip():
        raise ValidationError("Message is required")
    if len(message) > max_length:
        raise ValidationError(f"Message too long (max {max_length} characters)", details=f"length={len(message)}")
    return str(message).strip()


def history_key(business_id: str, session_id: str) -> str:
    return f"{business_id}_{session_id}"


class ResponseOrchestrationAgent(BaseAgent):
    """
    Runs one chat turn for a business:

        START -> HISTORY_LOADED -> RETRIEVED
              -> MATH_SHORTCUT | GROUNDED_COMPLETION | UNGROUNDED_FALLBACK
              -> HISTORY_UPDATED -> DONE

    Validation and business lookup happen before the pipeline starts and
    raise. Once the user turn is recorded, every failure is converted into an
    apology, and that apology is what gets stored as the assistant turn.
    """

    def __init__(
        self,
        settings: Settings,
        cache: KnowledgeBaseCache,
        session_agent: SessionContextAgent,
        scorer: RelevanceScorer,
        suggestion_agent: SuggestionAgent,
        completion_service: Optional[CompletionService] = None,
        agent_id: str = "response_orchestration_agent",
    ):
        self.agent_id = agent_id
        self.settings = settings
        self.cache = cache
        self.session_agent = session_agent
        self.scorer = scorer
        self.suggestion_agent = suggestion_agent
        self.completion_service = completion_service
        logger.info(f"{self.agent_id} initialized. Completion available: {self.has_ai}")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        datastore: Optional[BusinessDataStore] = None,
        completion_service: Optional[CompletionService] = None,
    ) -> "ResponseOrchestrationAgent":
        """Wire the whole pipeline with fresh, process-scoped cache and session state."""
        datastore = datastore or JsonBusinessDataStore(settings.business_data_path or DEFAULT_DATA_PATH)
        if completion_service is None and settings.has_completion:
            completion_service = CompletionService.from_settings(settings)

        translator = None
        if settings.translation_enabled and completion_service is not None:
            translator = TranslationService(completion_service, settings.primary_language)

        return cls(
            settings=settings,
            cache=KnowledgeBaseCache(datastore, ttl_seconds=settings.cache_ttl, max_size=settings.cache_max_size),
            session_agent=SessionContextAgent(max_history_len=settings.history_max_turns),
            scorer=RelevanceScorer(translator=translator),
            suggestion_agent=SuggestionAgent(completion_service=completion_service),
            completion_service=completion_service,
        )

    @property
    def has_ai(self) -> bool:
        return self.completion_service is not None and self.completion_service.is_configured

    @property
    def sampling(self) -> SamplingConfig:
        return SamplingConfig(
            max_tokens=self.settings.request_max_tokens,
            temperature=self.settings.temperature,
            top_p=self.settings.top_p,
        )

    async def _load_business(self, business_id: str) -> BusinessContext:
        business = await self.cache.get(business_id)
        if business is None:
            raise NotFoundError(business_id=business_id)
        return business

    async def retrieve(self, message: str, business: BusinessContext) -> Tuple[RetrievalResult, Optional[str]]:
        retrieval = await self.scorer.score(
            message,
            business.knowledge_base,
            top_k=self.settings.rag_top_k,
            threshold=self.settings.rag_similarity_threshold,
        )
        return retrieval, self._assemble(retrieval)

    def _assemble(self, retrieval: RetrievalResult) -> Optional[str]:
        return assemble(retrieval.entries, self.settings.rag_max_context_length, retrieval.translation_info)

    @staticmethod
    def build_system_prompt(business: BusinessContext, context: Optional[str]) -> str:
        parts = [business.system_message or DEFAULT_SYSTEM_MESSAGE]
        contact_message = build_contact_info_message(business.contact)
        if contact_message:
            parts.append(contact_message)
        if context:
            parts.append(context)
        return "\n\n".join(parts)

    async def _complete(self, business: BusinessContext, context: Optional[str], key: str) -> Tuple[str, str]:
        system_prompt = self.build_system_prompt(business, context)
        prior_turns = [turn.to_message() for turn in self.session_agent.recent(key, self.settings.history_prompt_turns)]
        if context:
            logger.info(f"Grounding completion for '{business.business_id}' with {len(context)} context characters.")
        else:
            logger.info(f"No context found for '{business.business_id}'. Using general business tone.")

        try:
            text = await asyncio.wait_for(
                self.completion_service.complete(system_prompt, prior_turns, self.sampling),
                timeout=self.settings.completion_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Completion timed out after {self.settings.completion_timeout}s for session {key}.")
            return UNAVAILABLE_TEXT, UNGROUNDED_FALLBACK
        except UpstreamError as e:
            logger.error(f"Completion failed for session {key}: {e.message} ({e.details})")
            return TECHNICAL_ISSUES_TEXT, UNGROUNDED_FALLBACK
        return text.strip(), GROUNDED_COMPLETION

    async def respond(self, message: Optional[str], business_id: str, session_id: str) -> ChatResult:
        message = validate_chat_message(message, self.settings.max_message_length)
        if not session_id:
            raise ValidationError("Session id is required")
        business = await self._load_business(business_id)
        key = history_key(business_id, session_id)

        logger.info(f"Chat request - business: {business_id}, session: {session_id}, message: '{message[:100]}'")

        is_new_conversation = not self.session_agent.exists(key)
        self.session_agent.append(key, ConversationTurn.user(message))

        try:
            retrieval, context = await self.retrieve(message, business)
            suggestions = await self.suggestion_agent.suggest(business, self.session_agent.get(key))

            if is_math_query(message):
                response, path = format_math_response(message), MATH_SHORTCUT
            elif self.has_ai:
                response, path = await self._complete(business, context, key)
            else:
                response, path = UNAVAILABLE_TEXT, UNGROUNDED_FALLBACK

            self.session_agent.append(key, ConversationTurn.assistant(response))
            logger.info(f"Response generated for {business_id} via {path}: '{response[:100]}'")

            translation = retrieval.translation_info
            return ChatResult(
                response=response,
                suggestions=suggestions,
                is_new_conversation=is_new_conversation,
                initial_message=business.initial_message if is_new_conversation else None,
                debug=DebugInfo(
                    context_found=len(retrieval.entries),
                    max_score=retrieval.max_score,
                    has_ai=self.has_ai,
                    was_translated=translation.was_translated,
                    original_language=translation.source_language,
                    path=path,
                ),
            )
        except Exception as e:
            logger.error(
                f"Error generating response for business {business_id}, session {session_id}, "
                f"message '{message[:100]}': {e}",
                exc_info=True,
            )
            self.session_agent.append(key, ConversationTurn.assistant(SOMETHING_WENT_WRONG_TEXT))
            return ChatResult(
                response=SOMETHING_WENT_WRONG_TEXT,
                suggestions=list(RETRY_SUGGESTIONS),
                is_new_conversation=is_new_conversation,
                initial_message=business.initial_message if is_new_conversation else None,
                debug=DebugInfo(has_ai=self.has_ai, path=UNGROUNDED_FALLBACK),
                error=str(e) if self.settings.is_development else None,
            )

    async def process(self, data: dict) -> dict:
        """
        Agent-style entry point.

        Args:
            data (dict): 'message', 'business_id' and 'session_id'.

        Returns:
            dict: {"status": "success", **chat_result} or
                  {"status": "failure", "error_code": ..., "error": ...}.
        """
        try:
            result = await self.respond(data.get("message"), data.get("business_id") or "default", data.get("session_id"))
        except SupportWiseError as e:
            logger.warning(f"Chat request rejected ({e.error_code}): {e.message}")
            return {"status": "failure", "error_code": e.error_code, "error": e.message}
        return {"status": "success", **result.to_dict()}

    async def initial_message(self, business_id: str) -> Dict[str, Any]:
        business = await self.cache.get(business_id)
        suggestions = await self.suggestion_agent.suggest(business)
        if business is None:
            return {"message": UNKNOWN_BUSINESS_GREETING, "suggestions": suggestions, "business_id": business_id}
        return {
            "message": business.initial_message,
            "business_name": business.profile.name,
            "business_logo": business.profile.logo,
            "suggestions": suggestions,
            "business_id": business_id,
        }

    async def debug_retrieval(self, query: str, business_id: str) -> Dict[str, Any]:
        """Raw per-entry scores for a query, next to what retrieval would actually select."""
        if not query or not query.strip():
            raise ValidationError("Query is required")
        business = await self._load_business(business_id)

        ranked, translation = await self.scorer.score_all(query, business.knowledge_base)
        retrieval = self.scorer.select(
            ranked, translation, self.settings.rag_top_k, self.settings.rag_similarity_threshold, query
        )
        context = self._assemble(retrieval)
        return {
            "query": query,
            "business_id": business_id,
            "threshold": self.settings.rag_similarity_threshold,
            "top_k": self.settings.rag_top_k,
            "total_entries": len(business.knowledge_base),
            "scores": [scored.to_dict() for scored in ranked],
            "selected": [scored.to_dict() for scored in retrieval.entries],
            "max_score": retrieval.max_score,
            "context": context,
            "translation": translation.to_dict(),
        }

    def clear_history(self, session_id: Optional[str] = None) -> None:
        self.session_agent.clear(session_id)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "active_sessions": self.session_agent.active_sessions(),
            "completion_available": self.has_ai,
            "model": self.settings.completion_model,
            "max_tokens": self.settings.request_max_tokens,
        }
