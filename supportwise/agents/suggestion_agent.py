from .base_agent import BaseAgent
from collections import Counter
import logging
import random
import re
from typing import List, Optional, Pattern, Sequence, Tuple

from supportwise.data_models import BusinessContext, ConversationTurn, KnowledgeEntry
from supportwise.services.completion_service import SamplingConfig

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SUGGESTION_COUNT = 3

GENERIC_SUGGESTIONS = [
    "How can I help you today?",
    "What would you like to know?",
    "Tell me what you need help with",
]

RETRY_SUGGESTIONS = [
    "I want to try again",
    "Let me ask something else",
    "I need help with a different topic",
]

BUSINESS_TYPE_SUGGESTIONS = {
    "restaurant": [
        "What's on your menu today?",
        "Do you have vegetarian options?",
        "What are your delivery hours?",
        "Can I make a reservation?",
        "What are your specials?",
    ],
    "retail": [
        "What products do you sell?",
        "Do you have this in stock?",
        "What are your return policies?",
        "Do you offer discounts?",
        "What are your store hours?",
    ],
    "real_estate": [
        "What properties are available?",
        "What are your rental prices?",
        "Do you offer property management?",
        "What areas do you cover?",
        "How do I schedule a viewing?",
    ],
    "healthcare": [
        "How do I book an appointment?",
        "What services do you offer?",
        "Do you accept my insurance?",
        "What are your office hours?",
        "How do I get my test results?",
    ],
    "automotive": [
        "What services do you offer?",
        "How much does a service cost?",
        "Do you have parts in stock?",
        "Can I schedule an appointment?",
        "What are your warranty policies?",
    ],
    "beauty": [
        "What services do you offer?",
        "How do I book an appointment?",
        "What are your prices?",
        "Do you have any specials?",
        "What are your salon hours?",
    ],
    "fitness": [
        "What classes do you offer?",
        "What are your membership rates?",
        "Do you have personal training?",
        "What are your gym hours?",
        "Do you offer trial memberships?",
    ],
    "education": [
        "What courses do you offer?",
        "How do I enroll?",
        "What are your tuition rates?",
        "Do you offer financial aid?",
        "What are your class schedules?",
    ],
}

DEFAULT_TYPE_SUGGESTIONS = [
    "What services do you offer?",
    "How can I contact you?",
    "What are your business hours?",
]

SUGGESTION_SYSTEM_PROMPT = (
    "You are an expert at generating helpful, relevant suggestion questions for customer service chatbots. "
    "Generate exactly 3 short, natural questions that customers would actually ask about the business services. "
    "The suggestions should not be more than 5 or 6 words."
)

SUGGESTION_SAMPLING = SamplingConfig(max_tokens=150, temperature=0.7, top_p=0.9)

MAX_KB_QUESTION_LENGTH = 80


class SuggestionParser:
    """
    Turns free-form completion output into clean suggestion strings.

    Cleanup rules run in the order listed, once per line:
      1. bullet markers ("- ", "* ", "• ")
      2. list numbering ("1. ", "2) ")
      3. surrounding whitespace
      4. one pair of surrounding quotes
      5. surrounding whitespace again, for space that sat inside the quotes
    Numbering runs after bullets so "- 1. Foo" loses both markers, and
    whitespace is trimmed before quotes so '"Foo" ' still loses its quotes.

    Kept lines are strictly longer than min_length and strictly shorter
    than max_length characters.
    """

    RULES: Tuple[Tuple[str, Pattern], ...] = (
        ("bullet", re.compile(r"^\s*[-•*]\s*")),
        ("numbering", re.compile(r"^\s*\d+[.)]\s*")),
        ("trim", re.compile(r"^\s+|\s+$")),
        ("quotes", re.compile(r"^[\"'“”‘’]|[\"'“”‘’]$")),
        ("whitespace", re.compile(r"^\s+|\s+$")),
    )

    def __init__(self, min_length: int = 10, max_length: int = 100, limit: int = SUGGESTION_COUNT):
        self.min_length = min_length
        self.max_length = max_length
        self.limit = limit

    def clean(self, line: str) -> str:
        for _, pattern in self.RULES:
            line = pattern.sub("", line)
        return line

    def parse(self, text: str) -> List[str]:
        suggestions: List[str] = []
        for line in (text or "").splitlines():
            if not line.strip():
                continue
            candidate = self.clean(line)
            if self.min_length < len(candidate) < self.max_length and candidate not in suggestions:
                suggestions.append(candidate)
        return suggestions[:self.limit]


def top_categories(entries: Sequence[KnowledgeEntry]) -> List[str]:
    """Categories by descending frequency; ties keep first-seen order."""
    counts = Counter(entry.category for entry in entries if entry.category)
    return [category for category, _ in counts.most_common()]


class SuggestionAgent(BaseAgent):
    """Proposes up to three follow-up questions for the chat widget."""

    def __init__(self, completion_service=None, rng: Optional[random.Random] = None, agent_id: str = "suggestion_agent"):
        self.agent_id = agent_id
        self.completion_service = completion_service
        self.parser = SuggestionParser()
        self.rng = rng or random.Random()
        logger.info(f"{self.agent_id} initialized. AI suggestions: {self._has_ai}")

    @property
    def _has_ai(self) -> bool:
        return self.completion_service is not None and self.completion_service.is_configured

    async def suggest(
        self,
        business: Optional[BusinessContext],
        history: Sequence[ConversationTurn] = (),
    ) -> List[str]:
        """Return 0..3 suggestions. Never raises."""
        try:
            if business is None or not business.knowledge_base:
                return list(GENERIC_SUGGESTIONS)

            if self._has_ai:
                suggestions = await self._ai_suggestions(business, history)
                if len(suggestions) >= SUGGESTION_COUNT:
                    logger.info(f"AI generated suggestions for '{business.business_id}': {suggestions}")
                    return suggestions
                logger.info(f"AI produced {len(suggestions)} usable suggestions; using knowledge base fallback.")

            return self.knowledge_base_suggestions(business)
        except Exception as e:
            logger.error(f"Error generating suggestions: {e}", exc_info=True)
            return list(GENERIC_SUGGESTIONS)

    async def _ai_suggestions(self, business: BusinessContext, history: Sequence[ConversationTurn]) -> List[str]:
        prompt = self.build_prompt(business, has_recent_conversation=len(history) > 0)
        try:
            text = await self.completion_service.complete(
                SUGGESTION_SYSTEM_PROMPT, [{"role": "user", "content": prompt}], SUGGESTION_SAMPLING
            )
        except Exception as e:
            logger.warning(f"AI suggestion generation failed: {e}")
            return []
        return self.parser.parse(text)

    @staticmethod
    def build_prompt(business: BusinessContext, has_recent_conversation: bool = False) -> str:
        profile = business.profile
        prompt = f"Generate 3 helpful customer service suggestion questions for a {profile.type} business called \"{profile.name}\"."
        if profile.specialization:
            prompt += f" They specialize in {profile.specialization}."
        categories = top_categories(business.knowledge_base)[:5]
        if categories:
            prompt += f" Common customer topics include: {', '.join(categories)}."
        if has_recent_conversation:
            prompt += " The customer is already mid-conversation, so avoid greetings."
        prompt += (
            "\n\nGenerate 3 short, natural questions that customers would likely ask. "
            "Make them specific to this type of business. Format each question on a new line starting with \"- \"."
        )
        return prompt

    def knowledge_base_suggestions(self, business: BusinessContext) -> List[str]:
        candidates = list(BUSINESS_TYPE_SUGGESTIONS.get(business.profile.type, DEFAULT_TYPE_SUGGESTIONS))
        for category in top_categories(business.knowledge_base)[:3]:
            questions = [
                entry.question for entry in business.knowledge_base
                if entry.category == category and entry.question and len(entry.question) < MAX_KB_QUESTION_LENGTH
            ]
            if questions:
                candidates.append(self.rng.choice(questions))

        unique = list(dict.fromkeys(candidates))
        self.rng.shuffle(unique)
        return unique[:SUGGESTION_COUNT]

    async def process(self, data: dict) -> dict:
        suggestions = await self.suggest(data.get("business"), data.get("history") or [])
        return {"status": "success", "suggestions": suggestions}
