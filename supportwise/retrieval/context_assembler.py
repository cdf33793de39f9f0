import logging
from typing import Optional, Sequence

from supportwise.data_models import ContactInfo, ScoredEntry, TranslationInfo

logger = logging.getLogger(__name__)

SECTION_SEPARATOR = "\n\n"

CONTEXT_HEADER = (
    "KNOWLEDGE BASE (most relevant first). Answer from these entries whenever they cover the question. "
    "Prefer them over general knowledge and never invent facts that are not listed. "
    "Never make up phone numbers, emails, addresses or other contact details."
)

CONTACT_HEADER = "Contact information (use exactly as written):"


def format_entry(position: int, scored: ScoredEntry) -> str:
    return f"{position}. Q: {scored.entry.question}\n   A: {scored.entry.answer}"


def format_translation_note(translation_info: Optional[TranslationInfo]) -> Optional[str]:
    if translation_info is None or not translation_info.was_translated:
        return None
    return (
        f"Note: the customer wrote in '{translation_info.source_language}'. "
        f"Their message in English: \"{translation_info.translated_text}\". "
        "Reply in the customer's language."
    )


def assemble(
    scored_entries: Sequence[ScoredEntry],
    max_context_length: int,
    translation_info: Optional[TranslationInfo] = None,
    contact: Optional[ContactInfo] = None,
) -> Optional[str]:
    """
    Build the grounding block for the completion prompt.

    Entries are added in rank order while the whole block stays within
    max_context_length characters. The first entry that does not fit stops
    the loop, so lower-ranked entries are never pulled in ahead of it.
    Contact lines are appended last, only if they still fit.

    Returns None when there is nothing to ground on.
    """
    if not scored_entries:
        return None

    block = CONTEXT_HEADER
    note = format_translation_note(translation_info)
    if note:
        block += SECTION_SEPARATOR + note

    included = 0
    for position, scored in enumerate(scored_entries, start=1):
        candidate = block + SECTION_SEPARATOR + format_entry(position, scored)
        if len(candidate) > max_context_length:
            logger.info(f"Context budget {max_context_length} reached; dropping {len(scored_entries) - included} lower-ranked entries.")
            break
        block = candidate
        included += 1

    if included == 0:
        logger.warning(f"No knowledge entry fits within {max_context_length} characters. Proceeding ungrounded.")
        return None

    if contact is not None and not contact.is_empty:
        candidate = block + SECTION_SEPARATOR + CONTACT_HEADER + "\n" + "\n".join(contact.lines())
        if len(candidate) <= max_context_length:
            block = candidate

    return block


def build_contact_info_message(contact: Optional[ContactInfo]) -> Optional[str]:
    """System-prompt directive pinning the business's real contact details."""
    if contact is None or contact.is_empty:
        return None
    details = "\n".join(contact.lines())
    return (
        "Contact information (use these exact details, never make up fake numbers):\n"
        f"{details}\n\n"
        "CRITICAL: Always use the exact contact information above. Never generate phone numbers, "
        "emails or addresses. If asked for contact details not listed above, say you don't have that information."
    )
