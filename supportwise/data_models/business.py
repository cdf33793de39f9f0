from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .knowledge_item import KnowledgeEntry

DEFAULT_INITIAL_MESSAGE = "Hi! How can I help you today?"


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ContactInfo:
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    hours: Optional[str] = None
    website: Optional[str] = None

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> "ContactInfo":
        record = record or {}
        return cls(
            phone=_clean(record.get("phone")),
            email=_clean(record.get("email")),
            address=_clean(record.get("address")),
            hours=_clean(record.get("hours")),
            website=_clean(record.get("website")),
        )

    def lines(self) -> List[str]:
        """Contact details as display lines, verbatim and in a fixed order."""
        labelled = (
            ("Phone", self.phone),
            ("Email", self.email),
            ("Address", self.address),
            ("Hours", self.hours),
            ("Website", self.website),
        )
        return [f"{label}: {value}" for label, value in labelled if value]

    @property
    def is_empty(self) -> bool:
        return not self.lines()


@dataclass(frozen=True)
class BusinessProfile:
    name: str = "our business"
    logo: Optional[str] = None
    type: str = "business"
    specialization: str = ""

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> "BusinessProfile":
        record = record or {}
        return cls(
            name=_clean(record.get("name")) or "our business",
            logo=_clean(record.get("logo")),
            type=(_clean(record.get("type")) or "business").lower(),
            specialization=_clean(record.get("specialization")) or "",
        )


@dataclass(frozen=True)
class BusinessContext:
    """Everything the pipeline needs to answer for one business. Read-only."""

    business_id: str
    profile: BusinessProfile = field(default_factory=BusinessProfile)
    contact: ContactInfo = field(default_factory=ContactInfo)
    initial_message: str = DEFAULT_INITIAL_MESSAGE
    system_message: Optional[str] = None
    knowledge_base: Tuple[KnowledgeEntry, ...] = ()

    @classmethod
    def from_records(
        cls,
        business_id: str,
        config_record: Dict[str, Any],
        kb_records: Iterable[Dict[str, Any]],
    ) -> "BusinessContext":
        """Build a context from raw datastore records, filling every default here."""
        config = config_record.get("config") or {}
        entries = tuple(
            entry for entry in (KnowledgeEntry.from_record(r) for r in kb_records or [])
            if entry.question and entry.answer
        )
        return cls(
            business_id=business_id,
            profile=BusinessProfile.from_record(config.get("business")),
            contact=ContactInfo.from_record(config.get("contact")),
            initial_message=_clean(config_record.get("initial_message")) or DEFAULT_INITIAL_MESSAGE,
            system_message=_clean(config_record.get("system_message")),
            knowledge_base=entries,
        )

    def categories(self) -> List[str]:
        seen: List[str] = []
        for entry in self.knowledge_base:
            if entry.category not in seen:
                seen.append(entry.category)
        return seen

    def to_public_dict(self) -> Dict[str, Any]:
        return {
            "business_id": self.business_id,
            "business": {
                "name": self.profile.name,
                "logo": self.profile.logo,
                "type": self.profile.type,
                "specialization": self.profile.specialization,
            },
            "contact": {
                "phone": self.contact.phone,
                "email": self.contact.email,
                "address": self.contact.address,
                "hours": self.contact.hours,
                "website": self.contact.website,
            },
            "knowledge_base_count": len(self.knowledge_base),
            "categories": self.categories(),
        }
