"""
=====================================================
AI Receptionist - Response Composer
=====================================================

Builds the reply for a classified turn:
1. Templated answer from business facts when the channel has a
   template for the intent (never calls the LLM)
2. AI-generated answer otherwise, with the business facts embedded
   in the system instruction

A failed completion is replaced by a fixed apology in the caller's
language.
"""

from typing import Dict, Mapping, Optional

from loguru import logger

from services.intent.intent_classifier import Intent
from services.knowledge.business_profile import BusinessProfile
from services.language.language_detector import Language
from services.llm.llm_base import LLMRequest, LLMServiceBase


TemplateTable = Mapping[Intent, Mapping[Language, str]]

# Used when a profile field is blank
FALLBACKS: Dict[Language, Dict[str, str]] = {
    Language.ENGLISH: {
        "hours": "7 AM to 6 PM",
        "meals": "All meals are prepared fresh daily.",
        "programs": "We focus on play-based learning and early literacy.",
        "tour_link": "our tour page online",
        "fees": "Please ask us for our current fee sheet.",
    },
    Language.FRENCH: {
        "hours": "de 7 h à 18 h",
        "meals": "Tous les repas sont préparés frais chaque jour.",
        "programs": "Nous misons sur l'apprentissage par le jeu et l'éveil à la lecture.",
        "tour_link": "notre page de visites en ligne",
        "fees": "Demandez-nous notre grille tarifaire à jour.",
    },
}

# Chat channel answers
MESSAGE_TEMPLATES: TemplateTable = {
    Intent.FEES: {
        Language.ENGLISH: "At {name}, our fees depend on your child's age and program. {fees}",
        Language.FRENCH: "Chez {name}, nos frais dépendent de l'âge de votre enfant et du programme. {fees}",
    },
    Intent.HOURS: {
        Language.ENGLISH: "{name} is open {hours}.",
        Language.FRENCH: "{name} est ouvert aux heures suivantes : {hours}.",
    },
    Intent.MEALS: {
        Language.ENGLISH: "{name} provides healthy meals and snacks throughout the day. {meals}",
        Language.FRENCH: "{name} offre des repas et des collations santé tout au long de la journée. {meals}",
    },
    Intent.PROGRAMS: {
        Language.ENGLISH: "{name} offers several programs for different age groups. {programs}",
        Language.FRENCH: "{name} propose plusieurs programmes selon l'âge. {programs}",
    },
    Intent.TOUR: {
        Language.ENGLISH: "You can book a tour of {name} at {tour_link}",
        Language.FRENCH: "Vous pouvez réserver une visite de {name} ici : {tour_link}",
    },
    Intent.OPENINGS: {
        Language.ENGLISH: "We currently have limited openings. May I know your child's age so I can check availability?",
        Language.FRENCH: "Nous avons actuellement peu de places. Quel âge a votre enfant, pour que je vérifie les disponibilités ?",
    },
}

# Voice call answers (short, spoken)
CALL_TEMPLATES: TemplateTable = {
    Intent.TOUR: {
        Language.ENGLISH: "Wonderful! I'll text you our tour booking link next.",
        Language.FRENCH: "Formidable ! Je vais vous envoyer le lien pour réserver une visite.",
    },
    Intent.FEES: {
        Language.ENGLISH: "Our fees depend on the program. {fees}",
        Language.FRENCH: "Nos frais dépendent du programme. {fees}",
    },
    Intent.HOURS: {
        Language.ENGLISH: "We're open {hours}.",
        Language.FRENCH: "Nous sommes ouverts {hours}.",
    },
}

APOLOGIES: Dict[Language, str] = {
    Language.ENGLISH: "Sorry, I'm having a technical issue. Please try again later.",
    Language.FRENCH: "Désolée, j'ai un souci technique. Pouvez-vous réessayer plus tard ?",
}


def _template_fields(profile: BusinessProfile, language: Language) -> Dict[str, str]:
    fallback = FALLBACKS[language]
    return {
        "name": profile.name,
        "hours": profile.hours or fallback["hours"],
        "meals": profile.meals or fallback["meals"],
        "programs": profile.programs_text() or fallback["programs"],
        "tour_link": profile.tour_link or fallback["tour_link"],
        "fees": profile.fees_text() or fallback["fees"],
    }


def build_system_instruction(profile: BusinessProfile, language: Language) -> str:
    """System prompt with the business facts and the behavioral rules"""
    return f"""You are a warm, motherly receptionist for {profile.name}. Reply in {language.value}.
Be concise and reassuring. Use the facts below when helpful.

Name: {profile.name}
Address: {profile.address}
Phone: {profile.phone}
Email: {profile.email}
Website: {profile.website}
Hours: {profile.hours}
Programs: {profile.programs_text()}
Meals: {profile.meals}
Fees: {profile.fees_text()}
About: {profile.about}
Safety: {profile.safety}

Rules:
- For tours: say "I'll text you our tour link next."
- For fees/hours/programs: answer clearly using the facts.
- If unrelated (medical/legal/personal): be kind and suggest speaking to the manager.
- Keep voice responses short (1-2 sentences).
"""


class ResponseComposer:
    """
    Templated + AI-fallback reply builder for one channel

    Args:
        llm: Text-completion service
        templates: Intent -> language -> format string
        temperature: Sampling temperature for the AI fallback
        max_tokens: Max output length for the AI fallback
    """

    def __init__(
        self,
        llm: LLMServiceBase,
        templates: TemplateTable = MESSAGE_TEMPLATES,
        temperature: float = 0.7,
        max_tokens: int = 120,
    ):
        self.llm = llm
        self.templates = templates
        self.temperature = temperature
        self.max_tokens = max_tokens

    def has_template(self, intent: Intent) -> bool:
        return intent in self.templates

    def compose(self, intent: Intent, language: Language, profile: BusinessProfile) -> Optional[str]:
        """
        Templated reply for an intent

        Returns:
            Reply text, or None when this channel has no template for the intent
        """
        by_language = self.templates.get(intent)
        if not by_language:
            return None
        template = by_language.get(language) or by_language[Language.ENGLISH]
        return template.format(**_template_fields(profile, language)).strip()

    async def compose_ai(self, text: str, language: Language, profile: BusinessProfile) -> str:
        """AI-generated reply; the apology sentence if the service fails"""
        request = LLMRequest.single_turn(
            system=build_system_instruction(profile, language),
            user=text,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        try:
            response = await self.llm.chat(request)
        except Exception as e:
            logger.error(f"Composer: AI reply failed, using apology: {e}")
            return APOLOGIES[language]

        reply = (response.content or "").strip()
        if not reply:
            logger.warning("Composer: AI returned an empty reply, using apology")
            return APOLOGIES[language]
        return reply

    async def reply(self, text: str, intent: Intent, language: Language, profile: BusinessProfile) -> str:
        """Template when available, AI fallback otherwise"""
        templated = self.compose(intent, language, profile)
        if templated is not None:
            logger.debug(f"Composer: Templated reply for '{intent.value}'")
            return templated
        return await self.compose_ai(text, language, profile)
