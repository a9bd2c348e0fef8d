"""
Prompt construction for lookups and follow-up chat.

All prompts are conditioned on the selected display language.
"""

from urllib.parse import quote

from medilex.config import settings
from medilex.models.schemas import Language


CHAT_READY_ACKNOWLEDGEMENT = "Understood. I am ready to answer questions about this medical term."


def lookup_language_instruction(language: Language) -> str:
    if language is Language.ARABIC:
        return "Respond in Arabic. Ensure medical terms are also provided in English in parentheses."
    return "Respond in English."


def chat_language_instruction(language: Language) -> str:
    if language is Language.ARABIC:
        return "Answer in Arabic."
    return "Answer in English."


def build_lookup_prompt(term: str, language: Language) -> str:
    """Build the text prompt requesting a strict JSON explanation of a term."""
    return f"""You are an expert medical tutor. The user wants to understand the medical term: "{term}".

{lookup_language_instruction(language)}

Task:
1. Provide a simple but scientifically accurate explanation.
2. Provide 3-5 basic key points about this condition/term.
3. List 2-3 reliable scientific sources (e.g., Mayo Clinic, NIH, WHO) where this information can be verified.

Output Format:
Provide ONLY valid JSON in the following format, with no extra text or markdown formatting:
{{
  "definition": "The simple explanation...",
  "keyPoints": ["Point 1", "Point 2"],
  "sources": ["Source Name 1", "Source Name 2"]
}}"""


def build_image_prompt(term: str) -> str:
    return (
        f"Create a clear, professional medical illustration of: {term}. "
        "Reliable, anatomical style, white background, educational diagram, high quality."
    )


def build_chat_system_instruction(term: str, language: Language) -> str:
    """System instruction for follow-up questions about a term."""
    return f"""You are a helpful medical assistant. The user is asking about the term: "{term}".
Use your knowledge to answer follow-up questions simply and accurately based on reliable medical science.
{chat_language_instruction(language)}
Keep answers concise (under 3 paragraphs)."""


def build_context_turn(term: str, definition: str) -> str:
    return f"Context: Definition of {term}: {definition}"


def placeholder_image_url(term: str) -> str:
    """Deterministic placeholder image URL for a term."""
    return settings.placeholder_image_url.format(term=quote(term, safe=""))
