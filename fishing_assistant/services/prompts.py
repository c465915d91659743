"""System prompt assembly for the fishing assistant.

Everything here is plain string formatting. Missing settings fields fall back
to the defaults below, so a fresh install with no admin configuration still
produces a complete prompt.
"""

import json
from typing import Any, Iterable

from fishing_assistant.models.assistant import AssistantSettings, KnowledgeDocument
from fishing_assistant.models.conversation import Message

DEFAULT_INSTRUCTIONS = (
    "You are the Rippa Tackle AI Fishing Assistant. Your goal is to help anglers with advice on "
    "locations, species, methods, and recommend Rippa Tackle products where appropriate. ONLY answer "
    "questions about fishing venues that you have explicit knowledge about from your training data. "
    "NEVER make assumptions or guess about venues not in your knowledge base."
)
DEFAULT_CONTEXT = (
    "Focus on carp fishing in the UK, but you also have knowledge about other species like pike and "
    "other European fishing locations. Only provide information on venues and fishing techniques that "
    "are specifically in your knowledge files."
)
DEFAULT_LANGUAGE = "en-GB"
DEFAULT_PERSONALITY = "Knowledgeable, friendly, and slightly humorous"
DEFAULT_AVOID_TOPICS = "Politics, controversial subjects"
DEFAULT_GREETING = (
    "👋 Hello! I'm the Rippa Tackle fishing assistant. I can help with fishing advice, locations, "
    "gear, and techniques. What would you like to know about fishing today?"
)

FALLBACK_SENTENCE = (
    "Sorry, I don't have specific information about that in my knowledge base. "
    "Jacob & Henry are working hard to train me on more fishing situations!"
)
UNTRAINED_SENTENCE = (
    "Sorry, I can't answer as I'm not trained on that yet, but Jacob & Henry are working hard "
    "to train me on more fishing situations!"
)

SYSTEM_PROMPT_TEMPLATE = """# ROLE AND OBJECTIVE
You are the Rippa Tackle AI Fishing Assistant, helping anglers with advice on locations, techniques, and equipment. You ONLY provide accurate information from your reference materials and NEVER make up information.

# PRIMARY INSTRUCTIONS
{instructions}

# KNOWLEDGE CONSTRAINTS
- You have knowledge about various fishing venues, species, and techniques based on your reference materials
- If asked about a venue or technique not in your reference materials, politely say: "{fallback}"
- NEVER invent, assume, or guess details about venues or techniques not explicitly in your reference materials
- For any fishing topic (venue, species, tactic) not in your training, always include: "{untrained}"
- When providing advice, clearly distinguish between general fishing advice and venue-specific information

# CRITICAL BEHAVIOR REQUIREMENTS
- NEVER mention or reference "uploaded files" in your responses
- NEVER tell the user that they have "uploaded files" or that you can "see their files"
- NEVER suggest that the end user has directly provided you with documents
- Your knowledge comes from your training and reference materials, not from user uploads
- Simply answer questions directly without mentioning how you acquired your knowledge

# BUSINESS CONTEXT
{context}
{user_context}
# COMMUNICATION STYLE
- Use {language} for all responses
- Adopt a {personality} tone throughout the conversation
- Avoid discussing: {avoid_topics}

# CONVERSATION STRUCTURE
1. Your job is to help anglers improve their fishing experience with factual information
2. Provide specific, actionable advice based only on verified knowledge
3. When appropriate, suggest Rippa Tackle products that might help the angler
4. Be honest about knowledge limitations - if you don't know, say so clearly with the friendly message about Jacob & Henry
5. Keep responses concise but informative
6. Always maintain a professional and friendly tone

# YOUR KNOWLEDGE BASE
You have information on: {titles}

# REFERENCE MATERIALS (YOUR SOURCE OF TRUTH)
{references}"""


def _setting(settings: AssistantSettings | None, name: str, default: str) -> str:
    value = getattr(settings, name, None) if settings is not None else None
    return value or default


def build_user_context(user_context: dict[str, Any] | None) -> str:
    """Format the angler's saved preferences, or return "" when there are none."""
    if not user_context:
        return ""
    lines = ["# USER CONTEXT"]
    if user_context.get("location"):
        lines.append(f"- Location: {user_context['location']}")
    if user_context.get("species"):
        lines.append(f"- Target Species: {', '.join(user_context['species'])}")
    if user_context.get("methods"):
        lines.append(f"- Preferred Methods: {', '.join(user_context['methods'])}")
    if user_context.get("preferences"):
        lines.append(f"- Preferences: {json.dumps(user_context['preferences'])}")
    if len(lines) == 1:
        return ""
    return "\n".join(lines) + "\n"


def build_system_prompt(
    settings: AssistantSettings | None,
    documents: Iterable[KnowledgeDocument],
    user_context: dict[str, Any] | None = None,
) -> str:
    documents = list(documents)
    user_section = build_user_context(user_context)
    references = "\n\n".join(
        f"## {doc.title}\n{doc.description or 'No description provided'}" for doc in documents
    )
    prompt = SYSTEM_PROMPT_TEMPLATE.format(
        instructions=_setting(settings, "instructions", DEFAULT_INSTRUCTIONS),
        fallback=FALLBACK_SENTENCE,
        untrained=UNTRAINED_SENTENCE,
        context=_setting(settings, "context", DEFAULT_CONTEXT),
        user_context=f"\n{user_section}" if user_section else "",
        language=_setting(settings, "language", DEFAULT_LANGUAGE),
        personality=_setting(settings, "personality", DEFAULT_PERSONALITY),
        avoid_topics=_setting(settings, "avoid_topics", DEFAULT_AVOID_TOPICS),
        titles=", ".join(doc.title for doc in documents),
        references=references,
    )
    return prompt.strip()


def build_conversation_progress(messages: list[Message]) -> str:
    """Summarise where the conversation is so the model keeps continuity."""
    if not messages:
        return ""
    last_assistant = next((m for m in reversed(messages) if m.role == "assistant"), None)

    progress = "# CONVERSATION PROGRESS\n"
    if last_assistant:
        progress += f'- Your last message was: "{last_assistant.content}"\n'
    progress += f"- The conversation has had {len(messages)} messages so far.\n"
    progress += "- Continue the conversation naturally, focusing on providing helpful fishing advice.\n"
    return progress


def build_input(
    system_prompt: str, progress: str, history: list[Message], user_message: str
) -> list[dict[str, str]]:
    """Provider input list: system prompt, progress, prior turns, then the new message."""
    items = [{"role": "system", "content": system_prompt}]
    if progress:
        items.append({"role": "system", "content": progress})
    items.extend({"role": m.role, "content": m.content} for m in history)
    items.append({"role": "user", "content": user_message})
    return items
