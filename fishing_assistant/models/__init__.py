from fishing_assistant.models.assistant import AssistantSettings, KnowledgeDocument
from fishing_assistant.models.conversation import Conversation, Message

__all__ = ["AssistantSettings", "Conversation", "KnowledgeDocument", "Message"]
