from .chat_logs import ChatLogStore, ChatMessage, ChatLogSummary

__all__ = ["ChatLogStore", "ChatMessage", "ChatLogSummary"]
