"""Client-side sync agent for the chat room."""

from chatdash.client.agent import AgentConfig, AgentState, ChatSyncAgent

__all__ = ["AgentConfig", "AgentState", "ChatSyncAgent"]
