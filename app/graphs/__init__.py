"""Agent state machine built on LangGraph."""
