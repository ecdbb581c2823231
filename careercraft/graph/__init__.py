"""LangGraph supervisor graph, nodes and conversation state."""
