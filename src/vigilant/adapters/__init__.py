"""Adapters connecting the agent to HTTP, the process streams and stdlib logging."""
