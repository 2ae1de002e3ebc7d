"""Agent definitions."""

from smail.agents.email_agent import (
    EMAIL_AGENT_INSTRUCTIONS,
    FINALIZE_TOOL,
    create_email_agent,
)
from smail.agents.rewrite_agent import (
    REWRITE_AGENT_INSTRUCTIONS,
    RewriteOutput,
    create_rewrite_agent,
)

__all__ = [
    "EMAIL_AGENT_INSTRUCTIONS",
    "FINALIZE_TOOL",
    "REWRITE_AGENT_INSTRUCTIONS",
    "RewriteOutput",
    "create_email_agent",
    "create_rewrite_agent",
]
