"""Workflows: the chat pipeline, the stream multiplexer and the spells."""

from smail.workflows.chat import (
    ChatWorkflowContext,
    build_chat_workflow,
    extract_viewed_email,
    prepare_agent_context,
)
from smail.workflows.multiplexer import StreamMultiplexer, draft_action
from smail.workflows.pipeline import Step, Workflow, WorkflowError
from smail.workflows.spells import (
    CANNED_SPELLS,
    WORD_COUNT_BUCKETS,
    CannedSpell,
    Draft,
    EmailContext,
    WordCountBucket,
    WordRange,
    build_rewrite_prompt,
    rewrite_draft,
    run_canned_spell,
    select_bucket,
)

__all__ = [
    "CANNED_SPELLS",
    "CannedSpell",
    "ChatWorkflowContext",
    "Draft",
    "EmailContext",
    "Step",
    "StreamMultiplexer",
    "WORD_COUNT_BUCKETS",
    "WordCountBucket",
    "WordRange",
    "Workflow",
    "WorkflowError",
    "build_chat_workflow",
    "build_rewrite_prompt",
    "draft_action",
    "extract_viewed_email",
    "prepare_agent_context",
    "rewrite_draft",
    "run_canned_spell",
    "select_bucket",
]
