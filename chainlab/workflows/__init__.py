from .state import (
    RewriteState,
    VALID,
    INVALID,
    OTHER_SCENARIO_ANSWER,
    classify_decision,
    route_intent,
)
from .rewriter import (
    RewriterWorkflow,
    build_conditional_rewriter_graph,
    build_intent_rewriter_graph,
    create_rewriter_workflow,
)
from .demos import (
    build_simple_chain,
    build_simple_graph,
    build_any_input_graph,
    run_any_input_graph,
    build_state_graph,
    run_state_graph,
    build_role_play_chain,
    process_message_content,
    stream_characters,
)

__all__ = [
    "RewriteState",
    "VALID",
    "INVALID",
    "OTHER_SCENARIO_ANSWER",
    "classify_decision",
    "route_intent",
    "RewriterWorkflow",
    "build_conditional_rewriter_graph",
    "build_intent_rewriter_graph",
    "create_rewriter_workflow",
    "build_simple_chain",
    "build_simple_graph",
    "build_any_input_graph",
    "run_any_input_graph",
    "build_state_graph",
    "run_state_graph",
    "build_role_play_chain",
    "process_message_content",
    "stream_characters",
]
