"""Factory for assembling the execute/reflect LangGraph state machine."""

from __future__ import annotations

from typing import Optional

from langgraph.graph import END, START, StateGraph

from taskpilot.graph.nodes import StepScheduler, build_execute_node, build_reflect_node
from taskpilot.graph.nodes.executor import EmitFn
from taskpilot.graph.routing import reflection_route
from taskpilot.graph.state import OrchestrationState
from taskpilot.llm.provider import CompletionConfig, CompletionProvider


def recursion_limit_for(max_iterations: int) -> int:
    """Two node visits per iteration plus headroom."""
    return 2 * max_iterations + 5


def build_orchestration_graph(
    *,
    scheduler: StepScheduler,
    provider: CompletionProvider,
    config: CompletionConfig,
    emit: Optional[EmitFn] = None,
):
    """Compose the loop graph.

        START → execute → reflect ─end──→ END
                   ↑         │
                   └continue─┘
    """
    graph = StateGraph(OrchestrationState)

    graph.add_node("execute", build_execute_node(scheduler, emit))
    graph.add_node("reflect", build_reflect_node(provider, config, emit))

    graph.add_edge(START, "execute")
    graph.add_edge("execute", "reflect")
    graph.add_conditional_edges(
        "reflect",
        reflection_route,
        {
            "continue": "execute",
            "end": END,
        },
    )

    return graph.compile()
