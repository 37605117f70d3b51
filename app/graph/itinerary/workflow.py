"""일정 생성 그래프 워크플로우 구성."""

from langgraph.graph import END, StateGraph

from app.graph.itinerary.nodes import generate_chunk, merge_itinerary, plan_windows, route_after_chunk
from app.graph.itinerary.state import ItineraryState


def _create_itinerary_workflow() -> StateGraph:
    """일정 생성 그래프 워크플로우를 생성합니다."""
    workflow = StateGraph(ItineraryState)

    workflow.add_node("plan_windows", plan_windows)
    workflow.add_node("generate_chunk", generate_chunk)
    workflow.add_node("merge_itinerary", merge_itinerary)

    workflow.set_entry_point("plan_windows")
    workflow.add_edge("plan_windows", "generate_chunk")
    workflow.add_conditional_edges("generate_chunk", route_after_chunk, ["generate_chunk", "merge_itinerary"])
    workflow.add_edge("merge_itinerary", END)

    return workflow


compiled_itinerary_graph = _create_itinerary_workflow().compile()
