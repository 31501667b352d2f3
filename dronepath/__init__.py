"""Path planning costs, local avoidance helpers and a landing grid for multicopters."""

__version__ = "0.1.0"

__all__ = [
    "cell",
    "node",
    "grid",
    "planner",
    "planner_node",
    "local_planner",
    "mock_data",
]