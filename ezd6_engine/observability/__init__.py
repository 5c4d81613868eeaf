"""
Observability for the EZD6 engine.

Logs dice rolls, pool evaluations and resource changes for inspection and
export.
"""

from ezd6_engine.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    RollEvent,
    EvaluationEvent,
    ResourceChangeEvent,
    ResourceChangeRow,
    merge_resource_changes,
    get_run_log,
    reset_run_log,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "RollEvent",
    "EvaluationEvent",
    "ResourceChangeEvent",
    "ResourceChangeRow",
    "merge_resource_changes",
    "get_run_log",
    "reset_run_log",
]
