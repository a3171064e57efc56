"""Interactive elicitation of a desired graph."""

from .machine import Interview, InterviewState
from .session import INTERVIEW_SOURCE, run_interview, write_graph

__all__ = [
    "INTERVIEW_SOURCE",
    "Interview",
    "InterviewState",
    "run_interview",
    "write_graph",
]
