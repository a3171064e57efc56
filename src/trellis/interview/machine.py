"""
Interview state machine.

The interview is driven one answer at a time: ``prompt`` says what is being
asked, ``answer`` validates and applies a single line and moves to the next
state. Nothing is read ahead, so a rejected or disambiguated answer can
never push later answers out of step.

States::

    ASKING_CONCEPTS -> ASKING_FIELDS <-> ASKING_FIELD_TYPE -> ASKING_METHODS -> ASKING_CONCEPTS
    ASKING_ORCHESTRATORS -> ASKING_PARAMS <-> ASKING_PARAM_TYPE
        -> ASKING_ROUTE_METHOD -> ASKING_ROUTE_PATH -> ASKING_ORCHESTRATORS
    ASKING_PROJECTIONS -> ASKING_QUERY <-> ASKING_QUERY_TYPE
        -> ASKING_RESULT <-> ASKING_RESULT_TYPE -> ASKING_VIEW_ROUTE -> ASKING_PROJECTIONS
    -> DONE

Any entity prompt may detour through CONFIRMING_DUPLICATE when the new name
is close to one already collected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum

from ..core.errors import InputError
from ..core.flags import graph_to_args
from ..core.ir import DesiredGraph, FieldType, GraphBuilder, HttpMethod, name_key
from ..core.similarity import find_similar
from ..core.strings import symbolify

logger = logging.getLogger(__name__)

DONE = "done"
SKIP = "skip"
YES = ("yes", "y")
NO = ("no", "n", DONE)
ROUTE_METHODS = (HttpMethod.POST, HttpMethod.PUT, HttpMethod.DELETE)
TYPE_CHOICES = "string/int/bool/float/time/custom"


class InterviewState(StrEnum):
    ASKING_CONCEPTS = "asking_concepts"
    ASKING_FIELDS = "asking_fields"
    ASKING_FIELD_TYPE = "asking_field_type"
    ASKING_METHODS = "asking_methods"
    ASKING_ORCHESTRATORS = "asking_orchestrators"
    ASKING_PARAMS = "asking_params"
    ASKING_PARAM_TYPE = "asking_param_type"
    ASKING_ROUTE_METHOD = "asking_route_method"
    ASKING_ROUTE_PATH = "asking_route_path"
    ASKING_PROJECTIONS = "asking_projections"
    ASKING_QUERY = "asking_query"
    ASKING_QUERY_TYPE = "asking_query_type"
    ASKING_RESULT = "asking_result"
    ASKING_RESULT_TYPE = "asking_result_type"
    ASKING_VIEW_ROUTE = "asking_view_route"
    CONFIRMING_DUPLICATE = "confirming_duplicate"
    DONE = "done"


@dataclass(frozen=True)
class _EntityKind:
    """How one entity kind is asked for and where its sub-loop starts."""

    label: str
    phrase: bool
    next_state: InterviewState
    after_state: InterviewState


_KINDS: dict[str, _EntityKind] = {
    "concept": _EntityKind(
        "Concept", False, InterviewState.ASKING_FIELDS, InterviewState.ASKING_ORCHESTRATORS
    ),
    "orchestrator": _EntityKind(
        "Orchestrator", True, InterviewState.ASKING_PARAMS, InterviewState.ASKING_PROJECTIONS
    ),
    "projection": _EntityKind(
        "Projection", True, InterviewState.ASKING_QUERY, InterviewState.DONE
    ),
}

_ENTITY_STATES: dict[InterviewState, str] = {
    InterviewState.ASKING_CONCEPTS: "concept",
    InterviewState.ASKING_ORCHESTRATORS: "orchestrator",
    InterviewState.ASKING_PROJECTIONS: "projection",
}

# member name state -> (type state, member label, state after 'done')
_MEMBER_STATES: dict[InterviewState, tuple[InterviewState, str, InterviewState]] = {
    InterviewState.ASKING_FIELDS: (
        InterviewState.ASKING_FIELD_TYPE, "Field", InterviewState.ASKING_METHODS
    ),
    InterviewState.ASKING_PARAMS: (
        InterviewState.ASKING_PARAM_TYPE, "Param", InterviewState.ASKING_ROUTE_METHOD
    ),
    InterviewState.ASKING_QUERY: (
        InterviewState.ASKING_QUERY_TYPE, "Query field", InterviewState.ASKING_RESULT
    ),
    InterviewState.ASKING_RESULT: (
        InterviewState.ASKING_RESULT_TYPE, "Result field", InterviewState.ASKING_VIEW_ROUTE
    ),
}

_TYPE_STATES: dict[InterviewState, InterviewState] = {
    type_state: name_state for name_state, (type_state, _, _) in _MEMBER_STATES.items()
}


@dataclass
class _Pending:
    """A new entity name waiting on duplicate confirmation."""

    kind: str
    name: str
    candidates: list[str] = field(default_factory=list)


class Interview:
    """
    Turn-based elicitation of a desired graph.

    Example:
        interview = Interview(threshold=0.8)
        while not interview.is_done:
            print(interview.prompt)
            for message in interview.answer(input()):
                print(message)
        graph = interview.graph()
    """

    def __init__(self, threshold: float = 0.8):
        self.threshold = threshold
        self.state = InterviewState.ASKING_CONCEPTS
        self.builder = GraphBuilder()
        self._current: str | None = None
        self._current_kind: str | None = None
        self._pending_member: str | None = None
        self._pending: _Pending | None = None
        self._route_method: HttpMethod | None = None
        self._routed: set[str] = set()

    @property
    def is_done(self) -> bool:
        return self.state is InterviewState.DONE

    # -- prompts ----------------------------------------------------------------

    @property
    def prompt(self) -> str:
        s = self.state
        if s is InterviewState.ASKING_CONCEPTS:
            return "Concept name (one word, or 'done'):"
        if s is InterviewState.ASKING_ORCHESTRATORS:
            return "Orchestrator (short phrase, or 'done'):"
        if s is InterviewState.ASKING_PROJECTIONS:
            return "Projection (short phrase, or 'done'):"
        if s is InterviewState.CONFIRMING_DUPLICATE:
            pending = self._pending
            return f"Is {pending.name} the same as {pending.candidates[0]}? (yes/no):"
        if s in _MEMBER_STATES:
            label = _MEMBER_STATES[s][1]
            return f"{label} name for {self._current} (one word, or 'done'):"
        if s in _TYPE_STATES:
            return f"Type for {self._pending_member} ({TYPE_CHOICES}) [string]:"
        if s is InterviewState.ASKING_METHODS:
            return f"Method name for {self._current} (one word, or 'done'):"
        if s is InterviewState.ASKING_ROUTE_METHOD:
            return f"Route method for {self._current} (POST/PUT/DELETE, or 'skip'):"
        if s is InterviewState.ASKING_ROUTE_PATH:
            return f"Route path for {self._route_method.value} {self._current} (e.g. /orders, empty to skip):"
        if s is InterviewState.ASKING_VIEW_ROUTE:
            return f"GET path for {self._current} (e.g. /orders/summary, empty to skip):"
        return ""

    # -- transitions --------------------------------------------------------------

    def answer(self, text: str) -> list[str]:
        """
        Apply one answer.

        Returns:
            Messages for the user (validation feedback, confirmations)
        """
        text = text.strip()
        s = self.state
        if s in _ENTITY_STATES:
            return self._answer_entity(_ENTITY_STATES[s], text)
        if s is InterviewState.CONFIRMING_DUPLICATE:
            return self._answer_duplicate(text)
        if s in _MEMBER_STATES:
            return self._answer_member_name(text)
        if s in _TYPE_STATES:
            return self._answer_member_type(text)
        if s is InterviewState.ASKING_METHODS:
            return self._answer_method(text)
        if s is InterviewState.ASKING_ROUTE_METHOD:
            return self._answer_route_method(text)
        if s is InterviewState.ASKING_ROUTE_PATH:
            return self._answer_route_path(text)
        if s is InterviewState.ASKING_VIEW_ROUTE:
            return self._answer_view_route(text)
        return []

    def finish(self) -> None:
        """End the interview early (end of input); keeps everything collected."""
        if self._pending is not None:
            logger.debug("Dropping unconfirmed %s %s", self._pending.kind, self._pending.name)
        self._pending = None
        self.state = InterviewState.DONE

    def graph(self) -> DesiredGraph:
        return self.builder.build()

    def scaffold_args(self) -> list[str]:
        return graph_to_args(self.graph())

    # -- entity names -------------------------------------------------------------

    def _answer_entity(self, kind: str, text: str) -> list[str]:
        spec = _KINDS[kind]
        if text.lower() == DONE:
            self.state = spec.after_state
            return []
        if not text:
            if spec.phrase:
                return ["Please provide a short phrase or 'done'."]
            return ["Please provide a name or 'done'."]
        if not spec.phrase and len(text.split()) > 1:
            return ["One word only."]

        symbol = symbolify(text)
        existing = self._names(kind)
        for name in existing:
            if name_key(name) == name_key(symbol):
                self._enter(kind, name)
                return [f"Continuing with existing {kind} {name}."]

        candidates = [name for name, _ in find_similar(symbol, existing, self.threshold)]
        if candidates:
            self._pending = _Pending(kind=kind, name=symbol, candidates=candidates)
            self.state = InterviewState.CONFIRMING_DUPLICATE
            return []
        return self._create(kind, text)

    def _answer_duplicate(self, text: str) -> list[str]:
        pending = self._pending
        answer = text.lower()
        if answer in YES:
            existing = pending.candidates[0]
            self._pending = None
            self._enter(pending.kind, existing)
            return [f"Using existing {pending.kind} {existing}."]
        if answer in NO:
            pending.candidates.pop(0)
            if pending.candidates:
                return []
            self._pending = None
            return self._create(pending.kind, pending.name)
        return ["Please answer 'yes' or 'no'."]

    def _create(self, kind: str, text: str) -> list[str]:
        add = {
            "concept": self.builder.add_concept,
            "orchestrator": self.builder.add_orchestrator,
            "projection": self.builder.add_projection,
        }[kind]
        try:
            name = add(text)
        except InputError as e:
            self.state = next(s for s, k in _ENTITY_STATES.items() if k == kind)
            return [e.message]
        self._enter(kind, name)
        return []

    def _enter(self, kind: str, name: str) -> None:
        self._current = name
        self._current_kind = kind
        self.state = _KINDS[kind].next_state

    def _names(self, kind: str) -> list[str]:
        return {
            "concept": self.builder.concept_names,
            "orchestrator": self.builder.orchestrator_names,
            "projection": self.builder.projection_names,
        }[kind]()

    # -- members ------------------------------------------------------------------

    def _answer_member_name(self, text: str) -> list[str]:
        type_state, _, after = _MEMBER_STATES[self.state]
        if text.lower() == DONE:
            self._leave_members(after)
            return []
        if not text:
            return ["Please provide a name or 'done'."]
        if len(text.split()) > 1:
            return ["One word only."]
        self._pending_member = text
        self.state = type_state
        return []

    def _answer_member_type(self, text: str) -> list[str]:
        name_state = _TYPE_STATES[self.state]
        if text.lower() == DONE:
            # Drop the half-entered member and leave its loop
            self._pending_member = None
            self._leave_members(_MEMBER_STATES[name_state][2])
            return []
        try:
            type_ = FieldType.parse(text or "string")
        except InputError as e:
            return [e.message]

        add = {
            InterviewState.ASKING_FIELDS: self.builder.add_field,
            InterviewState.ASKING_PARAMS: self.builder.add_param,
            InterviewState.ASKING_QUERY: self.builder.add_query,
            InterviewState.ASKING_RESULT: self.builder.add_result,
        }[name_state]
        member, self._pending_member = self._pending_member, None
        self.state = name_state
        try:
            added = add(self._current, member, type_)
        except InputError as e:
            return [e.message]
        if not added:
            return [f"{self._current} already has {symbolify(member)}."]
        return []

    def _leave_members(self, after: InterviewState) -> None:
        # An entity keeps its first route; re-entered entities skip the route prompt
        if after in (InterviewState.ASKING_ROUTE_METHOD, InterviewState.ASKING_VIEW_ROUTE):
            if name_key(self._current) in self._routed:
                after = next(s for s, k in _ENTITY_STATES.items() if k == self._current_kind)
        self.state = after

    def _answer_method(self, text: str) -> list[str]:
        if text.lower() == DONE:
            self.state = InterviewState.ASKING_CONCEPTS
            return []
        if not text:
            return ["Please provide a name or 'done'."]
        if len(text.split()) > 1:
            return ["One word only."]
        try:
            added = self.builder.add_method(self._current, text)
        except InputError as e:
            return [e.message]
        if not added:
            return [f"{self._current} already has {symbolify(text)}."]
        return []

    # -- routes -------------------------------------------------------------------

    def _answer_route_method(self, text: str) -> list[str]:
        answer = text.upper()
        if not text or answer in (SKIP.upper(), DONE.upper()):
            self.state = InterviewState.ASKING_ORCHESTRATORS
            return []
        if answer not in {m.value for m in ROUTE_METHODS}:
            return ["Please answer POST, PUT, DELETE or 'skip'."]
        self._route_method = HttpMethod(answer)
        self.state = InterviewState.ASKING_ROUTE_PATH
        return []

    def _answer_route_path(self, text: str) -> list[str]:
        if not text or text.lower() in (SKIP, DONE):
            self.state = InterviewState.ASKING_ORCHESTRATORS
            return []
        try:
            self._bind(self._route_method, text)
        except InputError as e:
            return [e.message]
        self.state = InterviewState.ASKING_ORCHESTRATORS
        return []

    def _answer_view_route(self, text: str) -> list[str]:
        if not text or text.lower() in (SKIP, DONE):
            self.state = InterviewState.ASKING_PROJECTIONS
            return []
        try:
            self._bind(HttpMethod.GET, text)
        except InputError as e:
            return [e.message]
        self.state = InterviewState.ASKING_PROJECTIONS
        return []

    def _bind(self, method: HttpMethod, path: str) -> None:
        self.builder.add_route(method, path, self._current)
        self._routed.add(name_key(self._current))
