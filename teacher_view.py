"""
Teacher management view state.

The page is modelled as an immutable ``ViewState`` plus a pure reducer,
``reduce(state, event) -> state``. The filtered table, the subject filter
options and the submit-enabled flag are derived from the state on demand and
never stored.

Modes:
    None    browsing the table
    "add"   modal open with an empty draft
    "edit"  modal open with a draft copied from an existing teacher
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Tuple

from subject_spec import normalize_subjects, primary_subject

ADD = "add"
EDIT = "edit"

DRAFT_FIELDS = ("name", "email", "username", "password", "phone", "employee_id")
# fields the edit form does not show: username is fixed, password blank means unchanged
EDIT_LOCKED_FIELDS = ("username", "password")

MSG_NO_SUBJECTS = "Please select at least one subject for the teacher."
MSG_CREATED = "Teacher created successfully!"
MSG_UPDATED = "Teacher updated successfully!"
MSG_SAVE_FAILED = "Error saving teacher. Please try again."
MSG_DELETE_FAILED = "Error deleting teacher."


@dataclass(frozen=True)
class TeacherRecord:
    id: Optional[int]
    name: str
    email: str
    username: str
    phone: str = ""
    employee_id: str = ""
    subjects: Tuple[str, ...] = ()

    @property
    def subject(self) -> str:
        return primary_subject(self.subjects)

    @classmethod
    def from_api(cls, data: Dict) -> "TeacherRecord":
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            email=data.get("email") or "",
            username=data.get("username") or "",
            phone=data.get("phone") or "",
            employee_id=data.get("employee_id") or "",
            subjects=tuple(normalize_subjects(data)),
        )


@dataclass(frozen=True)
class Draft:
    name: str = ""
    email: str = ""
    username: str = ""
    password: str = ""
    phone: str = ""
    employee_id: str = ""
    subject: str = ""
    subjects: Tuple[str, ...] = ()

    @classmethod
    def from_teacher(cls, t: TeacherRecord) -> "Draft":
        return cls(
            name=t.name,
            email=t.email,
            username=t.username,
            password="",
            phone=t.phone,
            employee_id=t.employee_id,
            subject=t.subject,
            subjects=t.subjects,
        )


EMPTY_DRAFT = Draft()


@dataclass(frozen=True)
class ViewState:
    teachers: Tuple[TeacherRecord, ...] = ()
    available_subjects: Tuple[str, ...] = ()
    search_query: str = ""
    selected_subject: str = ""
    mode: Optional[str] = None
    editing_id: Optional[int] = None
    draft: Draft = EMPTY_DRAFT
    submitting: bool = False
    notice: Optional[str] = None
    teachers_generation: int = 0
    subjects_generation: int = 0

    @property
    def form_open(self) -> bool:
        return self.mode is not None

    @property
    def filtered_teachers(self) -> List[TeacherRecord]:
        return filter_teachers(self.teachers, self.search_query, self.selected_subject)

    @property
    def subject_options(self) -> List[str]:
        return subject_options(self.teachers)

    @property
    def can_submit(self) -> bool:
        return can_submit(self)

    @property
    def subjects_loading(self) -> bool:
        return not self.available_subjects


# Events
@dataclass(frozen=True)
class TeachersRequested:
    pass


@dataclass(frozen=True)
class TeachersLoaded:
    generation: int
    teachers: Tuple[Dict, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SubjectsRequested:
    pass


@dataclass(frozen=True)
class SubjectsLoaded:
    generation: int
    subjects: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SearchChanged:
    query: str


@dataclass(frozen=True)
class SubjectFilterChanged:
    subject: str


@dataclass(frozen=True)
class AddClicked:
    pass


@dataclass(frozen=True)
class EditClicked:
    teacher: TeacherRecord


@dataclass(frozen=True)
class CancelClicked:
    pass


@dataclass(frozen=True)
class FieldChanged:
    name: str
    value: str


@dataclass(frozen=True)
class SubjectToggled:
    subject: str
    checked: bool


@dataclass(frozen=True)
class SubmitRequested:
    pass


@dataclass(frozen=True)
class SubmitSucceeded:
    pass


@dataclass(frozen=True)
class SubmitFailed:
    pass


@dataclass(frozen=True)
class DeleteFailed:
    pass


@dataclass(frozen=True)
class NoticeDismissed:
    pass


# Derived views
def filter_teachers(teachers: Iterable[TeacherRecord], query: str, subject: str) -> List[TeacherRecord]:
    result = list(teachers)
    if query:
        needle = query.lower()
        result = [t for t in result if needle in t.name.lower()]
    if subject:
        wanted = subject.lower()
        result = [t for t in result if any(s.lower() == wanted for s in t.subjects)]
    return result


def subject_options(teachers: Iterable[TeacherRecord]) -> List[str]:
    seen: List[str] = []
    for t in teachers:
        for s in t.subjects:
            if s not in seen:
                seen.append(s)
    return seen


def can_submit(state: ViewState) -> bool:
    return len(state.draft.subjects) > 0


def toggle_subject(draft: Draft, subject: str, checked: bool) -> Draft:
    if checked:
        subjects = draft.subjects if subject in draft.subjects else draft.subjects + (subject,)
    else:
        subjects = tuple(s for s in draft.subjects if s != subject)
    return replace(draft, subjects=subjects, subject=primary_subject(subjects))


def missing_fields(draft: Draft, mode: Optional[str]) -> List[str]:
    required = ["name", "email"]
    if mode == ADD:
        required += ["username", "password"]
    required += ["employee_id", "phone"]
    return [f for f in required if not getattr(draft, f).strip()]


def selected_summary(draft: Draft) -> str:
    if not draft.subjects:
        return "Please select at least one subject"
    return f"Selected ({len(draft.subjects)}): {', '.join(draft.subjects)}"


def submission_payload(state: ViewState) -> Dict:
    d = state.draft
    payload = {
        "name": d.name,
        "email": d.email,
        "username": d.username,
        "password": d.password,
        "phone": d.phone,
        "employee_id": d.employee_id,
        "subject": d.subject,
        "subjects": list(d.subjects),
    }
    if state.mode == EDIT:
        for key in EDIT_LOCKED_FIELDS:
            payload.pop(key)
    return payload


def _close_form(state: ViewState, notice: Optional[str] = None) -> ViewState:
    return replace(state, mode=None, editing_id=None, draft=EMPTY_DRAFT, submitting=False, notice=notice)


def reduce(state: ViewState, event) -> ViewState:
    if isinstance(event, TeachersRequested):
        return replace(state, teachers_generation=state.teachers_generation + 1)

    if isinstance(event, TeachersLoaded):
        if event.generation != state.teachers_generation:
            return state  # a newer request is in flight
        return replace(state, teachers=tuple(TeacherRecord.from_api(t) for t in event.teachers))

    if isinstance(event, SubjectsRequested):
        return replace(state, subjects_generation=state.subjects_generation + 1)

    if isinstance(event, SubjectsLoaded):
        if event.generation != state.subjects_generation:
            return state
        return replace(state, available_subjects=tuple(event.subjects))

    if isinstance(event, SearchChanged):
        return replace(state, search_query=event.query)

    if isinstance(event, SubjectFilterChanged):
        return replace(state, selected_subject=event.subject)

    if isinstance(event, AddClicked):
        return replace(state, mode=ADD, editing_id=None, draft=EMPTY_DRAFT, submitting=False)

    if isinstance(event, EditClicked):
        return replace(
            state,
            mode=EDIT,
            editing_id=event.teacher.id,
            draft=Draft.from_teacher(event.teacher),
            submitting=False,
        )

    if isinstance(event, CancelClicked):
        return _close_form(state)

    if isinstance(event, FieldChanged):
        if event.name not in DRAFT_FIELDS:
            raise ValueError(f"unknown draft field: {event.name}")
        if state.mode == EDIT and event.name in EDIT_LOCKED_FIELDS:
            return state
        return replace(state, draft=replace(state.draft, **{event.name: event.value}))

    if isinstance(event, SubjectToggled):
        return replace(state, draft=toggle_subject(state.draft, event.subject, event.checked))

    if isinstance(event, SubmitRequested):
        if not state.form_open or state.submitting:
            return state
        if not can_submit(state):
            return replace(state, notice=MSG_NO_SUBJECTS)
        missing = missing_fields(state.draft, state.mode)
        if missing:
            return replace(state, notice=f"Please fill in: {', '.join(missing)}")
        return replace(state, submitting=True)

    if isinstance(event, SubmitSucceeded):
        return _close_form(state, MSG_UPDATED if state.mode == EDIT else MSG_CREATED)

    if isinstance(event, SubmitFailed):
        return replace(state, submitting=False, notice=MSG_SAVE_FAILED)

    if isinstance(event, DeleteFailed):
        return replace(state, notice=MSG_DELETE_FAILED)

    if isinstance(event, NoticeDismissed):
        return replace(state, notice=None)

    raise TypeError(f"unhandled event: {event!r}")
