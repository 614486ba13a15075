"""
Teacher management page controller.

Owns the current ``ViewState`` and runs the side effects the reducer does not:
API calls, list refetches and user alerts.
"""
import logging
from typing import Callable, Optional

from api_client import ApiError, SchoolApiClient
from teacher_view import (
    EDIT,
    AddClicked,
    CancelClicked,
    DeleteFailed,
    EditClicked,
    FieldChanged,
    NoticeDismissed,
    SearchChanged,
    SubjectFilterChanged,
    SubjectsLoaded,
    SubjectsRequested,
    SubjectToggled,
    SubmitFailed,
    SubmitRequested,
    SubmitSucceeded,
    TeacherRecord,
    TeachersLoaded,
    TeachersRequested,
    ViewState,
    reduce,
    submission_payload,
)

logger = logging.getLogger(__name__)


class TeacherPage:
    def __init__(self, client: SchoolApiClient, alert: Optional[Callable[[str], None]] = None):
        self.client = client
        self.alert = alert or (lambda message: logger.info("alert: %s", message))
        self.state = ViewState()

    def dispatch(self, event) -> ViewState:
        self.state = reduce(self.state, event)
        if self.state.notice:
            # alerts block until acknowledged
            self.alert(self.state.notice)
            self.state = reduce(self.state, NoticeDismissed())
        return self.state

    def mount(self) -> None:
        self.refresh_teachers()
        self.refresh_subjects()

    def refresh_teachers(self) -> None:
        generation = self.dispatch(TeachersRequested()).teachers_generation
        try:
            data = self.client.list_teachers()
        except ApiError as exc:
            logger.error("Error fetching teachers: %s", exc)
            return
        self.dispatch(TeachersLoaded(generation, tuple(data or ())))

    def refresh_subjects(self) -> None:
        generation = self.dispatch(SubjectsRequested()).subjects_generation
        try:
            data = self.client.available_subjects()
        except ApiError as exc:
            logger.error("Error fetching subjects: %s", exc)
            return
        self.dispatch(SubjectsLoaded(generation, tuple(data or ())))

    def search(self, query: str) -> None:
        self.dispatch(SearchChanged(query))

    def filter_by_subject(self, subject: str) -> None:
        self.dispatch(SubjectFilterChanged(subject))

    def add(self) -> None:
        self.dispatch(AddClicked())

    def edit(self, teacher: TeacherRecord) -> None:
        self.dispatch(EditClicked(teacher))

    def cancel(self) -> None:
        self.dispatch(CancelClicked())

    def set_field(self, name: str, value: str) -> None:
        self.dispatch(FieldChanged(name, value))

    def toggle_subject(self, subject: str, checked: bool) -> None:
        self.dispatch(SubjectToggled(subject, checked))

    def submit(self) -> bool:
        """Send the draft; True once the API accepted it and the list was refetched."""
        if self.state.submitting:
            return False
        if not self.dispatch(SubmitRequested()).submitting:
            return False
        payload = submission_payload(self.state)
        saved = False
        try:
            if self.state.mode == EDIT:
                self.client.update_teacher(self.state.editing_id, payload)
            else:
                self.client.create_teacher(payload)
            saved = True
            self.refresh_teachers()
        except ApiError as exc:
            logger.error("Error saving teacher: %s", exc)
        finally:
            # submitting never outlives the request, whatever escaped above
            self.dispatch(SubmitSucceeded() if saved else SubmitFailed())
        return saved

    def delete(self, teacher_id: int) -> None:
        try:
            self.client.delete_teacher(teacher_id)
        except ApiError as exc:
            logger.error("Error deleting teacher %s: %s", teacher_id, exc)
            self.dispatch(DeleteFailed())
            return
        self.refresh_teachers()
