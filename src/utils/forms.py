from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

from backend.errors import ValidationError
from backend.storage import DOCUMENT_RULES, FileUpload, validate_upload
from utils.pure import validate_email, validate_phone_number

Step = Literal["personal", "resume", "questions", "review"]

STEPS: List[Step] = ["personal", "resume", "questions", "review"]

STEP_TITLES: Dict[Step, str] = {
    "personal": "Personal Information",
    "resume": "Resume/CV",
    "questions": "Additional Questions",
    "review": "Review & Submit",
}


@dataclass
class ApplicationDraft:
    """
    Input collected by the job application wizard.

    Holds the current step and the field errors of the last validation;
    the screens only render what is here.
    """

    job_title: str
    full_name: str = ""
    email: str = ""
    phone: str = ""
    linkedin: str = ""
    experience: str = ""
    cover_letter: str = ""
    cv: Optional[FileUpload] = None
    step: Step = "personal"
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def step_index(self) -> int:
        return STEPS.index(self.step)

    @property
    def is_last_step(self) -> bool:
        return self.step == STEPS[-1]

    def attach_cv(self, upload: FileUpload) -> bool:
        """Keep the file if it passes the document rules, else record the error."""
        try:
            validate_upload(upload, DOCUMENT_RULES, field="cv")
        except ValidationError as exc:
            self.errors["cv"] = exc.message
            return False
        self.cv = upload
        self.errors.pop("cv", None)
        return True

    def validate_step(self, step: Optional[Step] = None) -> Dict[str, str]:
        step = step or self.step
        errors: Dict[str, str] = {}

        if step == "personal":
            if not self.full_name.strip():
                errors["full_name"] = "Full name is required"
            if not self.email.strip():
                errors["email"] = "Email is required"
            elif not validate_email(self.email):
                errors["email"] = "Please enter a valid email address"
            if not self.phone.strip():
                errors["phone"] = "Phone number is required"
            elif not validate_phone_number(self.phone):
                errors["phone"] = "Please enter a valid Uganda phone number"
        elif step == "resume":
            if self.cv is None:
                errors["cv"] = "Please upload your CV"
            if not self.cover_letter.strip():
                errors["cover_letter"] = "Cover letter is required"
        elif step == "questions":
            if not self.experience.strip():
                errors["experience"] = "Please describe your relevant experience"

        self.errors = errors
        return errors

    def validate_all(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        for step in STEPS:
            errors.update(self.validate_step(step))
        self.errors = errors
        return errors

    def next_step(self) -> bool:
        """Advance when the current step is valid. Returns whether it moved."""
        if self.validate_step() or self.is_last_step:
            return False
        self.step = STEPS[self.step_index + 1]
        return True

    def previous_step(self) -> bool:
        if self.step_index == 0:
            return False
        self.step = STEPS[self.step_index - 1]
        self.errors = {}
        return True

    def reset(self) -> None:
        job_title = self.job_title
        self.__init__(job_title)
