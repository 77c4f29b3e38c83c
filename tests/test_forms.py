import os
import sys
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from backend.storage import MB, FileUpload  # noqa: E402
from utils.forms import STEPS, ApplicationDraft  # noqa: E402

CV = FileUpload("cv.pdf", b"%PDF-1.7", "application/pdf")


def filled_draft() -> ApplicationDraft:
    return ApplicationDraft(
        job_title="Inventory Officer",
        full_name="Alice Namu",
        email="alice@example.com",
        phone="+256 772 123 456",
        cover_letter="Dear hiring team",
        experience="Three years of stock control",
        cv=CV,
    )


class ApplicationDraftTestCase(unittest.TestCase):
    def test_personal_step_messages(self):
        draft = ApplicationDraft(job_title="Inventory Officer")

        errors = draft.validate_step()

        self.assertEqual(
            errors,
            {
                "full_name": "Full name is required",
                "email": "Email is required",
                "phone": "Phone number is required",
            },
        )
        self.assertEqual(draft.errors, errors)

    def test_malformed_email_and_phone(self):
        draft = ApplicationDraft(
            job_title="Inventory Officer",
            full_name="Alice",
            email="alice@",
            phone="12345",
        )

        errors = draft.validate_step("personal")

        self.assertEqual(errors["email"], "Please enter a valid email address")
        self.assertEqual(errors["phone"], "Please enter a valid Uganda phone number")

    def test_next_step_blocked_until_valid(self):
        draft = ApplicationDraft(job_title="Inventory Officer")
        self.assertFalse(draft.next_step())
        self.assertEqual(draft.step, "personal")

        draft.full_name = "Alice Namu"
        draft.email = "alice@example.com"
        draft.phone = "0772-123-456"
        self.assertTrue(draft.next_step())
        self.assertEqual(draft.step, "resume")
        self.assertEqual(draft.errors, {})

    def test_walks_all_steps_and_back(self):
        draft = filled_draft()

        while draft.next_step():
            pass

        self.assertTrue(draft.is_last_step)
        self.assertEqual(draft.step_index, len(STEPS) - 1)
        self.assertEqual(draft.validate_all(), {})

        self.assertTrue(draft.previous_step())
        self.assertEqual(draft.step, "questions")

    def test_resume_step_requires_cv_and_cover_letter(self):
        draft = filled_draft()
        draft.cv = None
        draft.cover_letter = "  "

        errors = draft.validate_step("resume")

        self.assertEqual(errors["cv"], "Please upload your CV")
        self.assertEqual(errors["cover_letter"], "Cover letter is required")

    def test_attach_cv_enforces_document_rules(self):
        draft = ApplicationDraft(job_title="Inventory Officer")

        big = FileUpload("cv.pdf", b"0" * (11 * MB), "application/pdf")
        self.assertFalse(draft.attach_cv(big))
        self.assertEqual(draft.errors["cv"], "File size must be less than 10MB")
        self.assertIsNone(draft.cv)

        self.assertTrue(draft.attach_cv(CV))
        self.assertIs(draft.cv, CV)
        self.assertNotIn("cv", draft.errors)

    def test_reset_keeps_job_title(self):
        draft = filled_draft()
        draft.next_step()

        draft.reset()

        self.assertEqual(draft.job_title, "Inventory Officer")
        self.assertEqual(draft.step, "personal")
        self.assertEqual(draft.full_name, "")
        self.assertIsNone(draft.cv)


if __name__ == "__main__":
    unittest.main()
