"""
Run: python -m pytest tests/test_document_checklist.py -v
"""
import unittest

from schemas.enums import InstrumentType
from services.configuration_store import new_configuration
from services.document_checklist import build_checklist


class TestDocumentChecklist(unittest.TestCase):
    def setUp(self):
        self.config = new_configuration("fleet", "Fleet", InstrumentType.COMMERCIAL_REAL_ESTATE)

    def test_outstanding_required_documents(self):
        checklist = build_checklist(self.config, ["financial_statements", "rent_roll"])
        self.assertFalse(checklist.complete)
        self.assertEqual(
            checklist.outstanding_required,
            ["bank_statements", "business_license", "property_appraisal"],
        )
        submitted = {i.document_id for i in checklist.items if i.submitted}
        self.assertEqual(submitted, {"financial_statements", "rent_roll"})

    def test_optional_documents_do_not_block_completion(self):
        checklist = build_checklist(
            self.config,
            ["financial_statements", "bank_statements", "business_license", "property_appraisal"],
        )
        self.assertTrue(checklist.complete)
        self.assertEqual(checklist.outstanding_required, [])

    def test_unknown_submissions_reported(self):
        checklist = build_checklist(self.config, ["selfie", "financial_statements", "audit_letter"])
        self.assertEqual(checklist.unknown_submissions, ["audit_letter", "selfie"])


if __name__ == "__main__":
    unittest.main()
