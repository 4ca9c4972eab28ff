"""Tracks which supporting documents a configuration still needs from an applicant."""
from __future__ import annotations

from typing import Iterable

from schemas.configuration import ChecklistItem, DocumentChecklist, InstrumentConfiguration


def build_checklist(config: InstrumentConfiguration, submitted_document_ids: Iterable[str]) -> DocumentChecklist:
    submitted = set(submitted_document_ids)
    items = [
        ChecklistItem(
            document_id=doc.id,
            name=doc.name,
            category=doc.category,
            is_required=doc.is_required,
            submitted=doc.id in submitted,
        )
        for doc in config.required_documents
    ]
    outstanding = [i.document_id for i in items if i.is_required and not i.submitted]
    known = {doc.id for doc in config.required_documents}
    return DocumentChecklist(
        configuration_id=config.id,
        items=items,
        outstanding_required=outstanding,
        unknown_submissions=sorted(submitted - known),
        complete=not outstanding,
    )
