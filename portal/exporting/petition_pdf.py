# portal/exporting/petition_pdf.py
"""Printable public petition form, rendered for signing before upload."""
from __future__ import annotations

from typing import Any, Dict, List

from fpdf import FPDF

PRIOR_EFFORTS_TEXT = (
    "Efforts have been made to have the matter addressed by the relevant body, "
    "and it failed to give satisfactory response."
)
LEGAL_STATUS_TEXT = (
    "The issues in respect of which the petition is made are not pending before any court of law, "
    "or constitutional or legal body."
)
TABLE_HEADERS = (
    "Name of petitioner",
    "Full Address and Phone Number",
    "National ID./Passport No",
    "Signature/Thumb impression",
)


class PetitionFormPDF(FPDF):
    """A4 petition form in Times, laid out like the paper form."""

    def __init__(self) -> None:
        super().__init__(orientation="P", unit="mm", format="A4")
        self.set_margins(15, 15, 15)
        self.set_auto_page_break(auto=True, margin=15)
        self.set_creator("Citizen Petitions Portal")
        self.set_title("Public Petition to Parliament")

    def heading(self, text: str, size: int = 12) -> None:
        self.set_font("Times", "B", size)
        self.multi_cell(0, 7, _latin1(text), new_x="LMARGIN", new_y="NEXT")

    def paragraph(self, text: str) -> None:
        self.set_font("Times", "", 11)
        self.multi_cell(0, 6, _latin1(text), new_x="LMARGIN", new_y="NEXT")
        self.ln(4)

    def petitioners_table(self, petitioners: List[Dict[str, Any]]) -> None:
        self.set_font("Times", "", 10)
        with self.table(col_widths=(40, 60, 35, 45), line_height=6) as table:
            header = table.row()
            for title in TABLE_HEADERS:
                header.cell(title)
            for petitioner in petitioners:
                row = table.row()
                row.cell(_latin1(petitioner.get("name") or "N/A"))
                row.cell(_latin1(f"{petitioner.get('address') or 'N/A'}\n{petitioner.get('phone') or 'N/A'}"))
                row.cell(_latin1(petitioner.get("national_id") or petitioner.get("nationalId") or "N/A"))
                row.cell("")

    def generate(self, form_data: Dict[str, Any]) -> bytes:
        _validate_form(form_data)
        self.add_page()

        self.set_font("Times", "B", 16)
        self.cell(0, 10, "PUBLIC PETITION TO PARLIAMENT", align="C", new_x="LMARGIN", new_y="NEXT")
        self.ln(4)

        self.heading("I/We, the undersigned,")
        self.paragraph(f"({form_data['petitioner_identification']})")

        self.heading("DRAW the attention of the House to the following:")
        self.paragraph(form_data["grievances"])

        self.heading("THAT,")
        self.paragraph(
            PRIOR_EFFORTS_TEXT if form_data.get("prior_efforts_confirmation")
            else "Confirmation of prior efforts not provided."
        )

        self.heading("THAT,")
        self.paragraph(
            LEGAL_STATUS_TEXT if form_data.get("legal_status_confirmation")
            else "Confirmation of legal status not provided."
        )

        self.heading("THEREFORE your humble petitioner(s) pray that Parliament -")
        self.paragraph(form_data["prayer"])
        self.ln(3)

        self.heading("Details of Petitioner(s):")
        self.petitioners_table(list(form_data.get("petitioners") or []))

        return bytes(self.output())


def export_petition_pdf(form_data: Dict[str, Any]) -> bytes:
    return PetitionFormPDF().generate(form_data)


def _validate_form(form_data: Dict[str, Any]) -> None:
    if not isinstance(form_data, dict):
        raise ValueError("Petition form data must be an object")
    for field in ("petitioner_identification", "grievances", "prayer"):
        value = form_data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Missing required field: {field}")
    petitioners = form_data.get("petitioners") or []
    if not isinstance(petitioners, list) or not all(isinstance(p, dict) for p in petitioners):
        raise ValueError("petitioners must be a list of objects")


def _latin1(text: Any) -> str:
    # Core PDF fonts only cover latin-1
    return str(text).encode("latin-1", "replace").decode("latin-1")


__all__ = ["PetitionFormPDF", "export_petition_pdf"]
