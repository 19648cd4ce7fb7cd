"""Write a handful of multi-page sample PDFs containing synthetic PII.

Usage::

    python scripts/generate_fake_pdfs.py data/in
"""

import os
import sys
from datetime import date

from piimask.document import PdfDocument


def write_pdf(path: str, pages):
    with PdfDocument.from_pages("\n".join(lines) for lines in pages) as doc:
        data = doc.serialize()
    with open(path, "wb") as f:
        f.write(data)


def main(output_dir: str = "data/in"):
    os.makedirs(output_dir, exist_ok=True)
    today = date.today().strftime("%Y-%m-%d")

    datasets = {
        "pii_basic.pdf": [
            [
                "Employee Record",
                f"Date: {today}",
                "Name: John A. Doe",
                "SSN: 123-45-6789",
                "Email: john.doe@example.com",
                "Phone: (415) 555-0123",
            ],
            [
                "Address: 1234 Market St, Apt 5B, San Francisco, CA 94103",
            ],
        ],
        "pii_invoice.pdf": [
            [
                "Invoice #INV-10023",
                f"Date: {today}",
                "Bill To: Alex Johnson",
                "Card: 4111 1111 1111 1111",
                "Billing Email: alex.johnson@contoso.com",
            ],
            [
                "Terms: net 30",
                "Amount Due: $1,245.77",
            ],
        ],
        "pii_form.pdf": [
            [
                "Healthcare Registration",
                "Patient: Robert O'Connor",
                "Medical Record #: MRN0098123",
                "Emergency Contact: Sarah O'Connor (415) 555-7788",
                "Email: sarah.oconnor@example.net",
            ],
        ],
        "no_pii.pdf": [
            ["Quarterly planning notes", "Ship the release before the holidays."],
            ["Action items are tracked on the team board."],
        ],
    }

    for filename, pages in datasets.items():
        write_pdf(os.path.join(output_dir, filename), pages)


if __name__ == "__main__":
    main(*sys.argv[1:])
