"""
template.py - Declaration markup with the record interpolated.

Produces the HTML snapshot that the render target lays out. Unset fields are
replaced by dotted placeholders of a fixed length per field, so two renders
of the same record always produce the same markup.
"""

import html

from .record import DeclarationRecord, placeholder

# Placeholder widths (in dots) per field position
APPLICANT_DOTS = 45
FATHER_DOTS = 35
AGE_DOTS = 6
YEAR_DOTS = 8
OCCUPATION_DOTS = 22
ADDRESS_DOTS = 25
PLACE_DOTS = 24
DATE_DOTS = 24
SIGNATURE_NAME_DOTS = 16

REFERENCE_LINE = "संख्या— 874 / एक—9—2014—रा—9,दिनॉक 16 जून,2014 का संलग्नक"
TITLE = "स्वप्रमाणित घोषणा—पत्र"
AFFIRMATION = (
    "कि आवेदन पत्र में दिये गये विवरण/तथ्य मेरी व्यक्तिगत जानकारी एवं विश्वास में "
    "शुद्ध एवं सत्य हैं । मैं मिथ्या विवरणों / तथ्यों को देने के परिणामों से "
    "भली–भाँति अवगत हूँ । यदि आवेदन पत्र में दिये गये कोई विवरण/तथ्य मिथ्या पाये "
    "जाते हैं,तो मैं,मेरे विरूद्ध भा०द०वि० 1960 की धारा—199 व 200 एवं प्रभावी किसी "
    "अन्य विधि के अंतर्गत अभियोजन एवं दण्ड के लिये,स्वयं उत्तरदायी होऊँगा / होऊँगी।"
)

DOCUMENT_CSS = """
body { font-family: serif; font-size: 16px; color: #1a1a1a; line-height: 2.2; }
.ref { text-align: center; font-size: 14px; color: #333333; text-decoration: underline; margin-bottom: 40px; }
h1 { text-align: center; font-size: 24px; font-weight: normal; text-decoration: underline; margin-bottom: 48px; }
.body { text-align: justify; line-height: 2.4; }
.indent { text-indent: 2em; }
.field { text-decoration: underline; }
.footer { margin-top: 56px; }
.right { text-align: right; }
"""


def _field(text: str) -> str:
    return f'<span class="field">&nbsp;{html.escape(text)}&nbsp;</span>'


def build_markup(record: DeclarationRecord) -> str:
    """Return the declaration as an HTML fragment."""
    value = record.display_value
    date_text = record.reference_date or placeholder(DATE_DOTS)
    blank_line = placeholder(48)

    return f"""
<div class="ref">{html.escape(REFERENCE_LINE)}</div>
<h1>{html.escape(TITLE)}</h1>
<div class="body">
  <p class="indent">मैं{_field(value("applicant_name", APPLICANT_DOTS))}पुत्र / पुत्री / श्री{_field(value("father_name", FATHER_DOTS))}</p>
  <p>..उम्र{_field(value("age", AGE_DOTS))}वर्ष{_field(value("year", YEAR_DOTS))}व्यवसाय{_field(value("occupation", OCCUPATION_DOTS))}निवासी{_field(value("address", ADDRESS_DOTS))}</p>
  <p>{blank_line} प्रमाणित करते हुये घोषणा करता / करती हूँ</p>
  <p>{html.escape(AFFIRMATION)}</p>
</div>
<div class="footer">
  <p>स्थान{_field(value("place", PLACE_DOTS))}</p>
  <p>दिनॉक{_field(date_text)}</p>
  <p class="right">आवेदक / आवेदिका के हस्ताक्षर {placeholder(SIGNATURE_NAME_DOTS)}</p>
  <p class="right">आवेदक / आवेदिका का नाम{_field(value("applicant_name", SIGNATURE_NAME_DOTS))}</p>
</div>
"""
