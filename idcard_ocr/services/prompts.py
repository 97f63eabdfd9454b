"""
Промпты и системные инструкции для трёх этапов пайплайна
"""
import re
from typing import Iterable, Optional

DETECTION_SYSTEM = (
    "You are an expert at identifying official ID cards and documents. "
    "Respond only with valid JSON."
)

LOCALIZATION_SYSTEM = (
    "You are an expert at spatial analysis of ID cards. Provide precise bounding box "
    "coordinates. Respond only with valid JSON."
)

OCR_SYSTEM = "You are an expert OCR system. Extract text accurately. Respond only with valid JSON."

DETECTION_PROMPT = """Analyze this image and determine if it contains an ID card or identification document.

Respond in JSON format:
{
  "isDocument": boolean,
  "confidence": number (0-100),
  "documentType": "thai_id" | "passport" | "driver_license" | "other" | "none",
  "reasoning": "brief explanation"
}

Be strict in your assessment. Only return isDocument=true if you clearly see an official identification document."""

LOCALIZATION_PROMPT = """Analyze this {document} image and locate the following fields. For each field found, provide bounding box coordinates in the format [ymin, xmin, ymax, xmax] where values are normalized between 0.0 and 1.0.

Fields to locate:
{field_list}

Respond in JSON format:
{{
  "fields": {{
{field_schema}
  }}
}}

IMPORTANT:
- All bbox coordinates MUST be between 0.0 and 1.0
- If a field is not found, set bbox to null and confidence to 0
- Ensure ymin < ymax and xmin < xmax"""

OCR_PROMPT = """Extract the text from this image which shows a {label} from an ID card.

Respond in JSON format:
{{
  "text": "extracted text",
  "confidence": number (0-100)
}}

Rules:
- Return only the visible text, nothing else
- Preserve spacing and formatting
- If text is unclear or not visible, set confidence below 50
- Remove any watermarks or background noise
- For dates, preserve the format shown"""

# Описания известных полей для промпта локализации
FIELD_DESCRIPTIONS = {
    "identityNumber": "Identification Number",
    "titleTh": "Thai Title (if applicable)",
    "firstNameTh": "Thai First Name (if applicable)",
    "lastNameTh": "Thai Last Name (if applicable)",
    "titleEn": "English Title",
    "firstNameEn": "English First Name",
    "lastNameEn": "English Last Name",
    "dateOfBirthEn": "Date of Birth (English format)",
    "dateOfBirthTh": "Date of Birth (Thai format, if applicable)",
}

_CAMEL_BOUNDARY = re.compile(r"([A-Z])")


def field_label(field_name: str) -> str:
    """
    Человекочитаемое название поля

    >>> field_label("firstNameEn")
    'first name en'
    """
    return _CAMEL_BOUNDARY.sub(r" \1", field_name).lower().strip()


def detection_prompt() -> str:
    return DETECTION_PROMPT


def localization_prompt(field_names: Iterable[str], document_type: Optional[str] = None) -> str:
    """Промпт локализации для заданного списка полей"""
    field_names = list(field_names)
    field_list = "\n".join(
        f"{index}. {FIELD_DESCRIPTIONS.get(name, field_label(name).capitalize())}"
        for index, name in enumerate(field_names, start=1)
    )
    field_schema = ",\n".join(
        f'    "{name}": {{"bbox": [ymin, xmin, ymax, xmax], "confidence": number}}'
        for name in field_names
    )
    document = document_type if document_type and document_type != "none" else "ID card"
    return LOCALIZATION_PROMPT.format(
        document=document,
        field_list=field_list,
        field_schema=field_schema
    )


def ocr_prompt(field_name: str) -> str:
    return OCR_PROMPT.format(label=field_label(field_name))
