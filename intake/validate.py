"""
Validation module: checks required fields and the e-mail format before anything is sent.
"""

import re
from typing import Dict

from intake.schema import CURRENT_IMAGES, FormData

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

# Required scalar fields and the message shown when they are empty
REQUIRED_MESSAGES = {
    "fullName": "Nome completo é obrigatório.",
    "email": "E-mail é obrigatório.",
    "suppliesContactName": "Nome do contato é obrigatório.",
    "suppliesContactPhone": "Telefone do contato é obrigatório.",
    "projectName": "Nome do projeto é obrigatório.",
    "address": "Endereço é obrigatório.",
    "city": "Cidade é obrigatória.",
    "state": "Estado é obrigatório.",
    "floorCount": "Número de pavimentos é obrigatório.",
    "startDate": "Data de início é obrigatória.",
    "endDate": "Data de término é obrigatória.",
    "projectDescription": "Descrição do projeto é obrigatória.",
    "currentPhaseDescription": "Descrição da fase atual é obrigatória.",
    "materialManagementDifficulty": "Descrição das dificuldades é obrigatória.",
}

INVALID_EMAIL = "Formato de e-mail inválido."
MISSING_CURRENT_IMAGE = "Pelo menos uma imagem da situação atual é obrigatória."


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.search(value or ""))


def validate_form(data: FormData) -> Dict[str, str]:
    """
    Validates the form and returns an error mapping.

    Required:
        - every scalar field (whitespace-only counts as empty)
        - email matching local@domain.suffix
        - at least one current-situation image

    Args:
        data: Form values to check

    Returns:
        Dict of form field name -> message; empty when the form is valid
    """
    errors = {}

    for name, message in REQUIRED_MESSAGES.items():
        value = data.get(name)
        if not value or not value.strip():
            errors[name] = message

    if "email" not in errors and not is_valid_email(data.email):
        errors["email"] = INVALID_EMAIL

    if not data.get(CURRENT_IMAGES):
        errors[CURRENT_IMAGES] = MISSING_CURRENT_IMAGE

    return errors
