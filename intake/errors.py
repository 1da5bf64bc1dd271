"""
Error taxonomy for a submission attempt.
Every error carries the user-facing (pt-BR) message shown in the form.
"""

from typing import Dict, Optional


class IntakeError(Exception):
    """Base class for every failure the form surfaces to the user."""

    default_message = "Ocorreu um erro inesperado. Tente novamente."

    def __init__(self, message: Optional[str] = None):
        self.user_message = message or self.default_message
        super().__init__(self.user_message)


class ConfigurationError(IntakeError):
    """A required credential or endpoint is missing at startup."""


class FormValidationError(IntakeError):
    """One or more fields failed validation. No network call was made."""

    default_message = "Verifique os campos destacados e tente novamente."

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        super().__init__(message)


class EncodingError(IntakeError):
    """An attachment could not be read or encoded."""

    default_message = "Falha ao processar a imagem selecionada."

    def __init__(self, filename: str, message: Optional[str] = None):
        self.filename = filename
        super().__init__(message or f"Falha ao decodificar a imagem: {filename}")


class AnalysisError(IntakeError):
    """The AI call was rejected, timed out, or returned an unusable result."""

    default_message = "Falha na análise completa pela IA."


class UploadError(IntakeError):
    """A single image failed to upload or its public URL could not be resolved."""

    def __init__(self, filename: str, message: Optional[str] = None):
        self.filename = filename
        super().__init__(message or f"Falha ao enviar a imagem: {filename}")


class BucketNotFoundError(UploadError):
    """The destination bucket has not been provisioned in Supabase."""

    def __init__(self, filename: str, bucket: str):
        self.bucket = bucket
        super().__init__(
            filename,
            f"Erro de Configuração: O bucket '{bucket}' não foi encontrado no Supabase. "
            "Por favor, crie o bucket público no painel do seu projeto.",
        )


class PersistenceError(IntakeError):
    """The record could not be written to the database."""

    default_message = "Falha ao salvar os dados do projeto no banco de dados."
