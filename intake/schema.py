"""
Data models for construction project submissions.
Uses Pydantic for validation and type safety.
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


MAX_IMAGES = 5

# Scalar fields in form order (form-side naming, also the HTML input names)
TEXT_FIELDS = [
    "fullName",
    "email",
    "suppliesContactName",
    "suppliesContactPhone",
    "projectName",
    "address",
    "city",
    "state",
    "floorCount",
    "startDate",
    "endDate",
    "projectDescription",
    "currentPhaseDescription",
    "materialManagementDifficulty",
]

CURRENT_IMAGES = "currentSituationImage"
FINAL_IMAGES = "finalProjectImage"
IMAGE_FIELDS = (CURRENT_IMAGES, FINAL_IMAGES)


class Attachment(BaseModel):
    """A user-selected image file destined for one of the two capped sequences."""
    filename: str
    mimetype: str = "application/octet-stream"
    data: bytes = Field(default=b"", repr=False)

    @classmethod
    def from_upload(cls, upload) -> "Attachment":
        """Build an Attachment from a werkzeug FileStorage."""
        return cls(
            filename=upload.filename or "",
            mimetype=upload.mimetype or "application/octet-stream",
            data=upload.read(),
        )


class EncodedImage(BaseModel):
    """Base64 content (no data-URL prefix) paired with its mime type."""
    data: str
    mime_type: str


class FormData(BaseModel):
    """
    Field values of the intake form.
    Attribute names are snake_case; aliases are the form-side camelCase names.
    """
    model_config = ConfigDict(populate_by_name=True)

    # Contact
    full_name: str = Field(default="", alias="fullName")
    email: str = Field(default="", alias="email")
    supplies_contact_name: str = Field(default="", alias="suppliesContactName")
    supplies_contact_phone: str = Field(default="", alias="suppliesContactPhone")

    # Project identity
    project_name: str = Field(default="", alias="projectName")
    address: str = Field(default="", alias="address")
    city: str = Field(default="", alias="city")
    state: str = Field(default="", alias="state")
    floor_count: str = Field(default="", alias="floorCount")
    start_date: str = Field(default="", alias="startDate")
    end_date: str = Field(default="", alias="endDate")

    # Description and status
    project_description: str = Field(default="", alias="projectDescription")
    current_phase_description: str = Field(default="", alias="currentPhaseDescription")
    material_management_difficulty: str = Field(default="", alias="materialManagementDifficulty")

    # Media
    current_situation_image: List[Attachment] = Field(default_factory=list, alias=CURRENT_IMAGES)
    final_project_image: List[Attachment] = Field(default_factory=list, alias=FINAL_IMAGES)

    def get(self, name: str):
        """Return a field value by its form-side name."""
        return getattr(self, FIELD_ATTRS[name])

    def set(self, name: str, value) -> None:
        setattr(self, FIELD_ATTRS[name], value)


# form-side name -> attribute name
FIELD_ATTRS: Dict[str, str] = {
    field.alias: attr for attr, field in FormData.model_fields.items()
}


class CurrentImageInterpretation(BaseModel):
    model_config = ConfigDict(extra="forbid")

    faseExecutiva: str
    materiaisVisiveis: str
    materiaisProvaveis: str


class ProjectImageInterpretation(BaseModel):
    model_config = ConfigDict(extra="forbid")

    caracteristicas: str
    fasesExecutivas: str


class AIAnalysis(BaseModel):
    """Structured result of the AI analysis. Every field is required."""
    model_config = ConfigDict(extra="forbid")

    dadosDoFormulario: str
    interpretacaoImagemAtual: CurrentImageInterpretation
    interpretacaoImagemProjeto: ProjectImageInterpretation
    analiseAvancoFisico: str
    recomendacoes: str


class PersistedRecord(BaseModel):
    """
    Row committed to the cadastro_obra table.
    Field names are the database column names.
    """
    nome_usuario: str
    email_usuario: str
    nome_do_contato_de_suprimentos: str
    suprimentos_telefone_de_contato: str
    nome_obra: str
    endereco: str
    cidade: str
    estado: str
    numero_de_pavimentos: int
    data_inicio_obra: str
    data_final_obra_prevista: str
    descricao_da_obra: str
    fase_obra: str
    dificuldade_de_gerenciamento_de_materiais: str
    URL_imagem_fase_atual: List[str] = []
    URL_imagem_projeto_final: List[str] = []
    descricao_ia_fase_obra: AIAnalysis


# form-side name -> column name
COLUMN_NAMES: Dict[str, str] = {
    "fullName": "nome_usuario",
    "email": "email_usuario",
    "suppliesContactName": "nome_do_contato_de_suprimentos",
    "suppliesContactPhone": "suprimentos_telefone_de_contato",
    "projectName": "nome_obra",
    "address": "endereco",
    "city": "cidade",
    "state": "estado",
    "floorCount": "numero_de_pavimentos",
    "startDate": "data_inicio_obra",
    "endDate": "data_final_obra_prevista",
    "projectDescription": "descricao_da_obra",
    "currentPhaseDescription": "fase_obra",
    "materialManagementDifficulty": "dificuldade_de_gerenciamento_de_materiais",
    "currentSituationImageUrl": "URL_imagem_fase_atual",
    "finalProjectImageUrl": "URL_imagem_projeto_final",
    "aiAnalysis": "descricao_ia_fase_obra",
}
