"""Pytest hooks and shared fixtures for the intake form tests."""

import os

import pytest

from intake.schema import AIAnalysis, Attachment, FormData


def pytest_configure(config):
    """Tests use doubles for OpenAI and Supabase; note when real credentials are absent."""
    if not os.environ.get("OPENAI_API_KEY"):
        print(
            "\nTip: tests never call OpenAI or Supabase. To run the app locally export "
            "OPENAI_API_KEY, SUPABASE_URL and SUPABASE_ANON_KEY (or put them in .env).\n",
            end="",
        )


def make_attachment(name: str = "obra.jpg", data: bytes = b"\xff\xd8\xff\xe0fake-jpeg", mimetype: str = "image/jpeg") -> Attachment:
    return Attachment(filename=name, mimetype=mimetype, data=data)


@pytest.fixture
def attachment():
    return make_attachment()


@pytest.fixture
def valid_form() -> FormData:
    """A fully valid form with one current-situation image and no final-project images."""
    return FormData(
        fullName="Maria Souza",
        email="maria@construtora.com.br",
        suppliesContactName="João Lima",
        suppliesContactPhone="(11) 98888-7777",
        projectName="Residencial Aurora",
        address="Rua das Flores, 100",
        city="Campinas",
        state="SP",
        floorCount="8",
        startDate="2026-01-10",
        endDate="2027-06-30",
        projectDescription="Edifício residencial de 8 pavimentos.",
        currentPhaseDescription="Estrutura até o 3º pavimento.",
        materialManagementDifficulty="Atrasos na entrega de aço.",
        currentSituationImage=[make_attachment()],
    )


@pytest.fixture
def analysis() -> AIAnalysis:
    return AIAnalysis.model_validate(SAMPLE_ANALYSIS)


SAMPLE_ANALYSIS = {
    "dadosDoFormulario": "Aço é material crítico.",
    "interpretacaoImagemAtual": {
        "faseExecutiva": "Estrutura",
        "materiaisVisiveis": "Concreto, formas, aço",
        "materiaisProvaveis": "Blocos cerâmicos",
    },
    "interpretacaoImagemProjeto": {
        "caracteristicas": "Residencial, 8 pavimentos",
        "fasesExecutivas": "Estrutura, alvenaria, acabamento",
    },
    "analiseAvancoFisico": "Obra dentro do cronograma.",
    "recomendacoes": "Antecipar compra de aço.",
}
