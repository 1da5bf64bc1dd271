"""
AI analysis of a construction project using the OpenAI API.
Sends the form's descriptive fields plus all photos in one multimodal request and
constrains the answer to a fixed JSON schema, which is validated again on our side.
"""

import logging
from typing import List, Optional, Sequence

from intake.errors import AnalysisError
from intake.schema import AIAnalysis, EncodedImage, FormData

logger = logging.getLogger(__name__)

NO_CURRENT_IMAGES = "Nenhuma imagem da situação atual foi fornecida."
NO_FINAL_IMAGES = "Nenhuma imagem do projeto finalizado foi fornecida."

SYSTEM_PROMPT = "Você é um analista técnico de obras. Responda apenas com JSON válido."

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "dadosDoFormulario": {
            "type": "string",
            "description": "Resumo dos insumos disponíveis, materiais críticos e prazos de reposição, com base nos dados do formulário.",
        },
        "interpretacaoImagemAtual": {
            "type": "object",
            "properties": {
                "faseExecutiva": {
                    "type": "string",
                    "description": "Fase executiva da obra identificada nas imagens atuais.",
                },
                "materiaisVisiveis": {
                    "type": "string",
                    "description": "Principais materiais visíveis em uso ou armazenados nas imagens atuais.",
                },
                "materiaisProvaveis": {
                    "type": "string",
                    "description": "Próximos insumos a serem aplicados, projetados a partir da fase atual.",
                },
            },
            "required": ["faseExecutiva", "materiaisVisiveis", "materiaisProvaveis"],
            "additionalProperties": False,
        },
        "interpretacaoImagemProjeto": {
            "type": "object",
            "properties": {
                "caracteristicas": {
                    "type": "string",
                    "description": "Tipo de construção (residencial, comercial, etc.) e número de pavimentos segundo o projeto final.",
                },
                "fasesExecutivas": {
                    "type": "string",
                    "description": "Principais etapas executivas previstas no projeto.",
                },
            },
            "required": ["caracteristicas", "fasesExecutivas"],
            "additionalProperties": False,
        },
        "analiseAvancoFisico": {
            "type": "string",
            "description": "Comparação entre o planejado (formulário e projeto final) e o progresso real (imagens atuais), com foco na gestão de materiais e almoxarifado.",
        },
        "recomendacoes": {
            "type": "string",
            "description": "Recomendações práticas para o almoxarifado, o estoque e a continuidade da obra.",
        },
    },
    "required": [
        "dadosDoFormulario",
        "interpretacaoImagemAtual",
        "interpretacaoImagemProjeto",
        "analiseAvancoFisico",
        "recomendacoes",
    ],
    "additionalProperties": False,
}


def build_prompt(data: FormData, current_count: int, final_count: int) -> str:
    """
    Build the analysis instruction with the form values inline.

    When a photo category is empty the instruction says so explicitly, so the model
    does not describe images it never received.
    """
    current_note = NO_CURRENT_IMAGES if current_count == 0 else f"Foram fornecidas {current_count} imagem(ns) da situação atual."
    final_note = NO_FINAL_IMAGES if final_count == 0 else f"Foram fornecidas {final_count} imagem(ns) do projeto finalizado."

    return f"""Você é especialista em análise de dados de gestão de estoque na construção civil e deve produzir um relatório técnico e formal.
Analise em conjunto os dados do formulário, as imagens da situação atual da obra e as imagens do projeto finalizado.
O leitor é um Analista de Dados de Gestão de Estoque: seja técnico, explicativo e objetivo.
Preencha o schema JSON solicitado com a análise completa.

**Instruções para cada campo:**

1. **dadosDoFormulario**: resuma as informações de estoque e almoxarifado presentes no formulário, destacando materiais críticos citados nas dificuldades.
2. **interpretacaoImagemAtual**:
   - **faseExecutiva**: fase executiva em que a obra se encontra nas imagens ATUAIS (ex.: fundação, estrutura, alvenaria, acabamento).
   - **materiaisVisiveis**: principais materiais em uso ou armazenados no canteiro.
   - **materiaisProvaveis**: materiais que serão necessários a seguir, considerando a fase identificada.
3. **interpretacaoImagemProjeto**:
   - **caracteristicas**: tipo de construção (residencial, comercial, industrial) e quantidade de pavimentos segundo as imagens do projeto FINALIZADO. Sem imagem do projeto, infira pela descrição e pelo número de pavimentos informado.
   - **fasesExecutivas**: principais fases executivas esperadas até a conclusão.
4. **analiseAvancoFisico**: compare o progresso real (imagens atuais) com o planejado (formulário e projeto) e avalie como a gestão de materiais descrita nas dificuldades afeta o avanço físico.
5. **recomendacoes**: recomendações práticas para otimizar o almoxarifado, garantir o fluxo de suprimentos e a continuidade da obra.

**Dados do Formulário:**
- Nome do Projeto: {data.project_name}
- Número de Pavimentos (informado): {data.floor_count}
- Descrição do Projeto: {data.project_description}
- Descrição da Fase Atual (pelo usuário): {data.current_phase_description}
- Dificuldades com Gestão de Materiais: {data.material_management_difficulty}

As primeiras imagens anexadas são da **SITUAÇÃO ATUAL** da obra; use-as em 'interpretacaoImagemAtual'.
{current_note}

As imagens seguintes são do **PROJETO FINALIZADO**; use-as em 'interpretacaoImagemProjeto'.
{final_note}
"""


def _image_part(image: EncodedImage) -> dict:
    return {
        "type": "image_url",
        "image_url": {"url": f"data:{image.mime_type};base64,{image.data}"},
    }


def build_messages(
    prompt: str,
    current_images: Sequence[EncodedImage],
    final_images: Sequence[EncodedImage],
) -> List[dict]:
    """Text first, then every current-situation image, then every final-project image."""
    content = [{"type": "text", "text": prompt}]
    content.extend(_image_part(image) for image in current_images)
    content.extend(_image_part(image) for image in final_images)
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": content},
    ]


class AnalysisClient:
    """Structured-generation client: one request, schema-constrained, validated on return."""

    def __init__(self, client, model: str, temperature: float = 0.2):
        self.client = client
        self.model = model
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings) -> "AnalysisClient":
        from openai import OpenAI
        return cls(OpenAI(api_key=settings.openai_api_key), settings.openai_model)

    def analyze(
        self,
        data: FormData,
        current_images: Sequence[EncodedImage],
        final_images: Sequence[EncodedImage],
    ) -> AIAnalysis:
        """
        Run the analysis. No retry: a single failure surfaces immediately.

        Args:
            data: Form values (only the descriptive fields are sent)
            current_images: Encoded current-situation photos (max 5)
            final_images: Encoded final-project photos (max 5)

        Returns:
            AIAnalysis parsed strictly from the response

        Raises:
            AnalysisError: if the call fails or the response does not match the schema
        """
        prompt = build_prompt(data, len(current_images), len(final_images))
        messages = build_messages(prompt, current_images, final_images)

        logger.info(
            f"🤖 Requesting analysis from {self.model} "
            f"({len(current_images)} current, {len(final_images)} final images)"
        )
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "analise_obra",
                        "schema": ANALYSIS_SCHEMA,
                        "strict": True,
                    },
                },
            )
            result_text = _response_text(response)
            analysis = AIAnalysis.model_validate_json(result_text)
        except Exception as e:
            logger.error(f"❌ Error generating comprehensive analysis: {e}", exc_info=True)
            raise AnalysisError() from e

        logger.info("✅ AI analysis completed")
        return analysis


def _response_text(response) -> str:
    text: Optional[str] = response.choices[0].message.content
    if not text or not text.strip():
        raise ValueError("Empty response from AI service")
    return text.strip()
