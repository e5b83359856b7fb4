"""
Stage Catalog — ordered delivery stages per (service type × modality).

Like the pricing tables, the catalog is pure configuration: loaded once
per process, frozen, and injected into project creation. Projects keep
a snapshot of their stage list, so editing the catalog never reaches an
in-flight project.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict

from arqexpress_engine.config import get_settings
from arqexpress_engine.exceptions import UnsupportedServiceType
from arqexpress_engine.models.enums import Modality, ServiceType
from arqexpress_engine.models.schemas import StageDefinition

logger = logging.getLogger(__name__)


def _stages(*rows: tuple[str, str, str, str, int]) -> list[StageDefinition]:
    return [
        StageDefinition(
            id=stage_id,
            order_index=i,
            label=label,
            category=category,
            description=description,
            duration_days=days,
        )
        for i, (stage_id, label, category, description, days) in enumerate(rows)
    ]


# ── Default stage lists ──────────────────────────────────

_DECOR_HEAD = [
    ("formulario", "Formulário", "purple", "Cliente preencheu formulário inicial", 1),
]
_DECOR_DESIGN = [
    ("formulario_briefing", "Formulário de Briefing", "blue", "Envio do briefing detalhado", 2),
    ("moodboard", "Moodboard", "cyan", "Criação do moodboard de referências", 3),
    ("pesquisa_produtos", "Pesquisa de Produtos", "cyan", "Pesquisa de móveis e itens", 5),
    ("elaboracao_projeto", "Elaboração do Projeto", "green", "Criação do projeto de interiores", 7),
]
_DECOR_APPROVAL = [
    ("ajustes", "Ajustes", "yellow", "Revisões solicitadas pelo cliente", 3),
    ("aprovacao", "Aprovação", "yellow", "Aprovação final do cliente", 2),
    ("lista_compras", "Lista de Compras", "orange", "Geração da lista de compras", 2),
    ("acompanhamento_compras", "Acompanhamento de Compras", "orange", "Acompanhamento das compras", 14),
]
_DECOR_DELIVERY = [
    ("entrega", "Entrega", "emerald", "Entrega final do projeto", 1),
]

DECOR_IN_PERSON_STAGES = _stages(
    *_DECOR_HEAD,
    ("reuniao_briefing", "Reunião de Briefing", "blue", "Reunião para entender necessidades", 2),
    *_DECOR_DESIGN,
    ("apresentacao", "Apresentação", "green", "Apresentação ao cliente", 2),
    *_DECOR_APPROVAL,
    ("visita_tecnica", "Visita Técnica", "pink", "Visita para medições e ajustes", 1),
    ("acompanhamento_obra", "Acompanhamento de Obra", "pink", "Acompanhamento da execução", 7),
    ("instalacao", "Instalação", "emerald", "Instalação dos itens", 3),
    *_DECOR_DELIVERY,
)

DECOR_ONLINE_STAGES = _stages(
    *_DECOR_HEAD,
    ("reuniao_briefing", "Reunião de Briefing", "blue", "Reunião online para briefing", 2),
    *_DECOR_DESIGN,
    ("apresentacao", "Apresentação", "green", "Apresentação online ao cliente", 2),
    *_DECOR_APPROVAL,
    *_DECOR_DELIVERY,
)

PRODUCTION_STAGES = _stages(
    ("recebimento", "Recebimento", "purple", "Recebimento do pedido", 1),
    ("producao", "Produção", "blue", "Em produção", 14),
    ("controle_qualidade", "Controle de Qualidade", "cyan", "Verificação de qualidade", 2),
    ("expedicao", "Expedição", "orange", "Preparação para envio", 2),
    ("entregue", "Entregue", "emerald", "Produto entregue", 1),
)

ARCHITECTURE_EXPRESS_STAGES = _stages(
    ("formulario", "Formulário", "purple", "Cliente preencheu formulário inicial", 1),
    ("reuniao_briefing", "Reunião de Briefing", "blue", "Reunião para briefing", 2),
    ("levantamento", "Levantamento", "blue", "Levantamento técnico", 3),
    ("anteprojeto", "Anteprojeto", "cyan", "Criação do anteprojeto", 10),
    ("projeto_executivo", "Projeto Executivo", "green", "Desenvolvimento do projeto executivo", 14),
    ("aprovacao", "Aprovação", "yellow", "Aprovação do cliente", 3),
    ("detalhamento", "Detalhamento", "orange", "Detalhamento técnico", 7),
    ("revisao_final", "Revisão Final", "pink", "Revisão final dos documentos", 3),
    ("entrega", "Entrega", "emerald", "Entrega do projeto", 1),
)


# ── Catalog ──────────────────────────────────────────────

def catalog_key(service_type: ServiceType, modality: Optional[Modality] = None) -> str:
    return f"{service_type.value}:{modality.value}" if modality else service_type.value


class StageCatalog(BaseModel):
    """
    Stage lists keyed by ``"<service>:<modality>"`` for modality-specific
    lists and ``"<service>"`` for lists shared by every modality.
    """

    model_config = ConfigDict(frozen=True)

    stages: dict[str, list[StageDefinition]] = {
        catalog_key(ServiceType.DECOR, Modality.IN_PERSON): DECOR_IN_PERSON_STAGES,
        catalog_key(ServiceType.DECOR, Modality.ONLINE): DECOR_ONLINE_STAGES,
        catalog_key(ServiceType.PRODUCTION): PRODUCTION_STAGES,
        catalog_key(ServiceType.ARCHITECTURE_EXPRESS): ARCHITECTURE_EXPRESS_STAGES,
    }

    def snapshot(self, service_type: ServiceType, modality: Modality) -> list[StageDefinition]:
        """Fresh copy of the stage list for a new project."""
        stage_list = self.stages.get(catalog_key(service_type, modality))
        if stage_list is None:
            stage_list = self.stages.get(catalog_key(service_type))
        if not stage_list:
            logger.warning(f"No stage list for {service_type.value}/{modality.value}")
            raise UnsupportedServiceType(
                f"no stage list for {service_type.value}/{modality.value}",
                field="service_type",
                value=service_type.value,
            )
        return list(stage_list)

    def final_stage_id(self, service_type: ServiceType, modality: Modality) -> str:
        return self.snapshot(service_type, modality)[-1].id


# ── Store class ──────────────────────────────────────────

class StageCatalogStore:
    """
    Loads the stage catalog from a JSON file, or the built-in defaults
    when no file is configured. Cached after first load.
    """

    def __init__(self, path: Optional[str] = None):
        self.settings = get_settings()
        self.path = path if path is not None else self.settings.stage_catalog_path
        self._cache: Optional[StageCatalog] = None

    def load(self) -> StageCatalog:
        if self._cache is not None:
            return self._cache

        if self.path:
            raw = Path(self.path).read_text(encoding="utf-8")
            catalog = StageCatalog.model_validate_json(raw)
            logger.info(f"Loaded stage catalog from {self.path}")
        else:
            catalog = StageCatalog()
            logger.debug("Using built-in stage catalog")

        self._cache = catalog
        return catalog


@lru_cache()
def get_default_catalog() -> StageCatalog:
    """Return the process-wide stage catalog (loaded once)."""
    return StageCatalogStore().load()
