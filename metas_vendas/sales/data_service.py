"""
Serviço de acesso aos dados externos (vendas, vendedores e última
importação) com cache explícito por usuário.

O cache vale até `invalidar(user_id)`; o agregador e o cálculo de metas
recebem sempre um DadosSnapshot imutável, o que permite testá-los com
snapshots montados à mão.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import ParametrosMetas
from ..core.goal_calculator import MetasCalculator
from ..core.revenue_aggregator import HistoricoAggregator
from ..models import MESES_CODIGOS, MonthlyRecord, RevenueIndex, SaleRecord, Salesperson
from ..parsing.cells import parse_data, resolver_mes
from ..utils.normalization import normalizar_chave
from .sales_fetcher import SalesFetcher
from .snapshot_storage import SnapshotStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DadosSnapshot:
    historico: Tuple[MonthlyRecord, ...] = ()
    corrente: Tuple[MonthlyRecord, ...] = ()
    vendas: Tuple[SaleRecord, ...] = ()
    vendedores: Tuple[Salesperson, ...] = ()
    origem: str = "vazio"


def _para_mensal(bruto: Dict) -> Optional[MonthlyRecord]:
    mes = bruto.get("month")
    if isinstance(mes, str) and mes not in MESES_CODIGOS:
        numero = resolver_mes(normalizar_chave(mes))
        mes = MESES_CODIGOS[numero - 1] if numero else None
    try:
        return MonthlyRecord(
            month=mes,
            year=int(bruto.get("year")),
            revenue=bruto.get("revenue") or 0,
            goal=bruto.get("goal") or 0,
        )
    except (TypeError, ValueError):
        return None


def _para_venda(bruto: Dict) -> Optional[SaleRecord]:
    data = parse_data(bruto.get("sale_date"))
    try:
        valor = float(bruto.get("amount"))
    except (TypeError, ValueError):
        return None
    if data is None:
        return None
    return SaleRecord(
        amount=valor,
        sale_date=data,
        salesperson_id=bruto.get("salesperson_id"),
        salesperson_name=bruto.get("salesperson_name"),
    )


def _para_vendedor(bruto: Dict) -> Optional[Salesperson]:
    admissao = parse_data(bruto.get("hire_date"))
    if admissao is None:
        return None
    try:
        return Salesperson(
            id=str(bruto.get("id")),
            name=str(bruto.get("name") or ""),
            hire_date=admissao,
            termination_date=parse_data(bruto.get("termination_date")),
            status=bruto.get("status") or "active",
            goal_override_percent=bruto.get("goal_override_percent"),
            goal_override_value=bruto.get("goal_override_value"),
        )
    except ValueError as e:
        logger.warning("[VENDAS_API] Vendedor ignorado (%s): %s", bruto.get("name"), e)
        return None


def _converter(brutos: Iterable[Dict], conversor) -> tuple:
    return tuple(r for r in (conversor(b) for b in brutos or ()) if r is not None)


def montar_snapshot(
    vendas: Iterable[Dict],
    vendedores: Iterable[Dict],
    historico: Iterable[Dict],
    corrente: Iterable[Dict],
    origem: str,
) -> DadosSnapshot:
    """Converte as listas brutas da API (ou do JSON local) em um DadosSnapshot."""
    return DadosSnapshot(
        historico=_converter(historico, _para_mensal),
        corrente=_converter(corrente, _para_mensal),
        vendas=_converter(vendas, _para_venda),
        vendedores=_converter(vendedores, _para_vendedor),
        origem=origem,
    )


class DadosService:
    """
    Fornece os dados externos por usuário com cache em memória.

    Args:
        fetcher: Cliente da API (None para operar só com snapshots)
        storage: Armazenamento local do último snapshot
        aggregator: Agregador usado para montar o índice de faturamento
    """

    def __init__(
        self,
        fetcher: Optional[SalesFetcher] = None,
        storage: Optional[SnapshotStorage] = None,
        aggregator: Optional[HistoricoAggregator] = None,
    ):
        self.fetcher = fetcher
        self.storage = storage
        self.aggregator = aggregator or HistoricoAggregator()
        self._cache: Dict[str, DadosSnapshot] = {}

    def obter_snapshot(self, user_id: str) -> DadosSnapshot:
        """
        Retorna o snapshot do usuário, buscando na API apenas na primeira
        chamada após a criação do serviço ou após `invalidar`.
        """
        user_id = str(user_id)
        if user_id not in self._cache:
            self._cache[user_id] = self._carregar(user_id)
        return self._cache[user_id]

    def definir_snapshot(self, user_id: str, snapshot: DadosSnapshot) -> None:
        """Coloca um snapshot pronto no cache (usado em testes e reprocessamentos)."""
        self._cache[str(user_id)] = snapshot

    def invalidar(self, user_id: Optional[str] = None) -> None:
        """Descarta o cache de um usuário (ou de todos)."""
        if user_id is None:
            self._cache.clear()
        else:
            self._cache.pop(str(user_id), None)

    def indice_receita(self, user_id: str) -> RevenueIndex:
        """Índice de faturamento consolidado do usuário."""
        snap = self.obter_snapshot(user_id)
        return self.aggregator.construir_indice(snap.historico, snap.corrente, snap.vendas)

    def calculadora_metas(
        self,
        user_id: str,
        parametros: Optional[ParametrosMetas] = None,
        hoje: Optional[date] = None,
    ) -> MetasCalculator:
        """MetasCalculator pronto para o usuário (índice + cadastro de vendedores)."""
        snap = self.obter_snapshot(user_id)
        return MetasCalculator(self.indice_receita(user_id), snap.vendedores, parametros, hoje)

    # ------------------------------------------------------------------
    # Carga
    # ------------------------------------------------------------------
    def _carregar(self, user_id: str) -> DadosSnapshot:
        brutos = self._buscar_api(user_id)
        if brutos is not None:
            if self.storage is not None:
                self.storage.salvar(user_id, **brutos)
            return montar_snapshot(origem="api", **brutos)

        salvo = self.storage.obter(user_id) if self.storage is not None else None
        if salvo:
            logger.warning("[VENDAS_API] API indisponível; usando snapshot de %s", salvo.get("data_atualizacao"))
            return montar_snapshot(
                salvo.get("vendas", []),
                salvo.get("vendedores", []),
                salvo.get("historico", []),
                salvo.get("corrente", []),
                origem="snapshot",
            )

        logger.warning("[VENDAS_API] Sem dados externos para o usuário %s", user_id)
        return DadosSnapshot()

    def _buscar_api(self, user_id: str) -> Optional[Dict[str, List]]:
        if self.fetcher is None:
            return None
        vendas = self.fetcher.buscar_vendas(user_id)
        vendedores = self.fetcher.buscar_vendedores(user_id)
        importados = self.fetcher.buscar_dados_importados(user_id)
        if vendas is None or vendedores is None or importados is None:
            return None
        return {
            "vendas": vendas,
            "vendedores": vendedores,
            "historico": importados.get("historical_data") or [],
            "corrente": importados.get("current_year_data") or [],
        }
