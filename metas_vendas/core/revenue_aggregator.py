"""
Consolida o faturamento mensal de duas fontes (planilha importada e vendas
lançadas) em um único índice (ano, mês) -> faturamento.
"""

import logging
from datetime import date, datetime
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

import pandas as pd

from ..models import MESES_CODIGOS, MonthlyRecord, RevenueIndex, SaleRecord, numero_do_mes
from ..parsing.cells import parse_data, resolver_mes
from ..utils.normalization import normalizar_chave

logger = logging.getLogger(__name__)

Chave = Tuple[int, int]
RegistroMensal = Union[MonthlyRecord, Mapping]
Venda = Union[SaleRecord, Mapping]


def _chave_registro(registro: RegistroMensal) -> Optional[Tuple[Chave, float]]:
    """Extrai ((ano, mês), faturamento) de um MonthlyRecord ou dicionário."""
    if isinstance(registro, MonthlyRecord):
        return registro.chave, registro.revenue

    mes_bruto = registro.get("month")
    mes = numero_do_mes(mes_bruto) if isinstance(mes_bruto, str) else None
    if mes is None and isinstance(mes_bruto, str):
        mes = resolver_mes(normalizar_chave(mes_bruto))
    if mes is None and isinstance(mes_bruto, int) and 1 <= mes_bruto <= 12:
        mes = mes_bruto
    try:
        ano = int(registro.get("year"))
        valor = float(registro.get("revenue") or 0)
    except (TypeError, ValueError):
        return None
    if mes is None:
        return None
    return (ano, mes), max(valor, 0.0)


def _linha_venda(venda: Venda) -> Optional[Dict]:
    if isinstance(venda, SaleRecord):
        data, valor = venda.sale_date, venda.amount
    else:
        data = venda.get("sale_date")
        valor = venda.get("amount")
    if isinstance(data, datetime):
        data = data.date()
    elif not isinstance(data, date):
        data = parse_data(data)
    if data is None:
        return None
    try:
        valor = float(valor)
    except (TypeError, ValueError):
        return None
    return {"ano": data.year, "mes": data.month, "valor": valor}


class HistoricoAggregator:
    """
    Monta o RevenueIndex respeitando a precedência entre as fontes.
    """

    def agrupar_vendas(self, vendas: Iterable[Venda]) -> Dict[Chave, float]:
        """
        Soma as vendas lançadas por (ano, mês).

        Args:
            vendas: SaleRecord ou dicionários com 'amount' e 'sale_date'

        Returns:
            Dicionário {(ano, mês): soma}
        """
        linhas = [l for l in (_linha_venda(v) for v in vendas) if l is not None]
        if not linhas:
            return {}
        df = pd.DataFrame(linhas)
        agrupado = df.groupby(["ano", "mes"], as_index=False)["valor"].sum()
        return {
            (int(row.ano), int(row.mes)): float(row.valor)
            for row in agrupado.itertuples(index=False)
        }

    def construir_indice(
        self,
        historico: Iterable[RegistroMensal] = (),
        ano_corrente: Iterable[RegistroMensal] = (),
        vendas: Iterable[Venda] = (),
    ) -> RevenueIndex:
        """
        Constrói o índice de faturamento.

        Ordem de precedência:
        1. Histórico importado (registros posteriores da mesma chave substituem os anteriores)
        2. Ano corrente importado (apenas a primeira ocorrência de cada chave)
        3. Vendas lançadas somadas por mês, que substituem o valor importado da chave

        Args:
            historico: Série histórica importada
            ano_corrente: Série do ano corrente importada
            vendas: Vendas individuais da base transacional

        Returns:
            RevenueIndex com no máximo um valor por (ano, mês)
        """
        valores: Dict[Chave, float] = {}

        for registro in historico:
            extraido = _chave_registro(registro)
            if extraido is not None:
                valores[extraido[0]] = extraido[1]

        vistos_corrente = set()
        for registro in ano_corrente:
            extraido = _chave_registro(registro)
            if extraido is None or extraido[0] in vistos_corrente:
                continue
            vistos_corrente.add(extraido[0])
            valores[extraido[0]] = extraido[1]

        transacional = self.agrupar_vendas(vendas)
        substituidos = sum(1 for chave in transacional if chave in valores)
        valores.update(transacional)

        logger.info(
            "[METAS] Índice de faturamento: %d meses (%d de vendas lançadas, %d substituídos)",
            len(valores), len(transacional), substituidos,
        )
        return RevenueIndex(valores)


def indice_para_dataframe(indice: RevenueIndex) -> pd.DataFrame:
    """Visão tabular do índice com colunas ano, mes, mes_nome e faturamento."""
    linhas = [
        {"ano": ano, "mes": mes, "mes_nome": MESES_CODIGOS[mes - 1], "faturamento": valor}
        for (ano, mes), valor in indice.items()
    ]
    if not linhas:
        return pd.DataFrame(columns=["ano", "mes", "mes_nome", "faturamento"])
    return pd.DataFrame(linhas)
