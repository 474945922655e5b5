"""
Testes do acesso à base transacional: cliente HTTP, snapshot local e
serviço de dados com cache.
"""

import json
from datetime import date

import pytest
import requests

from metas_vendas.models import MonthlyRecord
from metas_vendas.sales.data_service import DadosService, DadosSnapshot, montar_snapshot
from metas_vendas.sales.sales_fetcher import SalesFetcher
from metas_vendas.sales.snapshot_storage import SnapshotStorage

VENDAS = [{"amount": 700, "sale_date": "2025-03-05"}, {"amount": 500, "sale_date": "2025-03-20"}]
VENDEDORES = [
    {"id": 1, "name": "Ana", "hire_date": "2023-01-10", "status": "active"},
    {"id": 2, "name": "Bruno", "hire_date": "2023-06-01", "status": "inactive"},
    {"id": 3, "name": "Sem admissão", "hire_date": None},
]
IMPORTADOS = {
    "historical_data": [{"month": "Mar", "year": 2024, "revenue": 1000, "goal": 0}],
    "current_year_data": [{"month": "Mar", "year": 2025, "revenue": 1000, "goal": 1150}],
}


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("sem JSON")
        return self._payload


class FakeSession:
    """Sessão HTTP que responde por tabela e registra as chamadas."""

    def __init__(self, respostas):
        self.respostas = respostas
        self.chamadas = []

    def get(self, url, params=None, headers=None, timeout=None):
        tabela = url.rsplit("/", 1)[-1]
        self.chamadas.append((tabela, params, headers))
        resposta = self.respostas[tabela]
        if isinstance(resposta, list):
            resposta = resposta.pop(0)
        if isinstance(resposta, Exception):
            raise resposta
        return resposta


class FakeFetcher:
    def __init__(self, disponivel=True):
        self.disponivel = disponivel
        self.chamadas = 0

    def buscar_vendas(self, user_id):
        self.chamadas += 1
        return list(VENDAS) if self.disponivel else None

    def buscar_vendedores(self, user_id):
        return list(VENDEDORES) if self.disponivel else None

    def buscar_dados_importados(self, user_id):
        return dict(IMPORTADOS) if self.disponivel else None


# ----------------------------------------------------------------------
# SalesFetcher
# ----------------------------------------------------------------------
def test_fetcher_monta_requisicao():
    session = FakeSession({"sales": FakeResponse(200, VENDAS)})
    fetcher = SalesFetcher("https://api.exemplo.com/", api_key="chave", session=session)
    assert fetcher.buscar_vendas("u-1") == VENDAS
    tabela, params, headers = session.chamadas[0]
    assert tabela == "sales"
    assert params["user_id"] == "eq.u-1"
    assert headers["apikey"] == "chave"
    assert headers["Authorization"] == "Bearer chave"


def test_fetcher_repete_e_desiste():
    session = FakeSession({"sales": [requests.ConnectionError("fora do ar"), FakeResponse(500)]})
    fetcher = SalesFetcher("https://api.exemplo.com", max_retries=2, session=session)
    assert fetcher.buscar_vendas("u-1") is None
    assert len(session.chamadas) == 2


def test_fetcher_recupera_na_segunda_tentativa():
    session = FakeSession({"salespeople": [FakeResponse(503), FakeResponse(200, VENDEDORES)]})
    fetcher = SalesFetcher("https://api.exemplo.com", session=session)
    assert fetcher.buscar_vendedores("u-1") == VENDEDORES


def test_fetcher_dados_importados():
    session = FakeSession({"dashboard_data": [FakeResponse(200, [IMPORTADOS]), FakeResponse(200, [])]})
    fetcher = SalesFetcher("https://api.exemplo.com", session=session)
    assert fetcher.buscar_dados_importados("u-1") == IMPORTADOS
    assert fetcher.buscar_dados_importados("u-1") == {}


# ----------------------------------------------------------------------
# SnapshotStorage
# ----------------------------------------------------------------------
def test_snapshot_storage_salva_e_le(tmp_path):
    caminho = tmp_path / "snapshots" / "vendas.json"
    storage = SnapshotStorage(str(caminho))
    assert storage.obter("u-1") is None

    storage.salvar("u-1", VENDAS, VENDEDORES, IMPORTADOS["historical_data"], [])
    conteudo = json.loads(caminho.read_text(encoding="utf-8"))
    assert conteudo["metadata"]["usuarios"] == ["u-1"]
    assert conteudo["snapshots"]["u-1"]["vendas"] == VENDAS

    relido = SnapshotStorage(str(caminho)).obter("u-1")
    assert relido["vendedores"][0]["name"] == "Ana"


def test_snapshot_storage_arquivo_ilegivel(tmp_path):
    caminho = tmp_path / "vendas.json"
    caminho.write_text("{ quebrado", encoding="utf-8")
    assert SnapshotStorage(str(caminho)).obter("u-1") is None


# ----------------------------------------------------------------------
# DadosService
# ----------------------------------------------------------------------
def test_montar_snapshot_converte_e_descarta_invalidos():
    snap = montar_snapshot(VENDAS, VENDEDORES, IMPORTADOS["historical_data"], IMPORTADOS["current_year_data"], "api")
    assert [s.name for s in snap.vendedores] == ["Ana", "Bruno"]
    assert not snap.vendedores[1].is_active
    assert snap.vendas[0].sale_date == date(2025, 3, 5)
    assert snap.historico == (MonthlyRecord("Mar", 2024, 1000),)
    assert snap.origem == "api"


def test_servico_usa_cache_ate_invalidar(tmp_path):
    fetcher = FakeFetcher()
    service = DadosService(fetcher, SnapshotStorage(str(tmp_path / "vendas.json")))

    primeiro = service.obter_snapshot("u-1")
    segundo = service.obter_snapshot("u-1")
    assert primeiro is segundo
    assert fetcher.chamadas == 1

    service.invalidar("u-1")
    service.obter_snapshot("u-1")
    assert fetcher.chamadas == 2


def test_servico_indice_prioriza_vendas():
    service = DadosService(FakeFetcher())
    indice = service.indice_receita("u-1")
    assert indice.get(2025, 3) == 1200
    assert indice.get(2024, 3) == 1000


def test_servico_cai_para_snapshot_quando_api_falha(tmp_path):
    caminho = str(tmp_path / "vendas.json")
    DadosService(FakeFetcher(), SnapshotStorage(caminho)).obter_snapshot("u-1")

    service = DadosService(FakeFetcher(disponivel=False), SnapshotStorage(caminho))
    snap = service.obter_snapshot("u-1")
    assert snap.origem == "snapshot"
    assert len(snap.vendas) == 2


def test_servico_sem_fonte_retorna_vazio():
    snap = DadosService().obter_snapshot("u-1")
    assert snap == DadosSnapshot()


def test_servico_calculadora_com_snapshot_injetado():
    service = DadosService()
    service.definir_snapshot(
        "u-1",
        montar_snapshot([], VENDEDORES, IMPORTADOS["historical_data"], [], "teste"),
    )
    calc = service.calculadora_metas("u-1", hoje=date(2025, 3, 1))
    resumo = calc.resumo_metas_equipe(3, 2025)
    assert resumo.active_salespeople_count == 1
    assert resumo.total_monthly_goal == pytest.approx(1150)
