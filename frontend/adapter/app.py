"""
Adapter FastAPI do sistema de metas de vendas.

Este adapter apenas orquestra chamadas ao pacote `metas_vendas`
(importação de planilhas, cálculo de metas e KPIs, downloads), sem
regra de negócio própria.
"""

import dataclasses
import logging
from datetime import date
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, Field

from metas_vendas import __version__
from metas_vendas.config import Settings
from metas_vendas.core.kpi_calculator import KpiCalculator
from metas_vendas.io.template_export import (
    XLSX_MEDIA_TYPE,
    gerar_planilha_normalizada,
    gerar_planilha_pgv,
    gerar_template_vazio,
)
from metas_vendas.io.upload_processor import UploadProcessor, rotulo_mes
from metas_vendas.models import ParsedWorkbook, UploadConfig
from metas_vendas.parsing.series import aplicar_corte, mesclar_equipe, mesclar_registros
from metas_vendas.sales.data_service import DadosService, DadosSnapshot
from metas_vendas.sales.sales_fetcher import SalesFetcher
from metas_vendas.sales.snapshot_storage import SnapshotStorage
from metas_vendas.utils.logging import configurar_logging

# Carregar .env do diretório do adapter (complementa o .env da raiz)
adapter_dir = Path(__file__).parent
load_dotenv(dotenv_path=adapter_dir / ".env")

logger = logging.getLogger("metas_vendas.adapter")

USUARIO_PADRAO = "default"

# ==================== MODELS ====================


class PgvRequest(BaseModel):
    ano: int
    mes: int
    user_id: str = USUARIO_PADRAO
    weeks_in_month: Optional[int] = Field(None, ge=1, le=5)
    working_days_per_week: Optional[int] = Field(None, ge=1, le=7)
    team_monthly_goal: Optional[float] = None


# ==================== HELPER FUNCTIONS ====================


def criar_dados_service(settings: Settings) -> DadosService:
    """Monta o DadosService a partir da configuração (API opcional + snapshot local)."""
    fetcher = None
    if settings.sales_api_url:
        fetcher = SalesFetcher(
            settings.sales_api_url,
            api_key=settings.sales_api_key,
            timeout=settings.sales_api_timeout,
        )
    return DadosService(fetcher=fetcher, storage=SnapshotStorage(settings.snapshot_path))


def _validar_periodo(ano: int, mes: int, replace_all_data: bool = False) -> UploadConfig:
    try:
        return UploadConfig(selected_month=mes, selected_year=ano, replace_all_data=replace_all_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _mesclar_importacao(
    atual: DadosSnapshot,
    anterior: Optional[ParsedWorkbook],
    parsed: ParsedWorkbook,
    config: UploadConfig,
) -> ParsedWorkbook:
    """
    Mescla a nova importação com as séries já conhecidas do usuário.

    No mesmo mês/ano vence a planilha nova; o resultado é recortado de novo
    pelo período da importação. A equipe é mesclada pelo nome.
    """
    registros = mesclar_registros(
        atual.historico + atual.corrente,
        parsed.historical_data + parsed.current_year_data,
    )
    historico, corrente = aplicar_corte(registros, config.selected_month, config.selected_year)
    return dataclasses.replace(
        parsed,
        historical_data=historico,
        current_year_data=corrente,
        team=mesclar_equipe(anterior.team, parsed.team) if anterior else parsed.team,
        years_available=tuple(sorted({r.year for r in historico + corrente})),
    )


def _xlsx_response(conteudo: bytes, nome_arquivo: str) -> Response:
    return Response(
        content=conteudo,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{nome_arquivo}"'},
    )


def criar_app(
    settings: Optional[Settings] = None,
    dados_service: Optional[DadosService] = None,
) -> FastAPI:
    """
    Cria a aplicação FastAPI.

    Args:
        settings: Configuração (padrão: variáveis de ambiente)
        dados_service: Serviço de dados externos (injetável nos testes)

    Returns:
        Aplicação pronta para o uvicorn
    """
    settings = settings or Settings.from_env()
    configurar_logging(settings.log_file)
    dados = dados_service or criar_dados_service(settings)
    # última importação bem-sucedida por usuário
    importacoes: Dict[str, ParsedWorkbook] = {}

    app = FastAPI(
        title="Adapter Metas de Vendas",
        description="Backend adapter para importação de planilhas e cálculo de metas",
        version=__version__,
    )
    app.state.settings = settings
    app.state.dados_service = dados
    app.state.importacoes = importacoes

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ==================== ENDPOINTS - UPLOAD ====================

    @app.post("/upload/planilha")
    def upload_planilha(
        file: UploadFile = File(...),
        mes: int = Form(...),
        ano: int = Form(...),
        user_id: str = Form(USUARIO_PADRAO),
        replace_all_data: bool = Form(False),
    ):
        """
        Importa a planilha de faturamento (modelo simplificado ou legado).

        Com `replace_all_data` as séries do usuário são substituídas pelas da
        planilha; sem ele, são mescladas por mês/ano.
        """
        if not file.filename:
            raise HTTPException(status_code=400, detail="Nome de arquivo inválido")

        ext = Path(file.filename).suffix.lower()
        if ext not in settings.extensoes_permitidas:
            raise HTTPException(
                status_code=400,
                detail=f"Formato inválido. Use {', '.join(settings.extensoes_permitidas)}",
            )

        config = _validar_periodo(ano, mes, replace_all_data)
        conteudo = file.file.read()
        if len(conteudo) > settings.max_upload_bytes:
            limite_mb = settings.max_upload_bytes / (1024 * 1024)
            raise HTTPException(
                status_code=400, detail=f"Arquivo maior que o limite de {limite_mb:.1f} MB"
            )

        logger.info("[adapter] /upload/planilha -> arquivo=%s periodo=%02d/%d", file.filename, mes, ano)
        processor = UploadProcessor(settings.parametros)
        resultado = processor.processar(conteudo, file.filename, config)
        if not resultado.success:
            raise HTTPException(status_code=422, detail=resultado.error)

        atual = dados.obter_snapshot(user_id)
        parsed = resultado.data
        if not config.replace_all_data:
            parsed = _mesclar_importacao(atual, importacoes.get(user_id), parsed, config)
        importacoes[user_id] = parsed
        dados.definir_snapshot(
            user_id,
            dataclasses.replace(
                atual,
                historico=parsed.historical_data,
                corrente=parsed.current_year_data,
                origem="planilha",
            ),
        )

        resposta = resultado.to_dict()
        resposta["analise"] = processor.analise.to_dict()
        return resposta

    @app.get("/planilha/normalizada")
    def baixar_planilha_normalizada(user_id: str = Query(USUARIO_PADRAO)):
        """Baixa a última importação do usuário no modelo simplificado."""
        parsed = importacoes.get(user_id)
        if parsed is None:
            raise HTTPException(status_code=404, detail="Nenhuma planilha importada")
        return _xlsx_response(gerar_planilha_normalizada(parsed), "Dados_Normalizados.xlsx")

    @app.get("/template")
    def baixar_template():
        """Baixa o modelo simplificado vazio."""
        return _xlsx_response(gerar_template_vazio(), "Modelo_Metas_Vendas.xlsx")

    # ==================== ENDPOINTS - METAS ====================

    @app.get("/metas/{ano}/{mes}")
    def obter_metas(
        ano: int,
        mes: int,
        user_id: str = Query(USUARIO_PADRAO),
        team_monthly_goal: Optional[float] = Query(None, ge=0),
    ):
        """Metas da equipe e de cada vendedor ativo no mês."""
        _validar_periodo(ano, mes)
        calculadora = dados.calculadora_metas(user_id, settings.parametros)
        meta_equipe = calculadora.calcular_meta_equipe(mes, ano)
        resumo = calculadora.resumo_metas_equipe(mes, ano, team_monthly_goal=team_monthly_goal)
        resposta = resumo.to_dict()
        resposta["teamGoal"] = {
            "goal": team_monthly_goal if team_monthly_goal is not None else meta_equipe.goal,
            "source": "manual" if team_monthly_goal is not None else meta_equipe.source,
            "previousYearRevenue": meta_equipe.previous_year_revenue,
        }
        return resposta

    @app.post("/metas/pgv")
    def baixar_pgv(req: PgvRequest):
        """Gera a aba PGV do mês com as metas calculadas e o realizado importado."""
        _validar_periodo(req.ano, req.mes)
        semanas = req.weeks_in_month or settings.parametros.weeks_in_month
        dias = req.working_days_per_week or settings.parametros.working_days_per_week
        calculadora = dados.calculadora_metas(req.user_id, settings.parametros)
        try:
            goals = calculadora.calcular_metas_equipe(
                req.mes, req.ano, semanas, dias, req.team_monthly_goal
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        parsed = importacoes.get(req.user_id)
        conteudo = gerar_planilha_pgv(
            goals,
            req.mes,
            req.ano,
            team=parsed.team if parsed else (),
            weeks_in_month=semanas,
            working_days_per_week=[dias] * semanas,
        )
        return _xlsx_response(conteudo, f"PGV_{rotulo_mes(req.mes, req.ano)}.xlsx")

    # ==================== ENDPOINTS - HISTÓRICO / KPIs ====================

    @app.get("/historico")
    def obter_historico(user_id: str = Query(USUARIO_PADRAO)):
        """Índice de faturamento consolidado (planilha + vendas lançadas)."""
        snapshot = dados.obter_snapshot(user_id)
        return {
            "origem": snapshot.origem,
            "registros": dados.indice_receita(user_id).to_records(),
        }

    @app.get("/kpis")
    def obter_kpis(
        user_id: str = Query(USUARIO_PADRAO),
        mes: Optional[int] = Query(None),
        ano: Optional[int] = Query(None),
    ):
        """KPIs do período sobre as séries do usuário."""
        hoje = date.today()
        config = _validar_periodo(ano or hoje.year, mes or hoje.month)
        snapshot = dados.obter_snapshot(user_id)
        parsed = importacoes.get(user_id)
        # as séries guardadas foram recortadas no período da importação
        historico, corrente = aplicar_corte(
            snapshot.historico + snapshot.corrente, config.selected_month, config.selected_year
        )
        kpis = KpiCalculator().calcular(
            historico,
            corrente,
            parsed.team if parsed else (),
            config.selected_month,
            config.selected_year,
            parsed.mentorship_start_date if parsed else None,
        )
        return kpis.to_dict()

    @app.post("/dados/invalidar")
    def invalidar_dados(user_id: Optional[str] = Query(None)):
        """Descarta o cache de dados externos (um usuário ou todos)."""
        dados.invalidar(user_id)
        return {"success": True}

    # ==================== ENDPOINTS - DEBUG ====================

    @app.get("/health")
    def health():
        return {"status": "ok", "version": __version__}

    @app.get("/debug/logs")
    def obter_logs(lines: int = Query(200, ge=1, le=5000)):
        """Retorna as últimas linhas do arquivo de logs."""
        log_path = Path(settings.log_file)
        if not log_path.exists():
            return PlainTextResponse("Arquivo de log não encontrado.", status_code=404)
        try:
            with open(log_path, "r", encoding="utf-8") as f:
                conteudo = f.readlines()
        except OSError as e:
            raise HTTPException(status_code=500, detail=f"Erro ao ler logs: {e}")
        return PlainTextResponse("".join(conteudo[-lines:]))

    return app


app = criar_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
