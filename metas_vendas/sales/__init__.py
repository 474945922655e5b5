"""
Pacote de acesso à base transacional de vendas.

Responsável por:
- Buscar vendas, vendedores e a última importação na API
- Guardar em JSON o último snapshot de cada usuário
- Fornecer os dados com cache explícito ao agregador e ao cálculo de metas
"""

from .data_service import DadosService, DadosSnapshot, montar_snapshot
from .sales_fetcher import SalesFetcher
from .snapshot_storage import SnapshotStorage

__all__ = ["DadosService", "DadosSnapshot", "montar_snapshot", "SalesFetcher", "SnapshotStorage"]
