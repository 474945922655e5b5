"""
Módulo responsável por buscar vendas, vendedores e dados importados na base
transacional (API REST no padrão PostgREST).

Tabelas consultadas:
- `sales` (amount, sale_date, salesperson_id)
- `salespeople` (cadastro com admissão, desligamento, status e overrides)
- `dashboard_data` (historical_data e current_year_data da última importação)

Cada consulta é repetida até `max_retries` vezes; se todas falharem, o
método retorna None e o chamador decide usar o snapshot local.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class SalesFetcher:
    """Responsável exclusivamente por consultar a API da base transacional."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 2,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()

    def _log(self, msg: str, nivel: int = logging.INFO) -> None:
        logger.log(nivel, "[VENDAS_API] %s", msg)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _get(self, tabela: str, params: Dict[str, str]) -> Optional[List[Dict]]:
        url = f"{self.base_url}/rest/v1/{tabela}"
        for attempt in range(1, self.max_retries + 1):
            try:
                r = self.session.get(url, params=params, headers=self._headers(), timeout=self.timeout)
                if r.status_code == 200:
                    data = r.json()
                    if isinstance(data, dict):
                        data = [data]
                    self._log(f"{tabela}: {len(data)} registros")
                    return data
                self._log(
                    f"{tabela}: HTTP {r.status_code} (tentativa {attempt}/{self.max_retries})",
                    logging.WARNING,
                )
            except (requests.RequestException, ValueError) as e:
                self._log(
                    f"Falha em {tabela} (tentativa {attempt}/{self.max_retries}): {e}",
                    logging.WARNING,
                )
        self._log(f"Nenhuma tentativa retornou {tabela}; retornando None.", logging.ERROR)
        return None

    def buscar_vendas(self, user_id: str) -> Optional[List[Dict]]:
        """
        Busca as vendas lançadas do usuário.

        Returns:
            Lista de dicionários com amount, sale_date e salesperson_id, ou None
        """
        return self._get(
            "sales",
            {"select": "amount,sale_date,salesperson_id", "user_id": f"eq.{user_id}"},
        )

    def buscar_vendedores(self, user_id: str) -> Optional[List[Dict]]:
        """Busca o cadastro de vendedores do usuário."""
        return self._get(
            "salespeople",
            {
                "select": "id,name,hire_date,termination_date,status,"
                "goal_override_percent,goal_override_value",
                "user_id": f"eq.{user_id}",
            },
        )

    def buscar_dados_importados(self, user_id: str) -> Optional[Dict]:
        """
        Busca as séries da última importação de planilha.

        Returns:
            Dicionário com historical_data e current_year_data (vazio se o
            usuário nunca importou), ou None se a API falhar
        """
        linhas = self._get(
            "dashboard_data",
            {"select": "historical_data,current_year_data", "user_id": f"eq.{user_id}"},
        )
        if linhas is None:
            return None
        return linhas[0] if linhas else {}
