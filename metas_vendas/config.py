"""
Configuração do sistema de metas.

Valores sensíveis e caminhos vêm de variáveis de ambiente (arquivo `.env` na
raiz do projeto). Os parâmetros de negócio têm defaults fixos e podem ser
sobrescritos por ambiente.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

# Raiz do projeto (pasta acima do pacote)
BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def _env_float(nome: str, default: float) -> float:
    valor = os.getenv(nome)
    if valor is None or str(valor).strip() == "":
        return default
    try:
        return float(str(valor).replace(",", "."))
    except ValueError:
        return default


def _env_int(nome: str, default: int) -> int:
    valor = os.getenv(nome)
    if valor is None or str(valor).strip() == "":
        return default
    try:
        return int(valor)
    except ValueError:
        return default


# Faixas de ramp-up: (tenure máximo exclusivo em meses, percentual)
# A terceira faixa mantém 100% mas ainda conta como período de ramp-up.
RAMP_UP_PADRAO: Tuple[Tuple[int, int], ...] = ((1, 50), (2, 75), (3, 100))


@dataclass(frozen=True)
class ParametrosMetas:
    """Parâmetros de negócio usados pelo cálculo de metas e pelo parser."""

    growth_rate: float = 0.15
    ramp_up: Tuple[Tuple[int, int], ...] = RAMP_UP_PADRAO
    weeks_in_month: int = 4
    working_days_per_week: int = 5
    # Janela de varredura do localizador de tabelas
    max_linhas_busca: int = 10
    max_colunas_busca: int = 20

    @classmethod
    def from_env(cls) -> "ParametrosMetas":
        return cls(
            growth_rate=_env_float("METAS_GROWTH_RATE", 0.15),
            weeks_in_month=_env_int("METAS_WEEKS_IN_MONTH", 4),
            working_days_per_week=_env_int("METAS_WORKING_DAYS_PER_WEEK", 5),
            max_linhas_busca=_env_int("METAS_MAX_LINHAS_BUSCA", 10),
            max_colunas_busca=_env_int("METAS_MAX_COLUNAS_BUSCA", 20),
        )


@dataclass(frozen=True)
class Settings:
    """Configuração de infraestrutura (API, arquivos, limites de upload)."""

    sales_api_url: Optional[str] = None
    sales_api_key: Optional[str] = None
    sales_api_timeout: float = 30.0
    snapshot_path: str = str(BASE_DIR / "data" / "snapshots" / "vendas.json")
    log_file: str = str(BASE_DIR / "metas_vendas.log")
    max_upload_bytes: int = 5 * 1024 * 1024
    extensoes_permitidas: Tuple[str, ...] = (".xlsx", ".xlsm", ".csv")
    parametros: ParametrosMetas = field(default_factory=ParametrosMetas)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            sales_api_url=os.getenv("SALES_API_URL") or None,
            sales_api_key=os.getenv("SALES_API_KEY") or None,
            sales_api_timeout=_env_float("SALES_API_TIMEOUT", 30.0),
            snapshot_path=os.getenv("SNAPSHOT_PATH")
            or str(BASE_DIR / "data" / "snapshots" / "vendas.json"),
            log_file=os.getenv("METAS_LOG_FILE") or str(BASE_DIR / "metas_vendas.log"),
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024),
            parametros=ParametrosMetas.from_env(),
        )

    def as_dict(self) -> Dict:
        return {
            "sales_api_url": self.sales_api_url,
            "snapshot_path": self.snapshot_path,
            "log_file": self.log_file,
            "max_upload_bytes": self.max_upload_bytes,
            "extensoes_permitidas": list(self.extensoes_permitidas),
        }
