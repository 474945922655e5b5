"""
Armazenamento em JSON do último snapshot da base transacional por usuário,
usado quando a API está fora do ar.

Formato do arquivo `data/snapshots/vendas.json`:

{
  "metadata": {
    "ultima_atualizacao": "2025-11-14T10:30:00",
    "usuarios": ["u-1"],
    "schema_version": 1
  },
  "snapshots": {
    "u-1": {
      "data_atualizacao": "...",
      "vendas": [{"amount": 1200.0, "sale_date": "2025-03-10"}],
      "vendedores": [{"id": "1", "name": "Ana", "hire_date": "2024-01-10"}],
      "historico": [{"month": "Mar", "year": 2024, "revenue": 1000.0, "goal": 0}],
      "corrente": []
    }
  }
}
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class SnapshotStorage:
    """
    Encapsula leitura/escrita do JSON de snapshots.

    Não conhece regras de metas: apenas guarda e devolve as listas brutas
    recebidas da API.
    """

    def __init__(self, json_path: str = "data/snapshots/vendas.json") -> None:
        self.json_path = Path(json_path)
        self._data: Dict = {}

    def _load(self) -> Dict:
        """Carrega dados do JSON (lazy)."""
        if self._data:
            return self._data
        if self.json_path.exists():
            try:
                self._data = json.loads(self.json_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("[VENDAS_API] Snapshot ilegível em %s: %s", self.json_path, e)
                self._data = {}
        self._data.setdefault("metadata", {"schema_version": 1})
        self._data.setdefault("snapshots", {})
        return self._data

    def _save(self) -> None:
        """Persiste o conteúdo atual em disco."""
        try:
            self.json_path.parent.mkdir(parents=True, exist_ok=True)
            self.json_path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False, default=str), encoding="utf-8"
            )
        except OSError as e:
            # o snapshot é cópia de segurança: a resposta ao usuário não depende dele
            logger.warning("[VENDAS_API] Não foi possível salvar snapshot em %s: %s", self.json_path, e)

    def obter(self, user_id: str) -> Optional[Dict]:
        """Retorna o snapshot salvo do usuário, se existir."""
        return self._load()["snapshots"].get(str(user_id))

    def salvar(
        self,
        user_id: str,
        vendas: list,
        vendedores: list,
        historico: list,
        corrente: list,
    ) -> None:
        """Salva/substitui o snapshot do usuário e atualiza os metadados."""
        data = self._load()
        agora = datetime.now().isoformat()
        data["snapshots"][str(user_id)] = {
            "data_atualizacao": agora,
            "vendas": list(vendas),
            "vendedores": list(vendedores),
            "historico": list(historico),
            "corrente": list(corrente),
        }
        meta = data["metadata"]
        meta["ultima_atualizacao"] = agora
        meta["usuarios"] = sorted(data["snapshots"])
        meta.setdefault("schema_version", 1)
        self._save()
