"""
Módulo de logging e validação.
Contém a classe ValidationLogger, que registra as linhas/abas descartadas e os
fallbacks estruturais de cada importação, e a configuração do log em arquivo.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Dict, List, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


class ValidationLogger:
    """
    Registro de validação de uma importação de planilha.

    Mantém uma lista de entradas, cada uma com nível, mensagem e contexto.
    Entradas de nível AVISO e ERRO também são repassadas ao logger do módulo.
    """

    def __init__(self, nome: str = "metas_vendas.validacao"):
        self.validation_log: List[Dict[str, str]] = []
        self._logger = logging.getLogger(nome)

    def log(self, nivel: str, mensagem: str, contexto: Optional[Dict] = None):
        """
        Adiciona uma entrada ao log de validação.

        Args:
            nivel: Nível do log ("INFO", "AVISO" ou "ERRO")
            mensagem: Mensagem descritiva do log
            contexto: Dicionário opcional com informações adicionais de contexto
        """
        self.validation_log.append(
            {"Nível": nivel, "Mensagem": mensagem, "Contexto": str(contexto) if contexto else ""}
        )
        if nivel == "ERRO":
            self._logger.error("%s %s", mensagem, contexto or "")
        elif nivel == "AVISO":
            self._logger.warning("%s %s", mensagem, contexto or "")
        else:
            self._logger.debug("%s %s", mensagem, contexto or "")

    def info(self, mensagem: str, contexto: Optional[Dict] = None):
        self.log("INFO", mensagem, contexto)

    def aviso(self, mensagem: str, contexto: Optional[Dict] = None):
        self.log("AVISO", mensagem, contexto)

    def erro(self, mensagem: str, contexto: Optional[Dict] = None):
        self.log("ERRO", mensagem, contexto)

    def get_logs(self) -> List[Dict[str, str]]:
        """
        Retorna a lista completa de logs de validação.

        Returns:
            Lista de dicionários, cada um contendo "Nível", "Mensagem" e "Contexto"
        """
        return self.validation_log.copy()

    def filtrar(self, nivel: str) -> List[Dict[str, str]]:
        """Retorna apenas as entradas de um nível."""
        return [e for e in self.validation_log if e["Nível"] == nivel]

    def clear(self):
        """Limpa todos os logs armazenados."""
        self.validation_log.clear()

    def __len__(self) -> int:
        return len(self.validation_log)


def configurar_logging(log_file: Optional[str] = None, nivel: int = logging.INFO) -> logging.Logger:
    """
    Configura o logger raiz do pacote com saída em stdout e, opcionalmente,
    em arquivo rotativo (1 MB, 2 backups). Chamadas repetidas não duplicam
    handlers.

    Args:
        log_file: Caminho do arquivo de log (None para apenas stdout)
        nivel: Nível mínimo de log

    Returns:
        Logger "metas_vendas" configurado
    """
    logger = logging.getLogger("metas_vendas")
    logger.setLevel(nivel)
    formatter = logging.Formatter(LOG_FORMAT)

    has_stream = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler)
        for h in logger.handlers
    )
    if not has_stream:
        sh = logging.StreamHandler(sys.stdout)
        sh.setFormatter(formatter)
        logger.addHandler(sh)

    if log_file:
        has_file_handler = any(
            isinstance(h, RotatingFileHandler)
            and getattr(h, "baseFilename", "") == os.path.abspath(log_file)
            for h in logger.handlers
        )
        if not has_file_handler:
            try:
                fh = RotatingFileHandler(
                    log_file, maxBytes=1_000_000, backupCount=2, encoding="utf-8"
                )
            except OSError as e:
                logger.warning("Não foi possível abrir o arquivo de log %s: %s", log_file, e)
            else:
                fh.setFormatter(formatter)
                logger.addHandler(fh)

    logger.propagate = False
    return logger
