"""Utilitários de normalização, logging e estilo de planilhas."""
