"""
Modelos de dados do sistema de metas de vendas.

Todos os registros são imutáveis (dataclasses congeladas). O método `to_dict`
de cada um produz o formato camelCase consumido pelo dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple


# Códigos canônicos dos meses (ordem do calendário)
MESES_CODIGOS = [
    "Jan", "Fev", "Mar", "Abr", "Mai", "Jun",
    "Jul", "Ago", "Set", "Out", "Nov", "Dez",
]

MESES_NOMES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]


def numero_do_mes(codigo: str) -> Optional[int]:
    """Converte um código canônico ('Jan'..'Dez') em número 1..12."""
    try:
        return MESES_CODIGOS.index(codigo) + 1
    except ValueError:
        return None


def _nao_negativo(valor) -> float:
    try:
        v = float(valor)
    except (TypeError, ValueError):
        return 0.0
    return v if v > 0 else 0.0


@dataclass(frozen=True)
class MonthlyRecord:
    month: str
    year: int
    revenue: float = 0.0
    goal: float = 0.0

    def __post_init__(self):
        if self.month not in MESES_CODIGOS:
            raise ValueError(f"Mês inválido: {self.month!r}")
        object.__setattr__(self, "revenue", _nao_negativo(self.revenue))
        object.__setattr__(self, "goal", _nao_negativo(self.goal))

    @property
    def month_number(self) -> int:
        return MESES_CODIGOS.index(self.month) + 1

    @property
    def chave(self) -> Tuple[int, int]:
        return (self.year, self.month_number)

    def to_dict(self) -> Dict:
        return {
            "month": self.month,
            "year": self.year,
            "revenue": self.revenue,
            "goal": self.goal,
        }


@dataclass(frozen=True)
class WeeklyRecord:
    week: int
    revenue: float = 0.0
    goal: float = 0.0

    def __post_init__(self):
        if not 1 <= int(self.week) <= 5:
            raise ValueError(f"Semana inválida: {self.week}")
        object.__setattr__(self, "revenue", _nao_negativo(self.revenue))
        object.__setattr__(self, "goal", _nao_negativo(self.goal))

    def to_dict(self) -> Dict:
        return {"week": self.week, "revenue": self.revenue, "goal": self.goal}


@dataclass(frozen=True)
class RosterMember:
    id: str
    name: str
    active: bool = True
    total_revenue: float = 0.0
    monthly_goal: float = 0.0
    weeks: Tuple[WeeklyRecord, ...] = ()
    total_sales_count: int = 0

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "avatar": "",
            "active": self.active,
            "totalRevenue": self.total_revenue,
            "monthlyGoal": self.monthly_goal,
            "weeks": [w.to_dict() for w in self.weeks],
            "totalSalesCount": self.total_sales_count,
        }


class SalespersonStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"


@dataclass(frozen=True)
class Salesperson:
    """
    Vendedor cadastrado no registro externo (consumido, não persistido aqui).

    O status `inactive` acompanha a data de desligamento; a reativação manual
    pode limpar a data sem mexer no histórico, por isso a coerência entre os
    dois campos não é imposta.
    """

    id: str
    name: str
    hire_date: date
    termination_date: Optional[date] = None
    status: SalespersonStatus = SalespersonStatus.ACTIVE
    goal_override_percent: Optional[float] = None
    goal_override_value: Optional[float] = None

    def __post_init__(self):
        if self.termination_date is not None and self.termination_date < self.hire_date:
            raise ValueError(
                f"Data de desligamento anterior à admissão para {self.name}"
            )
        if not isinstance(self.status, SalespersonStatus):
            object.__setattr__(self, "status", SalespersonStatus(self.status))

    @property
    def is_active(self) -> bool:
        return self.status == SalespersonStatus.ACTIVE


@dataclass(frozen=True)
class SaleRecord:
    """Venda individual vinda da base transacional."""

    amount: float
    sale_date: date
    salesperson_id: Optional[str] = None
    salesperson_name: Optional[str] = None


class RevenueIndex:
    """
    Índice imutável (ano, mês) -> faturamento consolidado.

    Existe no máximo um valor por chave; a precedência entre fontes é
    resolvida pelo agregador antes da construção.
    """

    def __init__(self, valores: Optional[Dict[Tuple[int, int], float]] = None):
        self._valores: Dict[Tuple[int, int], float] = dict(valores or {})

    def get(self, ano: int, mes: int) -> float:
        return self._valores.get((int(ano), int(mes)), 0.0)

    def previous_year(self, ano: int, mes: int) -> float:
        return self.get(ano - 1, mes)

    def has_year(self, ano: int) -> bool:
        return any(a == ano for a, _ in self._valores)

    def year_data(self, ano: int) -> Dict[int, float]:
        return {m: v for (a, m), v in sorted(self._valores.items()) if a == ano}

    def items(self) -> List[Tuple[Tuple[int, int], float]]:
        return sorted(self._valores.items())

    def to_records(self) -> List[Dict]:
        return [
            {"year": a, "month": m, "revenue": v}
            for (a, m), v in self.items()
        ]

    def __contains__(self, chave) -> bool:
        return chave in self._valores

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        return iter(sorted(self._valores))

    def __len__(self) -> int:
        return len(self._valores)

    def __repr__(self) -> str:
        return f"RevenueIndex({len(self._valores)} meses)"


@dataclass(frozen=True)
class CalculatedGoal:
    salesperson_id: str
    salesperson_name: str
    monthly_goal: float
    weekly_goal: float
    daily_goal: float
    rule_applied: str
    is_ramp_up: bool
    tenure_months: int
    ramp_up_percent: Optional[int] = None

    def to_dict(self) -> Dict:
        return {
            "salespersonId": self.salesperson_id,
            "salespersonName": self.salesperson_name,
            "monthlyGoal": self.monthly_goal,
            "weeklyGoal": self.weekly_goal,
            "dailyGoal": self.daily_goal,
            "ruleApplied": self.rule_applied,
            "isRampUp": self.is_ramp_up,
            "rampUpPercent": self.ramp_up_percent,
            "tenureMonths": self.tenure_months,
        }


@dataclass(frozen=True)
class TeamGoal:
    goal: float
    source: str
    previous_year_revenue: float


@dataclass(frozen=True)
class TeamGoalSummary:
    goals: Tuple[CalculatedGoal, ...]
    total_monthly_goal: float
    total_weekly_goal: float
    total_daily_goal: float
    active_salespeople_count: int
    ramp_up_count: int
    average_goal: float

    def to_dict(self) -> Dict:
        return {
            "goals": [g.to_dict() for g in self.goals],
            "totalMonthlyGoal": self.total_monthly_goal,
            "totalWeeklyGoal": self.total_weekly_goal,
            "totalDailyGoal": self.total_daily_goal,
            "activeSalespeopleCount": self.active_salespeople_count,
            "rampUpCount": self.ramp_up_count,
            "averageGoal": self.average_goal,
        }


@dataclass(frozen=True)
class Kpis:
    annual_goal: float = 0.0
    annual_realized: float = 0.0
    last_year_growth: float = 0.0
    mentorship_growth: float = 0.0
    current_month_name: str = ""
    average_ticket: float = 0.0
    total_sales_count: int = 0
    active_customers: int = 0
    atingimento: float = 0.0

    def to_dict(self) -> Dict:
        return {
            "annualGoal": self.annual_goal,
            "annualRealized": self.annual_realized,
            "lastYearGrowth": self.last_year_growth,
            "mentorshipGrowth": self.mentorship_growth,
            "currentMonthName": self.current_month_name,
            "averageTicket": self.average_ticket,
            "conversionRate": 0,
            "cac": 0,
            "ltv": 0,
            "activeCustomers": self.active_customers,
            "totalSalesCount": self.total_sales_count,
            "atingimento": self.atingimento,
        }


@dataclass(frozen=True)
class UploadConfig:
    selected_month: int
    selected_year: int
    replace_all_data: bool = False

    def __post_init__(self):
        if not 1 <= int(self.selected_month) <= 12:
            raise ValueError(f"Mês de corte inválido: {self.selected_month}")
        if not 2000 <= int(self.selected_year) <= 2100:
            raise ValueError(f"Ano de corte inválido: {self.selected_year}")


@dataclass(frozen=True)
class ParsedSeries:
    """Saída comum aos dois parsers de planilha."""

    historical_data: Tuple[MonthlyRecord, ...] = ()
    current_year_data: Tuple[MonthlyRecord, ...] = ()
    team: Tuple[RosterMember, ...] = ()
    mentorship_start_date: Optional[date] = None

    @property
    def years_available(self) -> List[int]:
        anos = {r.year for r in self.historical_data}
        anos.update(r.year for r in self.current_year_data)
        return sorted(anos)


@dataclass(frozen=True)
class ParsedWorkbook:
    sheets_found: Tuple[str, ...]
    row_count: int
    kpis: Kpis
    historical_data: Tuple[MonthlyRecord, ...]
    current_year_data: Tuple[MonthlyRecord, ...]
    team: Tuple[RosterMember, ...]
    years_available: Tuple[int, ...]
    mentorship_start_date: Optional[date]
    selected_month: str
    formato: str

    def to_dict(self) -> Dict:
        return {
            "sheetsFound": list(self.sheets_found),
            "rowCount": self.row_count,
            "kpis": self.kpis.to_dict(),
            "historicalData": [r.to_dict() for r in self.historical_data],
            "currentYearData": [r.to_dict() for r in self.current_year_data],
            "team": [t.to_dict() for t in self.team],
            "yearsAvailable": list(self.years_available),
            "mentorshipStartDate": (
                self.mentorship_start_date.isoformat()
                if self.mentorship_start_date
                else None
            ),
            "selectedMonth": self.selected_month,
            "formato": self.formato,
        }


@dataclass(frozen=True)
class UploadResult:
    """Resultado discriminado do processamento de um upload."""

    success: bool
    data: Optional[ParsedWorkbook] = None
    error: Optional[str] = None
    avisos: Tuple[Dict[str, str], ...] = field(default=())

    @classmethod
    def ok(cls, data: ParsedWorkbook, avisos=()) -> "UploadResult":
        return cls(success=True, data=data, avisos=tuple(avisos))

    @classmethod
    def falha(cls, mensagem: str) -> "UploadResult":
        return cls(success=False, error=mensagem)

    def to_dict(self) -> Dict:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "data": self.data.to_dict() if self.data else None,
            "avisos": list(self.avisos),
        }
