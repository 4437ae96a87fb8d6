from ..models.entities import Employee, OverheadType

MONTHS_PER_PERIOD = {
    "annual": 12,
    "quarterly": 3,
    "monthly": 1,
}


def adjusted_gross_monthly(employee: Employee, annual_increase: float = 0.0) -> float:
    return employee.gross_monthly * (1 + annual_increase)


def annual_base(employee: Employee, annual_increase: float = 0.0) -> float:
    """Gross plus oncost, benefits and bonus for one year, excluding overheads."""
    gross = adjusted_gross_monthly(employee, annual_increase)
    oncost_rate = employee.oncost_rate or 0.0
    return gross * 12 * (1 + oncost_rate) + (employee.annual_benefits or 0.0) + (employee.annual_bonus or 0.0)


def raw_monthly(employee: Employee, annual_increase: float = 0.0) -> float:
    gross = adjusted_gross_monthly(employee, annual_increase)
    oncost_rate = employee.oncost_rate or 0.0
    return gross * (1 + oncost_rate) + (employee.annual_benefits or 0.0) / 12 + (employee.annual_bonus or 0.0) / 12


def overhead_monthly_equivalent(overhead_type: OverheadType) -> float:
    if overhead_type.amount < 0:
        raise ValueError(f"Overhead type {overhead_type.id} has a negative amount")
    months = MONTHS_PER_PERIOD.get(overhead_type.period)
    if months is None:
        raise ValueError(f"Unknown overhead period: {overhead_type.period}")
    return overhead_type.amount / months
