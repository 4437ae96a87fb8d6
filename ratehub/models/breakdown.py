from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..core.arithmetic import add, divide, multiply


class BreakdownOp(str, Enum):
    VALUE = "value"
    SUM = "sum"
    PRODUCT = "product"
    RATIO = "ratio"


class Breakdown(BaseModel):
    """One audit node: a computed value, how it was computed and from what.

    Only the factory classmethods should be used to build nodes; they derive
    ``result`` from the inputs so a parent always equals the reduction of its
    children.
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, frozen=True)

    key: str
    label: str
    op: BreakdownOp
    result: Optional[float] = None
    formula: str = ""
    money: bool = False
    inputs: List["Breakdown"] = []

    @classmethod
    def value(cls, key: str, label: str, result: Optional[float], formula: str = "", money: bool = False) -> "Breakdown":
        return cls(key=key, label=label, op=BreakdownOp.VALUE, result=result, formula=formula or "input", money=money)

    @classmethod
    def sum(cls, key: str, label: str, inputs: List["Breakdown"], money: bool = True) -> "Breakdown":
        formula = " + ".join(node.key for node in inputs) if inputs else "0"
        return cls(
            key=key,
            label=label,
            op=BreakdownOp.SUM,
            result=reduce_inputs(BreakdownOp.SUM, inputs),
            formula=formula,
            money=money,
            inputs=inputs,
        )

    @classmethod
    def product(cls, key: str, label: str, inputs: List["Breakdown"], money: bool = True) -> "Breakdown":
        return cls(
            key=key,
            label=label,
            op=BreakdownOp.PRODUCT,
            result=reduce_inputs(BreakdownOp.PRODUCT, inputs),
            formula=" * ".join(node.key for node in inputs),
            money=money,
            inputs=inputs,
        )

    @classmethod
    def ratio(cls, key: str, label: str, numerator: "Breakdown", denominator: "Breakdown", money: bool = True) -> "Breakdown":
        inputs = [numerator, denominator]
        return cls(
            key=key,
            label=label,
            op=BreakdownOp.RATIO,
            result=reduce_inputs(BreakdownOp.RATIO, inputs),
            formula=f"{numerator.key} / {denominator.key}",
            money=money,
            inputs=inputs,
        )

    def walk(self):
        yield self
        for child in self.inputs:
            yield from child.walk()

    def scaled(self, exchange_ratio: Optional[float]) -> "Breakdown":
        """Copy with every money node divided by ``exchange_ratio``."""
        if not exchange_ratio or exchange_ratio <= 0:
            return self
        inputs = [child.scaled(exchange_ratio) for child in self.inputs]
        result = self.result
        if self.op == BreakdownOp.VALUE:
            if self.money:
                result = divide(result, exchange_ratio)
        else:
            result = reduce_inputs(self.op, inputs)
        return self.model_copy(update={"result": result, "inputs": inputs})


def reduce_inputs(op: BreakdownOp, inputs: List[Breakdown]) -> Optional[float]:
    values = [node.result for node in inputs]
    if op == BreakdownOp.SUM:
        return add(values)
    if op == BreakdownOp.PRODUCT:
        return multiply(values)
    if op == BreakdownOp.RATIO:
        numerator, denominator = values
        return divide(numerator, denominator)
    raise ValueError(f"{op} nodes have no inputs to reduce")


Breakdown.model_rebuild()
