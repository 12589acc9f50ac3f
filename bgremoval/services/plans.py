"""Credit packs on sale."""

from dataclasses import dataclass

from bgremoval.core.exceptions import NotFoundError


@dataclass(frozen=True)
class Plan:
    id: str
    credits: int
    amount: int  # major currency units


PLANS: dict[str, Plan] = {
    p.id: p
    for p in (
        Plan("Basic", credits=100, amount=10),
        Plan("Advanced", credits=500, amount=50),
        Plan("Business", credits=5000, amount=250),
    )
}


def get_plan(plan_id: str) -> Plan:
    plan = PLANS.get(plan_id)
    if plan is None:
        raise NotFoundError("plan not found")
    return plan
