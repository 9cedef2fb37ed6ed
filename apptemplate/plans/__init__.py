"""Named mutation plans.

The pipeline selects exactly one plan by name; each plan reproduces one
project template.
"""

from apptemplate.plans.activities import ActivitiesPlan
from apptemplate.plans.base import MutationPlan
from apptemplate.plans.services import ServicesPlan

PLANS: dict[str, type[MutationPlan]] = {
    ActivitiesPlan.name: ActivitiesPlan,
    ServicesPlan.name: ServicesPlan,
}

__all__ = [
    "ActivitiesPlan",
    "MutationPlan",
    "PLANS",
    "ServicesPlan",
]
