from typing import Iterable, List

from finding_review.schemas import BASIC_FIELDS, BasicFinding, Finding
from finding_review.utils import new_finding_id, random_color


def to_finding(basic: BasicFinding) -> Finding:
    return Finding(**basic.model_dump(include=set(BASIC_FIELDS)), id=new_finding_id(), color=random_color())


def normalize(basics: Iterable[BasicFinding]) -> List[Finding]:
    """
    Give each BasicFinding a fresh id and a display color.

    Order is preserved and the inputs are left untouched.
    """
    return [to_finding(basic) for basic in basics]
