from __future__ import annotations
import logging
from typing import Any, Dict, List

from pawfund.errors import ConflictError, NotFoundError, ValidationError
from pawfund.models.saved_welfare import list_saved_welfares, save_welfare, unsave_welfare
from pawfund.models.welfare import get_welfare
from pawfund.utils.db import transaction
from pawfund.utils.payload import text

logger = logging.getLogger(__name__)


def saved_welfares(donor_id: str) -> List[Dict[str, Any]]:
    with transaction() as cur:
        return list_saved_welfares(cur, donor_id)


def save(donor_id: str, welfare_id: Any) -> Dict[str, Any]:
    welfare_id = text(welfare_id)
    if not welfare_id:
        raise ValidationError("welfareId is required")
    with transaction() as cur:
        welfare = get_welfare(cur, welfare_id)
        if not welfare:
            raise NotFoundError("welfare organization not found")
        row = save_welfare(cur, donor_id, welfare_id)
    if row is None:
        raise ConflictError("welfare organization already saved")
    logger.info("donor %s saved welfare %s", donor_id, welfare_id)
    return {"welfare_id": welfare["id"], "name": welfare["name"], "saved_at": row["created_at"]}


def unsave(donor_id: str, welfare_id: str) -> None:
    with transaction() as cur:
        removed = unsave_welfare(cur, donor_id, welfare_id)
    if not removed:
        raise NotFoundError("saved welfare not found")
