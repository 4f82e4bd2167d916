from fastapi import APIRouter, Depends

from paperbank.core.security import require_teacher
from paperbank.models.orm import User
from paperbank.models.schemas import DashboardStats
from paperbank.services.approvals import dashboard_stats
from paperbank.storage import Storage, get_storage

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
def stats(teacher: User = Depends(require_teacher), storage: Storage = Depends(get_storage)):
    return dashboard_stats(storage, teacher.id)
