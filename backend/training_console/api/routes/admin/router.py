from fastapi import APIRouter

from training_console.api.deps.admin_auth import AdminAuth
from training_console.api.routes.admin.audit_log import router as audit_log_router
from training_console.api.routes.admin.final_evaluations import router as final_evaluations_router
from training_console.api.routes.admin.planner_approvals import router as planner_approvals_router

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[AdminAuth])

router.include_router(final_evaluations_router)
router.include_router(planner_approvals_router)
router.include_router(audit_log_router)
