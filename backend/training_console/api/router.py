from fastapi import APIRouter

from training_console.api.routes.admin.router import router as admin_router

api_router = APIRouter()
api_router.include_router(admin_router)


@api_router.get("/healthz")
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
