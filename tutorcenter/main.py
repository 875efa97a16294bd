import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tutorcenter.api.v1.attendance.router import router as attendance_router
from tutorcenter.api.v1.balances.router import router as balances_router
from tutorcenter.api.v1.holidays.router import router as holidays_router
from tutorcenter.api.v1.remediation.router import router as remediation_router
from tutorcenter.api.v1.sessions.router import router as sessions_router
from tutorcenter.core.config import settings


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    title = f"{settings.center_name} Attendance" if settings.center_name else "Tutor Center Attendance"
    app = FastAPI(title=title)

    # CORS: allow the front desk UI to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(sessions_router)
    app.include_router(attendance_router)
    app.include_router(balances_router)
    app.include_router(remediation_router)
    app.include_router(holidays_router)

    return app


app = create_app()
