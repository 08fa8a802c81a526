from fastapi import FastAPI

from officehub.routers import (
    auth,
    call_memos,
    clients,
    departments,
    files,
    finance,
    notifications,
    partners,
    progress_reports,
    realtime,
    staff,
    targets,
    users,
)

ROUTERS = (
    auth.router,
    users.router,
    departments.router,
    staff.router,
    clients.router,
    call_memos.router,
    partners.router,
    notifications.router,
    finance.router,
    progress_reports.router,
    targets.router,
    files.router,
    realtime.router,
)


def include_all_routers(app: FastAPI) -> None:
    for router in ROUTERS:
        app.include_router(router)
