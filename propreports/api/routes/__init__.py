from propreports.api.routes.reports import router as reports_router

__all__ = [
    "reports_router",
]
