from fastapi import APIRouter

from profitlens.api.routes import aggregation, customers, financial, health, kpi, plan, timeseries


api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(aggregation.router)
api_router.include_router(customers.router)
api_router.include_router(timeseries.router)
api_router.include_router(financial.router)
api_router.include_router(plan.router)
api_router.include_router(kpi.router)
