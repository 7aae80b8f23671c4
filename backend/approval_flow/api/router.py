from fastapi import APIRouter

from approval_flow.api.documents import documents_router
from approval_flow.api.employees import employees_router
from approval_flow.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(requests_router)
api_router.include_router(documents_router)
api_router.include_router(employees_router)
