from fastapi import APIRouter
from vasooly.api.v1.endpoints import bills, upi

api_router = APIRouter()

api_router.include_router(bills.router)
api_router.include_router(upi.router)
