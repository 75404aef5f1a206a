from fastapi import Depends

from vasooly.db.mongo import get_db
from vasooly.repositories.bill_repo import BillRepository
from vasooly.services.settlement_service import SettlementService


def get_bill_repo(db = Depends(get_db)) -> BillRepository:
    return BillRepository(db)


def get_settlement_service(repo: BillRepository = Depends(get_bill_repo)) -> SettlementService:
    return SettlementService(repo)
