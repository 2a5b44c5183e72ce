from fastapi import APIRouter, Depends

from leadcrm.contracts import api
from leadcrm.services.crm_gateway import CRMGateway, get_gateway

router = APIRouter(tags=["dashboard"])
stats = api["dashboard"]["stats"]


@router.get(stats.fastapi_path, response_model=stats.response_model)
def dashboard_stats(gateway: CRMGateway = Depends(get_gateway)):
    """Aggregate counts behind the dashboard cards and charts."""
    return gateway.dashboard_stats()
