from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response

from leadcrm.contracts import PathId, api
from leadcrm.services.crm_gateway import CRMGateway, get_gateway

router = APIRouter(tags=["leads"])
leads = api["leads"]


@router.get(leads["list"].fastapi_path, response_model=leads["list"].response_model)
def list_leads(gateway: CRMGateway = Depends(get_gateway)):
    return gateway.list_leads()


@router.get(leads["get"].fastapi_path, response_model=leads["get"].response_model)
def get_lead(id: PathId, gateway: CRMGateway = Depends(get_gateway)):
    lead = gateway.get_lead(id)
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead


@router.post(
    leads["create"].fastapi_path,
    response_model=leads["create"].response_model,
    status_code=leads["create"].success_status,
)
def create_lead(payload: Any = Body(None), gateway: CRMGateway = Depends(get_gateway)):
    data = leads["create"].parse_input(payload)
    return gateway.create_lead(data)


@router.put(leads["update"].fastapi_path, response_model=leads["update"].response_model)
def update_lead(id: PathId, payload: Any = Body(None), gateway: CRMGateway = Depends(get_gateway)):
    data = leads["update"].parse_input(payload)
    lead = gateway.update_lead(id, data)
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead


@router.delete(leads["delete"].fastapi_path, status_code=leads["delete"].success_status)
def delete_lead(id: PathId, gateway: CRMGateway = Depends(get_gateway)):
    gateway.delete_lead(id)
    return Response(status_code=204)
