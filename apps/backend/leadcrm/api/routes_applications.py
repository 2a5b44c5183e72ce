from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response

from leadcrm.contracts import InputValidationError, PathId, api
from leadcrm.services.crm_gateway import CRMGateway, UnknownLeadError, get_gateway

router = APIRouter(tags=["applications"])
applications = api["applications"]


@router.get(applications["list"].fastapi_path, response_model=applications["list"].response_model)
def list_applications(gateway: CRMGateway = Depends(get_gateway)):
    return gateway.list_applications()


@router.get(applications["get"].fastapi_path, response_model=applications["get"].response_model)
def get_application(id: PathId, gateway: CRMGateway = Depends(get_gateway)):
    app = gateway.get_application(id)
    if not app:
        raise HTTPException(status_code=404, detail="Application not found")
    return app


@router.post(
    applications["create"].fastapi_path,
    response_model=applications["create"].response_model,
    status_code=applications["create"].success_status,
)
def create_application(payload: Any = Body(None), gateway: CRMGateway = Depends(get_gateway)):
    data = applications["create"].parse_input(payload)
    try:
        return gateway.create_application(data)
    except UnknownLeadError as e:
        raise InputValidationError("Lead not found", "leadId") from e


@router.put(applications["update"].fastapi_path, response_model=applications["update"].response_model)
def update_application(id: PathId, payload: Any = Body(None), gateway: CRMGateway = Depends(get_gateway)):
    data = applications["update"].parse_input(payload)
    try:
        app = gateway.update_application(id, data)
    except UnknownLeadError as e:
        raise InputValidationError("Lead not found", "leadId") from e
    if not app:
        raise HTTPException(status_code=404, detail="Application not found")
    return app


@router.delete(applications["delete"].fastapi_path, status_code=applications["delete"].success_status)
def delete_application(id: PathId, gateway: CRMGateway = Depends(get_gateway)):
    gateway.delete_application(id)
    return Response(status_code=204)
