"""
API contract table

Single source of truth for every HTTP operation the CRM exposes: method, URL
template (``:param`` placeholders), input model and the response model for
each status code. Routes are bound from this table on the server and
``leadcrm.client`` resolves its calls through it.
"""

import re
from dataclasses import dataclass
from typing import Annotated, Any, Optional, Type

from fastapi import FastAPI, Path
from pydantic import BaseModel, ValidationError

from leadcrm import schemas

_PLACEHOLDER = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")

# Path ids outside the storage range are rejected as 400, never sent to the database
PathId = Annotated[int, Path(ge=1, le=schemas.MAX_ID)]


class InputValidationError(Exception):
    """Request payload failed validation; carries only the first offending field."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    @classmethod
    def from_errors(cls, errors: list[dict[str, Any]]) -> "InputValidationError":
        first = errors[0]
        path = ".".join(str(part) for part in first.get("loc", ()))
        return cls(first.get("msg", "Invalid input"), path or None)

    def to_body(self) -> dict[str, Any]:
        # "" marks the payload itself (e.g. a body that is not an object)
        return {"message": self.message, "field": self.field or ""}


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    responses: dict[int, Any]
    input: Optional[Type[BaseModel]] = None
    stream: bool = False

    @property
    def success_status(self) -> int:
        return min(code for code in self.responses if 200 <= code < 300)

    @property
    def response_model(self):
        return self.responses[self.success_status]

    @property
    def fastapi_path(self) -> str:
        return _PLACEHOLDER.sub(r"{\1}", self.path)

    def parse_input(self, payload: Any) -> BaseModel:
        if self.input is None:
            raise TypeError(f"{self.method} {self.path} takes no input")
        try:
            return self.input.model_validate(payload)
        except ValidationError as e:
            raise InputValidationError.from_errors(e.errors()) from e


def build_url(path: str, **params: Any) -> str:
    """Fill ``:name`` placeholders in *path*; unknown extra params are ignored.

    Raises ValueError when a placeholder has no matching parameter.
    """
    missing = [name for name in _PLACEHOLDER.findall(path) if name not in params]
    if missing:
        raise ValueError(f"Missing URL parameter(s) for {path}: {', '.join(missing)}")
    return _PLACEHOLDER.sub(lambda m: str(params[m.group(1)]), path)


error_bodies = {
    "validation": schemas.ValidationErrorBody,
    "not_found": schemas.NotFoundBody,
    "internal": schemas.InternalErrorBody,
}

api: dict[str, dict[str, Route]] = {
    "leads": {
        "list": Route("GET", "/api/leads", {200: list[schemas.LeadOut]}),
        "get": Route("GET", "/api/leads/:id", {200: schemas.LeadOut, 404: error_bodies["not_found"]}),
        "create": Route(
            "POST", "/api/leads",
            {201: schemas.LeadOut, 400: error_bodies["validation"]},
            input=schemas.LeadCreate,
        ),
        "update": Route(
            "PUT", "/api/leads/:id",
            {200: schemas.LeadOut, 400: error_bodies["validation"], 404: error_bodies["not_found"]},
            input=schemas.LeadUpdate,
        ),
        "delete": Route("DELETE", "/api/leads/:id", {204: None}),
    },
    "applications": {
        "list": Route("GET", "/api/applications", {200: list[schemas.ApplicationWithLead]}),
        "get": Route(
            "GET", "/api/applications/:id",
            {200: schemas.ApplicationWithLead, 404: error_bodies["not_found"]},
        ),
        "create": Route(
            "POST", "/api/applications",
            {201: schemas.ApplicationOut, 400: error_bodies["validation"]},
            input=schemas.ApplicationCreate,
        ),
        "update": Route(
            "PUT", "/api/applications/:id",
            {200: schemas.ApplicationOut, 400: error_bodies["validation"], 404: error_bodies["not_found"]},
            input=schemas.ApplicationUpdate,
        ),
        "delete": Route("DELETE", "/api/applications/:id", {204: None}),
    },
    "conversations": {
        "list": Route("GET", "/api/conversations", {200: list[schemas.ConversationOut]}),
        "get": Route(
            "GET", "/api/conversations/:id",
            {200: schemas.ConversationDetail, 404: error_bodies["not_found"]},
        ),
        "create": Route(
            "POST", "/api/conversations",
            {201: schemas.ConversationOut, 400: error_bodies["validation"]},
            input=schemas.ConversationCreate,
        ),
        "delete": Route("DELETE", "/api/conversations/:id", {204: None}),
        "send_message": Route(
            "POST", "/api/conversations/:id/messages",
            {200: None, 400: error_bodies["validation"], 404: error_bodies["not_found"]},
            input=schemas.MessageCreate,
            stream=True,
        ),
    },
    "advisor": {
        "send_message": Route(
            "POST", "/api/advisor/messages",
            {200: None, 400: error_bodies["validation"], 404: error_bodies["not_found"]},
            input=schemas.AdvisorMessage,
            stream=True,
        ),
    },
    "dashboard": {
        "stats": Route("GET", "/api/dashboard/stats", {200: schemas.DashboardStats}),
    },
}


def route_for(operation: str) -> Route:
    """Look up a route by dotted name, e.g. ``"leads.create"``."""
    group, _, name = operation.partition(".")
    try:
        return api[group][name]
    except KeyError:
        raise KeyError(f"Unknown operation: {operation}") from None


def verify_bindings(app: FastAPI) -> None:
    """Fail startup if any contract entry has no matching route on *app*."""
    paths = app.openapi()["paths"]
    bound = {(method.upper(), path) for path, operations in paths.items() for method in operations}
    unbound = [
        f"{group}.{name}"
        for group, routes in api.items()
        for name, route in routes.items()
        if (route.method, route.fastapi_path) not in bound
    ]
    if unbound:
        raise RuntimeError(f"Contract operations without a bound route: {', '.join(unbound)}")
